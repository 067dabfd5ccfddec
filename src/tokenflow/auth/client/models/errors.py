"""Exception hierarchy for OAuth 2.0 client errors.

Errors fall into two tiers. Structural and input problems (bad arguments,
unencodable text, an authority that cannot form a URL, transport failures)
abort the flow as exceptions. Problems with what the authorization server
sent back are either raised as protocol errors from the redirect stage or
resolved into a Failed ``AuthenticationResult`` at the token endpoint stage.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Stable identifiers attached to errors and log events."""

    ARGUMENT_EXCEPTION = "argument_exception"
    ENCODING_IS_NOT_SUPPORTED = "encoding_is_not_supported"
    DEVELOPER_AUTHORITY_IS_NOT_VALID_URL = "developer_authority_is_not_valid_url"
    AUTH_FAILED_NO_STATE = "auth_failed_no_state"
    AUTH_FAILED_BAD_STATE = "auth_failed_bad_state"
    AUTH_FAILED_NO_TOKEN = "auth_failed_no_token"
    SERVER_ERROR = "server_error"
    SERVER_INVALID_JSON_RESPONSE = "server_invalid_json_response"
    IDTOKEN_PARSING_FAILURE = "idtoken_parsing_failure"
    CORRELATION_ID_FORMAT = "correlation_id_format"
    CORRELATION_ID_NOT_MATCHING_REQUEST_RESPONSE = (
        "correlation_id_not_matching_request_response"
    )
    FLOW_ALREADY_FINISHED = "flow_already_finished"


class OAuth2Error(Exception):
    """Base exception for all OAuth 2.0 client errors."""

    error_code: ErrorCode = ErrorCode.SERVER_ERROR

    def __init__(self, message: str = "", error_code: ErrorCode | None = None):
        super().__init__(message)
        if error_code is not None:
            self.error_code = error_code


class ArgumentError(OAuth2Error, ValueError):
    """Raised when a required input is missing or blank."""

    error_code = ErrorCode.ARGUMENT_EXCEPTION


class EncodingError(OAuth2Error):
    """Raised when a value cannot be encoded as UTF-8 for a URL or body."""

    error_code = ErrorCode.ENCODING_IS_NOT_SUPPORTED


class MalformedUrlError(OAuth2Error):
    """Raised when the authority cannot form a valid endpoint URL."""

    error_code = ErrorCode.DEVELOPER_AUTHORITY_IS_NOT_VALID_URL


class ProtocolStateError(OAuth2Error):
    """Raised when the redirect's state parameter is missing or mismatched.

    This indicates either an authorization server that dropped the state, or
    a redirect that belongs to a different request or resource.
    """

    error_code = ErrorCode.AUTH_FAILED_BAD_STATE


class ProtocolError(OAuth2Error):
    """Raised when the authorization server returned no usable code or token."""

    error_code = ErrorCode.AUTH_FAILED_NO_TOKEN


class ServerError(OAuth2Error):
    """An error object returned by the authorization server.

    Carries the server-provided error code and description verbatim.
    """

    def __init__(self, error: str, error_description: str | None = None):
        message = error if not error_description else f"{error}: {error_description}"
        super().__init__(message, ErrorCode.SERVER_ERROR)
        self.error = error
        self.error_description = error_description


class ResponseParseError(OAuth2Error):
    """Raised when a token endpoint body is not a JSON object.

    Recovered by the response parser into a Failed result.
    """

    error_code = ErrorCode.SERVER_INVALID_JSON_RESPONSE


class IdentityTokenParseError(OAuth2Error):
    """Raised when an identity token or its claims payload is malformed.

    Recovered by the identity token decoder; claims are simply omitted.
    """

    error_code = ErrorCode.IDTOKEN_PARSING_FAILURE


class FlowFinishedError(OAuth2Error, RuntimeError):
    """Raised when a flow manager is used again after its flow finished."""

    error_code = ErrorCode.FLOW_ALREADY_FINISHED


class TransportError(OAuth2Error, ConnectionError):
    """Raised when the HTTP transport fails to deliver a request."""

    error_code = ErrorCode.SERVER_ERROR
