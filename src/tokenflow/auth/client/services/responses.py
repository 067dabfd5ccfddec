"""Parsing of authorization redirects and token endpoint responses.

Both the redirect back from the authorization server and the JSON body of a
token endpoint response reduce to a flat string mapping, which is then
classified into an ``AuthorizationOutcome``. When several outcome keys are
present, ``error`` wins over ``code``, which wins over ``access_token``.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from urllib.parse import parse_qsl, urlsplit
from uuid import UUID

from tokenflow.auth.client.models.errors import ErrorCode, ResponseParseError
from tokenflow.auth.client.models.flow import (
    AuthorizationOutcome,
    CodeOutcome,
    ErrorOutcome,
    TokenOutcome,
)
from tokenflow.auth.client.models.tokens import (
    AuthenticationResult,
    FailedResult,
    SucceededResult,
    UserInfo,
    compute_expires_on,
)
from tokenflow.auth.client.primitives.id_token import (
    IdentityTokenDecoder,
    flatten_json_object,
)
from tokenflow.shared.logging import LoggingContext, get_default_logging_context
from tokenflow.shared.utils import first_header_value, is_blank

JSON_PARSING_ERROR = "It failed to parse response as json"
NO_TOKEN_ERROR = "No access token in response"

CLIENT_REQUEST_ID_HEADER = "client-request-id"


def parse_form(text: str | None) -> dict[str, str]:
    """Form-decode a query string or fragment. The last duplicate key wins."""
    if not text:
        return {}
    return dict(parse_qsl(text, keep_blank_values=True))


def parse_redirect_parameters(final_uri: str) -> dict[str, str]:
    """Extract response parameters from the final redirect URI.

    The fragment is used when it carries parameters (implicit flow);
    otherwise the query string is used.
    """
    parts = urlsplit(final_uri)
    parameters = parse_form(parts.fragment)
    if not parameters:
        parameters = parse_form(parts.query)
    return parameters


def parse_expires_in(value: str | None) -> int | None:
    """Lifetime in seconds, or None when missing, blank or unparsable."""
    if is_blank(value):
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


class ResponseParser:
    """Turns server responses into outcomes and authentication results."""

    def __init__(
        self,
        logging_context: LoggingContext | None = None,
        id_token_decoder: IdentityTokenDecoder | None = None,
    ):
        context = logging_context or get_default_logging_context()
        self._logger = context.get_logger(__name__)
        self._id_token_decoder = id_token_decoder or IdentityTokenDecoder(context)

    def classify_outcome(
        self, params: Mapping[str, str]
    ) -> AuthorizationOutcome | None:
        """Classify a parameter set, or return None if it holds no outcome."""
        if "error" in params:
            correlation_id = self._parse_correlation_id(params.get("correlation_id"))
            self._logger.verbose(
                f"OAuth2 error: {params['error']}",
                f"Description: {params.get('error_description')} "
                f"CorrelationId: {correlation_id}",
            )
            return ErrorOutcome(
                error=params["error"],
                description=params.get("error_description"),
                correlation_id=correlation_id,
            )

        if "code" in params:
            return CodeOutcome(code=params["code"])

        if "access_token" in params:
            id_token = params.get("id_token")
            identity_claims = None
            if not is_blank(id_token):
                identity_claims = self._id_token_decoder.decode(id_token)
            else:
                self._logger.verbose("Identity token is not provided")

            return TokenOutcome(
                access_token=params["access_token"],
                refresh_token=params.get("refresh_token"),
                expires_in_seconds=parse_expires_in(params.get("expires_in")),
                resource=params.get("resource"),
                id_token=id_token,
                identity_claims=identity_claims,
            )

        return None

    def to_result(
        self,
        outcome: AuthorizationOutcome | None,
        captured_at: datetime | None = None,
        correlation_id: UUID | None = None,
    ) -> AuthenticationResult:
        """Convert an outcome into a terminal authentication result.

        Only a token outcome succeeds; a code or an empty outcome at this
        point means the server returned no usable token.
        """
        if isinstance(outcome, TokenOutcome):
            claims = outcome.identity_claims
            return SucceededResult(
                access_token=outcome.access_token,
                refresh_token=outcome.refresh_token,
                expires_on=compute_expires_on(outcome.expires_in_seconds, captured_at),
                is_multi_resource_refresh_token=outcome.resource is not None,
                user_info=UserInfo.from_claims(claims) if claims else None,
                identity_claims=claims,
                correlation_id=correlation_id,
            )

        if isinstance(outcome, ErrorOutcome):
            return FailedResult(
                error_code=outcome.error,
                error_description=outcome.description,
                correlation_id=outcome.correlation_id or correlation_id,
            )

        return FailedResult(
            error_code=ErrorCode.AUTH_FAILED_NO_TOKEN.value,
            error_description=NO_TOKEN_ERROR,
            correlation_id=correlation_id,
        )

    def parse_token_response_body(
        self,
        status_code: int,
        headers: Mapping[str, list[str]] | None,
        body: bytes | None,
        request_correlation_id: UUID | None = None,
    ) -> AuthenticationResult:
        """Parse a token endpoint response regardless of its HTTP status.

        Error details live in the body, so a 400 with an error object is
        reported through that object. A body that is not JSON yields a Failed
        result rather than an exception.
        """
        captured_at = datetime.now(timezone.utc)
        correlation_id = self._reconcile_correlation_id(headers, request_correlation_id)

        if body:
            try:
                params = self._parse_json_body(body)
            except ResponseParseError as e:
                self._logger.error(
                    str(e), error_code=ErrorCode.SERVER_INVALID_JSON_RESPONSE, cause=e
                )
                return FailedResult(
                    error_code=JSON_PARSING_ERROR,
                    error_description=str(e),
                    correlation_id=correlation_id,
                )
            return self.to_result(
                self.classify_outcome(params), captured_at, correlation_id
            )

        if body is None:
            message = f"Status code: {status_code}"
        else:
            message = ""
        self._logger.verbose("Server error message", message)
        return FailedResult(
            error_code=str(status_code),
            error_description=message,
            correlation_id=correlation_id,
        )

    def _parse_json_body(self, body: bytes) -> dict[str, str]:
        try:
            return flatten_json_object(body.decode("utf-8"))
        except ValueError as e:
            raise ResponseParseError(str(e)) from e

    def _parse_correlation_id(self, value: str | None) -> UUID | None:
        if is_blank(value):
            return None
        try:
            return UUID(value.strip())
        except ValueError:
            self._logger.error(
                f"CorrelationId is malformed: {value}",
                error_code=ErrorCode.CORRELATION_ID_FORMAT,
            )
            return None

    def _reconcile_correlation_id(
        self,
        headers: Mapping[str, list[str]] | None,
        request_correlation_id: UUID | None,
    ) -> UUID | None:
        """Compare the echoed correlation id with the request's.

        A mismatch or a malformed header is logged and otherwise ignored.
        Returns the echoed id when it parses, else the request's.
        """
        header_value = first_header_value(headers, CLIENT_REQUEST_ID_HEADER)
        if is_blank(header_value):
            return request_correlation_id

        try:
            echoed = UUID(header_value.strip())
        except ValueError as e:
            self._logger.error(
                f"Wrong format of the correlation ID: {header_value}",
                error_code=ErrorCode.CORRELATION_ID_FORMAT,
                cause=e,
            )
            return request_correlation_id

        if echoed != request_correlation_id:
            self._logger.warning(
                "CorrelationId is not matching",
                f"request: {request_correlation_id}, response: {echoed}",
                ErrorCode.CORRELATION_ID_NOT_MATCHING_REQUEST_RESPONSE,
            )

        self._logger.verbose(f"Response correlationId: {echoed}")
        return echoed
