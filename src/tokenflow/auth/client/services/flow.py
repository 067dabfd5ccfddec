"""OAuth 2.0 authorization flow orchestration.

Sequences a single authorization flow: build the authorize URI, capture the
final redirect, validate its state, then either return tokens delivered by
the implicit flow or exchange the authorization code at the token endpoint.
Refresh token redemption is a separate entry point that skips the redirect.
"""

from __future__ import annotations

from urllib.parse import urlparse

from tokenflow.auth.client.models.errors import (
    ArgumentError,
    ErrorCode,
    FlowFinishedError,
    MalformedUrlError,
    ProtocolError,
    ProtocolStateError,
    TransportError,
)
from tokenflow.auth.client.models.flow import (
    AuthorizationRequest,
    CodeOutcome,
    ErrorOutcome,
    FlowState,
    TokenOutcome,
)
from tokenflow.auth.client.models.tokens import AuthenticationResult
from tokenflow.auth.client.primitives.state import ProtocolState, decode_protocol_state
from tokenflow.auth.client.services.requests import ClientInfo, RequestBuilder
from tokenflow.auth.client.services.responses import (
    ResponseParser,
    parse_redirect_parameters,
)
from tokenflow.shared.logging import LoggingContext, get_default_logging_context
from tokenflow.shared.utils import is_blank
from tokenflow.transport.base import Transport

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class OAuth2FlowManager:
    """Drives one authorization flow for one ``AuthorizationRequest``.

    Holds no state shared between flows: create one manager per flow attempt.
    Once the flow reaches SUCCEEDED or FAILED the manager is spent and any
    further flow step raises ``FlowFinishedError``.
    The only blocking call is the token endpoint POST made through the
    injected transport. No retries are attempted.
    """

    def __init__(
        self,
        request: AuthorizationRequest,
        transport: Transport,
        logging_context: LoggingContext | None = None,
        client_info: ClientInfo | None = None,
    ):
        """Initialize the flow manager.

        Args:
            request: Parameters for this flow
            transport: Transport used for token endpoint requests
            logging_context: Log level and sink, defaults to the process-wide one
            client_info: Telemetry sent with the authorize request
        """
        self.request = request
        self.transport = transport
        self.state = FlowState.BUILT

        context = logging_context or get_default_logging_context()
        self._logger = context.get_logger(__name__)
        self._builder = RequestBuilder(request, client_info, context)
        self._parser = ResponseParser(context)

    def get_code_request_url(self) -> str:
        """Build the authorization URI for the user agent to open."""
        url = self._builder.build_authorization_uri()
        self._transition(FlowState.AUTHORIZATION_URI_READY)
        return url

    def get_token(self, final_redirect_uri: str) -> AuthenticationResult:
        """Complete the flow from the final redirect URI.

        Args:
            final_redirect_uri: URI the user agent was redirected to

        Returns:
            AuthenticationResult from the implicit flow, the code exchange,
            or the error the authorization server reported

        Raises:
            ArgumentError: If the redirect URI is blank
            ProtocolStateError: If the state is missing or does not match
                this request's resource
            ProtocolError: If the redirect carries neither code nor token
            TransportError: If the code exchange cannot reach the server
        """
        if is_blank(final_redirect_uri):
            raise ArgumentError("final_redirect_uri")

        parameters = parse_redirect_parameters(final_redirect_uri)
        self._transition(FlowState.REDIRECT_CAPTURED)

        try:
            self._validate_state(parameters.get("state"))
        except ProtocolStateError:
            self._transition(FlowState.FAILED)
            raise
        self._transition(FlowState.STATE_VALIDATED)

        outcome = self._parser.classify_outcome(parameters)

        if isinstance(outcome, ErrorOutcome):
            self._logger.warning(
                f"Authorization failed: {outcome.error}",
                outcome.description,
                ErrorCode.SERVER_ERROR,
            )
            return self._finish(
                self._parser.to_result(outcome, correlation_id=self.request.correlation_id)
            )

        if isinstance(outcome, CodeOutcome) and outcome.code:
            self._logger.verbose("Authorization code received, exchanging for token")
            return self.get_token_for_code(outcome.code)

        if isinstance(outcome, TokenOutcome) and not is_blank(outcome.access_token):
            self._logger.verbose("Access token received directly from redirect")
            return self._finish(
                self._parser.to_result(outcome, correlation_id=self.request.correlation_id)
            )

        self._transition(FlowState.FAILED)
        raise ProtocolError("Authorization response has no code or access token")

    def get_token_for_code(self, code: str) -> AuthenticationResult:
        """Exchange an authorization code at the token endpoint."""
        if is_blank(code):
            raise ArgumentError("code")
        body = self._builder.build_authorization_code_grant_body(code)
        return self.post_token(body)

    def refresh_token(self, refresh_token: str) -> AuthenticationResult:
        """Redeem a refresh token for a new access token."""
        if is_blank(refresh_token):
            raise ArgumentError("refresh_token")
        body = self._builder.build_refresh_grant_body(
            refresh_token, self.request.resource
        )
        return self.post_token(body)

    def post_token(self, body: str) -> AuthenticationResult:
        """POST a token request body and parse the response.

        Raises:
            MalformedUrlError: If the authority cannot form a token endpoint URL
            TransportError: If the transport fails to deliver the request
        """
        endpoint = self._resolve_token_endpoint()
        self._transition(FlowState.EXCHANGING)

        headers = {"Accept": ["application/json"]}
        grant_type = body.partition("&")[0].partition("=")[2]
        self._logger.verbose(
            f"Token request to {endpoint}",
            f"grant_type: {grant_type}, client_id: {self.request.client_id}",
        )

        try:
            response = self.transport.post(
                endpoint,
                headers,
                body.encode("utf-8"),
                FORM_CONTENT_TYPE,
                correlation_id=self.request.correlation_id,
            )
        except TransportError as e:
            self._logger.error(str(e), error_code=ErrorCode.SERVER_ERROR, cause=e)
            self._transition(FlowState.FAILED)
            raise
        except Exception as e:
            self._logger.error(str(e), error_code=ErrorCode.SERVER_ERROR, cause=e)
            self._transition(FlowState.FAILED)
            raise TransportError(f"Unexpected error during token request: {e}") from e

        self._logger.verbose(f"Token response status: {response.status_code}")
        result = self._parser.parse_token_response_body(
            response.status_code,
            response.headers,
            response.body,
            self.request.correlation_id,
        )
        return self._finish(result)

    def _validate_state(self, encoded_state: str | None) -> None:
        decoded = decode_protocol_state(encoded_state)
        if is_blank(decoded):
            raise ProtocolStateError(
                "Authorization response has no state", ErrorCode.AUTH_FAILED_NO_STATE
            )

        protocol_state = ProtocolState.from_query(decoded)
        if not protocol_state.matches(self.request.resource):
            raise ProtocolStateError(
                "State in authorization response does not match the request",
                ErrorCode.AUTH_FAILED_BAD_STATE,
            )

    def _resolve_token_endpoint(self) -> str:
        endpoint = self.request.token_endpoint
        try:
            parsed = urlparse(endpoint)
            valid = parsed.scheme in ("http", "https") and bool(parsed.hostname)
        except ValueError:
            valid = False

        if not valid:
            self._transition(FlowState.FAILED)
            raise MalformedUrlError(
                f"Authority is not a valid URL: {self.request.authority}"
            )
        return endpoint

    def _finish(self, result: AuthenticationResult) -> AuthenticationResult:
        self._transition(
            FlowState.SUCCEEDED if result.is_success() else FlowState.FAILED
        )
        return result

    def _transition(self, state: FlowState) -> None:
        if self.state.is_terminal:
            raise FlowFinishedError(
                f"Flow already finished in state {self.state.value}"
            )
        self._logger.debug(f"Flow state {self.state.value} -> {state.value}")
        self.state = state
