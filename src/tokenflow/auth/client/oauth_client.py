"""OAuth 2.0 client facade.

Coordinates the user agent, the flow manager and the transport to run a
complete authorization code flow, or a refresh token redemption, for an
``AuthorizationRequest``.
"""

from __future__ import annotations

import dataclasses
import uuid
from typing import Callable, Protocol

from tokenflow.auth.client.models.flow import AuthorizationRequest
from tokenflow.auth.client.models.tokens import AuthenticationResult
from tokenflow.auth.client.services.flow import OAuth2FlowManager
from tokenflow.auth.client.services.requests import ClientInfo
from tokenflow.shared.logging import LoggingContext, get_default_logging_context
from tokenflow.transport.base import Transport
from tokenflow.transport.http_client import HttpxTransport


class AuthorizationHandler(Protocol):
    """Protocol for the interactive user agent step.

    Allows different strategies for browser interaction:
    - Manual (return URL to developer)
    - Browser automation (open browser + local server)
    - Embedded webview integration
    """

    def handle_authorization(self, auth_url: str, redirect_uri: str) -> str:
        """Navigate to ``auth_url`` and return the final redirect URI.

        Args:
            auth_url: Authorization URL for the user to visit
            redirect_uri: Redirect URI that ends the interaction

        Returns:
            The URI the user agent was finally redirected to
        """
        ...


class ManualAuthorizationHandler:
    """Authorization handler that requires manual user interaction.

    Hands the authorization URL to a callback that returns the final redirect
    URI. Suitable for CLI tools and custom integrations.
    """

    def __init__(self, callback_handler: Callable[[str], str] | None = None):
        """Initialize manual authorization handler.

        Args:
            callback_handler: Optional function to call with auth URL.
                             Should return the final redirect URI.
        """
        self.callback_handler = callback_handler

    def handle_authorization(self, auth_url: str, redirect_uri: str) -> str:
        if self.callback_handler:
            return self.callback_handler(auth_url)
        raise NotImplementedError(
            f"Please visit {auth_url} and provide the URI redirected to {redirect_uri}"
        )


class OAuth2Client:
    """High-level entry point for acquiring tokens.

    Each call runs a fresh flow with its own ``OAuth2FlowManager``; the
    transport is the only collaborator shared between calls.
    """

    def __init__(
        self,
        authorization_handler: AuthorizationHandler | None = None,
        transport: Transport | None = None,
        logging_context: LoggingContext | None = None,
        client_info: ClientInfo | None = None,
        timeout: float = 30.0,
    ):
        """Initialize OAuth client.

        Args:
            authorization_handler: Handler for the user agent step
            transport: Transport for token requests, httpx by default
            logging_context: Log level and sink, defaults to the process-wide one
            client_info: Telemetry sent with authorization requests
            timeout: HTTP timeout for the default transport
        """
        self.authorization_handler = (
            authorization_handler or ManualAuthorizationHandler()
        )
        self.transport = transport or HttpxTransport(timeout=timeout)
        self.logging_context = logging_context or get_default_logging_context()
        self.client_info = client_info
        self._logger = self.logging_context.get_logger(__name__)

    def create_flow(self, request: AuthorizationRequest) -> OAuth2FlowManager:
        """Create a flow manager, assigning a correlation id if none was set."""
        if request.correlation_id is None:
            request = dataclasses.replace(request, correlation_id=uuid.uuid4())

        return OAuth2FlowManager(
            request,
            self.transport,
            logging_context=self.logging_context,
            client_info=self.client_info,
        )

    def acquire_token(self, request: AuthorizationRequest) -> AuthenticationResult:
        """Run an interactive authorization flow.

        Performs the complete flow:
        1. Build the authorization URL
        2. Hand it to the user agent and wait for the final redirect
        3. Validate the redirect and exchange the code for tokens

        Raises:
            Various OAuth errors if the flow cannot complete
        """
        flow = self.create_flow(request)
        self._logger.info(
            f"Starting authorization for {request.resource} "
            f"(correlation id {flow.request.correlation_id})"
        )

        auth_url = flow.get_code_request_url()
        final_redirect_uri = self.authorization_handler.handle_authorization(
            auth_url, request.redirect_uri
        )

        result = flow.get_token(final_redirect_uri)
        self._logger.info(f"Authorization finished with status {result.status.value}")
        return result

    def acquire_token_by_refresh_token(
        self, request: AuthorizationRequest, refresh_token: str
    ) -> AuthenticationResult:
        """Redeem a refresh token without user interaction."""
        flow = self.create_flow(request)
        self._logger.debug(f"Refreshing token for {request.resource}")
        return flow.refresh_token(refresh_token)

    def close(self) -> None:
        """Close the transport."""
        self.transport.close()
