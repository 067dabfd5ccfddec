"""Authorization URI and token request body construction.

Builds the query string sent to the authorization endpoint and the
``application/x-www-form-urlencoded`` bodies posted to the token endpoint
for the authorization code grant (RFC 6749 Section 4.1.3) and the refresh
token grant (RFC 6749 Section 6).
"""

from __future__ import annotations

import platform
from dataclasses import dataclass, field
from urllib.parse import quote_plus

from tokenflow.auth.client.models.errors import EncodingError
from tokenflow.auth.client.models.flow import AuthorizationRequest, PromptBehavior
from tokenflow.auth.client.primitives.state import encode_protocol_state
from tokenflow.shared.logging import LoggingContext, get_default_logging_context
from tokenflow.shared.utils import is_blank

LIBRARY_VERSION = "0.1.0"


@dataclass(frozen=True)
class ClientInfo:
    """Telemetry identifying the calling platform, sent with authorize requests."""

    sku: str = "Python"
    version: str = LIBRARY_VERSION
    os_version: str = field(default_factory=platform.release)
    device_model: str = field(default_factory=platform.machine)


def form_encode(value: str) -> str:
    """Percent-encode a value as UTF-8 form data.

    Raises:
        EncodingError: If the value cannot be encoded as UTF-8
    """
    try:
        return quote_plus(value, encoding="utf-8", errors="strict")
    except UnicodeEncodeError as e:
        raise EncodingError(f"Value cannot be encoded as UTF-8: {e}") from e


class RequestBuilder:
    """Builds authorize URIs and token request bodies for one request."""

    def __init__(
        self,
        request: AuthorizationRequest,
        client_info: ClientInfo | None = None,
        logging_context: LoggingContext | None = None,
    ):
        self.request = request
        self.client_info = client_info or ClientInfo()
        context = logging_context or get_default_logging_context()
        self._logger = context.get_logger(__name__)

    def build_authorization_uri(self) -> str:
        """Build the URI the user agent should open.

        Raises:
            EncodingError: If a value cannot be encoded as UTF-8
        """
        request = self.request
        state = encode_protocol_state(request.authority, request.resource)

        params = [
            ("response_type", "code"),
            ("client_id", form_encode(request.client_id)),
            ("resource", form_encode(request.resource)),
            ("redirect_uri", form_encode(request.redirect_uri)),
            ("state", form_encode(state)),
        ]

        if not is_blank(request.login_hint):
            params.append(("login_hint", form_encode(request.login_hint)))

        params.extend(
            [
                ("x-client-SKU", form_encode(self.client_info.sku)),
                ("x-client-Ver", form_encode(self.client_info.version)),
                ("x-client-OS", form_encode(self.client_info.os_version)),
                ("x-client-DM", form_encode(self.client_info.device_model)),
            ]
        )

        if request.correlation_id is not None:
            params.append(("client-request-id", form_encode(str(request.correlation_id))))

        # Skips any cached session cookies in the user agent.
        if request.prompt == PromptBehavior.ALWAYS:
            params.append(("prompt", "login"))

        query = "&".join(f"{name}={value}" for name, value in params)
        uri = f"{request.authorization_endpoint}?{query}"

        extra = request.extra_query_parameters
        if not is_blank(extra):
            if not extra.startswith("&"):
                extra = f"&{extra}"
            uri += extra

        self._logger.verbose(
            "Built authorization URI",
            f"client_id: {request.client_id}, resource: {request.resource}",
        )
        return uri

    def build_authorization_code_grant_body(self, code: str) -> str:
        """Build the body exchanging an authorization code for tokens."""
        return _join_form(
            [
                ("grant_type", "authorization_code"),
                ("code", code),
                ("client_id", self.request.client_id),
                ("redirect_uri", self.request.redirect_uri),
            ]
        )

    def build_refresh_grant_body(
        self, refresh_token: str, resource: str | None = None
    ) -> str:
        """Build the body redeeming a refresh token.

        The resource is only sent when it is not blank; a multi-resource
        refresh token may be redeemed without naming one.
        """
        fields = [
            ("grant_type", "refresh_token"),
            ("refresh_token", refresh_token),
            ("client_id", self.request.client_id),
        ]
        if not is_blank(resource):
            fields.append(("resource", resource))
        return _join_form(fields)


def _join_form(fields: list[tuple[str, str]]) -> str:
    return "&".join(f"{name}={form_encode(value)}" for name, value in fields)
