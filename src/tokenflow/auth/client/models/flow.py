"""Authorization flow models.

Contains the caller's authorization request, the flow state machine, and
the outcome of interpreting a redirect from the authorization server.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from tokenflow.auth.client.models.claims import IdentityClaims
from tokenflow.auth.client.models.errors import ArgumentError
from tokenflow.shared.utils import is_blank


class PromptBehavior(str, Enum):
    """How the authorization server should prompt the user."""

    AUTO = "auto"
    ALWAYS = "always"
    REFRESH_SESSION = "refresh_session"
    FORCE_LOGIN = "force_login"


class FlowState(str, Enum):
    """Lifecycle of a single authorization flow."""

    BUILT = "built"
    AUTHORIZATION_URI_READY = "authorization_uri_ready"
    REDIRECT_CAPTURED = "redirect_captured"
    STATE_VALIDATED = "state_validated"
    EXCHANGING = "exchanging"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (FlowState.SUCCEEDED, FlowState.FAILED)


@dataclass(frozen=True)
class AuthorizationRequest:
    """Parameters for one authorization flow, read-only once created."""

    authority: str
    client_id: str
    resource: str
    redirect_uri: str
    login_hint: str | None = None
    prompt: PromptBehavior = PromptBehavior.AUTO
    extra_query_parameters: str | None = None
    correlation_id: UUID | None = None

    def __post_init__(self) -> None:
        if is_blank(self.authority):
            raise ArgumentError("authority")
        if is_blank(self.client_id):
            raise ArgumentError("client_id")

    @property
    def authorization_endpoint(self) -> str:
        return f"{self.authority}/oauth2/authorize"

    @property
    def token_endpoint(self) -> str:
        return f"{self.authority}/oauth2/token"


@dataclass(frozen=True)
class ErrorOutcome:
    error: str
    description: str | None = None
    correlation_id: UUID | None = None


@dataclass(frozen=True)
class CodeOutcome:
    code: str


@dataclass(frozen=True)
class TokenOutcome:
    """Tokens delivered directly, by the implicit flow or a token endpoint."""

    access_token: str
    refresh_token: str | None = None
    expires_in_seconds: int | None = None
    resource: str | None = None
    id_token: str | None = None
    identity_claims: IdentityClaims | None = None


AuthorizationOutcome = ErrorOutcome | CodeOutcome | TokenOutcome
