"""Protocol state codec.

The ``state`` parameter sent to the authorization server binds the redirect
back to the authority and resource of the request that produced it. The
plain form is ``a=<authority>&r=<resource>``, carried as unpadded base64url.

This is not an integrity mechanism: the value is neither signed nor
encrypted. Authority and resource are not escaped before encoding, so a
value containing ``&`` or ``=`` does not survive the round trip intact.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import unquote

from tokenflow.auth.client.models.errors import ErrorCode, ProtocolStateError
from tokenflow.shared.utils import b64url_decode, b64url_encode, is_blank

AUTHORITY_KEY = "a"
RESOURCE_KEY = "r"


@dataclass(frozen=True)
class ProtocolState:
    """Authority and resource recovered from a decoded state string."""

    authority: str | None
    resource: str | None

    @classmethod
    def from_query(cls, decoded_state: str) -> ProtocolState:
        """Read ``a`` and ``r`` from a decoded state query string.

        The first occurrence of each key wins. ``+`` is kept literally.
        """
        values: dict[str, str] = {}
        for pair in decoded_state.split("&"):
            key, _, value = pair.partition("=")
            key = unquote(key)
            if key and key not in values:
                values[key] = unquote(value)

        return cls(
            authority=values.get(AUTHORITY_KEY),
            resource=values.get(RESOURCE_KEY),
        )

    def matches(self, resource: str | None) -> bool:
        """True when both fields are present and the resource matches.

        Resources are compared case-insensitively.
        """
        if is_blank(self.authority) or is_blank(self.resource) or resource is None:
            return False
        return self.resource.casefold() == resource.casefold()


def encode_protocol_state(authority: str, resource: str) -> str:
    state = f"{AUTHORITY_KEY}={authority}&{RESOURCE_KEY}={resource}"
    return b64url_encode(state.encode("utf-8"))


def decode_protocol_state(encoded_state: str | None) -> str | None:
    """Decode a state parameter back to its plain query-string form.

    Returns:
        The decoded string, or None when the state is missing or blank

    Raises:
        ProtocolStateError: If the state is not valid base64url or UTF-8
    """
    if is_blank(encoded_state):
        return None

    try:
        return b64url_decode(encoded_state.strip()).decode("utf-8")
    except ValueError as e:
        raise ProtocolStateError(
            f"State parameter is not valid base64url: {e}",
            ErrorCode.AUTH_FAILED_BAD_STATE,
        ) from e
