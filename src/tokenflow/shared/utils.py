import base64
from collections.abc import Mapping


def is_blank(value: str | None) -> bool:
    """True for None, empty or whitespace-only strings."""
    return value is None or not value.strip()


def first_header_value(headers: Mapping[str, list[str]] | None, name: str) -> str | None:
    """Return the first value of a header, matching the name case-insensitively.

    Transports report headers as name -> list of values. Header names are
    compared without regard to case since servers are free to choose either.
    """
    if not headers:
        return None

    wanted = name.lower()
    for key, values in headers.items():
        if key.lower() == wanted and values:
            return values[0]
    return None


def b64url_encode(raw: bytes) -> str:
    """Base64url-encode without padding."""
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def b64url_decode(data: str) -> bytes:
    """Decode base64url, accepting unpadded input.

    Raises:
        binascii.Error: If the input contains characters outside the alphabet
            or has an impossible length
    """
    padding = "=" * (-len(data) % 4)
    return base64.b64decode(f"{data}{padding}", altchars=b"-_", validate=True)
