"""Principal identities of the form ``scheme:opaqueId``."""

from dataclasses import dataclass

from parley.errors import MalformedIdentity
from parley.platform.base import ContactDirectory

OMLET_SCHEME = "omlet"


@dataclass(frozen=True)
class Identity:
    scheme: str
    id: str

    def __str__(self) -> str:
        return f"{self.scheme}:{self.id}"


def parse_identity(identity: str) -> Identity:
    """Split an identity on its first colon.

    Raises:
        MalformedIdentity: no colon, or an empty scheme or id.
    """
    scheme, sep, opaque = (identity or "").partition(":")
    if not sep or not scheme or not opaque:
        raise MalformedIdentity(identity)
    return Identity(scheme, opaque)


def get_identity_name(contacts: ContactDirectory | None, identity: str) -> str:
    """Display name for a principal, falling back to the opaque id."""
    parsed = parse_identity(identity)
    if parsed.scheme == OMLET_SCHEME:
        return f"Omlet User @{parsed.id}"
    if contacts is not None:
        name = contacts.lookup_display_name(identity)
        if name:
            return name
    return parsed.id
