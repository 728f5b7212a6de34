"""Identity providers."""

from dataclasses import dataclass

from .config import settings


@dataclass
class StaticIdentity:
    """Identity fixed at construction time; None means nobody is signed in."""

    user_id: str | None = None

    def current_user_id(self) -> str | None:
        return self.user_id or None


def identity_from_settings() -> StaticIdentity:
    """Identity configured through CLIPFEED_USER_ID."""
    return StaticIdentity(settings.user_id)
