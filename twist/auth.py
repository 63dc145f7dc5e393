"""
Authentication Module
Credential state held by a Core instance.
"""

from typing import NamedTuple, Optional

from .config import Config


class CredentialSet(NamedTuple):
    """Consumer pair plus the (optional) access-token pair.

    The tuple is immutable: the token exchange replaces the whole value in a
    single assignment, so readers never see a half-updated set.
    """

    consumer_key: str
    consumer_secret: str
    access_token: Optional[str] = None
    access_token_secret: Optional[str] = None

    @classmethod
    def create(cls, consumer_key: Optional[str] = None, consumer_secret: Optional[str] = None,
               access_token: Optional[str] = None,
               access_token_secret: Optional[str] = None) -> "CredentialSet":
        """
        Build a validated credential set.

        Args:
            consumer_key: Twitter API Key
            consumer_secret: Twitter API Secret
            access_token: Twitter Access Token, absent until the handshake completes
            access_token_secret: Twitter Access Token Secret

        Raises:
            ValueError: if the consumer pair is missing, or only half of the
                access-token pair is given
        """
        if not all([consumer_key, consumer_secret]):
            raise ValueError("Missing required consumer credentials")
        if bool(access_token) != bool(access_token_secret):
            raise ValueError("Access token and access token secret must be given together")

        return cls(consumer_key, consumer_secret, access_token or None, access_token_secret or None)

    @classmethod
    def from_env(cls) -> "CredentialSet":
        """Build a credential set from TWITTER_API_KEY, TWITTER_API_SECRET,
        TWITTER_ACCESS_TOKEN and TWITTER_ACCESS_SECRET."""
        return cls.create(
            Config.TWITTER_API_KEY,
            Config.TWITTER_API_SECRET,
            Config.TWITTER_ACCESS_TOKEN,
            Config.TWITTER_ACCESS_SECRET,
        )

    @property
    def has_access_token(self) -> bool:
        return bool(self.access_token)

    def with_token(self, token: str, token_secret: str) -> "CredentialSet":
        """Return a copy signed with another token pair."""
        return self._replace(access_token=token, access_token_secret=token_secret)

    def __repr__(self) -> str:
        return (f"CredentialSet(consumer_key={self.consumer_key!r}, "
                f"has_access_token={self.has_access_token})")


class UserIdentity(NamedTuple):
    """Authorized user. Both fields are empty or both are set."""

    user_id: str = ""
    screen_name: str = ""

    @classmethod
    def create(cls, user_id: Optional[str], screen_name: Optional[str]) -> "UserIdentity":
        if bool(user_id) != bool(screen_name):
            raise ValueError("user_id and screen_name must be given together")
        return cls(user_id or "", screen_name or "")

    @property
    def is_resolved(self) -> bool:
        return bool(self.user_id)
