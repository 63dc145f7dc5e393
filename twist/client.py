"""
Twitter API Client
High-level client for authorizing a user and posting statuses.
"""

import json
from typing import Any, Dict, Optional

import aiohttp

from .auth import CredentialSet, UserIdentity
from .config import Config
from .core import Core
from .exceptions import ProtocolError
from .logger import logger
from .models import MediaUploadResult
from .negotiator import TokenNegotiator
from .utils import join_media_ids, read_payload


def _decode_status(body: str) -> Dict[str, Any]:
    if not body:
        return {}
    try:
        return json.loads(body)
    except ValueError as exc:
        raise ProtocolError(f"Status response is not JSON: {body!r}") from exc


class TwitterClient:
    """Twitter API Client for the PIN handshake and status updates."""

    def __init__(self, consumer_key: str, consumer_secret: str,
                 access_token: Optional[str] = None, access_token_secret: Optional[str] = None,
                 user_id: Optional[str] = None, screen_name: Optional[str] = None,
                 session: Optional[aiohttp.ClientSession] = None,
                 chunk_size: Optional[int] = None):
        """
        Initialize Twitter API client.

        Args:
            consumer_key: Twitter API Key
            consumer_secret: Twitter API Secret
            access_token: Twitter Access Token, if already authorized
            access_token_secret: Twitter Access Token Secret
            user_id: Id of the authorized user
            screen_name: Screen name of the authorized user
            session: Shared aiohttp session; one is created when omitted
            chunk_size: Media upload chunk size in bytes
        """
        credentials = CredentialSet.create(consumer_key, consumer_secret,
                                           access_token, access_token_secret)
        identity = UserIdentity.create(user_id, screen_name)
        self.core = Core(credentials, identity, session=session, chunk_size=chunk_size)
        self.negotiator = TokenNegotiator(self.core)

    @classmethod
    def from_env(cls, **kwargs) -> "TwitterClient":
        """Create a client from TWITTER_* environment variables."""
        credentials = CredentialSet.from_env()
        return cls(*credentials, **kwargs)

    @property
    def credentials(self) -> CredentialSet:
        return self.core.credentials

    @property
    def user_id(self) -> str:
        return self.core.identity.user_id

    @property
    def screen_name(self) -> str:
        return self.core.identity.screen_name

    @property
    def is_authorized(self) -> bool:
        return self.core.credentials.has_access_token

    async def close(self):
        await self.core.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def generate_authorize_url(self) -> str:
        """
        Start the PIN handshake.

        Returns:
            URL the user opens to authorize the app and read the PIN
        """
        logger.info("Starting authorization handshake")
        await self.negotiator.obtain_request_token(Config.REQUEST_TOKEN_URL)
        return self.negotiator.get_authorize_url(Config.AUTHORIZE_URL)

    async def get_access_token(self, pin: str) -> UserIdentity:
        """
        Finish the handshake with the PIN the user was shown.

        Args:
            pin: oauth_verifier value

        Returns:
            The authorized user's identity
        """
        return await self.negotiator.exchange(Config.ACCESS_TOKEN_URL, pin)

    async def _request(self, url: str, method: str = "POST",
                       params: Optional[Dict[str, str]] = None,
                       payload: Optional[bytes] = None) -> str:
        return await self.core.request(self.core.credentials, url, method, params, payload)

    async def upload_media(self, media, media_type: Optional[str] = None) -> MediaUploadResult:
        """
        Upload media with the chunked upload protocol.

        Args:
            media: bytes, a binary file object or a file path
            media_type: MIME type; sniffed from the content when omitted

        Returns:
            MediaUploadResult with the id to attach to a status
        """
        data = read_payload(media)
        params = {"media_type": media_type} if media_type else None
        body = await self._request(Config.MEDIA_UPLOAD_URL, "POST", params, data)
        return MediaUploadResult.from_json(body)

    async def update_with_text(self, text: str) -> Dict[str, Any]:
        """
        Post a status.

        Args:
            text: Status text

        Returns:
            Posted status data
        """
        body = await self._request(Config.STATUS_UPDATE_URL, "POST", {"status": text})
        logger.info("Posted status for @%s", self.screen_name or "unknown")
        return _decode_status(body)

    async def update_with_media(self, text: str, media, media_type: Optional[str] = None) -> Dict[str, Any]:
        """
        Post a status with one attached media item.

        Args:
            text: Status text
            media: bytes, a binary file object or a file path
            media_type: MIME type; sniffed from the content when omitted

        Returns:
            Posted status data

        Raises:
            InvalidStateError: if the media is missing or empty (before any request)
        """
        result = await self.upload_media(media, media_type)
        body = await self._request(Config.STATUS_UPDATE_URL, "POST",
                                   {"status": text, "media_ids": join_media_ids([result.media_id_string])})
        logger.info("Posted status with media %s", result.media_id_string)
        return _decode_status(body)
