"""
Negotiator Module
Three-legged OAuth 1.0a PIN handshake.
"""

from typing import Optional, Tuple

from .auth import CredentialSet, UserIdentity
from .core import Core
from .exceptions import InvalidStateError
from .logger import logger
from .models import HandshakeState
from .utils import parse_form_response

OUT_OF_BAND = "oob"


class TokenNegotiator:
    """Drive the request-token / authorize / access-token exchange for a Core.

    The request-token pair lives only on the negotiator. The Core's
    credentials and identity are replaced once, after the access-token
    exchange has fully succeeded.
    """

    def __init__(self, core: Core):
        self.core = core
        self._request_token: Optional[Tuple[str, str]] = None

    @property
    def state(self) -> HandshakeState:
        if self._request_token is not None:
            return HandshakeState.REQUEST_TOKEN_OBTAINED
        if self.core.credentials.has_access_token:
            return HandshakeState.AUTHORIZED
        return HandshakeState.UNAUTHENTICATED

    @property
    def request_token(self) -> Optional[str]:
        return self._request_token[0] if self._request_token else None

    async def obtain_request_token(self, url: str) -> str:
        """
        Fetch a temporary request token.

        Args:
            url: Request-token endpoint

        Returns:
            The request token
        """
        consumer_only = CredentialSet(self.core.credentials.consumer_key,
                                      self.core.credentials.consumer_secret)
        body = await self.core.request(consumer_only, url, "POST", oauth_callback=OUT_OF_BAND)
        values = parse_form_response(body, ("oauth_token", "oauth_token_secret"))
        self._request_token = (values["oauth_token"], values["oauth_token_secret"])
        logger.info("Obtained request token")
        return values["oauth_token"]

    def get_authorize_url(self, base_url: str) -> str:
        """Return the URL the user opens to obtain a PIN. No network call."""
        if self._request_token is None:
            raise InvalidStateError("No request token; call obtain_request_token first")
        return f"{base_url}?oauth_token={self._request_token[0]}"

    async def exchange(self, url: str, pin: str) -> UserIdentity:
        """
        Exchange the PIN for an access token.

        Args:
            url: Access-token endpoint
            pin: oauth_verifier shown to the user after authorizing

        Returns:
            The resolved user identity

        Raises:
            InvalidStateError: if no request token was obtained
            ProtocolError: if the response lacks a token or identity field;
                the Core's credentials are left untouched
        """
        if self._request_token is None:
            raise InvalidStateError("No request token; call obtain_request_token first")

        signing = self.core.credentials.with_token(*self._request_token)
        body = await self.core.request(signing, url, "POST", {"oauth_verifier": pin})
        values = parse_form_response(
            body, ("oauth_token", "oauth_token_secret", "user_id", "screen_name"))

        credentials = self.core.credentials.with_token(values["oauth_token"], values["oauth_token_secret"])
        identity = UserIdentity.create(values["user_id"], values["screen_name"])
        self.core.credentials, self.core.identity = credentials, identity
        self._request_token = None
        logger.info("Authorized as @%s (id=%s)", identity.screen_name, identity.user_id)
        return identity
