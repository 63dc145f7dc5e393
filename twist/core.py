"""
Core Module
Signed request dispatch over a shared aiohttp session.
"""

import asyncio
from typing import Dict, Mapping, Optional

import aiohttp
from yarl import URL

from .auth import CredentialSet, UserIdentity
from .config import Config, MAX_UPLOAD_CHUNK_SIZE
from .exceptions import InvalidStateError, NetworkError, ProtocolError, RemoteApiError
from .logger import logger
from .models import MediaUploadResult, UploadPhase
from .signature import authorization_header, protocol_parameters, sign
from .utils import encode_form, guess_media_type, iter_chunks

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class Core:
    """OAuth 1.0a request dispatcher.

    Holds the credential state of one logical client and a single pooled
    HTTP session reused for every call. Credentials are passed explicitly into
    :meth:`request`; the token negotiator is the only writer of
    ``credentials`` and ``identity``.
    """

    def __init__(self, credentials: CredentialSet, identity: Optional[UserIdentity] = None,
                 session: Optional[aiohttp.ClientSession] = None,
                 chunk_size: Optional[int] = None):
        """
        Initialize the dispatcher.

        Args:
            credentials: Consumer pair and optional access-token pair
            identity: Already resolved user, if the access token is known
            session: Shared aiohttp session; created lazily when omitted
            chunk_size: Media upload chunk size in bytes (max 5 MiB)
        """
        if chunk_size is None:
            chunk_size = Config.UPLOAD_CHUNK_SIZE
        if not 0 < chunk_size <= MAX_UPLOAD_CHUNK_SIZE:
            raise ValueError(f"chunk_size must be between 1 and {MAX_UPLOAD_CHUNK_SIZE} bytes")

        self.credentials = credentials
        self.identity = identity or UserIdentity()
        self.chunk_size = chunk_size
        self._session = session
        self._owns_session = session is None

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=Config.HTTP_TIMEOUT)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self):
        """Close the session if this instance created it."""
        if not self._owns_session or self._session is None:
            return
        if not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    def build_authorization(self, credentials: CredentialSet, url: str, method: str,
                            params: Optional[Mapping[str, str]] = None,
                            **oauth_extra: str) -> str:
        """
        Build the ``Authorization`` header for one request.

        A fresh nonce and timestamp are drawn on every call. Request
        parameters are signed but only protocol parameters are emitted.
        """
        oauth = protocol_parameters(credentials.consumer_key, credentials.access_token, **oauth_extra)
        signed = dict(params or {})
        signed.update(oauth)
        oauth["oauth_signature"] = sign(method, url, signed,
                                        credentials.consumer_secret,
                                        credentials.access_token_secret)
        return authorization_header(oauth)

    async def request(self, credentials: CredentialSet, url: str, method: str = "GET",
                      params: Optional[Mapping[str, str]] = None,
                      payload: Optional[bytes] = None, **oauth_extra: str) -> str:
        """
        Send a signed request and return the raw response body.

        Args:
            credentials: Credential set to sign with
            url: Endpoint URL without a query string
            method: GET or POST
            params: Request parameters (query for GET, form body for POST)
            payload: Binary media; switches POST to the chunked upload protocol
            **oauth_extra: Additional protocol parameters, e.g. oauth_callback

        Returns:
            Response body text of a 2xx response (FINALIZE body for uploads)

        Raises:
            RemoteApiError: on a non-2xx status
            NetworkError: on transport failure
            InvalidStateError: if an upload payload is empty
        """
        method = method.upper()
        if method not in ("GET", "POST"):
            raise InvalidStateError(f"Unsupported HTTP method: {method}")
        params = dict(params or {})
        if payload is not None:
            if method != "POST":
                raise InvalidStateError("Binary payloads can only be sent with POST")
            return await ChunkedUpload(self, credentials, url, payload, params).run()

        headers = {"Authorization": self.build_authorization(credentials, url, method, params, **oauth_extra)}
        if method == "GET":
            target = URL(f"{url}?{encode_form(params)}", encoded=True) if params else URL(url, encoded=True)
            return await self._send(method, target, headers)
        headers["Content-Type"] = FORM_CONTENT_TYPE
        return await self._send(method, URL(url, encoded=True), headers, data=encode_form(params))

    async def _send(self, method: str, url: URL, headers: Dict[str, str], data=None,
                    phase: Optional[UploadPhase] = None) -> str:
        phase_name = phase.value if phase else None
        logger.debug("%s %s%s", method, url.with_query(None), f" [{phase_name}]" if phase_name else "")
        try:
            async with self.session.request(method, url, headers=headers, data=data) as response:
                body = await response.text(errors="replace")
                status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise NetworkError(f"Request to {url.with_query(None)} failed: {exc}", phase=phase_name) from exc

        if not 200 <= status < 300:
            logger.warning("Twitter API returned HTTP %s for %s %s", status, method, url.with_query(None))
            raise RemoteApiError(status, body, phase=phase_name)
        return body


class ChunkedUpload:
    """INIT -> APPEND* -> FINALIZE media upload.

    Each phase is signed independently with the current access-token pair.
    Chunks go out strictly one after another. Any failure aborts the whole
    upload and the raised error carries the failing phase; the server-side
    media id is left unfinalized.
    """

    def __init__(self, core: Core, credentials: CredentialSet, url: str, payload: bytes,
                 params: Optional[Mapping[str, str]] = None, media_type: Optional[str] = None):
        if not payload:
            raise InvalidStateError("Media payload is empty")
        self.core = core
        self.credentials = credentials
        self.url = url
        self.payload = bytes(payload)
        self.params = dict(params or {})
        self.media_type = media_type or self.params.pop("media_type", None) or guess_media_type(self.payload)
        self.phase = UploadPhase.INIT
        self.media_id: Optional[str] = None
        self.segments_sent = 0

    async def run(self) -> str:
        await self.init()
        self.phase = UploadPhase.APPEND
        for index, chunk in enumerate(iter_chunks(self.payload, self.core.chunk_size)):
            await self.append(index, chunk)
        self.phase = UploadPhase.FINALIZE
        body = await self.finalize()
        logger.info("Uploaded media %s in %d segment(s)", self.media_id, self.segments_sent)
        return body

    async def _post_form(self, params: Mapping[str, str]) -> str:
        headers = {
            "Authorization": self.core.build_authorization(self.credentials, self.url, "POST", params),
            "Content-Type": FORM_CONTENT_TYPE,
        }
        return await self.core._send("POST", URL(self.url, encoded=True), headers,
                                     data=encode_form(params), phase=self.phase)

    async def init(self) -> str:
        params = dict(self.params)
        params.update({
            "command": UploadPhase.INIT.value,
            "total_bytes": str(len(self.payload)),
            "media_type": self.media_type,
        })
        body = await self._post_form(params)
        try:
            self.media_id = MediaUploadResult.from_json(body).media_id_string
        except ProtocolError as exc:
            raise ProtocolError(str(exc), phase=UploadPhase.INIT.value) from exc
        logger.debug("INIT returned media id %s", self.media_id)
        return body

    async def append(self, index: int, chunk: bytes) -> str:
        # multipart bodies are not part of the signature
        headers = {"Authorization": self.core.build_authorization(self.credentials, self.url, "POST")}
        form = aiohttp.FormData()
        form.add_field("command", UploadPhase.APPEND.value)
        form.add_field("media_id", self.media_id)
        form.add_field("segment_index", str(index))
        form.add_field("media", chunk, filename="media", content_type="application/octet-stream")
        body = await self.core._send("POST", URL(self.url, encoded=True), headers,
                                     data=form, phase=UploadPhase.APPEND)
        self.segments_sent += 1
        return body

    async def finalize(self) -> str:
        return await self._post_form({"command": UploadPhase.FINALIZE.value, "media_id": self.media_id})
