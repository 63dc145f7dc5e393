"""
Data Models
Value types shared by the handshake, the dispatcher and the client.
"""

import json
from enum import Enum
from typing import NamedTuple

from .exceptions import ProtocolError


class HandshakeState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    REQUEST_TOKEN_OBTAINED = "request_token_obtained"
    AUTHORIZED = "authorized"


class UploadPhase(str, Enum):
    INIT = "INIT"
    APPEND = "APPEND"
    FINALIZE = "FINALIZE"


class MediaUploadResult(NamedTuple):
    """Media id handed back by the FINALIZE step of a chunked upload."""
    media_id_string: str

    @classmethod
    def from_json(cls, body: str) -> "MediaUploadResult":
        """
        Parse a media upload response body.

        Args:
            body: Raw JSON text returned by the upload endpoint

        Returns:
            MediaUploadResult holding ``media_id_string``

        Raises:
            ProtocolError: if the body is not JSON or carries no media id
        """
        try:
            data = json.loads(body)
        except ValueError as exc:
            raise ProtocolError(f"Media upload response is not JSON: {body!r}") from exc
        media_id = data.get("media_id_string") if isinstance(data, dict) else None
        if not media_id:
            raise ProtocolError("Media upload response is missing media_id_string")
        return cls(media_id_string=media_id)
