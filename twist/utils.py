"""
Utility Functions
Helper functions for the twist client.
"""

import os
from typing import Dict, Iterator, Mapping, Optional, Sequence
from urllib.parse import parse_qs

from .exceptions import InvalidStateError, ProtocolError
from .signature import percent_encode

_MEDIA_SIGNATURES = [
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
]


def read_payload(media) -> bytes:
    """
    Turn a media argument into bytes.

    Args:
        media: bytes, a binary file object, or a filesystem path

    Returns:
        The media content

    Raises:
        InvalidStateError: if the media is missing or empty
    """
    if media is None:
        raise InvalidStateError("Media payload is missing")
    if isinstance(media, (bytes, bytearray, memoryview)):
        data = bytes(media)
    elif isinstance(media, (str, os.PathLike)):
        with open(media, "rb") as fh:
            data = fh.read()
    elif hasattr(media, "read"):
        data = media.read()
    else:
        raise TypeError(f"Unsupported media type: {type(media).__name__}")
    if not data:
        raise InvalidStateError("Media payload is empty")
    return data


def iter_chunks(data: bytes, chunk_size: int) -> Iterator[bytes]:
    """Yield consecutive slices of at most ``chunk_size`` bytes."""
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    for offset in range(0, len(data), chunk_size):
        yield data[offset:offset + chunk_size]


def guess_media_type(data: bytes) -> str:
    """Sniff a MIME type from the leading bytes of a media payload."""
    for magic, media_type in _MEDIA_SIGNATURES:
        if data.startswith(magic):
            return media_type
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if data[4:8] == b"ftyp":
        return "video/mp4"
    return "application/octet-stream"


def encode_form(params: Mapping[str, str]) -> str:
    """Encode parameters as an RFC 3986 percent-encoded form body."""
    return "&".join(f"{percent_encode(k)}={percent_encode(v)}" for k, v in params.items())


def parse_form_response(body: str, required: Sequence[str]) -> Dict[str, str]:
    """
    Parse a form-encoded token response.

    Args:
        body: Response text such as ``oauth_token=a&oauth_token_secret=b``
        required: Keys that must be present and non-empty

    Returns:
        Mapping of the first value for every key

    Raises:
        ProtocolError: if a required key is missing
    """
    values = {k: v[0] for k, v in parse_qs(body or "", keep_blank_values=True).items()}
    missing = [key for key in required if not values.get(key)]
    if missing:
        raise ProtocolError(f"Token response is missing {', '.join(missing)}")
    return values


def join_media_ids(media_ids: Optional[Sequence[str]]) -> Optional[str]:
    if not media_ids:
        return None
    return ",".join(media_ids)
