"""
Twist - Twitter OAuth 1.0a Client
An asyncio client for the Twitter PIN handshake and status posting.
"""

__version__ = "0.1.0"
__author__ = "Developer"

from .auth import CredentialSet, UserIdentity
from .client import TwitterClient
from .core import Core
from .exceptions import (
    InvalidStateError,
    NetworkError,
    ProtocolError,
    RemoteApiError,
    TwistError,
)
from .models import HandshakeState, MediaUploadResult, UploadPhase
from .negotiator import TokenNegotiator
from .signature import percent_encode, sign

__all__ = [
    "TwitterClient",
    "Core",
    "TokenNegotiator",
    "CredentialSet",
    "UserIdentity",
    "MediaUploadResult",
    "HandshakeState",
    "UploadPhase",
    "TwistError",
    "NetworkError",
    "RemoteApiError",
    "ProtocolError",
    "InvalidStateError",
    "percent_encode",
    "sign",
]
