"""
Signature Module
OAuth 1.0a HMAC-SHA1 request signing.

Everything here is a pure function of its arguments. The nonce and timestamp
helpers are called by the dispatcher once per HTTP request; the signing
functions only consume the values they are given.
"""

import base64
import hashlib
import hmac
import secrets
import time
from typing import Dict, Mapping, Optional
from urllib.parse import quote, urlsplit, urlunsplit

SIGNATURE_METHOD = "HMAC-SHA1"
OAUTH_VERSION = "1.0"

_DEFAULT_PORTS = {"http": 80, "https": 443}


def generate_nonce() -> str:
    """Return a cryptographically random, single-use nonce."""
    return secrets.token_hex(16)


def generate_timestamp() -> str:
    """Return the current Unix time in whole seconds."""
    return str(int(time.time()))


def percent_encode(value) -> str:
    """
    Percent-encode a value following RFC 3986.

    Letters, digits, '-', '.', '_' and '~' are left as they are. Every other
    byte of the UTF-8 encoding becomes %XX, so a space is %20 and never '+'.

    Args:
        value: String (or anything with a str() form) to encode

    Returns:
        Encoded string
    """
    return quote(str(value), safe="~")


def normalize_url(url: str) -> str:
    """
    Reduce a URL to the base string URI used for signing.

    Scheme and host are lowercased, default ports are dropped and the query
    string and fragment are removed.
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if parts.port and parts.port != _DEFAULT_PORTS.get(scheme):
        host = f"{host}:{parts.port}"
    return urlunsplit((scheme, host, parts.path or "/", "", ""))


def normalize_parameters(params: Mapping[str, str]) -> str:
    """Encode, sort and join parameters as ``k=v&k=v``."""
    encoded = sorted((percent_encode(k), percent_encode(v)) for k, v in params.items())
    return "&".join(f"{k}={v}" for k, v in encoded)


def signature_base_string(method: str, url: str, params: Mapping[str, str]) -> str:
    """
    Build the signature base string.

    Format: METHOD&encoded(base URL)&encoded(normalized parameters)
    """
    return "&".join([
        method.upper(),
        percent_encode(normalize_url(url)),
        percent_encode(normalize_parameters(params)),
    ])


def signing_key(consumer_secret: str, token_secret: Optional[str] = "") -> str:
    return f"{percent_encode(consumer_secret)}&{percent_encode(token_secret or '')}"


def hmac_sha1(base_string: str, key: str) -> str:
    digest = hmac.new(key.encode("utf-8"), base_string.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


def sign(method: str, url: str, params: Mapping[str, str],
         consumer_secret: str, token_secret: Optional[str] = "") -> str:
    """
    Compute an OAuth 1.0a HMAC-SHA1 signature.

    Args:
        method: HTTP method (GET/POST)
        url: Target URL; query parameters must be passed in ``params``
        params: Protocol and request parameters to sign
        consumer_secret: Consumer secret
        token_secret: Token secret, empty before an access token exists

    Returns:
        Base64-encoded signature
    """
    base_string = signature_base_string(method, url, params)
    return hmac_sha1(base_string, signing_key(consumer_secret, token_secret))


def protocol_parameters(consumer_key: str, token: Optional[str] = None,
                        nonce: Optional[str] = None, timestamp: Optional[str] = None,
                        **extra: str) -> Dict[str, str]:
    """
    Assemble the ``oauth_*`` parameter set for one request.

    ``oauth_token`` is only added when a token is given. ``extra`` holds
    additional protocol parameters such as ``oauth_callback``.
    """
    params = {
        "oauth_consumer_key": consumer_key,
        "oauth_nonce": nonce or generate_nonce(),
        "oauth_signature_method": SIGNATURE_METHOD,
        "oauth_timestamp": timestamp or generate_timestamp(),
        "oauth_version": OAUTH_VERSION,
    }
    if token:
        params["oauth_token"] = token
    params.update(extra)
    return params


def authorization_header(oauth_params: Mapping[str, str]) -> str:
    """Render protocol parameters as an ``OAuth k="v", ...`` header value."""
    fields = ", ".join(
        f'{percent_encode(k)}="{percent_encode(v)}"' for k, v in sorted(oauth_params.items())
    )
    return f"OAuth {fields}"
