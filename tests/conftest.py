"""
Shared pytest fixtures for the twist test suite.
"""
from typing import NamedTuple
from urllib.parse import unquote

import pytest

from twist.auth import CredentialSet


class RecordedCall(NamedTuple):
    method: str
    url: str
    headers: dict
    data: object


class FakeResponse:
    def __init__(self, status=200, body=""):
        self.status = status
        self.body = body

    async def text(self, encoding="utf-8", errors="strict"):
        if isinstance(self.body, bytes):
            return self.body.decode(encoding, errors)
        return self.body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class FakeSession:
    """Stand-in for aiohttp.ClientSession replaying canned responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
        self.closed = False

    def queue(self, status=200, body=""):
        self.responses.append(FakeResponse(status, body))

    def queue_error(self, exc):
        self.responses.append(exc)

    def request(self, method, url, headers=None, data=None):
        self.calls.append(RecordedCall(method, str(url), dict(headers or {}), data))
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    async def close(self):
        self.closed = True


def parse_authorization(header):
    """Split an ``OAuth k="v", ...`` header into decoded values."""
    assert header.startswith("OAuth ")
    fields = {}
    for item in header[len("OAuth "):].split(", "):
        key, _, value = item.partition("=")
        fields[unquote(key)] = unquote(value.strip('"'))
    return fields


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def consumer_only():
    return CredentialSet("consumer-key", "consumer-secret")


@pytest.fixture
def authorized():
    return CredentialSet("consumer-key", "consumer-secret", "access-token", "access-secret")


@pytest.fixture
def parse_header():
    return parse_authorization
