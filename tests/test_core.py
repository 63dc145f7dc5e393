"""Tests for the signed request dispatcher."""

import asyncio

import aiohttp
import pytest

from twist.core import ChunkedUpload, Core
from twist.exceptions import InvalidStateError, NetworkError, ProtocolError, RemoteApiError
from twist.signature import sign

UPDATE_URL = "https://api.twitter.com/1.1/statuses/update.json"
UPLOAD_URL = "https://upload.twitter.com/1.1/media/upload.json"


@pytest.fixture
def core(session, authorized):
    return Core(authorized, session=session)


def test_rejects_oversized_chunks(authorized):
    with pytest.raises(ValueError):
        Core(authorized, chunk_size=6 * 1024 * 1024)


def test_rejects_zero_chunk_size(authorized):
    with pytest.raises(ValueError):
        Core(authorized, chunk_size=0)


class TestAuthorization:

    def test_header_contains_protocol_parameters_only(self, core, authorized, parse_header):
        header = core.build_authorization(authorized, UPDATE_URL, "POST", {"status": "hello"})
        fields = parse_header(header)
        assert set(fields) == {
            "oauth_consumer_key", "oauth_nonce", "oauth_signature", "oauth_signature_method",
            "oauth_timestamp", "oauth_token", "oauth_version",
        }
        assert fields["oauth_token"] == "access-token"
        assert fields["oauth_signature_method"] == "HMAC-SHA1"

    def test_token_omitted_without_access_token(self, core, consumer_only, parse_header):
        fields = parse_header(core.build_authorization(consumer_only, UPDATE_URL, "POST"))
        assert "oauth_token" not in fields

    def test_nonce_is_fresh_per_call(self, core, authorized, parse_header):
        first = parse_header(core.build_authorization(authorized, UPDATE_URL, "POST"))
        second = parse_header(core.build_authorization(authorized, UPDATE_URL, "POST"))
        assert first["oauth_nonce"] != second["oauth_nonce"]


class TestRequest:

    @pytest.mark.asyncio
    async def test_post_sends_form_body(self, core, session, authorized, parse_header):
        session.queue(200, '{"id_str": "1"}')
        body = await core.request(authorized, UPDATE_URL, "POST", {"status": "hello world"})

        assert body == '{"id_str": "1"}'
        call = session.calls[0]
        assert call.method == "POST"
        assert call.url == UPDATE_URL
        assert call.data == "status=hello%20world"
        assert call.headers["Content-Type"] == "application/x-www-form-urlencoded"

        fields = parse_header(call.headers["Authorization"])
        signed = {k: v for k, v in fields.items() if k != "oauth_signature"}
        signed["status"] = "hello world"
        assert fields["oauth_signature"] == sign("POST", UPDATE_URL, signed,
                                                 "consumer-secret", "access-secret")

    @pytest.mark.asyncio
    async def test_get_appends_query_and_signs_it(self, core, session, authorized, parse_header):
        session.queue(200, "[]")
        url = "https://api.twitter.com/1.1/account/settings.json"
        await core.request(authorized, url, "GET", {"b": "2", "a": "x y"})

        call = session.calls[0]
        assert call.url == f"{url}?b=2&a=x%20y"
        assert call.data is None
        fields = parse_header(call.headers["Authorization"])
        signed = {k: v for k, v in fields.items() if k != "oauth_signature"}
        signed.update({"a": "x y", "b": "2"})
        assert fields["oauth_signature"] == sign("GET", url, signed,
                                                 "consumer-secret", "access-secret")

    @pytest.mark.asyncio
    async def test_non_2xx_raises_remote_api_error(self, core, session, authorized):
        session.queue(403, '{"errors": [{"code": 187}]}')
        with pytest.raises(RemoteApiError) as excinfo:
            await core.request(authorized, UPDATE_URL, "POST", {"status": "dup"})
        assert excinfo.value.status == 403
        assert "187" in excinfo.value.body
        assert excinfo.value.phase is None

    @pytest.mark.asyncio
    async def test_undecodable_error_body_keeps_status(self, core, session, authorized):
        session.queue(502, b"\xff\xfe bad gateway")
        with pytest.raises(RemoteApiError) as excinfo:
            await core.request(authorized, UPDATE_URL, "POST", {"a": "b"})
        assert excinfo.value.status == 502
        assert excinfo.value.body.endswith("bad gateway")

    @pytest.mark.asyncio
    async def test_undecodable_success_body_is_returned(self, core, session, authorized):
        session.queue(200, b"\xff\xfe{}")
        body = await core.request(authorized, UPDATE_URL, "POST", {"a": "b"})
        assert body == "\ufffd\ufffd{}"

    @pytest.mark.asyncio
    async def test_transport_failure_raises_network_error(self, core, session, authorized):
        session.queue_error(aiohttp.ClientConnectionError("connection reset"))
        with pytest.raises(NetworkError):
            await core.request(authorized, UPDATE_URL, "POST", {"status": "hi"})

    @pytest.mark.asyncio
    async def test_timeout_raises_network_error(self, core, session, authorized):
        session.queue_error(asyncio.TimeoutError())
        with pytest.raises(NetworkError):
            await core.request(authorized, UPDATE_URL, "POST", {"status": "hi"})

    @pytest.mark.asyncio
    async def test_no_retry(self, core, session, authorized):
        session.queue(500, "oops")
        session.queue(200, "{}")
        with pytest.raises(RemoteApiError):
            await core.request(authorized, UPDATE_URL, "POST", {"status": "hi"})
        assert len(session.calls) == 1

    @pytest.mark.asyncio
    async def test_injected_session_is_not_closed(self, core, session):
        await core.close()
        assert session.closed is False


class TestChunkedUpload:

    @pytest.mark.asyncio
    async def test_sequences_init_append_finalize(self, session, authorized):
        core = Core(authorized, session=session, chunk_size=4)
        session.queue(202, '{"media_id_string": "710511363345354753"}')
        session.queue(204, "")
        session.queue(204, "")
        session.queue(204, "")
        session.queue(201, '{"media_id_string": "710511363345354753", "size": 10}')

        body = await core.request(authorized, UPLOAD_URL, "POST", payload=b"\x89PNG\r\n\x1a\nab")

        assert "710511363345354753" in body
        assert len(session.calls) == 5
        init, *appends, finalize = session.calls
        assert "command=INIT" in init.data
        assert "total_bytes=10" in init.data
        assert "media_type=image%2Fpng" in init.data
        assert all(isinstance(call.data, aiohttp.FormData) for call in appends)
        assert finalize.data == "command=FINALIZE&media_id=710511363345354753"

    @pytest.mark.asyncio
    async def test_segment_indices_are_sequential(self, session, authorized):
        core = Core(authorized, session=session, chunk_size=3)
        upload = ChunkedUpload(core, authorized, UPLOAD_URL, b"abcdefgh")
        session.queue(202, '{"media_id_string": "42"}')
        for _ in range(3):
            session.queue(204, "")
        session.queue(201, '{"media_id_string": "42"}')

        await upload.run()

        assert upload.media_id == "42"
        assert upload.segments_sent == 3
        assert upload.media_type == "application/octet-stream"

    @pytest.mark.asyncio
    async def test_empty_payload_fails_before_io(self, core, session, authorized):
        with pytest.raises(InvalidStateError):
            await core.request(authorized, UPLOAD_URL, "POST", payload=b"")
        assert session.calls == []

    @pytest.mark.asyncio
    async def test_payload_requires_post(self, core, session, authorized):
        with pytest.raises(InvalidStateError):
            await core.request(authorized, UPLOAD_URL, "GET", payload=b"data")
        assert session.calls == []

    @pytest.mark.asyncio
    async def test_finalize_failure_aborts_upload(self, core, session, authorized):
        session.queue(202, '{"media_id_string": "99"}')
        session.queue(204, "")
        session.queue(400, '{"error": "InvalidMedia"}')

        with pytest.raises(RemoteApiError) as excinfo:
            await core.request(authorized, UPLOAD_URL, "POST", payload=b"payload")
        assert excinfo.value.phase == "FINALIZE"
        assert excinfo.value.status == 400

    @pytest.mark.asyncio
    async def test_append_failure_stops_remaining_chunks(self, session, authorized):
        core = Core(authorized, session=session, chunk_size=2)
        session.queue(202, '{"media_id_string": "7"}')
        session.queue_error(aiohttp.ServerDisconnectedError())

        with pytest.raises(NetworkError) as excinfo:
            await core.request(authorized, UPLOAD_URL, "POST", payload=b"abcdef")
        assert excinfo.value.phase == "APPEND"
        assert len(session.calls) == 2

    @pytest.mark.asyncio
    async def test_init_without_media_id_is_protocol_error(self, core, session, authorized):
        session.queue(202, '{"expires_after_secs": 86400}')
        with pytest.raises(ProtocolError) as excinfo:
            await core.request(authorized, UPLOAD_URL, "POST", payload=b"abc")
        assert excinfo.value.phase == "INIT"
        assert len(session.calls) == 1

    @pytest.mark.asyncio
    async def test_each_phase_is_signed_with_fresh_nonce(self, core, session, authorized, parse_header):
        session.queue(202, '{"media_id_string": "1"}')
        session.queue(204, "")
        session.queue(201, '{"media_id_string": "1"}')

        await core.request(authorized, UPLOAD_URL, "POST", payload=b"abc")

        nonces = {parse_header(call.headers["Authorization"])["oauth_nonce"] for call in session.calls}
        assert len(nonces) == 3
