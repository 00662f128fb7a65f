"""
Tests for the JSON codec, Response helpers and HookInvoker.
"""

import pytest

from kyhttp import (
    DecodeError,
    HookInvoker,
    JSONResponse,
    RequestBuilder,
    Response,
    TransportError,
    decode_json,
    encode_json,
)


class TestCodec:
    """Test JSON encoding and decoding."""

    def test_encode_keeps_unicode_and_slashes(self):
        assert encode_json({"k": "ñ/é", "n": [1, 2]}) == '{"k":"ñ/é","n":[1,2]}'.encode()

    def test_decode_valid(self):
        assert decode_json(b'{"a": [1, true, null]}') == {"a": [1, True, None]}
        assert decode_json('"text"') == "text"

    @pytest.mark.parametrize("body", [b"", None, b"<html>", b"{broken", b"\xff\xfe"])
    def test_decode_failure_yields_none(self, body):
        assert decode_json(body) is None

    def test_strict_decode_raises(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_json(b"not json", strict=True)
        assert exc_info.value.body == b"not json"

        with pytest.raises(DecodeError):
            decode_json(b"", strict=True)


class TestResponse:
    """Test Response classification and helpers."""

    @pytest.mark.parametrize(
        "status, accepted",
        [(200, True), (302, True), (404, True), (499, True), (500, False), (503, False)],
    )
    def test_accepted(self, status, accepted):
        assert Response(status=status).accepted is accepted

    def test_transport_error_is_not_accepted(self):
        response = Response(status=0, transport_error=TransportError("refused"))
        assert not response.accepted

    def test_json_and_text(self):
        response = Response(status=200, body=b'{"ok": true}')
        assert response.json() == {"ok": True}
        assert response.text == '{"ok": true}'
        assert Response(status=200, body=b"plain").json() is None

    def test_json_response(self):
        response = Response(status=201, body=b"[1]")
        decoded = JSONResponse.from_response(response)

        assert decoded.status == 201
        assert decoded.body == [1]
        assert decoded.response is response


class TestHookInvoker:
    """Test optional hook execution."""

    async def test_absent_hooks_are_noops(self):
        invoker = HookInvoker()
        spec = RequestBuilder().get("/x").build()

        assert await invoker.invoke_before(spec) is False
        assert await invoker.invoke_after(Response(status=200, request=spec)) is False
        assert await invoker.invoke_after(Response(status=200)) is False

    async def test_sync_and_async_hooks(self):
        invoker = HookInvoker()
        calls = []

        async def after(response):
            calls.append(("after", response.status))

        spec = (
            RequestBuilder()
            .get("/x")
            .before_request(lambda s: calls.append(("before", s.url)))
            .after_response(after)
            .build()
        )

        assert await invoker.invoke_before(spec) is True
        assert await invoker.invoke_after(Response(status=204, request=spec)) is True
        assert calls == [("before", "/x"), ("after", 204)]

    async def test_hook_errors_propagate(self):
        invoker = HookInvoker()

        def explode(spec):
            raise KeyError("boom")

        spec = RequestBuilder().get("/x").before_request(explode).build()

        with pytest.raises(KeyError):
            await invoker.invoke_before(spec)
