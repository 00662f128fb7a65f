"""
Tests for RequestSpec and the fluent RequestBuilder.
"""

import dataclasses

import pytest

from kyhttp import BatchQueue, HttpMethod, RequestBuilder, RequestSpec


class TestBuilder:
    """Test chainable construction."""

    def test_defaults(self):
        spec = RequestBuilder().get("https://httpbin.org/get").build()

        assert spec.method is HttpMethod.GET
        assert spec.url == "https://httpbin.org/get"
        assert dict(spec.headers) == {}
        assert spec.query == ()
        assert spec.body is None
        assert spec.retries == 0
        assert spec.max_attempts == 1
        assert spec.before_hook is None
        assert spec.after_hook is None

    @pytest.mark.parametrize(
        "verb, method",
        [
            ("get", HttpMethod.GET),
            ("post", HttpMethod.POST),
            ("put", HttpMethod.PUT),
            ("patch", HttpMethod.PATCH),
            ("delete", HttpMethod.DELETE),
            ("head", HttpMethod.HEAD),
            ("options", HttpMethod.OPTIONS),
        ],
    )
    def test_verbs(self, verb, method):
        spec = getattr(RequestBuilder(), verb)("/x").build()
        assert spec.method is method

    def test_method_name_is_case_insensitive(self):
        assert RequestBuilder().method("post", "/x").build().method is HttpMethod.POST

    def test_unknown_method_rejected(self):
        with pytest.raises(ValueError):
            RequestBuilder().method("BREW", "/coffee")

    def test_header_last_write_wins(self):
        spec = (
            RequestBuilder()
            .get("/x")
            .header("X-One", "1")
            .headers({"X-Two": "2"})
            .header("X-One", "uno")
            .build()
        )
        assert dict(spec.headers) == {"X-One": "uno", "X-Two": "2"}

    def test_json_body_sets_content_type(self):
        spec = RequestBuilder().post("/x").json({"name": "café", "path": "a/b"}).build()

        assert spec.headers["Content-Type"] == "application/json"
        assert spec.body == '{"name":"café","path":"a/b"}'.encode("utf-8")

    def test_raw_body(self):
        assert RequestBuilder().put("/x").body("text").build().body == b"text"
        assert RequestBuilder().put("/x").body(b"\x00\x01").build().body == b"\x00\x01"

    def test_retry_is_clamped(self):
        assert RequestBuilder().get("/x").retry(-3).build().retries == 0
        assert RequestBuilder().get("/x").retry(4).build().max_attempts == 5

    def test_hooks_are_carried(self):
        def before(spec):
            pass

        def after(response):
            pass

        spec = RequestBuilder().get("/x").before_request(before).after_response(after).build()

        assert spec.before_hook is before
        assert spec.after_hook is after

    def test_build_without_url(self):
        with pytest.raises(ValueError, match="URL"):
            RequestBuilder().build()

    def test_build_snapshots_state(self):
        builder = RequestBuilder().get("/x").header("A", "1")
        first = builder.build()
        builder.header("A", "2")

        assert first.headers["A"] == "1"
        assert builder.build().headers["A"] == "2"


class TestQueryString:
    """Test query parameter encoding."""

    def test_pairs_are_percent_encoded_in_order(self):
        spec = RequestBuilder().get("/x").query({"b": "x y", "a": "1/2", "ü": "~"}).build()

        assert spec.query == (("b", "x%20y"), ("a", "1%2F2"), ("%C3%BC", "~"))
        assert spec.query_string == "b=x%20y&a=1%2F2&%C3%BC=~"

    def test_scalar_casting(self):
        spec = RequestBuilder().get("/x").query({"t": True, "f": False, "n": None, "i": 7}).build()
        assert spec.query_string == "t=1&f=&n=&i=7"

    def test_query_replaces_previous(self):
        spec = RequestBuilder().get("/x").query({"a": 1}).query({"b": 2}).build()
        assert spec.query_string == "b=2"

    def test_target_url(self):
        assert RequestBuilder().get("https://h/p").build().target_url == "https://h/p"
        assert (
            RequestBuilder().get("https://h/p").query({"a": 1}).build().target_url
            == "https://h/p?a=1"
        )
        assert (
            RequestBuilder().get("https://h/p?z=0").query({"a": 1}).build().target_url
            == "https://h/p?z=0&a=1"
        )


class TestRequestSpec:
    """Test immutability of the built spec."""

    def test_spec_is_frozen(self):
        spec = RequestBuilder().get("/x").header("A", "1").build()

        with pytest.raises(dataclasses.FrozenInstanceError):
            spec.url = "/y"
        with pytest.raises(TypeError):
            spec.headers["A"] = "2"

    def test_negative_retries_rejected(self):
        with pytest.raises(ValueError):
            RequestSpec(method=HttpMethod.GET, url="/x", retries=-1)


class TestUnboundBuilder:
    """Test the client-delegating methods without a client."""

    async def test_send_requires_client(self):
        with pytest.raises(RuntimeError, match="not bound"):
            await RequestBuilder().get("/x").send()

    def test_add_to_explicit_queue(self):
        queue = BatchQueue()
        RequestBuilder().get("/a").add_to_batch(queue).get("/b").add_to_batch(queue)

        assert [spec.url for spec in queue] == ["/a", "/b"]

    def test_add_to_batch_requires_queue_or_client(self):
        with pytest.raises(RuntimeError):
            RequestBuilder().get("/x").add_to_batch()
