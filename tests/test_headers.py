"""
Tests for the request header store.
"""

import pytest

from device_sense.exceptions import InvalidHeaderName
from device_sense.headers.store import HeaderStore, normalize_header_name


class TestNormalizeHeaderName:
    """Tests for header name normalization."""

    @pytest.mark.parametrize("raw", ["HTTP_USER_AGENT", "User_Agent", "User-Agent", "user-agent", "http_user_agent"])
    def test_user_agent_forms(self, raw):
        assert normalize_header_name(raw) == "user-agent"

    def test_cgi_name_without_prefix(self):
        assert normalize_header_name("CONTENT_TYPE") == "content-type"

    def test_prefix_only_stripped_once(self):
        assert normalize_header_name("HTTP_X_HTTP_METHOD") == "x-http-method"


class TestHeaderStore:
    """Tests for setting and reading headers."""

    def test_set_and_get_any_form(self):
        store = HeaderStore().set_header("HTTP_USER_AGENT", "  Foo/1.0  ")
        assert store.get_header("User-Agent") == "Foo/1.0"
        assert store.get_header("user_agent") == "Foo/1.0"
        assert store.user_agent == "Foo/1.0"

    def test_extension_header_accepted(self):
        store = HeaderStore().set_header("X-Custom-Thing", "1")
        assert "x-custom-thing" in store
        assert "X_CUSTOM_THING" in store

    def test_unknown_header_rejected(self):
        with pytest.raises(InvalidHeaderName) as exc_info:
            HeaderStore().set_header("Bogus-Header", "1")
        assert exc_info.value.name == "Bogus-Header"

    def test_empty_name_rejected(self):
        with pytest.raises(InvalidHeaderName):
            HeaderStore().set_header("", "1")

    def test_invalid_name_is_value_error(self):
        with pytest.raises(ValueError):
            HeaderStore().set_header("SERVER_NAME", "example.com")

    def test_missing_header(self):
        store = HeaderStore()
        assert store.get_header("Accept") is None
        assert store.user_agent is None
        assert len(store) == 0

    def test_ingest_bulk_skips_unusable_entries(self):
        store = HeaderStore().ingest_bulk({
            "HTTP_ACCEPT": "text/html",
            "CONTENT_TYPE": "text/plain",
            "SERVER_NAME": "example.com",
            "REQUEST_METHOD": "GET",
            "HTTP_CONTENT_LENGTH": 12,
            "wsgi.input": object(),
        })

        assert len(store) == 2
        assert store.get_header("Accept") == "text/html"
        assert store.get_header("Content-Type") == "text/plain"

    def test_ingest_bulk_pairs(self):
        store = HeaderStore().ingest_bulk([("Accept-Language", "en"), ("X-Forwarded-For", "10.0.0.1")])
        assert dict(store) == {"accept-language": "en", "x-forwarded-for": "10.0.0.1"}

    def test_ingest_bulk_skips_malformed_pairs(self):
        store = HeaderStore().ingest_bulk([
            ("Accept", "*/*"),
            ("X-Broken",),
            "nonsense",
            ("Accept-Language", "en", "extra"),
            None,
        ])
        assert dict(store) == {"accept": "*/*"}

    def test_set_user_agent_strips(self):
        assert HeaderStore().set_user_agent("  Agent  ").user_agent == "Agent"


class TestUserAgentSynthesis:
    """Tests for building a User-Agent from alternate headers."""

    def test_alternates_joined_in_priority_order(self):
        store = HeaderStore.from_source({
            "HTTP_DEVICE_STOCK_UA": "Stock/1.0",
            "HTTP_X_OPERAMINI_PHONE_UA": "Mini/2.0",
        })
        assert store.user_agent == "Mini/2.0 Stock/1.0"

    def test_existing_user_agent_kept(self):
        store = HeaderStore.from_source({
            "User-Agent": "Real/1.0",
            "X-Operamini-Phone-UA": "Mini/2.0",
        })
        assert store.user_agent == "Real/1.0"

    def test_no_alternates_leaves_user_agent_unset(self):
        store = HeaderStore.from_source({"Accept": "*/*"})
        assert store.user_agent is None

    def test_empty_alternate_ignored(self):
        store = HeaderStore.from_source({"X-Skyfire-Phone": "", "Profile": "http://wap.example/p.xml"})
        assert store.user_agent == "http://wap.example/p.xml"

    def test_custom_alternates(self):
        store = HeaderStore.from_source({"X-Device-Ua": "Custom/1.0"}, alternates=("x-device-ua",))
        assert store.user_agent == "Custom/1.0"


class TestFromSource:
    """Tests for the accepted header sources."""

    def test_string_is_user_agent(self):
        assert HeaderStore.from_source("Agent/1.0").user_agent == "Agent/1.0"

    def test_none_is_empty(self):
        store = HeaderStore.from_source(None)
        assert len(store) == 0

    def test_store_passes_through(self):
        store = HeaderStore().set_header("Accept", "*/*")
        assert HeaderStore.from_source(store) is store
