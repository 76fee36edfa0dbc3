"""Tests for the URL and key helpers."""

import hashlib
import json

from object_sync.utils import add_query_arg, payload_token, safe_redirect_url, sanitize_key


class TestPayloadToken:
    def test_md5_of_canonical_json(self):
        payload = {"method": "add", "label": "Contacts"}
        canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
        assert payload_token(payload) == hashlib.md5(canonical.encode("utf-8")).hexdigest()

    def test_same_payload_same_token(self):
        first = {"label": "Contacts", "method": "add", "wordpress_object": "post"}
        second = {"wordpress_object": "post", "method": "add", "label": "Contacts"}
        assert payload_token(first) == payload_token(second)

    def test_different_values_different_token(self):
        assert payload_token({"label": "a"}) != payload_token({"label": "b"})


class TestAddQueryArg:
    def test_appends_to_existing_query(self):
        url = add_query_arg("http://localhost/admin?tab=fieldmaps&method=add", "transient", "abc")
        assert url == "http://localhost/admin?tab=fieldmaps&method=add&transient=abc"

    def test_starts_query(self):
        assert add_query_arg("/admin", "id", 7) == "/admin?id=7"


class TestSafeRedirectUrl:
    def test_relative_url_passes(self):
        assert safe_redirect_url("/admin?tab=fieldmaps", [], "/fallback") == "/admin?tab=fieldmaps"

    def test_allowed_host_passes(self):
        url = "http://localhost/admin?tab=fieldmaps"
        assert safe_redirect_url(url, ["localhost"], "/fallback") == url

    def test_foreign_host_falls_back(self):
        assert safe_redirect_url("https://evil.example.com/", ["localhost"], "/fallback") == "/fallback"

    def test_protocol_relative_foreign_host_falls_back(self):
        assert safe_redirect_url("//evil.example.com/", ["localhost"], "/fallback") == "/fallback"

    def test_empty_falls_back(self):
        assert safe_redirect_url("", ["localhost"], "/fallback") == "/fallback"
        assert safe_redirect_url(None, ["localhost"], "/fallback") == "/fallback"

    def test_script_scheme_falls_back(self):
        assert safe_redirect_url("javascript:alert(1)", ["localhost"], "/fallback") == "/fallback"


def test_sanitize_key():
    assert sanitize_key("AbC_12-x!?/") == "abc_12-x"
    assert sanitize_key(None) == ""
