"""Tests for the cross-origin headers on every response."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import FakeProvider, make_settings
from ipa_server.api.cors import ALLOW_HEADERS, ALLOW_METHODS, allow_origin_for
from ipa_server.main import create_app


class TestAllowOriginFor:
    """allow_origin_for() echoes trusted origins only."""

    def test_extension_origin_echoed(self):
        """Extension origins are echoed back verbatim."""
        origin = "chrome-extension://abcdefghijklmnop"
        assert allow_origin_for(origin, ["chrome-extension://"]) == origin

    def test_other_origin_gets_wildcard(self):
        """Untrusted origins get the wildcard."""
        assert allow_origin_for("https://evil.example", ["chrome-extension://"]) == "*"

    def test_missing_origin_gets_wildcard(self):
        """Requests without Origin get the wildcard."""
        assert allow_origin_for(None, ["chrome-extension://"]) == "*"

    def test_prefix_must_match_at_start(self):
        """A trusted prefix elsewhere in the origin does not count."""
        assert allow_origin_for("https://x/chrome-extension://", ["chrome-extension://"]) == "*"

    def test_no_trusted_prefixes(self):
        """With no trusted prefixes every origin gets the wildcard."""
        assert allow_origin_for("chrome-extension://abc", []) == "*"


class TestMiddleware:
    """CrossOriginMiddleware stamps headers regardless of status."""

    def _assert_cors(self, response, origin="*"):
        assert response.headers["access-control-allow-origin"] == origin
        assert response.headers["access-control-allow-methods"] == ALLOW_METHODS
        assert response.headers["access-control-allow-headers"] == ALLOW_HEADERS

    def test_index(self, client):
        """GET / carries the headers."""
        self._assert_cors(client.get("/"))

    def test_preflight_empty_200(self, client):
        """OPTIONS / answers 200 with an empty body."""
        r = client.options("/", headers={"Origin": "chrome-extension://abc"})
        assert r.status_code == 200
        assert r.content == b""
        self._assert_cors(r, "chrome-extension://abc")

    @pytest.mark.parametrize("path", ["/anything", "/deeply/nested/path"])
    def test_preflight_any_path(self, client, path):
        """Preflight is answered on every path."""
        r = client.options(path)
        assert r.status_code == 200
        self._assert_cors(r)

    def test_success_response(self, client):
        """Audio responses carry the headers."""
        r = client.post("/", json={"ipa": "kæt", "language": "English"},
                        headers={"Origin": "chrome-extension://abc"})
        assert r.status_code == 200
        self._assert_cors(r, "chrome-extension://abc")

    def test_error_response(self, client):
        """400 responses carry the headers."""
        r = client.post("/", json={"ipa": "", "language": "English"},
                        headers={"Origin": "https://evil.example"})
        assert r.status_code == 400
        self._assert_cors(r)

    def test_rate_limited_response(self, make_client):
        """429 responses carry the headers."""
        client = make_client(make_settings(rate_limit={"per_hour": 1}))
        client.post("/", json={"ipa": "kæt", "language": "English"})
        r = client.post("/", json={"ipa": "kæt", "language": "English"})
        assert r.status_code == 429
        self._assert_cors(r)

    def test_unhandled_exception_response(self):
        """An exception escaping a route becomes a 500 that still carries the headers."""
        app = create_app(settings=make_settings(), provider=FakeProvider())

        @app.get("/explode")
        def explode():
            raise RuntimeError("boom")

        with TestClient(app) as client:
            r = client.get("/explode", headers={"Origin": "chrome-extension://abc"})

        assert r.status_code == 500
        body = r.json()
        assert body["ok"] is False
        assert body["error"] == "INTERNAL_ERROR"
        assert "boom" not in body["message"]
        self._assert_cors(r, "chrome-extension://abc")

    def test_vary_origin(self, client):
        """Responses vary on Origin."""
        r = client.get("/", headers={"Origin": "chrome-extension://abc"})
        assert "Origin" in r.headers.get("vary", "")

    def test_configured_prefix(self, make_client):
        """Trusted prefixes come from the cors settings section."""
        client = make_client(make_settings(cors={"trusted_origin_prefixes": ["moz-extension://"]}))
        r = client.get("/", headers={"Origin": "moz-extension://xyz"})
        assert r.headers["access-control-allow-origin"] == "moz-extension://xyz"
        r = client.get("/", headers={"Origin": "chrome-extension://abc"})
        assert r.headers["access-control-allow-origin"] == "*"
