"""Unit tests for the cross-origin policy."""

import pytest

from order_relay.security.origin_policy import OriginPolicy, OriginPolicyMode

ALLOWED = "https://shop.example.com"


class TestStrictPolicy:
    """Test cases for the strict allow-list mode."""

    @pytest.fixture
    def policy(self):
        return OriginPolicy(mode=OriginPolicyMode.STRICT, allowed_origins=[ALLOWED])

    def test_listed_origin_is_allowed(self, policy):
        assert policy.is_allowed(ALLOWED) is True

    @pytest.mark.parametrize("origin", [
        "https://evil.example.com",
        "http://shop.example.com",
        "https://shop.example.com:8443",
        "https://shop.example.com/",
        "null",
    ])
    def test_unlisted_origin_is_denied(self, policy, origin):
        assert policy.is_allowed(origin) is False

    @pytest.mark.parametrize("origin", [None, ""])
    def test_request_without_origin_is_allowed(self, policy, origin):
        assert policy.is_allowed(origin) is True

    def test_requires_allow_list(self):
        with pytest.raises(ValueError):
            OriginPolicy(mode=OriginPolicyMode.STRICT, allowed_origins=[])

    def test_cors_headers_echo_listed_origins(self):
        policy = OriginPolicy(mode="strict", allowed_origins=[ALLOWED, "https://admin.example.com"])

        cors = policy.to_cors_config()

        assert cors.to_dict(ALLOWED)["Access-Control-Allow-Origin"] == ALLOWED
        assert cors.to_dict("https://admin.example.com")["Access-Control-Allow-Origin"] == "https://admin.example.com"
        assert "x-api-key" in cors.to_dict(ALLOWED)["Access-Control-Allow-Headers"].lower()

    def test_cors_headers_omitted_for_unlisted_origin(self, policy):
        headers = policy.to_cors_config().to_dict("https://evil.example.com")

        assert "Access-Control-Allow-Origin" not in headers


class TestPermissivePolicy:
    """Test cases for the permissive mode."""

    @pytest.mark.parametrize("origin", [None, ALLOWED, "https://anything.example.org"])
    def test_every_origin_is_allowed(self, origin):
        policy = OriginPolicy(mode=OriginPolicyMode.PERMISSIVE)

        assert policy.is_allowed(origin) is True

    def test_cors_headers_allow_any_origin(self):
        cors = OriginPolicy(mode=OriginPolicyMode.PERMISSIVE).to_cors_config()

        origin = "https://anything.example.org"
        assert cors.to_dict(origin)["Access-Control-Allow-Origin"] in (origin, "*")


def test_mode_is_parsed_from_string():
    assert OriginPolicy(mode="permissive").mode is OriginPolicyMode.PERMISSIVE


def test_unknown_mode_is_rejected():
    with pytest.raises(ValueError):
        OriginPolicy(mode="lenient")
