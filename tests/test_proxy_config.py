"""Tests for proxy selection from the environment."""

from common.proxy_config import ProxyConfig


class TestProxyConfigFromEnv:
    """Environment parsing."""

    def test_upper_case_wins(self):
        config = ProxyConfig.from_env({"HTTPS_PROXY": "http://upper:1", "https_proxy": "http://lower:1"})
        assert config.https_proxy == "http://upper:1"

    def test_lower_case_fallback(self):
        config = ProxyConfig.from_env({"http_proxy": "http://lower:1", "no_proxy": "localhost"})
        assert config.http_proxy == "http://lower:1"
        assert config.no_proxy == "localhost"

    def test_blank_values_ignored(self):
        config = ProxyConfig.from_env({"HTTP_PROXY": "  "})
        assert config.http_proxy is None
        assert config.as_mapping() == {}


class TestProxyFor:
    """Per-URL proxy decisions."""

    def test_scheme_selection(self):
        config = ProxyConfig(http_proxy="http://p-http:8080", https_proxy="http://p-https:8080")
        assert config.proxy_for("http://deno.land/x.ts") == "http://p-http:8080"
        assert config.proxy_for("https://deno.land/x.ts") == "http://p-https:8080"

    def test_no_proxy_bypass(self):
        config = ProxyConfig(https_proxy="http://p:8080", no_proxy="jsr.io,.internal.test")
        assert config.proxy_for("https://jsr.io/@std/path/meta.json") is None
        assert config.proxy_for("https://pkg.internal.test/a.ts") is None
        assert config.proxy_for("https://registry.npmjs.org/preact") == "http://p:8080"

    def test_no_proxies_configured(self):
        assert ProxyConfig().proxy_for("https://jsr.io/") is None
