"""Outbound proxy selection for registry and URL fetches.

The fetcher asks a single provider which proxy (if any) to use for a URL.
Environment parsing and NO_PROXY matching are delegated to ``requests.utils``
so behavior matches what users already expect from other Python tooling.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from requests.utils import select_proxy, should_bypass_proxies


def _env_value(environ: Mapping[str, str], name: str) -> Optional[str]:
    """Read an upper- or lower-case proxy variable, upper-case first."""
    value = environ.get(name.upper()) or environ.get(name.lower())
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class ProxyConfig:
    """Proxy routing derived from HTTP_PROXY, HTTPS_PROXY and NO_PROXY."""

    http_proxy: Optional[str] = None
    https_proxy: Optional[str] = None
    no_proxy: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ProxyConfig":
        """Build the config from an environment mapping (defaults to os.environ)."""
        env = os.environ if environ is None else environ
        return cls(
            http_proxy=_env_value(env, "http_proxy"),
            https_proxy=_env_value(env, "https_proxy"),
            no_proxy=_env_value(env, "no_proxy"),
        )

    def as_mapping(self) -> Dict[str, str]:
        """Scheme to proxy URL mapping in the shape requests expects."""
        proxies: Dict[str, str] = {}
        if self.http_proxy:
            proxies["http"] = self.http_proxy
        if self.https_proxy:
            proxies["https"] = self.https_proxy
        return proxies

    def proxy_for(self, url: str) -> Optional[str]:
        """Return the proxy URL to use for ``url`` or None for a direct connection."""
        proxies = self.as_mapping()
        if not proxies:
            return None
        if self.no_proxy and should_bypass_proxies(url, no_proxy=self.no_proxy):
            return None
        return select_proxy(url, proxies)
