"""Tests for the server entry point's bind guard."""

from __future__ import annotations

import pytest

from hic.core.config.settings import Settings
from hic.core.server.main import _is_loopback_host, check_bind


def _settings(**values) -> Settings:
    return Settings(_env_file=None, **values)


@pytest.mark.parametrize("host", ["127.0.0.1", "localhost", "::1"])
def test_loopback_hosts(host):
    assert _is_loopback_host(host)


@pytest.mark.parametrize("host", ["0.0.0.0", "192.168.1.20", "example.com"])
def test_non_loopback_hosts(host):
    assert not _is_loopback_host(host)


class TestCheckBind:
    def test_default_is_allowed(self):
        check_bind(_settings())

    def test_public_bind_refused(self):
        with pytest.raises(RuntimeError, match="HIC_ALLOW_INSECURE_BIND"):
            check_bind(_settings(hic_host="0.0.0.0"))

    def test_override(self):
        check_bind(_settings(hic_host="0.0.0.0", hic_allow_insecure_bind=True))

    def test_stdio_never_binds(self):
        check_bind(_settings(hic_host="0.0.0.0", hic_transport="stdio"))
