from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from urllib.parse import urlsplit

from server_watcher.providers import (
    DialerProvider,
    ProberProvider,
    ResolverProvider,
    default_dialer_provider,
    default_prober_provider,
    default_resolver_provider,
)


MAX_PORT = 65535


@dataclass(frozen=True)
class ServerWatcherConfiguration:
    hostname: str
    port: int | None = None
    timeout: timedelta | None = None
    resolver_provider: ResolverProvider = default_resolver_provider
    dialer_provider: DialerProvider = default_dialer_provider
    prober_provider: ProberProvider = default_prober_provider

    @property
    def timeout_seconds(self) -> float | None:
        if self.timeout is None:
            return None
        return self.timeout.total_seconds()

    @classmethod
    def create(cls, hostname: str, port: int | None = None) -> ServerWatcherConfigurationBuilder:
        return ServerWatcherConfigurationBuilder(hostname, port)


def _has_protocol(hostname: str) -> bool:
    if "://" in hostname:
        return True
    # Catches scheme-prefixed forms such as "http:/example.com" or "https:example.com".
    try:
        parts = urlsplit(hostname)
    except ValueError:
        return False
    return (parts.scheme or "").lower() in {"http", "https", "ftp", "tcp", "udp", "ws", "wss"}


def _as_timedelta(value: timedelta | float | int) -> timedelta:
    if isinstance(value, timedelta):
        return value
    return timedelta(seconds=float(value))


class ServerWatcherConfigurationBuilder:
    """
    Fluent builder for `ServerWatcherConfiguration`.

    Every `with_*` call returns the builder. Validation is deferred to `build()`
    and never touches the network.
    """

    def __init__(self, hostname: str, port: int | None = None) -> None:
        self._hostname = hostname
        self._port = port
        self._timeout: timedelta | None = None
        self._resolver_provider: ResolverProvider | None = default_resolver_provider
        self._dialer_provider: DialerProvider | None = default_dialer_provider
        self._prober_provider: ProberProvider | None = default_prober_provider

    def with_timeout(self, timeout: timedelta | float | int) -> ServerWatcherConfigurationBuilder:
        self._timeout = _as_timedelta(timeout)
        return self

    def with_resolver_provider(self, provider: ResolverProvider | None) -> ServerWatcherConfigurationBuilder:
        self._resolver_provider = provider
        return self

    def with_dialer_provider(self, provider: DialerProvider | None) -> ServerWatcherConfigurationBuilder:
        self._dialer_provider = provider
        return self

    def with_prober_provider(self, provider: ProberProvider | None) -> ServerWatcherConfigurationBuilder:
        self._prober_provider = provider
        return self

    def build(self) -> ServerWatcherConfiguration:
        hostname = str(self._hostname or "").strip()
        if not hostname:
            raise ValueError("Hostname can not be empty.")
        if _has_protocol(hostname):
            raise ValueError(f"The hostname should not contain protocol. Hostname: '{hostname}'.")
        port = self._port
        if port is not None:
            port = int(port)
            if port < 0:
                raise ValueError(f"Port number can not be less than 0. Port: {port}.")
            if port > MAX_PORT:
                raise ValueError(f"Port number can not be greater than {MAX_PORT}. Port: {port}.")
        if self._timeout is not None and self._timeout <= timedelta(0):
            raise ValueError("Timeout can not be equal to or less than zero.")
        if self._resolver_provider is None:
            raise ValueError("Resolver provider can not be empty.")
        if self._dialer_provider is None:
            raise ValueError("Dialer provider can not be empty.")
        if self._prober_provider is None:
            raise ValueError("Prober provider can not be empty.")

        return ServerWatcherConfiguration(
            hostname=hostname,
            port=port,
            timeout=self._timeout,
            resolver_provider=self._resolver_provider,
            dialer_provider=self._dialer_provider,
            prober_provider=self._prober_provider,
        )
