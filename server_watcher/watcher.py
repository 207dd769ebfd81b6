"""Server reachability watcher: resolve the hostname, then TCP-connect or ping it."""

from __future__ import annotations

from typing import Any, Callable

import structlog

from server_watcher.configuration import ServerWatcherConfiguration
from server_watcher.providers import Dialer, PingStatus, Prober, Resolver
from server_watcher.results import ServerWatcherCheckResult, describe_failure, describe_success


logger = structlog.get_logger(__name__)

WATCHER_TYPE = "server"


class WatcherException(Exception):
    """Raised when a watcher cannot run at all (a setup defect, not an unreachable server)."""

    def __init__(self, message: str, watcher_name: str | None = None) -> None:
        super().__init__(message)
        self.watcher_name = watcher_name


class ServerWatcher:
    def __init__(self, name: str, configuration: ServerWatcherConfiguration, group: str | None = None) -> None:
        if not str(name or "").strip():
            raise ValueError("Watcher name can not be empty.")
        if configuration is None:
            raise ValueError("Server watcher configuration has not been provided.")
        self.name = name
        self.group = group
        self.configuration = configuration

    @classmethod
    def create(
        cls,
        name: str,
        configuration: ServerWatcherConfiguration,
        group: str | None = None,
    ) -> ServerWatcher:
        return cls(name, configuration, group=group)

    def _instantiate(self, provider: Callable[[], Any], kind: str) -> Any:
        try:
            collaborator = provider()
        except Exception as exc:
            raise WatcherException(f"{kind} could not be created.", watcher_name=self.name) from exc
        if collaborator is None:
            raise WatcherException(f"{kind} has not been provided.", watcher_name=self.name)
        return collaborator

    async def execute(self) -> ServerWatcherCheckResult:
        """
        Run one check.

        Observed unreachability (DNS failure, refused connection, no ping reply)
        is returned as an invalid result. `WatcherException` is raised only when
        a provider yields no collaborator or a collaborator fails unexpectedly.
        """
        cfg = self.configuration
        resolver: Resolver = self._instantiate(cfg.resolver_provider, "DNS resolver")
        dialer: Dialer = self._instantiate(cfg.dialer_provider, "TCP dialer")
        prober: Prober = self._instantiate(cfg.prober_provider, "Pinger")

        try:
            address = await resolver.resolve(cfg.hostname)
            logger.debug(
                "Hostname resolved",
                watcher=self.name,
                hostname=cfg.hostname,
                ip_address=str(address) if address is not None else None,
            )

            connected: bool | None = None
            ping_status: PingStatus | None = None
            if cfg.port is not None:
                try:
                    await dialer.connect(address, cfg.port, cfg.timeout_seconds)
                    connected = bool(dialer.connected)
                finally:
                    await dialer.close()
                is_valid = connected and address is not None
            else:
                ping_status = await prober.ping(address, cfg.timeout_seconds)
                is_valid = ping_status == PingStatus.SUCCESS and address is not None
        except WatcherException:
            raise
        except Exception as exc:
            raise WatcherException(
                f"There was an error while trying to access the hostname: '{cfg.hostname}'.",
                watcher_name=self.name,
            ) from exc

        describe = describe_success if is_valid else describe_failure
        result = ServerWatcherCheckResult(
            watcher_name=self.name,
            watcher_type=WATCHER_TYPE,
            is_valid=bool(is_valid),
            description=describe(hostname=cfg.hostname, address=address, port=cfg.port),
            hostname=cfg.hostname,
            ip_address=str(address) if address is not None else None,
            port=cfg.port,
            connected=connected,
            ping_status=ping_status,
        )
        logger.info(
            "Server check finished",
            watcher=self.name,
            hostname=cfg.hostname,
            port=cfg.port,
            is_valid=result.is_valid,
        )
        return result
