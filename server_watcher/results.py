from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from server_watcher.providers import IPAddress, PingStatus


SUCCESS_PREFIX = "Successfully connected to the hostname"
FAILURE_PREFIX = "Could not resolve the hostname"


@dataclass(frozen=True)
class WatcherCheckResult:
    watcher_name: str
    watcher_type: str
    is_valid: bool
    description: str

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        for key, value in out.items():
            if isinstance(value, PingStatus):
                out[key] = value.value
        return out


@dataclass(frozen=True)
class ServerWatcherCheckResult(WatcherCheckResult):
    hostname: str
    ip_address: str | None = None
    port: int | None = None
    connected: bool | None = None
    ping_status: PingStatus | None = None


def _format_ip(address: IPAddress | None) -> str:
    return str(address) if address is not None else "none"


def describe_success(*, hostname: str, address: IPAddress | None, port: int | None) -> str:
    if port is None:
        return f"{SUCCESS_PREFIX} '{hostname}' using IP address: '{_format_ip(address)}'."
    return f"{SUCCESS_PREFIX} '{hostname}' using IP address: '{_format_ip(address)}' and port: {port}."


def describe_failure(*, hostname: str, address: IPAddress | None, port: int | None) -> str:
    # One message for both causes: DNS and transport failures are acted on the same way.
    if port is None:
        return f"{FAILURE_PREFIX} '{hostname}' or ping the server using IP address: '{_format_ip(address)}'."
    return (
        f"{FAILURE_PREFIX} '{hostname}' or connect to the server "
        f"using IP address: '{_format_ip(address)}' and port: {port}."
    )
