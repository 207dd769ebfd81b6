from __future__ import annotations

import asyncio
import ipaddress
import math
import platform
from enum import Enum
from typing import Callable, Protocol, Union

import structlog


logger = structlog.get_logger(__name__)

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


class PingStatus(str, Enum):
    SUCCESS = "success"
    TIMED_OUT = "timed_out"
    DESTINATION_UNREACHABLE = "destination_unreachable"
    BAD_DESTINATION = "bad_destination"
    UNKNOWN = "unknown"


class Resolver(Protocol):
    async def resolve(self, hostname: str) -> IPAddress | None:
        """Return the address for `hostname`, or None when it cannot be resolved."""
        ...


class Dialer(Protocol):
    @property
    def connected(self) -> bool: ...

    async def connect(self, address: IPAddress | None, port: int, timeout: float | None = None) -> None: ...

    async def close(self) -> None: ...


class Prober(Protocol):
    async def ping(self, address: IPAddress | None, timeout: float | None = None) -> PingStatus: ...


ResolverProvider = Callable[[], Union[Resolver, None]]
DialerProvider = Callable[[], Union[Dialer, None]]
ProberProvider = Callable[[], Union[Prober, None]]


def _parse_ip(value: str) -> IPAddress | None:
    try:
        return ipaddress.ip_address(str(value or "").strip())
    except ValueError:
        return None


def _dns_query_sync(*, hostname: str, record_type: str, timeout_seconds: float | None) -> list[str]:
    # dnspython is imported lazily so test doubles can replace the resolver without it.
    import dns.resolver  # type: ignore

    r = dns.resolver.Resolver(configure=True)
    if timeout_seconds is not None:
        r.timeout = max(0.5, float(timeout_seconds))
        r.lifetime = max(0.5, float(timeout_seconds))
    try:
        ans = r.resolve(hostname, record_type)
    except dns.resolver.NoAnswer:
        return []
    out: list[str] = []
    for rr in ans:
        s = str(rr or "").strip()
        if s:
            out.append(s)
    return out


class DnsResolver:
    """Resolves a hostname to its first A record, falling back to AAAA."""

    def __init__(self, timeout_seconds: float | None = None) -> None:
        self.timeout_seconds = timeout_seconds

    async def resolve(self, hostname: str) -> IPAddress | None:
        cleaned = str(hostname or "").strip().rstrip(".")
        literal = _parse_ip(cleaned)
        if literal is not None:
            return literal
        if not cleaned:
            return None

        for record_type in ("A", "AAAA"):
            try:
                records = await asyncio.to_thread(
                    _dns_query_sync,
                    hostname=cleaned,
                    record_type=record_type,
                    timeout_seconds=self.timeout_seconds,
                )
            except Exception as exc:
                # NXDOMAIN, timeouts and resolver failures all mean "not resolvable".
                logger.debug(
                    "DNS query failed",
                    hostname=cleaned,
                    record_type=record_type,
                    error=f"{type(exc).__name__}: {exc}",
                )
                continue
            for record in records:
                address = _parse_ip(record)
                if address is not None:
                    return address
        return None


class TcpDialer:
    """Single TCP connect attempt; the outcome is read from `connected`."""

    def __init__(self) -> None:
        self._writer: asyncio.StreamWriter | None = None
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    async def connect(self, address: IPAddress | None, port: int, timeout: float | None = None) -> None:
        self._connected = False
        if address is None:
            return
        try:
            opening = asyncio.open_connection(host=str(address), port=int(port))
            if timeout is None:
                _, writer = await opening
            else:
                _, writer = await asyncio.wait_for(opening, timeout=float(timeout))
        # OverflowError: port outside 0-65535 when the dialer is used directly.
        except (OSError, OverflowError, asyncio.TimeoutError) as exc:
            logger.debug(
                "TCP connect failed",
                ip_address=str(address),
                port=port,
                error=f"{type(exc).__name__}: {exc}",
            )
            return
        self._writer = writer
        self._connected = True

    async def close(self) -> None:
        writer, self._writer = self._writer, None
        if writer is None:
            return
        try:
            writer.close()
            await writer.wait_closed()
        except OSError:
            pass


_MS_WAIT_SYSTEMS = {"darwin", "freebsd", "netbsd", "dragonfly"}


def _ping_command(address: IPAddress, timeout: float | None) -> list[str]:
    system = platform.system().lower()
    if system == "windows":
        cmd = ["ping", "-n", "1"]
        if timeout is not None:
            cmd += ["-w", str(max(1, int(float(timeout) * 1000)))]
        return cmd + [str(address)]
    cmd = ["ping", "-c", "1"]
    if system in _MS_WAIT_SYSTEMS:
        # BSD ping reads -W as milliseconds.
        if timeout is not None:
            cmd += ["-W", str(max(1, int(float(timeout) * 1000)))]
        return cmd + [str(address)]
    if timeout is not None:
        cmd += ["-W", str(max(1, math.ceil(float(timeout))))]
    return cmd + [str(address)]


class IcmpPinger:
    """Sends one ICMP echo request through the system `ping` binary."""

    async def ping(self, address: IPAddress | None, timeout: float | None = None) -> PingStatus:
        if address is None:
            return PingStatus.BAD_DESTINATION
        cmd = _ping_command(address, timeout)
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, PermissionError) as exc:
            logger.warning("ping binary unavailable", command=cmd[0], error=str(exc))
            return PingStatus.UNKNOWN

        try:
            stdout, stderr = await proc.communicate()
        except asyncio.CancelledError:
            if proc.returncode is None:
                try:
                    proc.kill()
                except ProcessLookupError:
                    pass
                await proc.wait()
            raise

        output = (stdout + stderr).decode("utf-8", errors="replace").lower()
        return _status_from_exit(proc.returncode, output)


def _status_from_exit(returncode: int | None, output: str) -> PingStatus:
    if returncode == 0:
        # Windows ping exits 0 on "Destination host unreachable" replies.
        if "unreachable" in output:
            return PingStatus.DESTINATION_UNREACHABLE
        return PingStatus.SUCCESS
    if returncode == 1:
        if "unreachable" in output:
            return PingStatus.DESTINATION_UNREACHABLE
        return PingStatus.TIMED_OUT
    return PingStatus.UNKNOWN


def default_resolver_provider() -> Resolver:
    return DnsResolver()


def default_dialer_provider() -> Dialer:
    return TcpDialer()


def default_prober_provider() -> Prober:
    return IcmpPinger()
