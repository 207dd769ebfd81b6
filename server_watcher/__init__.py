from server_watcher.configuration import ServerWatcherConfiguration, ServerWatcherConfigurationBuilder
from server_watcher.providers import (
    DnsResolver,
    IcmpPinger,
    PingStatus,
    TcpDialer,
)
from server_watcher.results import ServerWatcherCheckResult, WatcherCheckResult
from server_watcher.watcher import ServerWatcher, WatcherException

__all__ = [
    "DnsResolver",
    "IcmpPinger",
    "PingStatus",
    "ServerWatcher",
    "ServerWatcherCheckResult",
    "ServerWatcherConfiguration",
    "ServerWatcherConfigurationBuilder",
    "TcpDialer",
    "WatcherCheckResult",
    "WatcherException",
]
