# Services module
from .openarena_client import OpenArenaClient, close_openarena_client, get_openarena_client
from .report_store import ReportStore, get_report_store
from .resilience import TimeoutEscalator, TimeoutPolicy
from .runtime_settings import RuntimeSettings, get_runtime_settings

__all__ = [
    "OpenArenaClient",
    "get_openarena_client",
    "close_openarena_client",
    "TimeoutEscalator",
    "TimeoutPolicy",
    "ReportStore",
    "get_report_store",
    "RuntimeSettings",
    "get_runtime_settings",
]
