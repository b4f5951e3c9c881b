"""Plugin hooks around scanning and persistence."""

from .events import (
    PAYLOAD_TYPES,
    AfterPersist,
    AfterScan,
    BeforePersist,
    BeforeScan,
    HookEvent,
    HookPayload,
    OnError,
)
from .registry import Handler, HookContext, HookRegistry

__all__ = [
    "PAYLOAD_TYPES",
    "AfterPersist",
    "AfterScan",
    "BeforePersist",
    "BeforeScan",
    "Handler",
    "HookContext",
    "HookEvent",
    "HookPayload",
    "HookRegistry",
    "OnError",
]
