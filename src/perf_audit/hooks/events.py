"""Lifecycle events and their payloads.

Each event carries exactly one payload type. Payloads are frozen snapshots,
so a handler can read them but cannot change what the pipeline does next.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from ..models import AnalysisResult, Artifact, Target


class HookEvent(str, Enum):
    BEFORE_SCAN = "before_scan"
    AFTER_SCAN = "after_scan"
    BEFORE_PERSIST = "before_persist"
    AFTER_PERSIST = "after_persist"
    ON_ERROR = "on_error"


@dataclass(frozen=True)
class BeforeScan:
    targets: tuple[Target, ...]
    output_paths: dict[Target, str] = field(default_factory=dict)


@dataclass(frozen=True)
class AfterScan:
    artifacts: tuple[Artifact, ...]


@dataclass(frozen=True)
class BeforePersist:
    result: AnalysisResult


@dataclass(frozen=True)
class AfterPersist:
    result: AnalysisResult
    build_id: Optional[int]  # None when the write failed


@dataclass(frozen=True)
class OnError:
    error: BaseException
    context: str  # "scan" | "persist" | "watch"


HookPayload = Union[BeforeScan, AfterScan, BeforePersist, AfterPersist, OnError]

PAYLOAD_TYPES: dict[HookEvent, type] = {
    HookEvent.BEFORE_SCAN: BeforeScan,
    HookEvent.AFTER_SCAN: AfterScan,
    HookEvent.BEFORE_PERSIST: BeforePersist,
    HookEvent.AFTER_PERSIST: AfterPersist,
    HookEvent.ON_ERROR: OnError,
}
