from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum


class JobStatus(IntEnum):
    IN_PROGRESS = 183
    COMPLETED = 184
    ERROR = 185


@dataclass(slots=True)
class Job:
    id: str
    name: str
    object_id: int
    status_id: int
    created_at: str
    finished_at: str | None = None
    notes: list[str] = field(default_factory=list)
