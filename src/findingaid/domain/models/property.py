from __future__ import annotations

from dataclasses import dataclass

SOURCE_CULTURE = "en"


@dataclass(slots=True)
class FindingAidProperty:
    id: int
    object_id: int
    name: str
    value: str | None
    scope: str | None = None
    culture: str = SOURCE_CULTURE
    updated_at: str | None = None
