from __future__ import annotations

from dataclasses import dataclass

ROOT_ID = 1


@dataclass(slots=True)
class ArchivalResource:
    id: int
    slug: str | None = None
    parent_id: int | None = ROOT_ID
    title: str | None = None
    identifier: str | None = None
    level_of_description: str | None = None
    scope_and_content: str | None = None

    @property
    def is_root(self) -> bool:
        return self.id == ROOT_ID

    @property
    def label(self) -> str:
        return self.slug or str(self.id)
