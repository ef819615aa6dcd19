from __future__ import annotations

import re
from pathlib import Path

from findingaid.domain.models.resource import ArchivalResource

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class XmlCache:
    def __init__(self, cache_dir: Path, tmp_dir: Path) -> None:
        self.cache_dir = cache_dir
        self.tmp_dir = tmp_dir

    def resource_export_file_path(self, resource: ArchivalResource, standard: str) -> Path:
        return self.cache_dir / standard / f"{resource.id}.xml"

    def fallback_file_path(self, resource: ArchivalResource, standard: str) -> Path:
        return self.tmp_dir / sortable_filename(resource, "xml", standard)


def sortable_filename(resource: ArchivalResource, extension: str, prefix: str) -> str:
    label = _UNSAFE_FILENAME_CHARS.sub("-", resource.label).strip("-") or str(resource.id)
    return f"{prefix}_{resource.id:010d}_{label}.{extension}"
