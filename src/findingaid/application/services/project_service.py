from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from findingaid.core.config import AppPaths
from findingaid.core.files import ensure_directory
from findingaid.infrastructure.db.sqlite import initialize_schema


@dataclass(slots=True)
class InitResult:
    paths_created: list[Path]
    db_path: Path


class ProjectService:
    def __init__(self, paths: AppPaths) -> None:
        self.paths = paths

    def init_project(self) -> InitResult:
        paths_created: list[Path] = []

        for path in (
            self.paths.data_dir,
            self.paths.xml_cache_dir,
            self.paths.tmp_dir,
            self.paths.downloads_dir,
        ):
            if not path.exists():
                paths_created.append(path)
            ensure_directory(path)

        initialize_schema(self.paths.db_path)

        return InitResult(paths_created=paths_created, db_path=self.paths.db_path)

    def is_initialized(self) -> bool:
        return self.paths.db_path.exists()
