from __future__ import annotations

from pathlib import Path

from findingaid.core.config import DOWNLOADS_DIRNAME
from findingaid.domain.models.finding_aid import DEFAULT_FORMAT, FORMAT_SETTING, SUPPORTED_FORMATS
from findingaid.infrastructure.db.repos.setting_repo import SettingRepo


class FindingAidLocator:
    """Where finding aid artifacts live under the public web directory."""

    def __init__(self, web_dir: Path) -> None:
        self.web_dir = web_dir

    @property
    def downloads_dir(self) -> Path:
        return self.web_dir / DOWNLOADS_DIRNAME

    @staticmethod
    def possible_filenames(resource_id: int, slug: str | None = None) -> list[str]:
        # The active format may have changed since the artifact was written,
        # so every format is a candidate.
        names = [f"{resource_id}.{ext}" for ext in SUPPORTED_FORMATS]
        if slug:
            names.extend(f"{slug}.{ext}" for ext in SUPPORTED_FORMATS)
        return names

    def possible_abspaths(self, resource_id: int, slug: str | None = None) -> list[Path]:
        return [self.downloads_dir / name for name in self.possible_filenames(resource_id, slug)]

    def path_for_download(self, resource_id: int, slug: str | None = None) -> Path | None:
        for name in self.possible_filenames(resource_id, slug):
            relpath = Path(DOWNLOADS_DIRNAME) / name
            if (self.web_dir / relpath).exists():
                return relpath
        return None

    @staticmethod
    def canonical_path(resource_id: int, slug: str | None, fmt: str) -> Path:
        filename = slug or str(resource_id)
        return Path(DOWNLOADS_DIRNAME) / f"{filename}.{fmt}"

    def canonical_abspath(self, resource_id: int, slug: str | None, fmt: str) -> Path:
        return self.web_dir / self.canonical_path(resource_id, slug, fmt)

    @staticmethod
    def resolve_format(setting_repo: SettingRepo) -> str:
        return setting_repo.get_value(FORMAT_SETTING) or DEFAULT_FORMAT
