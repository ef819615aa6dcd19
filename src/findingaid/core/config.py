from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AppPaths:
    project_root: Path
    data_dir: Path
    db_path: Path
    xml_cache_dir: Path
    tmp_dir: Path
    web_dir: Path
    downloads_dir: Path
    app_root: Path
    template_dir: Path


@dataclass(frozen=True)
class ToolConfig:
    java_bin: str
    saxon_jar: Path
    fop_bin: str
    pdftotext_bin: str
    cache_xml_on_save: bool


DEFAULT_DATA_DIRNAME = ".findingaid"
DOWNLOADS_DIRNAME = "downloads"


def load_paths(project_root: Path | None = None) -> AppPaths:
    root = (project_root or Path.cwd()).expanduser().resolve()

    data_dir = _read_path_env("FINDINGAID_HOME") or root / DEFAULT_DATA_DIRNAME
    web_dir = _read_path_env("FINDINGAID_WEB_DIR") or root / "web"
    app_root = _read_path_env("FINDINGAID_APP_ROOT") or root
    template_dir = _read_path_env("FINDINGAID_TEMPLATE_DIR") or app_root / "lib" / "task" / "pdf"

    return AppPaths(
        project_root=root,
        data_dir=data_dir,
        db_path=data_dir / "findingaid.db",
        xml_cache_dir=data_dir / "cache" / "xml",
        tmp_dir=data_dir / "tmp",
        web_dir=web_dir,
        downloads_dir=web_dir / DOWNLOADS_DIRNAME,
        app_root=app_root,
        template_dir=template_dir,
    )


def load_tool_config(paths: AppPaths) -> ToolConfig:
    saxon_jar = _read_path_env("FINDINGAID_SAXON_JAR") or paths.app_root / "lib" / "task" / "pdf" / "saxon9he.jar"
    return ToolConfig(
        java_bin=_read_str_env("FINDINGAID_JAVA_BIN", "java"),
        saxon_jar=saxon_jar,
        fop_bin=_read_str_env("FINDINGAID_FOP_BIN", "fop"),
        pdftotext_bin=_read_str_env("FINDINGAID_PDFTOTEXT_BIN", "pdftotext"),
        cache_xml_on_save=_read_bool_env("FINDINGAID_CACHE_XML_ON_SAVE", False),
    )


def _read_path_env(name: str) -> Path | None:
    raw = os.getenv(name)
    if not raw or not raw.strip():
        return None
    return Path(raw.strip()).expanduser().resolve()


def _read_str_env(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip() or default


def _read_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default
