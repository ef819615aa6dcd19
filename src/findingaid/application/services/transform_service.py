from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from findingaid.core.config import ToolConfig
from findingaid.core.errors import ConfigurationError
from findingaid.core.files import allocate_temp_file, ensure_directory, remove_if_exists
from findingaid.domain.models.finding_aid import Severity, StageResult
from findingaid.infrastructure.tools.runner import CommandRunner

logger = logging.getLogger(__name__)

SAXON_STAGE = "SAXON"
FOP_STAGE = "FOP"

# Apache FOP needs these namespaces declared on the EAD root to process it.
EAD_HEADER = (
    b'<ead xmlns:ns2="http://www.w3.org/1999/xlink" xmlns="urn:isbn:1-931666-22-9"\n'
    b'  xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">'
)
_EAD_ROOT_TAG = re.compile(rb"<ead .*?>|<ead>")


def add_ead_namespaces(content: bytes) -> bytes:
    return _EAD_ROOT_TAG.sub(lambda _match: EAD_HEADER, content, count=1)


def normalize_ead_file(path: Path) -> bool:
    """Rewrite the EAD root tag of ``path`` in place.

    Works on raw bytes so line endings and the declared encoding survive.
    Returns False, leaving the file untouched, when there is no root tag.
    """
    content = path.read_bytes()
    normalized = add_ead_namespaces(content)
    if normalized == content:
        return False
    path.write_bytes(normalized)
    return True


def stylesheet_path(template_dir: Path, model: str) -> Path:
    return template_dir / f"ead-pdf-{model}.xsl"


def render_xsl(template_path: Path, variables: dict[str, str], tmp_dir: Path | None = None) -> Path:
    """Substitute ``{{ name }}`` placeholders and write the result to a new temp file.

    Values are inserted UTF-8 encoded; all other template bytes are copied as is.
    The caller owns the returned file and must remove it.
    """
    try:
        content = template_path.read_bytes()
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Finding aid stylesheet not found: {template_path}") from exc

    for key, value in variables.items():
        content = content.replace(f"{{{{ {key} }}}}".encode("utf-8"), value.encode("utf-8"))

    rendered = allocate_temp_file(suffix=".xsl", dir=tmp_dir)
    try:
        rendered.write_bytes(content)
    except OSError:
        remove_if_exists(rendered)
        raise
    return rendered


class TransformPipeline:
    """EAD -> XSL-FO (Saxon) -> PDF/RTF (Apache FOP)."""

    def __init__(self, runner: CommandRunner, tools: ToolConfig) -> None:
        self.runner = runner
        self.tools = tools

    def run_xslt(self, stylesheet: Path, source: Path, fo_output: Path) -> StageResult:
        result = self.runner.run(
            self.tools.java_bin,
            [
                "-jar",
                str(self.tools.saxon_jar),
                f"-s:{source}",
                f"-xsl:{stylesheet}",
                f"-o:{fo_output}",
            ],
        )
        return StageResult(
            stage=SAXON_STAGE,
            exit_code=result.exit_code,
            severity=Severity.FATAL,
            output_lines=result.output_lines,
        )

    def run_fo_render(self, fmt: str, fo_input: Path, output: Path) -> StageResult:
        ensure_directory(output.parent)
        partial = output.parent / f".{output.name}.tmp"
        result = self.runner.run(
            self.tools.fop_bin,
            ["-r", "-q", "-fo", str(fo_input), f"-{fmt}", str(partial)],
        )

        if result.ok:
            os.replace(partial, output)
        else:
            remove_if_exists(partial)

        return StageResult(
            stage=FOP_STAGE,
            exit_code=result.exit_code,
            severity=Severity.SOFT,
            output_lines=result.output_lines,
        )
