from __future__ import annotations

import logging
import os
from pathlib import Path

from findingaid.core.config import ToolConfig
from findingaid.domain.models.finding_aid import TRANSCRIPT_MAX_BYTES, ExtractionOutcome
from findingaid.infrastructure.tools.runner import CommandRunner

logger = logging.getLogger(__name__)

EXTRACTABLE_MIME_TYPES = frozenset({"application/pdf"})


def truncate_utf8(text: str, max_bytes: int = TRANSCRIPT_MAX_BYTES) -> str:
    encoded = text.encode("utf-8")
    if len(encoded) <= max_bytes:
        return text
    # A trailing partial multibyte sequence is dropped rather than split.
    return encoded[:max_bytes].decode("utf-8", errors="ignore")


class TextExtractionService:
    def __init__(self, runner: CommandRunner, tools: ToolConfig) -> None:
        self.runner = runner
        self.tools = tools

    @staticmethod
    def can_extract_text(mime_type: str) -> bool:
        return mime_type in EXTRACTABLE_MIME_TYPES

    def extract(self, path: Path, mime_type: str) -> ExtractionOutcome:
        if not self.can_extract_text(mime_type):
            message = "Could not obtain finding aid text."
            logger.info(message)
            return ExtractionOutcome(status="skipped", message=message)

        logger.info("Obtaining finding aid text...")
        result = self.runner.run(self.tools.pdftotext_bin, [str(path), "-"])

        if not result.ok:
            message = "Obtaining the text has failed."
            logger.info(message)
            for line in result.stdout_lines:
                logger.error("WARNING(PDFTOTEXT): %s", line)
            return ExtractionOutcome(status="failed", message=message)

        if not result.stdout_lines:
            return ExtractionOutcome(status="empty")

        text = truncate_utf8(os.linesep.join(result.stdout_lines))
        return ExtractionOutcome(status="extracted", text=text)
