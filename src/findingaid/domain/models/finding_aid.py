from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from findingaid.core.errors import TransformError

STATUS_PROPERTY = "findingAidStatus"
TRANSCRIPT_PROPERTY = "findingAidTranscript"
TRANSCRIPT_SCOPE = "Text extracted from finding aid PDF file text layer using pdftotext"
TRANSCRIPT_MAX_BYTES = 65535

GENERATED_STATUS = "Generated"
UPLOADED_STATUS = "Uploaded"

MODEL_SETTING = "findingAidModel"
FORMAT_SETTING = "findingAidFormat"
DEFAULT_MODEL = "inventory-summary"
DEFAULT_FORMAT = "pdf"
SUPPORTED_FORMATS = ("pdf", "rtf")

XML_STANDARD = "ead"
JOB_NAME = "finding_aid"


@dataclass(frozen=True)
class FindingAidSettings:
    model: str = DEFAULT_MODEL
    format: str = DEFAULT_FORMAT

    @property
    def mime_type(self) -> str:
        return f"application/{self.format}"


class Severity(str, Enum):
    FATAL = "fatal"
    SOFT = "soft"


@dataclass(slots=True)
class StageResult:
    stage: str
    exit_code: int
    severity: Severity
    output_lines: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def raise_for_fatal(self) -> None:
        if not self.ok and self.severity is Severity.FATAL:
            raise TransformError(self.stage, self.output_lines)


@dataclass(slots=True)
class ExtractionOutcome:
    status: str
    text: str | None = None
    message: str | None = None

    @property
    def extracted(self) -> bool:
        return self.status == "extracted"
