from __future__ import annotations


class FindingAidError(Exception):
    """Base error for all user-facing finding aid exceptions."""


class ConfigurationError(FindingAidError):
    """Raised when configuration is invalid or incomplete."""


class ProjectNotInitializedError(FindingAidError):
    """Raised when .findingaid metadata is missing."""


class ValidationError(FindingAidError):
    """Raised when model invariants fail."""


class ResourceNotFoundError(FindingAidError):
    """Raised when an archival resource cannot be found."""


class EadExportError(FindingAidError):
    """Raised when EAD XML cannot be generated or written."""


class TransformError(FindingAidError):
    """Raised when an external transform stage fails fatally."""

    def __init__(self, stage: str, output_lines: list[str]) -> None:
        super().__init__(f"{stage} transform failed")
        self.stage = stage
        self.output_lines = list(output_lines)
