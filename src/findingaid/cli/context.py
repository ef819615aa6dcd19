from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console

from findingaid.application.services.project_service import ProjectService
from findingaid.core.config import AppPaths
from findingaid.core.errors import ProjectNotInitializedError

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2
# A finding aid job ran and was recorded, but did not succeed.
EXIT_JOB_FAILED = 3


@dataclass(slots=True)
class CLIContext:
    paths: AppPaths
    console: Console

    def require_project(self) -> None:
        if not ProjectService(self.paths).is_initialized():
            raise ProjectNotInitializedError(
                f"Project is not initialized. Run 'findingaid init' first in {self.paths.project_root}"
            )
