from __future__ import annotations

import logging
import shutil
from contextlib import ExitStack
from pathlib import Path

from findingaid.application.services.ead_service import EadService
from findingaid.application.services.text_extraction_service import TextExtractionService
from findingaid.application.services.transform_service import (
    TransformPipeline,
    normalize_ead_file,
    render_xsl,
    stylesheet_path,
)
from findingaid.core.config import AppPaths, ToolConfig, load_tool_config
from findingaid.core.errors import ConfigurationError, TransformError, ValidationError
from findingaid.core.files import ensure_directory, remove_if_exists, scoped_temp_file
from findingaid.domain.models.finding_aid import (
    DEFAULT_MODEL,
    GENERATED_STATUS,
    JOB_NAME,
    MODEL_SETTING,
    STATUS_PROPERTY,
    SUPPORTED_FORMATS,
    TRANSCRIPT_PROPERTY,
    TRANSCRIPT_SCOPE,
    UPLOADED_STATUS,
    FindingAidSettings,
)
from findingaid.domain.models.job import Job
from findingaid.domain.models.resource import ROOT_ID, ArchivalResource
from findingaid.infrastructure.db.repos.job_repo import JobRepo
from findingaid.infrastructure.db.repos.property_repo import PropertyRepo
from findingaid.infrastructure.db.repos.resource_repo import ResourceRepo
from findingaid.infrastructure.db.repos.setting_repo import SettingRepo
from findingaid.infrastructure.export.ead_exporter import EadExporter, TreeEadExporter
from findingaid.infrastructure.export.xml_cache import XmlCache
from findingaid.infrastructure.search.index import SearchIndex, SqliteSearchIndex
from findingaid.infrastructure.storage.locator import FindingAidLocator
from findingaid.infrastructure.tools.runner import CommandRunner, SubprocessRunner

module_logger = logging.getLogger(__name__)


def resolve_settings(setting_repo: SettingRepo) -> FindingAidSettings:
    model = setting_repo.get_value(MODEL_SETTING) or DEFAULT_MODEL
    fmt = FindingAidLocator.resolve_format(setting_repo).lower()
    if fmt not in SUPPORTED_FORMATS:
        raise ConfigurationError(
            f"Unsupported finding aid format '{fmt}'; expected one of: {', '.join(SUPPORTED_FORMATS)}"
        )
    return FindingAidSettings(model=model, format=fmt)


class FindingAidWriter:
    """Generate, upload and delete the finding aid document of one resource.

    Callers must not run two operations for the same resource concurrently;
    nothing here takes a lock.
    """

    def __init__(
        self,
        resource: ArchivalResource,
        *,
        app_root: Path,
        template_dir: Path,
        locator: FindingAidLocator,
        ead_service: EadService,
        pipeline: TransformPipeline,
        text_extractor: TextExtractionService,
        property_repo: PropertyRepo,
        setting_repo: SettingRepo,
        search_index: SearchIndex,
        tmp_dir: Path | None = None,
        job: Job | None = None,
        job_repo: JobRepo | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if resource.is_root:
            raise ValidationError(f"Invalid resource id: {ROOT_ID}")

        self.resource = resource
        self.app_root = app_root
        self.template_dir = template_dir
        self.locator = locator
        self.ead_service = ead_service
        self.pipeline = pipeline
        self.text_extractor = text_extractor
        self.property_repo = property_repo
        self.setting_repo = setting_repo
        self.search_index = search_index
        self.tmp_dir = tmp_dir
        self.job = job
        self.job_repo = job_repo
        self.logger = logger or module_logger

    def generate(self) -> bool:
        self.logger.info("Generating finding aid (%s)...", self.resource.label)

        settings = resolve_settings(self.setting_repo)
        ead = self.ead_service.get_ead_file(self.resource)
        artifact = self.locator.canonical_abspath(self.resource.id, self.resource.slug, settings.format)

        with ExitStack() as stack:
            if not ead.cached:
                stack.callback(remove_if_exists, ead.path)

            try:
                if self.tmp_dir is not None:
                    ensure_directory(self.tmp_dir)
                source = stack.enter_context(scoped_temp_file(".xml", self.tmp_dir))
                fo_path = stack.enter_context(scoped_temp_file(".fo", self.tmp_dir))
                xsl_path = render_xsl(
                    stylesheet_path(self.template_dir, settings.model),
                    {"app_root": str(self.app_root).rstrip("/")},
                    self.tmp_dir,
                )
                stack.callback(remove_if_exists, xsl_path)
            except ConfigurationError as exc:
                self._error(str(exc))
                return False
            except OSError:
                self._error("Failed to create temporary file.")
                return False

            # The cache copy stays pristine; only the working copy is rewritten.
            shutil.copyfile(ead.path, source)
            normalize_ead_file(source)

            try:
                xslt = self.pipeline.run_xslt(xsl_path, source, fo_path)
                xslt.raise_for_fatal()
                render = self.pipeline.run_fo_render(settings.format, fo_path, artifact)
            except TransformError as exc:
                self._error("Transforming the EAD with Saxon has failed.")
                self._log_cmd_output(exc.output_lines, f"ERROR({exc.stage})")
                return False

            if not render.ok:
                self._error(f"Converting the EAD FO to {settings.format.upper()} has failed.")
                self._log_cmd_output(render.output_lines, f"ERROR({render.stage})")
                return False

        self.property_repo.upsert(self.resource.id, STATUS_PROPERTY, GENERATED_STATUS)
        self.search_index.partial_update(self.resource, {"findingAid": {"status": GENERATED_STATUS}})

        self._info(f"Finding aid generated successfully: {artifact}")
        return True

    def upload(self, path: Path, settings: FindingAidSettings | None = None) -> bool:
        self.logger.info("Uploading finding aid (%s)...", self.resource.label)

        settings = settings or resolve_settings(self.setting_repo)
        self.property_repo.upsert(self.resource.id, STATUS_PROPERTY, UPLOADED_STATUS)
        partial_data: dict[str, dict[str, str | None]] = {
            "findingAid": {"transcript": None, "status": UPLOADED_STATUS},
        }
        self._info(f"Finding aid uploaded successfully: {path}")

        outcome = self.text_extractor.extract(path, settings.mime_type)
        if outcome.message:
            self._note(outcome.message)

        if outcome.extracted:
            self.property_repo.upsert(
                self.resource.id,
                TRANSCRIPT_PROPERTY,
                outcome.text,
                scope=TRANSCRIPT_SCOPE,
            )
            partial_data["findingAid"]["transcript"] = outcome.text

        self.search_index.partial_update(self.resource, partial_data)
        return True

    def delete(self) -> bool:
        self.logger.info("Deleting finding aid (%s)...", self.resource.label)

        for path in self.locator.possible_abspaths(self.resource.id, self.resource.slug):
            if remove_if_exists(path):
                self.logger.debug("Removed %s", path)

        if self.property_repo.get_one(self.resource.id, TRANSCRIPT_PROPERTY, scope=TRANSCRIPT_SCOPE):
            self.logger.info("Deleting finding aid transcript...")
            self.property_repo.delete(self.resource.id, TRANSCRIPT_PROPERTY, scope=TRANSCRIPT_SCOPE)

        self.property_repo.delete(self.resource.id, STATUS_PROPERTY)

        self.search_index.partial_update(
            self.resource,
            {"findingAid": {"transcript": None, "status": None}},
        )

        self._info("Finding aid deleted successfully.")
        return True

    @staticmethod
    def get_status(resource_id: int, job_repo: JobRepo) -> int | None:
        return job_repo.latest_status(JOB_NAME, resource_id)

    def _info(self, message: str) -> None:
        self.logger.info(message)
        self._note(message)

    def _error(self, message: str) -> None:
        self.logger.error(message)
        self._note(message)

    def _note(self, message: str) -> None:
        if self.job is not None and self.job_repo is not None:
            self.job_repo.add_note(self.job.id, message)

    def _log_cmd_output(self, lines: list[str], prefix: str = "ERROR") -> None:
        for line in lines:
            self.logger.error("%s: %s", prefix, line)


def build_writer(
    paths: AppPaths,
    resource: ArchivalResource,
    *,
    tools: ToolConfig | None = None,
    runner: CommandRunner | None = None,
    exporter: EadExporter | None = None,
    search_index: SearchIndex | None = None,
    job: Job | None = None,
    logger: logging.Logger | None = None,
) -> FindingAidWriter:
    tools = tools or load_tool_config(paths)
    runner = runner or SubprocessRunner()
    exporter = exporter or TreeEadExporter(ResourceRepo(paths.db_path))

    return FindingAidWriter(
        resource,
        app_root=paths.app_root,
        template_dir=paths.template_dir,
        locator=FindingAidLocator(paths.web_dir),
        ead_service=EadService(
            exporter,
            XmlCache(paths.xml_cache_dir, paths.tmp_dir),
            cache_xml_on_save=tools.cache_xml_on_save,
        ),
        pipeline=TransformPipeline(runner, tools),
        text_extractor=TextExtractionService(runner, tools),
        property_repo=PropertyRepo(paths.db_path),
        setting_repo=SettingRepo(paths.db_path),
        search_index=search_index or SqliteSearchIndex(paths.db_path),
        tmp_dir=paths.tmp_dir,
        job=job,
        job_repo=JobRepo(paths.db_path) if job is not None else None,
        logger=logger,
    )
