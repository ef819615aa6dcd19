from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from xml.dom import minidom

from findingaid.core.errors import EadExportError
from findingaid.core.files import ensure_directory
from findingaid.domain.models.finding_aid import XML_STANDARD
from findingaid.domain.models.resource import ArchivalResource
from findingaid.infrastructure.export.ead_exporter import EadExporter
from findingaid.infrastructure.export.xml_cache import XmlCache

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EadFile:
    path: Path
    cached: bool


class EadService:
    def __init__(self, exporter: EadExporter, xml_cache: XmlCache, cache_xml_on_save: bool = False) -> None:
        self.exporter = exporter
        self.xml_cache = xml_cache
        self.cache_xml_on_save = cache_xml_on_save

    def get_ead_file(self, resource: ArchivalResource) -> EadFile:
        cached_path = self.xml_cache.resource_export_file_path(resource, XML_STANDARD)
        if cached_path.exists():
            logger.info("Using cached EAD XML: %s", cached_path)
            return EadFile(path=cached_path, cached=True)

        return self.generate_ead_file(resource)

    def generate_ead_file(self, resource: ArchivalResource) -> EadFile:
        try:
            xml = tidy_xml(self.exporter.export(resource))
        except Exception as exc:
            raise EadExportError(f"Error generating EAD XML for '{resource.label}'.") from exc

        if self.cache_xml_on_save:
            path = self.xml_cache.resource_export_file_path(resource, XML_STANDARD)
        else:
            path = self.xml_cache.fallback_file_path(resource, XML_STANDARD)

        try:
            ensure_directory(path.parent)
            path.write_text(xml, encoding="utf-8")
        except OSError as exc:
            raise EadExportError(
                f"ERROR (EAD-EXPORT): Couldn't write file for '{resource.label}': '{path}'"
            ) from exc

        return EadFile(path=path, cached=self.cache_xml_on_save)


def tidy_xml(raw_xml: str) -> str:
    """Re-indent an XML document, dropping whitespace-only text nodes."""
    document = minidom.parseString(raw_xml.encode("utf-8"))
    _strip_blank_text(document.documentElement)
    pretty = document.toprettyxml(indent="  ", encoding="utf-8").decode("utf-8")
    document.unlink()
    return pretty


def _strip_blank_text(node: minidom.Node) -> None:
    for child in list(node.childNodes):
        if child.nodeType == child.TEXT_NODE and not child.data.strip():
            node.removeChild(child)
        elif child.hasChildNodes():
            _strip_blank_text(child)
