from __future__ import annotations

from typing import Protocol
from xml.etree import ElementTree as ET

from findingaid.domain.models.resource import ArchivalResource
from findingaid.infrastructure.db.repos.resource_repo import ResourceRepo

_DEFAULT_LEVEL = "otherlevel"


class EadExporter(Protocol):
    def export(self, resource: ArchivalResource) -> str:
        """Return the raw EAD XML for a resource and its descendants."""


class TreeEadExporter:
    """Minimal EAD 2002 export walking the resource tree.

    The root ``<ead>`` element is written without namespaces; those are added
    later by the namespace normalizer.
    """

    def __init__(self, resource_repo: ResourceRepo) -> None:
        self.resource_repo = resource_repo

    def export(self, resource: ArchivalResource) -> str:
        ead = ET.Element("ead")

        header = ET.SubElement(ead, "eadheader", {"langencoding": "iso639-2b"})
        ET.SubElement(header, "eadid").text = resource.identifier or resource.label
        filedesc = ET.SubElement(header, "filedesc")
        titlestmt = ET.SubElement(filedesc, "titlestmt")
        ET.SubElement(titlestmt, "titleproper").text = resource.title or resource.label

        archdesc = ET.SubElement(ead, "archdesc", {"level": resource.level_of_description or _DEFAULT_LEVEL})
        self._describe(archdesc, resource)

        children = self.resource_repo.children(resource.id)
        if children:
            dsc = ET.SubElement(archdesc, "dsc", {"type": "combined"})
            for child in children:
                self._append_component(dsc, child)

        return ET.tostring(ead, encoding="unicode")

    def _append_component(self, parent: ET.Element, resource: ArchivalResource) -> None:
        component = ET.SubElement(parent, "c", {"level": resource.level_of_description or _DEFAULT_LEVEL})
        if resource.slug:
            component.set("id", resource.slug)
        self._describe(component, resource)
        for child in self.resource_repo.children(resource.id):
            self._append_component(component, child)

    @staticmethod
    def _describe(element: ET.Element, resource: ArchivalResource) -> None:
        did = ET.SubElement(element, "did")
        ET.SubElement(did, "unittitle").text = resource.title or resource.label
        if resource.identifier:
            ET.SubElement(did, "unitid").text = resource.identifier
        if resource.scope_and_content:
            scope = ET.SubElement(element, "scopecontent")
            ET.SubElement(scope, "p").text = resource.scope_and_content
