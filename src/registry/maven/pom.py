"""Minimal POM reading: enough to identify a manifest and index local projects."""
from __future__ import annotations

import logging
import os
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, Optional

from constants import Constants
from common.errors import ParseError
from .models import Coordinate, Manifest

logger = logging.getLogger(__name__)

_NS = "{" + Constants.POM_NAMESPACE + "}"


def _child_text(parent: Optional[ET.Element], tag: str) -> Optional[str]:
    if parent is None:
        return None
    node = parent.find(f"{_NS}{tag}")
    if node is None:
        node = parent.find(tag)
    if node is None or node.text is None:
        return None
    return node.text.strip() or None


def parse_pom(
    coordinate: Optional[Coordinate],
    data: bytes,
    source_path: Path,
    snapshot_version: Optional[str] = None,
) -> Manifest:
    """Read groupId/artifactId/version, inheriting group and version from <parent>.

    ``coordinate`` fills in anything the document leaves out, which happens for
    POMs whose version comes from a property or CI-friendly placeholder.

    Raises:
        ParseError: malformed XML or no artifactId anywhere.
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise ParseError(f"malformed POM {source_path}: {exc}") from exc

    parent = root.find(f"{_NS}parent")
    if parent is None:
        parent = root.find("parent")

    artifact = _child_text(root, "artifactId") or (coordinate.artifact if coordinate else None)
    group = (
        _child_text(root, "groupId")
        or _child_text(parent, "groupId")
        or (coordinate.group if coordinate else None)
    )
    version = (
        _child_text(root, "version")
        or _child_text(parent, "version")
        or (coordinate.version if coordinate else None)
    )
    if not artifact or not group or not version:
        raise ParseError(f"POM {source_path} does not identify groupId, artifactId and version")
    if "${" in version and coordinate is not None:
        version = coordinate.version

    return Manifest(
        coordinate=Coordinate(group, artifact, version),
        source_path=source_path,
        content=root,
        snapshot_version=snapshot_version,
    )


def load_project_poms(dir_name: str, recursive: bool = False) -> Dict[Path, Manifest]:
    """Index pom.xml files under ``dir_name`` by normalized absolute path.

    Unreadable or malformed POMs are logged and skipped.
    """
    pom_files = []
    if recursive:
        for root, _, files in os.walk(dir_name):
            if Constants.POM_XML_FILE in files:
                pom_files.append(os.path.join(root, Constants.POM_XML_FILE))
    else:
        path = os.path.join(dir_name, Constants.POM_XML_FILE)
        if os.path.isfile(path):
            pom_files.append(path)

    index: Dict[Path, Manifest] = {}
    for pom_path in pom_files:
        path = Path(os.path.normpath(os.path.abspath(pom_path)))
        try:
            index[path] = parse_pom(None, path.read_bytes(), path)
        except (OSError, ParseError) as e:
            logger.warning("Skipping %s: %s", pom_path, e)
    logger.info("Indexed %d local POM(s) under %s", len(index), dir_name)
    return index
