"""Repository layout helpers: where documents live under a repository base URI."""
from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

from constants import Constants
from .models import RepositoryDescriptor

# URLs are case-sensitive after the host, so only the scheme is matched loosely
_HTTP_SCHEME = re.compile(r"^[hH][tT][tT][pP]://")
_HTTPS_SCHEME = re.compile(r"^[hH][tT][tT][pP][sS]://")


def is_insecure(uri: str) -> bool:
    return bool(_HTTP_SCHEME.match(uri))


def is_secure(uri: str) -> bool:
    return bool(_HTTPS_SCHEME.match(uri))


def to_https(uri: str) -> str:
    """Rewrite an http:// URI to https://; other URIs are returned unchanged."""
    return _HTTP_SCHEME.sub("https://", uri, count=1)


def _artifact_dir(repo: RepositoryDescriptor, group: str, artifact: str) -> str:
    group_path = group.replace(".", "/")
    return f"{repo.key}/{group_path}/{artifact}"


def metadata_url(
    repo: RepositoryDescriptor, group: str, artifact: str, version: Optional[str] = None
) -> str:
    """URL of maven-metadata.xml, version-qualified for snapshot metadata."""
    base = _artifact_dir(repo, group, artifact)
    if version:
        base = f"{base}/{version}"
    return f"{base}/{Constants.METADATA_FILE}"


def pom_url(
    repo: RepositoryDescriptor,
    group: str,
    artifact: str,
    version: str,
    resolved_version: Optional[str] = None,
) -> str:
    """URL of a POM.

    Snapshot POMs live in the nominal ``-SNAPSHOT`` directory but carry the
    timestamped version in their file name.
    """
    file_version = resolved_version or version
    return f"{_artifact_dir(repo, group, artifact)}/{version}/{artifact}-{file_version}.pom"


def remote_source_path(group: str, artifact: str, version: str) -> Path:
    """Path recorded on downloaded manifests; only used in logs and errors."""
    return Path(group, artifact, version)
