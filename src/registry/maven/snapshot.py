"""Map a -SNAPSHOT version onto the timestamped build a repository serves."""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from constants import Constants
from common.logging_utils import extra_context
from .metadata import MetadataResolver
from .models import RepositoryDescriptor, SnapshotInfo, is_snapshot
from .normalize import RepositoryNormalizer

logger = logging.getLogger(__name__)


def dated_snapshot_version(version: str, snapshot: SnapshotInfo) -> str:
    """``1.0-SNAPSHOT`` + (20240101.120000, 3) -> ``1.0-20240101.120000-3``."""
    stem = version[: -len(Constants.SNAPSHOT_MARKER)]
    return f"{stem}{snapshot.timestamp}-{snapshot.build_number}"


class SnapshotVersionResolver:
    """Resolve -SNAPSHOT versions; release versions pass through untouched."""

    def __init__(self, normalizer: RepositoryNormalizer, metadata: MetadataResolver):
        self._normalizer = normalizer
        self._metadata = metadata

    def resolve_version(
        self,
        group: str,
        artifact: str,
        version: str,
        repositories: Iterable[RepositoryDescriptor] = (),
    ) -> Optional[str]:
        """Concrete version to download, or None when the snapshot cannot be resolved.

        The first repository that serves a metadata document decides. If that
        document has no snapshot record the snapshot is gone and later
        repositories are not asked; only failed or non-2xx fetches move on.
        """
        if not is_snapshot(version):
            return version

        for repo in self._normalizer.effective_repositories(repositories, version):
            result = self._metadata.fetch_metadata(repo, group, artifact, version)
            if not result.found:
                continue

            snapshot = result.data.latest_snapshot
            if snapshot is None:
                logger.info(
                    "%s:%s:%s has no snapshot build in %s",
                    group, artifact, version, repo.id,
                    extra=extra_context(
                        event="decision",
                        component="snapshot",
                        action="resolve_version",
                        outcome="no_snapshot",
                    ),
                )
                return None
            return dated_snapshot_version(version, snapshot)

        return None
