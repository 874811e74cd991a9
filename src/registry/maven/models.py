"""Data models for Maven coordinates, repositories, manifests and metadata."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, Generic, Mapping, Optional, Tuple, TypeVar

from constants import Constants

T = TypeVar("T")


def is_snapshot(version: str) -> bool:
    """True when ``version`` ends with the -SNAPSHOT marker."""
    return version.endswith(Constants.SNAPSHOT_SUFFIX)


@dataclass(frozen=True)
class Coordinate:
    """groupId:artifactId:version."""

    group: str
    artifact: str
    version: str

    @classmethod
    def parse(cls, token: str) -> "Coordinate":
        """Parse ``group:artifact:version`` text."""
        parts = [p.strip() for p in token.strip().split(":")]
        if len(parts) != 3 or not all(parts):
            raise ValueError(f"expected group:artifact:version, got {token!r}")
        return cls(*parts)

    @property
    def is_snapshot(self) -> bool:
        return is_snapshot(self.version)

    def same_artifact(self, other: "Coordinate") -> bool:
        """Group and artifact match; version is ignored."""
        return self.group == other.group and self.artifact == other.artifact

    def __str__(self) -> str:
        return f"{self.group}:{self.artifact}:{self.version}"


@dataclass(frozen=True)
class Credentials:
    """Basic authentication for a repository."""

    username: str
    password: str = field(repr=False)

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='***')"


@dataclass(frozen=True)
class RepositoryDescriptor:
    """A remote repository and the versions it serves."""

    id: str
    uri: str
    releases: bool = True
    snapshots: bool = False
    credentials: Optional[Credentials] = None

    def __post_init__(self) -> None:
        if not self.uri:
            raise ValueError(f"repository {self.id!r} has no URI")

    @property
    def key(self) -> str:
        """URI without trailing slash; repositories with equal keys are duplicates."""
        return self.uri.rstrip("/")

    def accepts_version(self, version: str) -> bool:
        return self.snapshots if is_snapshot(version) else self.releases

    def with_uri(self, uri: str) -> "RepositoryDescriptor":
        return replace(self, uri=uri)


DEFAULT_REPOSITORY = RepositoryDescriptor(
    id=Constants.DEFAULT_REPOSITORY_ID,
    uri=Constants.DEFAULT_REPOSITORY_URL,
    releases=True,
    snapshots=False,
)


@dataclass(frozen=True)
class Manifest:
    """A POM and where it came from.

    ``content`` is whatever the manifest parser produced; this package never
    looks inside it.
    """

    coordinate: Coordinate
    source_path: Path
    repository: Optional[RepositoryDescriptor] = None
    content: Any = field(default=None, compare=False, repr=False)
    snapshot_version: Optional[str] = None

    def with_repository(self, repository: RepositoryDescriptor) -> "Manifest":
        return replace(self, repository=repository)


LocalProjectIndex = Mapping[Path, Manifest]


@dataclass(frozen=True)
class SnapshotInfo:
    """The latest deployed build of a snapshot version."""

    timestamp: str
    build_number: str


@dataclass(frozen=True)
class VersionMetadata:
    """Versions listed by maven-metadata.xml.

    ``EMPTY`` is the identity of ``merge``. Merging concatenates version lists
    in order, keeping duplicates, and keeps the left-most snapshot record.
    """

    versions: Tuple[str, ...] = ()
    latest_snapshot: Optional[SnapshotInfo] = None

    EMPTY: ClassVar["VersionMetadata"]

    @property
    def is_empty(self) -> bool:
        return self == VersionMetadata.EMPTY

    def merge(self, other: "VersionMetadata") -> "VersionMetadata":
        if other.is_empty:
            return self
        if self.is_empty:
            return other
        return VersionMetadata(
            versions=self.versions + other.versions,
            latest_snapshot=self.latest_snapshot or other.latest_snapshot,
        )


VersionMetadata.EMPTY = VersionMetadata()


class FetchOutcome(Enum):
    """Per-repository attempt outcome reported to the event sink."""

    CACHED = "cached"
    DOWNLOADED = "downloaded"
    UNAVAILABLE = "unavailable"
    ERROR = "error"


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Result of asking one repository for one document."""

    repository: RepositoryDescriptor
    outcome: FetchOutcome
    data: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def found(self) -> bool:
        return self.data is not None
