"""Exception hierarchy for repository access and artifact resolution."""

from __future__ import annotations

from typing import Sequence


class DepfetchError(Exception):
    """Base class for every error raised by this project."""


class NetworkError(DepfetchError):
    """A request could not produce an HTTP response."""

    def __init__(self, message: str, url: str = ""):
        super().__init__(message)
        self.url = url


class TransientNetworkError(NetworkError):
    """Connect or read timeout; safe to retry."""


class PermanentNetworkError(NetworkError):
    """Connection refused, invalid URL or another non-retryable failure."""


class SecureTransportError(PermanentNetworkError):
    """TLS handshake failed; callers may fall back to plain http."""


class ParseError(DepfetchError):
    """A POM or metadata document could not be parsed."""


class ConfigError(DepfetchError):
    """Configuration file is missing, unreadable or fails validation."""


class ResolutionError(DepfetchError):
    """A coordinate could not be resolved."""

    def __init__(self, coordinate, repositories: Sequence[str] = ()):
        self.coordinate = coordinate
        self.repositories = tuple(repositories)
        super().__init__(self._describe())

    def _describe(self) -> str:
        tried = ", ".join(self.repositories) if self.repositories else "none"
        return f"no manifest available for {self.coordinate} (tried: {tried})"


class UnresolvedSnapshotError(ResolutionError):
    """A -SNAPSHOT version has no timestamped build in any repository."""

    def _describe(self) -> str:
        tried = ", ".join(self.repositories) if self.repositories else "none"
        return f"no snapshot build available for {self.coordinate} (tried: {tried})"


class ArtifactNotFoundError(ResolutionError):
    """No repository produced a manifest for the coordinate."""


class ResolutionFailure(ResolutionError):
    """An unexpected fault interrupted resolution of the coordinate."""

    def __init__(self, coordinate, cause: BaseException):
        self.cause = cause
        super().__init__(coordinate)

    def _describe(self) -> str:
        return f"resolution of {self.coordinate} failed: {type(self.cause).__name__}: {self.cause}"
