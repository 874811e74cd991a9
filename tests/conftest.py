"""Shared fakes for resolver tests."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import pytest

from cli_config import ResolverConfig
from common.cache import ResolutionCache
from common.http_client import HttpResponse
from common.retry import RetryPolicy
from registry.maven import EventRecorder, MavenClient

CENTRAL = "https://repo.maven.apache.org/maven2"


def pom_bytes(group: str, artifact: str, version: str) -> bytes:
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
  <modelVersion>4.0.0</modelVersion>
  <groupId>{group}</groupId>
  <artifactId>{artifact}</artifactId>
  <version>{version}</version>
</project>
""".encode("utf-8")


def metadata_bytes(versions=(), timestamp: Optional[str] = None, build_number: Optional[str] = None) -> bytes:
    items = "".join(f"<version>{v}</version>" for v in versions)
    snapshot = ""
    if timestamp is not None:
        snapshot = (
            f"<snapshot><timestamp>{timestamp}</timestamp>"
            f"<buildNumber>{build_number}</buildNumber></snapshot>"
        )
    return (
        "<metadata><groupId>g</groupId><artifactId>a</artifactId>"
        f"<versioning>{snapshot}<versions>{items}</versions></versioning></metadata>"
    ).encode("utf-8")


class FakeTransport:
    """Transport stub answering from a URL -> response table.

    A route value may be an HttpResponse, a status code, raw bytes (200), an
    exception instance to raise, or a list of those consumed in order (the
    last one repeats). Unknown URLs answer ``default_status``.
    """

    def __init__(self, routes: Optional[Dict[str, Any]] = None, default_status: int = 404):
        self.routes: Dict[str, Any] = dict(routes or {})
        self.default_status = default_status
        self.calls: List[Tuple[str, Any]] = []

    def reachable(self, *uris: str) -> "FakeTransport":
        for uri in uris:
            self.routes[uri] = 200
        return self

    def get(self, url: str, *, credentials=None) -> HttpResponse:
        self.calls.append((url, credentials))
        handler = self.routes.get(url, self.default_status)
        if isinstance(handler, list):
            handler = handler.pop(0) if len(handler) > 1 else handler[0]
        if isinstance(handler, BaseException):
            raise handler
        if isinstance(handler, int):
            return HttpResponse(url, handler)
        if isinstance(handler, bytes):
            return HttpResponse(url, 200, handler)
        return handler

    @property
    def urls(self) -> List[str]:
        return [url for url, _ in self.calls]

    def close(self) -> None:
        pass


class ForbiddenTransport:
    """Transport that fails the test if it is ever used."""

    def get(self, url: str, *, credentials=None):
        raise AssertionError(f"unexpected network access: {url}")


@pytest.fixture
def retry() -> RetryPolicy:
    return RetryPolicy(max_attempts=3, base_delay=0, sleep=lambda _: None)


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder(forward=None)


@pytest.fixture
def make_client(retry, recorder):
    """Build a MavenClient around a fake transport; errors are collected."""

    def _make(transport, project_poms=None, errors: Optional[list] = None, **kwargs) -> MavenClient:
        sink = errors.append if errors is not None else (lambda e: None)
        return MavenClient(
            ResolverConfig(),
            project_poms=project_poms,
            transport=transport,
            cache=kwargs.pop("cache", ResolutionCache()),
            retry=retry,
            event_sink=recorder,
            on_error=sink,
            **kwargs,
        )

    return _make
