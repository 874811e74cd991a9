"""Tests for POM parsing and local project indexing."""

import os
from pathlib import Path

import pytest

from common.errors import ParseError
from registry.maven import Coordinate, load_project_poms, parse_pom

from conftest import pom_bytes

PARENT_ONLY = b"""<project xmlns="http://maven.apache.org/POM/4.0.0">
  <parent>
    <groupId>org.example</groupId>
    <artifactId>parent</artifactId>
    <version>4.1</version>
  </parent>
  <artifactId>child</artifactId>
</project>
"""


class TestParsePom:
    def test_namespaced_pom(self):
        manifest = parse_pom(None, pom_bytes("org.example", "lib", "1.0"), Path("lib/pom.xml"))
        assert manifest.coordinate == Coordinate("org.example", "lib", "1.0")
        assert manifest.source_path == Path("lib/pom.xml")
        assert manifest.content is not None

    def test_pom_without_namespace(self):
        data = b"<project><groupId>g</groupId><artifactId>a</artifactId><version>1</version></project>"
        assert parse_pom(None, data, Path("pom.xml")).coordinate == Coordinate("g", "a", "1")

    def test_group_and_version_inherit_from_parent(self):
        manifest = parse_pom(None, PARENT_ONLY, Path("child/pom.xml"))
        assert manifest.coordinate == Coordinate("org.example", "child", "4.1")

    def test_placeholder_version_takes_requested_version(self):
        data = pom_bytes("org.example", "lib", "${revision}")
        requested = Coordinate("org.example", "lib", "2.5")
        assert parse_pom(requested, data, Path("p")).coordinate.version == "2.5"

    def test_snapshot_version_is_recorded(self):
        requested = Coordinate("org.example", "lib", "1.0-SNAPSHOT")
        manifest = parse_pom(
            requested, pom_bytes("org.example", "lib", "1.0-SNAPSHOT"), Path("p"), "1.0-20240101.120000-3"
        )
        assert manifest.snapshot_version == "1.0-20240101.120000-3"

    def test_missing_identity_raises(self):
        with pytest.raises(ParseError):
            parse_pom(None, b"<project><version>1</version></project>", Path("pom.xml"))

    def test_malformed_xml_raises(self):
        with pytest.raises(ParseError):
            parse_pom(None, b"<project>", Path("pom.xml"))


class TestLoadProjectPoms:
    def _write(self, directory, data):
        os.makedirs(directory, exist_ok=True)
        with open(os.path.join(directory, "pom.xml"), "wb") as f:
            f.write(data)

    def test_non_recursive_reads_top_level_only(self, tmp_path):
        self._write(tmp_path, pom_bytes("org.example", "root", "1.0"))
        self._write(tmp_path / "module", pom_bytes("org.example", "module", "1.0"))

        index = load_project_poms(str(tmp_path))

        assert [m.coordinate.artifact for m in index.values()] == ["root"]

    def test_recursive_indexes_by_normalized_path(self, tmp_path):
        self._write(tmp_path, pom_bytes("org.example", "root", "1.0"))
        self._write(tmp_path / "module", pom_bytes("org.example", "module", "1.0"))

        index = load_project_poms(str(tmp_path / "module" / ".."), recursive=True)

        expected = Path(os.path.normpath(os.path.abspath(tmp_path / "module" / "pom.xml")))
        assert expected in index
        assert index[expected].coordinate.artifact == "module"
        assert len(index) == 2

    def test_malformed_pom_is_skipped(self, tmp_path):
        self._write(tmp_path, pom_bytes("org.example", "root", "1.0"))
        self._write(tmp_path / "broken", b"<project>")

        index = load_project_poms(str(tmp_path), recursive=True)

        assert [m.coordinate.artifact for m in index.values()] == ["root"]

    def test_missing_directory_gives_empty_index(self, tmp_path):
        assert load_project_poms(str(tmp_path / "nope")) == {}
