"""Tests for maven-metadata.xml parsing and cross-repository merging."""

import pytest

from common.errors import ParseError, PermanentNetworkError
from registry.maven import (
    FetchOutcome,
    RepositoryDescriptor,
    SnapshotInfo,
    VersionMetadata,
    latest_release,
    parse_metadata,
)

from conftest import CENTRAL, FakeTransport, metadata_bytes

R1 = RepositoryDescriptor("r1", "https://r1.example/repo")
R1_META = "https://r1.example/repo/org/example/lib/maven-metadata.xml"
CENTRAL_META = CENTRAL + "/org/example/lib/maven-metadata.xml"


class TestParseMetadata:
    def test_versions_and_snapshot(self):
        data = metadata_bytes(["1.0", "1.1"], timestamp="20240101.120000", build_number="3")
        metadata = parse_metadata(data)
        assert metadata.versions == ("1.0", "1.1")
        assert metadata.latest_snapshot == SnapshotInfo("20240101.120000", "3")

    def test_local_copy_snapshot_is_ignored(self):
        data = (
            b"<metadata><versioning><snapshot><localCopy>true</localCopy></snapshot>"
            b"<versions><version>1.0-SNAPSHOT</version></versions></versioning></metadata>"
        )
        metadata = parse_metadata(data)
        assert metadata.latest_snapshot is None
        assert metadata.versions == ("1.0-SNAPSHOT",)

    def test_missing_versioning_is_empty(self):
        assert parse_metadata(b"<metadata><groupId>g</groupId></metadata>").is_empty

    def test_malformed_xml_raises(self):
        with pytest.raises(ParseError):
            parse_metadata(b"<metadata><versioning>")


class TestLatestRelease:
    def test_highest_stable_version(self):
        metadata = VersionMetadata(("1.0", "1.10", "1.9", "2.0-SNAPSHOT"))
        assert latest_release(metadata) == "1.10"

    def test_unorderable_versions_fall_back_to_last_listed(self):
        metadata = VersionMetadata(("alpha-one", "beta-two"))
        assert latest_release(metadata) == "beta-two"

    def test_only_snapshots(self):
        assert latest_release(VersionMetadata(("1.0-SNAPSHOT",))) is None


class TestResolveMetadata:
    """Tests for MetadataResolver.resolve_metadata through the client."""

    def test_merges_in_repository_order(self, make_client):
        transport = FakeTransport({
            R1_META: metadata_bytes(["1.0", "1.1"]),
            CENTRAL_META: metadata_bytes(["1.1", "2.0"]),
        }).reachable(R1.uri, CENTRAL)

        metadata = make_client(transport).download_metadata("org.example", "lib", [R1])

        assert metadata.versions == ("1.0", "1.1", "1.1", "2.0")

    def test_missing_repository_document_is_skipped(self, make_client, recorder):
        transport = FakeTransport({CENTRAL_META: metadata_bytes(["2.0"])}).reachable(R1.uri, CENTRAL)

        metadata = make_client(transport).download_metadata("org.example", "lib", [R1])

        assert metadata.versions == ("2.0",)
        assert [e.outcome for e in recorder.for_repository(R1.uri)] == [FetchOutcome.UNAVAILABLE]

    def test_failures_are_reported_not_raised(self, make_client, recorder):
        transport = FakeTransport({
            R1_META: PermanentNetworkError("refused"),
            CENTRAL_META: b"<metadata><versioning>",
        }).reachable(R1.uri, CENTRAL)

        metadata = make_client(transport).download_metadata("org.example", "lib", [R1])

        assert metadata.is_empty
        r1_event, = recorder.for_repository(R1.uri)
        central_event, = recorder.for_repository(CENTRAL)
        assert r1_event.outcome == FetchOutcome.ERROR
        assert r1_event.error_class == "PermanentNetworkError"
        assert central_event.outcome == FetchOutcome.ERROR
        assert central_event.error_class == "ParseError"

    def test_second_lookup_is_served_from_cache(self, make_client, recorder):
        transport = FakeTransport({CENTRAL_META: metadata_bytes(["2.0"])}).reachable(CENTRAL)
        client = make_client(transport)

        first = client.download_metadata("org.example", "lib", [])
        calls = len(transport.calls)
        second = client.download_metadata("org.example", "lib", [])

        assert first == second
        assert len(transport.calls) == calls
        assert [e.outcome for e in recorder.events] == [FetchOutcome.DOWNLOADED, FetchOutcome.CACHED]

    def test_unreachable_repository_is_not_queried(self, make_client):
        transport = FakeTransport({CENTRAL_META: metadata_bytes(["2.0"])}).reachable(CENTRAL)

        make_client(transport).download_metadata("org.example", "lib", [R1])

        assert R1_META not in transport.urls

    def test_custom_parser_is_used(self, make_client):
        transport = FakeTransport({CENTRAL_META: b"anything"}).reachable(CENTRAL)
        client = make_client(transport, metadata_parser=lambda data: VersionMetadata(("9.9",)))

        assert client.download_metadata("org.example", "lib", []).versions == ("9.9",)
