from __future__ import annotations

from pathlib import Path

import pytest

from quantumpkg.core.lockfile import LockfileCodec
from quantumpkg.core.result_set import ResultSet
from quantumpkg.exceptions import ParseError
from quantumpkg.models import (
    LockedEntry,
    Lockfile,
    Manifest,
    PackageMetadata,
    ResolvedDependency,
    SourceKind,
)


def _record(name: str, version: str, kind: SourceKind) -> ResolvedDependency:
    return ResolvedDependency(
        name=name,
        version=version,
        local_path=Path("/deps") / name,
        manifest=Manifest(package=PackageMetadata(name=name, version=version)),
        source_kind=kind,
    )


@pytest.fixture
def result_set() -> ResultSet:
    result = ResultSet()
    result.add("oracle", _record("oracle", "2.0.0", SourceKind.GIT))
    result.add("coin", _record("coin", "1.2.0", SourceKind.REGISTRY))
    result.add("math", _record("math", "0.4.0", SourceKind.PATH))
    return result


@pytest.mark.unit
class TestFromResultSet:
    """Tests for LockfileCodec.from_result_set."""

    def test_one_entry_per_record(self, result_set: ResultSet) -> None:
        lockfile = LockfileCodec.from_result_set(result_set)

        assert lockfile.version == 1
        assert lockfile.triples() == [
            ("coin", "1.2.0", "registry"),
            ("math", "0.4.0", "path"),
            ("oracle", "2.0.0", "git"),
        ]
        assert all(e.source_url is None and e.checksum is None for e in lockfile.dependencies.values())

    def test_empty_result_set(self) -> None:
        lockfile = LockfileCodec.from_result_set(ResultSet())

        assert len(lockfile) == 0
        assert lockfile.version == 1

    def test_builds_fresh_lockfile_each_time(self, result_set: ResultSet) -> None:
        first = LockfileCodec.from_result_set(result_set)
        first.dependencies["stale"] = LockedEntry("stale", "0.0.1", "registry")

        second = LockfileCodec.from_result_set(result_set)

        assert "stale" not in second.dependencies


@pytest.mark.unit
class TestSerialize:
    """Tests for LockfileCodec.serialize."""

    def test_layout(self) -> None:
        lockfile = Lockfile(
            dependencies={"coin": LockedEntry("coin", "1.2.0", "registry")},
        )

        text = LockfileCodec.serialize(lockfile)

        assert text == (
            "version = 1\n"
            "\n"
            "[dependencies.coin]\n"
            'name = "coin"\n'
            'version = "1.2.0"\n'
            'source = "registry"\n'
        )

    def test_output_is_deterministic(self, result_set: ResultSet) -> None:
        reordered = ResultSet()
        for key in sorted(result_set, reverse=True):
            record = result_set.get(key)
            assert record is not None
            reordered.add(key, record)

        assert LockfileCodec.serialize(LockfileCodec.from_result_set(result_set)) == (
            LockfileCodec.serialize(LockfileCodec.from_result_set(reordered))
        )

    def test_round_trip_with_optional_fields(self) -> None:
        lockfile = Lockfile(
            dependencies={
                "coin": LockedEntry("coin", "1.2.0", "registry"),
                "oracle": LockedEntry(
                    "oracle",
                    "2.0.0",
                    "git",
                    source_url="https://example.org/oracle.git",
                    checksum="sha256:abc",
                ),
            },
        )

        parsed = LockfileCodec.deserialize(LockfileCodec.serialize(lockfile))

        assert parsed == lockfile


@pytest.mark.unit
class TestDeserialize:
    """Tests for LockfileCodec.deserialize."""

    def test_accepts_other_schema_versions(self) -> None:
        assert LockfileCodec.deserialize("version = 7\n").version == 7

    def test_missing_dependencies_table(self) -> None:
        assert len(LockfileCodec.deserialize("version = 1\n")) == 0

    @pytest.mark.parametrize(
        "text,fragment",
        [
            ("version = [1", "Failed to parse"),
            ("[dependencies]\n", "'version' must be an integer"),
            ('version = "1"\n', "'version' must be an integer"),
            ("version = true\n", "'version' must be an integer"),
            ('version = 1\ndependencies = "x"\n', "'dependencies' must be a table"),
            ('version = 1\n[dependencies]\ncoin = "1.2.0"\n', "must be a table"),
            (
                'version = 1\n[dependencies.coin]\nname = "coin"\nsource = "registry"\n',
                "missing 'version'",
            ),
            (
                'version = 1\n[dependencies.coin]\nname = "coin"\nversion = 1\nsource = "registry"\n',
                "'version' must be a string",
            ),
            (
                'version = 1\n[dependencies.coin]\nname = "coin"\nversion = "1.0.0"\nsource = "ftp"\n',
                "unknown source",
            ),
            (
                'version = 1\n[dependencies.coin]\nname = "coin"\nversion = "1.0.0"\n'
                'source = "registry"\nextra = "x"\n',
                "unknown keys: extra",
            ),
        ],
        ids=[
            "bad-toml",
            "no-version",
            "string-version",
            "bool-version",
            "dependencies-not-table",
            "entry-not-table",
            "entry-missing-field",
            "entry-wrong-type",
            "entry-bad-source",
            "entry-unknown-key",
        ],
    )
    def test_rejects_malformed_documents(self, text: str, fragment: str) -> None:
        with pytest.raises(ParseError, match=fragment):
            LockfileCodec.deserialize(text, file_path="Quantum.lock")


@pytest.mark.unit
class TestLockfileFiles:
    """Tests for LockfileCodec.save and LockfileCodec.load."""

    def test_save_then_load(self, tmp_path: Path, result_set: ResultSet) -> None:
        lockfile = LockfileCodec.from_result_set(result_set)
        target = tmp_path / "Quantum.lock"

        written = LockfileCodec.save(target, lockfile)

        assert written == target.resolve()
        assert LockfileCodec.load(target) == lockfile

    def test_save_replaces_previous_content(self, tmp_path: Path) -> None:
        target = tmp_path / "Quantum.lock"
        LockfileCodec.save(
            target,
            Lockfile(dependencies={"old": LockedEntry("old", "0.1.0", "registry")}),
        )

        LockfileCodec.save(target, Lockfile())

        assert LockfileCodec.load(target) == Lockfile()
        assert [p.name for p in tmp_path.iterdir()] == ["Quantum.lock"]

    def test_load_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ParseError) as exc_info:
            LockfileCodec.load(tmp_path / "Quantum.lock")

        assert exc_info.value.file_path == str(tmp_path / "Quantum.lock")
