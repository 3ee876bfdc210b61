"""Tests for check/cache.py: record location, fencing and round trips."""

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from dtdash.check.cache import StatusCache, record_filename, record_path
from dtdash.check.models import CachedRecord, FoundStatus, TypingsDescriptor
from dtdash.config.constants import SCHEMA_VERSION

MakeDescriptor = Callable[..., TypingsDescriptor]


def found(current: str = "4.17.21") -> FoundStatus:
    return FoundStatus(
        current=current,
        package_json_type_matches=True,
        exports_similar=True,
        is_deprecated=False,
    )


class TestRecordPath:
    """Deterministic file locations."""

    def test_given_versioned_path_when_named_then_separators_replaced(self) -> None:
        assert record_filename("react/v16") == "react@v16.json"
        assert record_filename("react\\v16") == "react@v16.json"

    def test_given_path_when_located_then_sharded_by_first_segment(self, tmp_path: Path) -> None:
        assert record_path(tmp_path, "react/v16") == tmp_path / "react" / "react@v16.json"
        assert record_path(tmp_path, "lodash") == tmp_path / "lodash" / "lodash.json"


class TestStatusCache:
    """Load and store behavior."""

    @pytest.mark.asyncio
    async def test_given_stored_record_when_loaded_then_equal(
        self, tmp_path: Path, make_descriptor: MakeDescriptor
    ) -> None:
        # Given
        cache = StatusCache(tmp_path, tmp_path)
        descriptor = make_descriptor(
            "react", 16, 9, is_latest=False, sub_directory_path="react/v16"
        )
        record = CachedRecord.for_descriptor(descriptor, found("16.14.0"))

        # When
        await cache.store(record)
        loaded = await cache.load(descriptor)

        # Then
        assert loaded == record

    @pytest.mark.asyncio
    async def test_given_separate_roots_when_stored_then_written_to_output(
        self, tmp_path: Path, make_descriptor: MakeDescriptor
    ) -> None:
        # Given
        cache = StatusCache(tmp_path / "in", tmp_path / "out")
        descriptor = make_descriptor()

        # When
        path = await cache.store(CachedRecord.for_descriptor(descriptor, found()))

        # Then
        assert path == tmp_path / "out" / "lodash" / "lodash.json"
        assert await cache.load(descriptor) is None

    @pytest.mark.asyncio
    async def test_given_same_record_when_stored_twice_then_byte_identical(
        self, tmp_path: Path, make_descriptor: MakeDescriptor
    ) -> None:
        # Given
        cache = StatusCache(tmp_path, tmp_path)
        record = CachedRecord.for_descriptor(make_descriptor(), found())

        # When
        path = await cache.store(record)
        first = path.read_bytes()
        await cache.store(record)

        # Then
        assert path.read_bytes() == first

    @pytest.mark.asyncio
    async def test_given_missing_file_when_loaded_then_none(
        self, tmp_path: Path, make_descriptor: MakeDescriptor
    ) -> None:
        assert await StatusCache(tmp_path, tmp_path).load(make_descriptor()) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "{not json", "[]", '{"schemaVersion": 6}'])
    async def test_given_corrupt_file_when_loaded_then_none(
        self, tmp_path: Path, make_descriptor: MakeDescriptor, content: str
    ) -> None:
        # Given
        path = record_path(tmp_path, "lodash")
        path.parent.mkdir(parents=True)
        path.write_text(content)

        # When / Then
        assert await StatusCache(tmp_path, tmp_path).load(make_descriptor()) is None

    @pytest.mark.asyncio
    async def test_given_stale_schema_when_loaded_then_discarded(
        self, tmp_path: Path, make_descriptor: MakeDescriptor
    ) -> None:
        # Given
        descriptor = make_descriptor()
        data = json.loads(CachedRecord.for_descriptor(descriptor, found()).to_json())
        data["schemaVersion"] = SCHEMA_VERSION - 1
        path = record_path(tmp_path, "lodash")
        path.parent.mkdir(parents=True)
        path.write_text(json.dumps(data))

        # When / Then
        assert await StatusCache(tmp_path, tmp_path).load(descriptor) is None

    @pytest.mark.asyncio
    async def test_given_other_types_version_when_loaded_then_discarded(
        self, tmp_path: Path, make_descriptor: MakeDescriptor
    ) -> None:
        # Given
        cache = StatusCache(tmp_path, tmp_path)
        await cache.store(CachedRecord.for_descriptor(make_descriptor(minor=14), found()))

        # When / Then
        assert await cache.load(make_descriptor(minor=15)) is None
