"""Tests for PathPartitioner (deterministic partitioned storage paths)."""

import uuid

import pytest

from attachments.application.services.path_partitioner import PathPartitioner


@pytest.fixture
def partitioner() -> PathPartitioner:
    return PathPartitioner("attachments")


def test_storage_path_for_ten_character_uuid(partitioner: PathPartitioner) -> None:
    """ABCDE1234F + jpg under "attachments" lands in ABC/DE1/234/."""
    assert (
        partitioner.storage_path("ABCDE1234F", "jpg")
        == "attachments/ABC/DE1/234/ABCDE1234F.jpg"
    )


def test_partition_directory_uses_three_segments_only(partitioner: PathPartitioner) -> None:
    assert partitioner.partition_directory("ABCDE1234FGHIJ") == "ABC/DE1/234/"


@pytest.mark.parametrize(
    ("identifier", "expected"),
    [
        ("ABCDE", "ABC/DE/"),
        ("AB", "AB/"),
        ("ABCDEF", "ABC/DEF/"),
        ("", ""),
    ],
)
def test_short_identifiers_produce_fewer_segments(
    partitioner: PathPartitioner, identifier: str, expected: str
) -> None:
    assert partitioner.partition_directory(identifier) == expected


def test_disk_name_lowercases_extension(partitioner: PathPartitioner) -> None:
    assert partitioner.disk_name("ABCDE1234F", "JPG") == "ABCDE1234F.jpg"


def test_disk_name_without_extension(partitioner: PathPartitioner) -> None:
    assert partitioner.disk_name("ABCDE1234F", None) == "ABCDE1234F"
    assert partitioner.storage_path("ABCDE1234F", "") == "attachments/ABC/DE1/234/ABCDE1234F"


def test_disk_name_strips_dots_and_separators(partitioner: PathPartitioner) -> None:
    assert partitioner.disk_name("a.b/c\\d", "png") == "abcd.png"


def test_prefix_slashes_are_normalized() -> None:
    assert PathPartitioner("/files/").storage_path("ABCDEFGHI", "txt") == "files/ABC/DEF/GHI/ABCDEFGHI.txt"


def test_empty_prefix_yields_partition_at_root() -> None:
    assert PathPartitioner("").storage_path("ABCDEFGHI", None) == "ABC/DEF/GHI/ABCDEFGHI"


def test_paths_are_deterministic_and_well_formed(partitioner: PathPartitioner) -> None:
    """Same inputs always map to the same path; every path has the expected shape."""
    for _ in range(200):
        identifier = uuid.uuid4().hex
        path = partitioner.storage_path(identifier, "bin")
        assert path == partitioner.storage_path(identifier, "bin")
        parts = path.split("/")
        assert parts[0] == "attachments"
        assert parts[1:4] == [identifier[0:3], identifier[3:6], identifier[6:9]]
        assert parts[4] == f"{identifier}.bin"
