"""Tests for the DataSource model and arena."""

import pytest
from pydantic import ValidationError

from scan_loader.schemas.data_source import (
    ArchiveSource,
    DataSourceArena,
    FileSource,
    bytes_to_data_source,
    file_to_data_source,
    get_data_source_name,
)


def test_top_level_source_has_no_parent(arena):
    """Caller-created sources are top-level and trace to themselves."""
    source = bytes_to_data_source(arena, "scan.png", b"\x89PNG\r\n\x1a\n")
    assert source.is_top_level
    assert arena.stack_trace(source) == [source]
    assert source.file_src.file_type == "png"


def test_stack_trace_innermost_first(arena):
    """Stack trace runs from the failing source back to the top-level input."""
    top = arena.create(file_src=FileSource(name="outer.zip", file_type="zip", data=b""))
    middle = arena.create(
        file_src=FileSource(name="inner.zip", file_type="zip", data=b""),
        archive_src=ArchiveSource(path="nested"),
        parent=top,
    )
    leaf = arena.create(
        file_src=FileSource(name="scan.dcm", file_type="dicom", data=b""),
        archive_src=ArchiveSource(path=""),
        parent=middle,
    )
    trace = arena.stack_trace(leaf)
    assert [get_data_source_name(s) for s in trace] == ["scan.dcm", "inner.zip", "outer.zip"]
    assert arena.top_level_of(leaf) is top


def test_siblings_share_parent_index(arena):
    top = arena.create(file_src=FileSource(name="a.zip", file_type="zip", data=b""))
    first = arena.create(file_src=FileSource(name="1", file_type="unknown", data=b""), parent=top)
    second = arena.create(file_src=FileSource(name="2", file_type="unknown", data=b""), parent=top)
    assert first.parent == second.parent == top.id
    assert arena.parent_of(first) is top


def test_data_source_is_frozen(arena):
    source = bytes_to_data_source(arena, "scan.png", b"")
    with pytest.raises(ValidationError):
        source.parent = 3


def test_parent_from_other_arena_rejected(arena):
    other = DataSourceArena()
    foreign = other.create(file_src=FileSource(name="x", file_type="png", data=b""))
    other.create(file_src=FileSource(name="y", file_type="png", data=b""))
    with pytest.raises(ValueError):
        arena.create(file_src=FileSource(name="z", file_type="png", data=b""), parent=foreign)


def test_name_missing_without_file_source(arena):
    source = arena.create()
    assert get_data_source_name(source) is None
    assert get_data_source_name(None) is None


def test_file_to_data_source_reads_disk(arena, tmp_path, png_bytes):
    path = tmp_path / "brain.png"
    path.write_bytes(png_bytes)
    source = file_to_data_source(arena, path)
    assert source.file_src.name == "brain.png"
    assert source.file_src.data == png_bytes
    assert len(arena) == 1


def test_file_to_data_source_missing_file(arena, tmp_path):
    with pytest.raises(FileNotFoundError):
        file_to_data_source(arena, tmp_path / "missing.png")
