"""Tests for the default import handlers and import_data_sources."""

import pytest
from conftest import make_dicom, make_zip

from scan_loader.errors import (
    ArchiveError,
    ReaderNotFoundError,
    UnhandledResourceError,
    UnsupportedDatasetError,
)
from scan_loader.pipeline.engine import Continue, HandlerContext
from scan_loader.pipeline.handlers import ImportContext, import_single_file
from scan_loader.pipeline.import_sources import import_data_sources
from scan_loader.schemas.data_source import FileSource, bytes_to_data_source, get_data_source_name
from scan_loader.schemas.datasets import ImageData, ModelData
from scan_loader.schemas.results import partition_results


def typed_source(stores, name, file_type, data=b""):
    return stores.arena.create(file_src=FileSource(name=name, file_type=file_type, data=data))


@pytest.mark.asyncio
async def test_png_becomes_image_result(stores, png_bytes):
    source = bytes_to_data_source(stores.arena, "brain.png", png_bytes)
    [result] = await import_data_sources(stores, [source])

    assert result.ok
    [imported] = result.data
    assert imported.data_type == "image"
    assert imported.data_source is source
    assert isinstance(stores.images.get(imported.data_id), ImageData)
    assert stores.images.names[imported.data_id] == "brain.png"
    assert stores.files.get_data_sources(imported.data_id) == [source]


@pytest.mark.asyncio
async def test_no_reader_passes_through(stores):
    """Without a registered reader the handler hands the source on unchanged."""
    source = typed_source(stores, "volume.nrrd", "nrrd")
    ctx = HandlerContext(arena=stores.arena, extra=ImportContext(stores=stores))
    outcome = await import_single_file(source, ctx)
    assert outcome == Continue(source)


@pytest.mark.asyncio
async def test_unrecognized_file_reported_by_name(stores):
    source = bytes_to_data_source(stores.arena, "notes.txt", b"hello")
    [result] = await import_data_sources(stores, [source])

    assert not result.ok
    [error] = result.errors
    assert isinstance(error.cause, UnhandledResourceError)
    assert error.message == "Failed to handle resource"


@pytest.mark.asyncio
async def test_reader_with_unsupported_output_fails(stores):
    stores.readers.register("weird", lambda data: {"not": "a dataset"})
    [result] = await import_data_sources(stores, [typed_source(stores, "x.weird", "weird")])

    assert not result.ok
    assert isinstance(result.errors[0].cause, UnsupportedDatasetError)
    assert result.errors[0].message == "Data reader did not produce a valid dataset"


@pytest.mark.asyncio
async def test_model_reader_goes_to_model_store(stores):
    async def read_mesh(data):
        return ModelData(vertices=[(0.0, 0.0, 0.0)], faces=[])

    stores.readers.register("stl", read_mesh)
    [result] = await import_data_sources(stores, [typed_source(stores, "liver.stl", "stl")])

    assert result.ok
    [imported] = result.data
    assert imported.data_type == "model"
    assert imported.data_id in stores.models.data_index


@pytest.mark.asyncio
async def test_batch_isolation(stores, png_bytes):
    """The second input's reader throws; the first and third still load."""

    def broken_reader(data):
        raise ValueError("corrupt header")

    stores.readers.register("broken", broken_reader)
    sources = [
        bytes_to_data_source(stores.arena, "one.png", png_bytes),
        typed_source(stores, "two.broken", "broken"),
        bytes_to_data_source(stores.arena, "three.png", png_bytes),
    ]
    results = await import_data_sources(stores, sources)
    succeeded, errored = partition_results(results)

    assert [r.data_source for r in succeeded] == [sources[0], sources[2]]
    assert len(errored) == 1
    assert errored[0].data_source is sources[1]
    assert errored[0].errors[0].message == "corrupt header"


@pytest.mark.asyncio
async def test_nested_archive_failure_names_innermost_file(stores, png_bytes):
    inner = make_zip([("ok.png", png_bytes), ("deep/readme.txt", b"text")])
    outer = make_zip([("inner.zip", inner), ("top.png", png_bytes)])
    source = bytes_to_data_source(stores.arena, "outer.zip", outer)

    [result] = await import_data_sources(stores, [source])

    assert not result.ok
    assert [get_data_source_name(r.data_source) for r in result.data] == ["ok.png", "top.png"]
    [error] = result.errors
    trace = error.input_data_stack_trace
    assert [get_data_source_name(s) for s in trace] == ["readme.txt", "inner.zip", "outer.zip"]
    assert trace[0].archive_src.path == "deep"


@pytest.mark.asyncio
async def test_corrupt_archive_trace_is_itself(stores):
    source = typed_source(stores, "broken.zip", "zip", b"PK\x03\x04garbage")
    [result] = await import_data_sources(stores, [source])

    assert not result.ok
    [error] = result.errors
    assert isinstance(error.cause, ArchiveError)
    assert error.input_data_stack_trace == [source]


@pytest.mark.asyncio
async def test_empty_archive_is_vacuous_success(stores):
    source = bytes_to_data_source(stores.arena, "empty.zip", make_zip([("dir/", None)]))
    [result] = await import_data_sources(stores, [source])
    assert result.ok
    assert result.data == []


@pytest.mark.asyncio
async def test_dicom_archive_yields_one_result_per_series(dicom_stores):
    stores = dicom_stores
    archive = make_zip(
        [
            ("ct/1.dcm", make_dicom("CT", "1.2.3", slices=2)),
            ("ct/2.dcm", make_dicom("CT", "1.2.3", slices=2)),
            ("mr/1.dcm", make_dicom("MR", "4.5.6", slices=40)),
        ]
    )
    source = bytes_to_data_source(stores.arena, "study.zip", archive)
    results = await import_data_sources(stores, [source])

    assert len(results) == 2
    archive_result, dicom_result = results
    assert archive_result.ok and archive_result.data == []
    assert dicom_result.ok
    assert [r.data_type for r in dicom_result.data] == ["dicom", "dicom"]
    modalities = [stores.dicom.volume_info[r.data_id].modality for r in dicom_result.data]
    assert modalities == ["CT", "MR"]
    assert len(dicom_result.data_source.dicom_src.sources) == 3


@pytest.mark.asyncio
async def test_dicom_without_reader_fails_once(stores):
    source = bytes_to_data_source(stores.arena, "slice.dcm", make_dicom("CT", "1"))
    results = await import_data_sources(stores, [source])

    assert [r.ok for r in results] == [True, False]
    [error] = results[1].errors
    assert isinstance(error.cause, ReaderNotFoundError)
    assert error.input_data_stack_trace == [results[1].data_source]


@pytest.mark.asyncio
async def test_custom_handler_chain(stores, png_bytes):
    seen = []

    def record(source, ctx):
        seen.append(get_data_source_name(source))
        return ctx.done()

    source = bytes_to_data_source(stores.arena, "a.png", png_bytes)
    [result] = await import_data_sources(stores, [source], handlers=[record])
    assert seen == ["a.png"]
    assert result.ok
    assert stores.images.ids == []
