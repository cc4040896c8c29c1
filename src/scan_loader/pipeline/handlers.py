from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from scan_loader.errors import (
    ReaderNotFoundError,
    UnhandledResourceError,
    UnsupportedDatasetError,
)
from scan_loader.io.archive import ArchiveEntry, extract_archive_entries
from scan_loader.io.file_types import classify_file
from scan_loader.io.readers import read_with
from scan_loader.pipeline.engine import Continue, Expand, HandlerContext, HandlerOutcome
from scan_loader.schemas.config import LoaderConfig
from scan_loader.schemas.data_source import (
    ArchiveSource,
    DataSource,
    DataSourceArena,
    FileSource,
)
from scan_loader.schemas.datasets import ImageData, ModelData
from scan_loader.schemas.results import ImportResult

if TYPE_CHECKING:
    from scan_loader.store.registry import AppStores

logger = logging.getLogger(__name__)

DEFAULT_ARCHIVE_TYPES = LoaderConfig().archive_types


@dataclass
class ImportContext:
    """State shared by the handlers of one import_data_sources call."""

    stores: AppStores
    dicom_data_sources: list[DataSource] = field(default_factory=list)


def _import_context(ctx: HandlerContext) -> ImportContext:
    if not isinstance(ctx.extra, ImportContext):
        raise TypeError("handler needs an ImportContext as pipeline extra")
    return ctx.extra


def is_archive(source: DataSource, archive_types: tuple[str, ...] = DEFAULT_ARCHIVE_TYPES) -> bool:
    return source.file_src is not None and source.file_src.file_type in archive_types


def children_from_entries(
    arena: DataSourceArena, source: DataSource, entries: list[ArchiveEntry]
) -> list[DataSource]:
    children = []
    for entry in entries:
        child_file = FileSource(
            name=entry.name,
            file_type=classify_file(entry.name, entry.data),
            data=entry.data,
        )
        children.append(
            arena.create(
                file_src=child_file,
                archive_src=ArchiveSource(path=entry.archive_path),
                parent=source,
            )
        )
    return children


async def extract_archive(source: DataSource, ctx: HandlerContext) -> HandlerOutcome:
    archive_types = DEFAULT_ARCHIVE_TYPES
    if isinstance(ctx.extra, ImportContext):
        archive_types = ctx.extra.stores.config.archive_types
    if not is_archive(source, archive_types):
        return Continue(source)

    file_src = source.file_src
    # Arena records are created on the event loop; only decompression runs in a thread
    entries = await asyncio.to_thread(
        extract_archive_entries, file_src.file_type, file_src.data
    )
    children = children_from_entries(ctx.arena, source, entries)
    logger.info("archive: %s -> %d files", file_src.name, len(children))
    return Expand(tuple(children))


def handle_dicom_file(source: DataSource, ctx: HandlerContext) -> HandlerOutcome:
    """Set DICOM files aside; they are decoded together once the batch ends."""
    if source.file_src is None or source.file_src.file_type != "dicom":
        return Continue(source)
    _import_context(ctx).dicom_data_sources.append(source)
    return ctx.done()


async def import_single_file(source: DataSource, ctx: HandlerContext) -> HandlerOutcome:
    """Decode a file with its registered reader and add it to a dataset store."""
    if source.file_src is None:
        return Continue(source)

    file_src = source.file_src
    stores = _import_context(ctx).stores
    try:
        reader = stores.readers.get(file_src.file_type)
    except ReaderNotFoundError:
        logger.debug("import: no reader for %s (%s)", file_src.name, file_src.file_type)
        return Continue(source)

    data_object = await read_with(reader, file_src.data)

    if isinstance(data_object, ImageData):
        data_id = stores.images.add_image(file_src.name, data_object)
        stores.files.add(data_id, [source])
        return ctx.done(ImportResult(data_id=data_id, data_source=source, data_type="image"))

    if isinstance(data_object, ModelData):
        data_id = stores.models.add_model(file_src.name, data_object)
        stores.files.add(data_id, [source])
        return ctx.done(ImportResult(data_id=data_id, data_source=source, data_type="model"))

    raise UnsupportedDatasetError("Data reader did not produce a valid dataset")


def unhandled_resource(source: DataSource, ctx: HandlerContext) -> HandlerOutcome:
    raise UnhandledResourceError("Failed to handle resource")
