from __future__ import annotations

import logging
from typing import Sequence

from scan_loader.pipeline.engine import Handler, Pipeline
from scan_loader.pipeline.handlers import (
    ImportContext,
    extract_archive,
    handle_dicom_file,
    import_single_file,
    unhandled_resource,
)
from scan_loader.schemas.data_source import DataSource, DicomSource
from scan_loader.schemas.results import (
    ImportResult,
    PipelineError,
    PipelineResult,
    PipelineResultError,
    PipelineResultSuccess,
)
from scan_loader.store.registry import AppStores

logger = logging.getLogger(__name__)

DEFAULT_HANDLERS: tuple[Handler, ...] = (
    extract_archive,
    handle_dicom_file,
    import_single_file,
    unhandled_resource,
)


def build_pipeline(stores: AppStores, handlers: Sequence[Handler] | None = None) -> Pipeline:
    return Pipeline(
        handlers if handlers is not None else DEFAULT_HANDLERS,
        stores.arena,
        max_depth=stores.config.max_depth,
    )


async def import_data_sources(
    stores: AppStores,
    sources: Sequence[DataSource],
    handlers: Sequence[Handler] | None = None,
) -> list[PipelineResult]:
    """Run every source through the handler chain, then import collected DICOM.

    Returns one PipelineResult per input, in input order. If any DICOM files
    were seen, one more result for the combined DICOM import is appended.
    """
    import_ctx = ImportContext(stores=stores)
    pipeline = build_pipeline(stores, handlers)
    results = await pipeline.run_all(sources, extra=import_ctx)

    if not import_ctx.dicom_data_sources:
        return results

    dicom_files = sorted(import_ctx.dicom_data_sources, key=lambda s: s.id)
    dicom_source = stores.arena.create(
        dicom_src=DicomSource(sources=tuple(s.id for s in dicom_files))
    )
    logger.info("import: importing %d DICOM files", len(dicom_files))

    try:
        volume_keys = await stores.dicom.import_files(dicom_files)
    except Exception as exc:
        logger.warning("import: DICOM import failed - %s", exc)
        error = PipelineError(
            cause=exc,
            message=str(exc) or type(exc).__name__,
            input_data_stack_trace=[dicom_source],
        )
        return [*results, PipelineResultError(data_source=dicom_source, errors=[error])]

    for key in volume_keys:
        stores.files.add(key, dicom_files)
    dicom_results = [
        ImportResult(data_id=key, data_source=dicom_source, data_type="dicom")
        for key in volume_keys
    ]
    return [*results, PipelineResultSuccess(data_source=dicom_source, data=dicom_results)]
