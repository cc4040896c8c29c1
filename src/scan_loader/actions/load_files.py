from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Sequence

from scan_loader.errors import LoadFilesError
from scan_loader.pipeline.import_sources import import_data_sources
from scan_loader.schemas.data_source import (
    DataSource,
    file_to_data_source,
    get_data_source_name,
)
from scan_loader.schemas.datasets import VolumeInfo
from scan_loader.schemas.results import (
    ImportResult,
    LoadableResult,
    PipelineResult,
    PipelineResultError,
    PipelineResultSuccess,
    is_loadable_result,
    is_volume_result,
    partition_results,
)
from scan_loader.store.datasets import to_data_selection
from scan_loader.store.registry import AppStores

logger = logging.getLogger(__name__)

# Higher priority is preferred when picking the primary selection
BASE_MODALITY_TYPES = {
    "CT": 3,
    "MR": 3,
    "US": 2,
    "DX": 1,
}


@dataclass
class LoadSummary:
    succeeded: list[PipelineResultSuccess] = field(default_factory=list)
    errored: list[PipelineResultError] = field(default_factory=list)
    primary: ImportResult | None = None


def find_base_dicom(
    loadable: Sequence[LoadableResult], volume_info: Mapping[str, VolumeInfo]
) -> LoadableResult | None:
    candidates = []
    for result in loadable:
        if result.data_type != "dicom":
            continue
        info = volume_info.get(result.data_id)
        if info is None or info.modality not in BASE_MODALITY_TYPES:
            continue
        candidates.append((result, BASE_MODALITY_TYPES[info.modality], info.number_of_slices))

    # stable sort: series without slice counts keep encounter order
    candidates.sort(key=lambda c: (-c[1], 0 if c[2] else 1, -(c[2] or 0)))
    if candidates:
        return candidates[0][0]
    return None


def is_segmentation(extension: str, name: str) -> bool:
    if not extension:
        return False  # "foo..bar" would otherwise match ""
    return extension in name.split(".")[1:]


def find_base_image(
    loadable: Sequence[LoadableResult], segment_group_extension: str
) -> LoadableResult | None:
    """First image that is not a segmentation, in load order."""
    for result in loadable:
        if result.data_type != "image":
            continue
        name = get_data_source_name(result.data_source)
        if not name or is_segmentation(segment_group_extension, name):
            continue
        return result
    return None


def filter_loadable_results(succeeded: Sequence[PipelineResultSuccess]) -> list[LoadableResult]:
    return [r for result in succeeded for r in result.data if is_loadable_result(r)]


def find_base_data_source(
    succeeded: Sequence[PipelineResultSuccess],
    segment_group_extension: str,
    volume_info: Mapping[str, VolumeInfo] | None = None,
) -> LoadableResult | None:
    """Pick the dataset to show first: preferred DICOM, then image, then anything."""
    loadable = filter_loadable_results(succeeded)

    base_dicom = find_base_dicom(loadable, volume_info or {})
    if base_dicom is not None:
        return base_dicom

    base_image = find_base_image(loadable, segment_group_extension)
    if base_image is not None:
        return base_image

    return loadable[0] if loadable else None


def _failed_source_name(source: DataSource) -> str:
    name = get_data_source_name(source)
    if name:
        return name
    if source.dicom_src is not None:
        return f"DICOM series ({len(source.dicom_src.sources)} files)"
    return f"input #{source.id}"


def format_load_errors(errored: Sequence[PipelineResultError]) -> str:
    lines = []
    for result in errored:
        first_error = result.errors[0]
        # innermost source is the file that actually failed
        name = _failed_source_name(first_error.input_data_stack_trace[0])
        lines.append(f"- {name}: {first_error.message}")
    return "These files failed to load:\n" + "\n".join(lines)


async def load_data_sources(stores: AppStores, sources: Sequence[DataSource]) -> LoadSummary:
    load_data = stores.load_data
    load_data.start_loading()
    try:
        try:
            results: list[PipelineResult] = await import_data_sources(stores, sources)
        except Exception as exc:
            logger.exception("load: import failed")
            load_data.set_error(exc)
            return LoadSummary()

        succeeded, errored = partition_results(results)
        summary = LoadSummary(succeeded=succeeded, errored=errored)

        if stores.datasets.primary_selection is None and succeeded:
            primary = find_base_data_source(
                succeeded,
                load_data.segment_group_extension,
                stores.dicom.volume_info,
            )
            summary.primary = primary
            if is_volume_result(primary):
                stores.datasets.set_primary_selection(to_data_selection(primary))

        if errored:
            for result in errored:
                logger.error(
                    "load: %s", result.errors[0].message, exc_info=result.errors[0].cause
                )
            load_data.set_error(LoadFilesError(format_load_errors(errored)))

        logger.info("load: %d succeeded, %d failed", len(succeeded), len(errored))
        return summary
    finally:
        load_data.stop_loading()


async def load_files(stores: AppStores, files: Sequence[str | Path]) -> LoadSummary:
    sources = [file_to_data_source(stores.arena, path) for path in files]
    return await load_data_sources(stores, sources)
