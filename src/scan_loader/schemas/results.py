from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from scan_loader.schemas.data_source import DataSource

DataType = Literal["image", "dicom", "model"]
LOADABLE_TYPES = ("image", "dicom")


class ImportResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    data_id: str
    data_source: DataSource
    data_type: DataType


# An ImportResult whose data_type is image or dicom
LoadableResult = ImportResult


def is_loadable_result(result: ImportResult | None) -> bool:
    return result is not None and result.data_type in LOADABLE_TYPES


def is_volume_result(result: ImportResult | None) -> bool:
    return is_loadable_result(result)


class PipelineError(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    cause: BaseException
    message: str
    input_data_stack_trace: list[DataSource]  # failing source first, top-level input last


class PipelineResultSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: Literal[True] = True
    data_source: DataSource
    data: list[ImportResult] = Field(default_factory=list)


class PipelineResultError(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: Literal[False] = False
    data_source: DataSource
    errors: list[PipelineError]
    data: list[ImportResult] = Field(default_factory=list)  # sibling entries that did load


PipelineResult = Union[PipelineResultSuccess, PipelineResultError]


def partition_results(
    results: list[PipelineResult],
) -> tuple[list[PipelineResultSuccess], list[PipelineResultError]]:
    """Split results into (succeeded, errored), keeping input order in each."""
    succeeded: list[PipelineResultSuccess] = []
    errored: list[PipelineResultError] = []
    for result in results:
        if result.ok:
            succeeded.append(result)
        else:
            errored.append(result)
    return succeeded, errored
