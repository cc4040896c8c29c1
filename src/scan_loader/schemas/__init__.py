"""Schema definitions for the import pipeline."""
from scan_loader.schemas.config import LoaderConfig
from scan_loader.schemas.data_source import (
    ArchiveSource, DataSource, DataSourceArena, DicomSource, FileSource,
)
from scan_loader.schemas.datasets import DicomVolume, ImageData, ModelData, VolumeInfo
from scan_loader.schemas.results import (
    ImportResult, PipelineError, PipelineResult, PipelineResultError,
    PipelineResultSuccess, partition_results,
)

__all__ = [
    "LoaderConfig",
    "ArchiveSource", "DataSource", "DataSourceArena", "DicomSource", "FileSource",
    "DicomVolume", "ImageData", "ModelData", "VolumeInfo",
    "ImportResult", "PipelineError", "PipelineResult", "PipelineResultError",
    "PipelineResultSuccess", "partition_results",
]
