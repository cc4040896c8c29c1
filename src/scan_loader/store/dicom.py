from __future__ import annotations

import logging
import uuid
from typing import Awaitable, Callable, Union

from scan_loader.errors import ReaderNotFoundError
from scan_loader.io.readers import read_with
from scan_loader.schemas.data_source import DataSource, FileSource
from scan_loader.schemas.datasets import DicomVolume, VolumeInfo
from scan_loader.store.events import DatasetDeleted, EventBus

logger = logging.getLogger(__name__)

# Groups DICOM files into series and decodes each one
DicomSeriesReader = Callable[
    [list[FileSource]], Union[list[DicomVolume], Awaitable[list[DicomVolume]]]
]


class DicomStore:
    def __init__(self, bus: EventBus, series_reader: DicomSeriesReader | None = None) -> None:
        self.bus = bus
        self.series_reader = series_reader
        self.volumes: dict[str, DicomVolume] = {}
        self.volume_info: dict[str, VolumeInfo] = {}

    async def import_files(self, sources: list[DataSource]) -> list[str]:
        """Decode a set of DICOM files and register one volume per series.

        Returns the new volume keys in the order the reader produced them.
        """
        if self.series_reader is None:
            raise ReaderNotFoundError("No DICOM series reader is registered")

        files = [source.file_src for source in sources if source.file_src is not None]
        volumes = await read_with(self.series_reader, files)

        keys = []
        for volume in volumes:
            key = uuid.uuid4().hex
            self.volumes[key] = volume
            self.volume_info[key] = volume.info
            keys.append(key)

        logger.info("dicom: %d files -> %d series", len(files), len(keys))
        return keys

    def delete_data(self, data_id: str) -> None:
        if self.volumes.pop(data_id, None) is None:
            return
        self.volume_info.pop(data_id, None)
        self.bus.emit(DatasetDeleted(data_id=data_id, data_type="dicom"))
