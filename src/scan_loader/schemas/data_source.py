from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from scan_loader.io.file_types import classify_file

logger = logging.getLogger(__name__)


class FileSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    file_type: str
    data: bytes

    def __repr__(self) -> str:
        return f"FileSource(name={self.name!r}, file_type={self.file_type!r}, size={len(self.data)})"


class ArchiveSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str  # directory inside the parent archive, "" for root entries


class DicomSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    sources: tuple[int, ...]  # arena ids of the DICOM files imported together


class DataSource(BaseModel):
    """One candidate input and a link to the source it was derived from.

    `parent` is an index into the owning DataSourceArena, not an object
    reference. Records are frozen once created.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    file_src: FileSource | None = None
    archive_src: ArchiveSource | None = None
    dicom_src: DicomSource | None = None
    parent: int | None = None

    @property
    def is_top_level(self) -> bool:
        return self.parent is None


class DataSourceArena:
    """Append-only store of DataSource records addressed by stable index.

    Siblings extracted from one archive share their ancestors by index, and
    a record can only point at an index that already exists, so parent
    chains are finite and acyclic.
    """

    def __init__(self) -> None:
        self._records: list[DataSource] = []

    def __len__(self) -> int:
        return len(self._records)

    def create(
        self,
        *,
        file_src: FileSource | None = None,
        archive_src: ArchiveSource | None = None,
        dicom_src: DicomSource | None = None,
        parent: DataSource | None = None,
    ) -> DataSource:
        if parent is not None and not self.owns(parent):
            raise ValueError(f"parent {parent.id} does not belong to this arena")
        source = DataSource(
            id=len(self._records),
            file_src=file_src,
            archive_src=archive_src,
            dicom_src=dicom_src,
            parent=parent.id if parent is not None else None,
        )
        self._records.append(source)
        return source

    def owns(self, source: DataSource) -> bool:
        return 0 <= source.id < len(self._records) and self._records[source.id] is source

    def get(self, index: int) -> DataSource:
        return self._records[index]

    def parent_of(self, source: DataSource) -> DataSource | None:
        if source.parent is None:
            return None
        return self._records[source.parent]

    def stack_trace(self, source: DataSource) -> list[DataSource]:
        """Derivation chain from `source` back to its top-level input.

        The first entry is `source` itself, the last is the original input
        the caller supplied.
        """
        trace = [source]
        current = self.parent_of(source)
        while current is not None:
            trace.append(current)
            current = self.parent_of(current)
        return trace

    def top_level_of(self, source: DataSource) -> DataSource:
        return self.stack_trace(source)[-1]


def get_data_source_name(source: DataSource | None) -> str | None:
    if source is None or source.file_src is None:
        return None
    return source.file_src.name


def bytes_to_data_source(arena: DataSourceArena, name: str, data: bytes) -> DataSource:
    file_src = FileSource(name=name, file_type=classify_file(name, data), data=data)
    return arena.create(file_src=file_src)


def file_to_data_source(arena: DataSourceArena, path: str | Path) -> DataSource:
    """Read a file from disk and wrap it as a top-level DataSource."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    source = bytes_to_data_source(arena, path.name, path.read_bytes())
    logger.debug(
        "data_source: %s -> id=%d type=%s", path, source.id, source.file_src.file_type
    )
    return source
