"""Zip and tar extraction into flat, ordered lists of file entries."""

from __future__ import annotations

import io
import logging
import posixpath
import tarfile
import zipfile
from dataclasses import dataclass

from scan_loader.errors import ArchiveError

logger = logging.getLogger(__name__)


@dataclass
class ArchiveEntry:
    name: str  # basename inside the archive
    archive_path: str  # containing directory, "" at the root
    data: bytes


def _split_entry(entry_name: str) -> tuple[str, str]:
    """Split an entry name into (basename, containing directory).

    Windows separators are accepted, and a leading "." or "/" is dropped so
    that "root.png", "./root.png" and "/root.png" all sit at the root ("").
    """
    normalized = posixpath.normpath(entry_name.replace("\\", "/")).lstrip("/")
    if normalized == ".":
        normalized = ""
    return posixpath.basename(normalized), posixpath.dirname(normalized)


def extract_files_from_zip(data: bytes) -> list[ArchiveEntry]:
    """Read every non-directory entry of a zip, in the archive's own order."""
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            entries = []
            for info in zf.infolist():
                if info.is_dir():
                    continue
                name, path = _split_entry(info.filename)
                entries.append(ArchiveEntry(name=name, archive_path=path, data=zf.read(info)))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, EOFError) as exc:
        raise ArchiveError(f"Could not open zip archive: {exc}") from exc

    logger.debug("archive: zip with %d files", len(entries))
    return entries


def extract_files_from_tar(data: bytes) -> list[ArchiveEntry]:
    """Read every regular file of a (possibly compressed) tar archive."""
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:*") as tf:
            entries = []
            for member in tf.getmembers():
                if not member.isfile():
                    continue
                handle = tf.extractfile(member)
                if handle is None:
                    continue
                name, path = _split_entry(member.name)
                entries.append(ArchiveEntry(name=name, archive_path=path, data=handle.read()))
    except (tarfile.TarError, OSError, EOFError) as exc:
        raise ArchiveError(f"Could not open tar archive: {exc}") from exc

    logger.debug("archive: tar with %d files", len(entries))
    return entries


ARCHIVE_EXTRACTORS = {
    "zip": extract_files_from_zip,
    "tar": extract_files_from_tar,
}


def extract_archive_entries(file_type: str, data: bytes) -> list[ArchiveEntry]:
    try:
        extractor = ARCHIVE_EXTRACTORS[file_type]
    except KeyError:
        raise ArchiveError(f"Unsupported archive type: {file_type}") from None
    return extractor(data)
