"""Shared pytest fixtures for scan_loader tests."""

import io
import tarfile
import zipfile

import pytest
from PIL import Image

from scan_loader.schemas.config import LoaderConfig
from scan_loader.schemas.data_source import DataSourceArena, FileSource
from scan_loader.schemas.datasets import DicomVolume, VolumeInfo
from scan_loader.store.registry import create_stores


def make_png(size=(8, 8), color="white") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


def make_zip(entries) -> bytes:
    """entries: list of (name, data); a name ending in "/" is a directory."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in entries:
            if name.endswith("/"):
                zf.writestr(zipfile.ZipInfo(name), b"")
            else:
                zf.writestr(name, data)
    return buf.getvalue()


def make_tar(entries) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tf:
        for name, data in entries:
            info = tarfile.TarInfo(name.rstrip("/"))
            if name.endswith("/"):
                info.type = tarfile.DIRTYPE
                tf.addfile(info)
            else:
                info.size = len(data)
                tf.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def make_dicom(modality: str, series: str, slices: int | None = None) -> bytes:
    """Fake DICOM file: real preamble and magic, key=value payload."""
    payload = f"MODALITY={modality};SERIES={series}"
    if slices is not None:
        payload += f";SLICES={slices}"
    return b"\x00" * 128 + b"DICM" + payload.encode()


def fake_dicom_series_reader(files: list[FileSource]) -> list[DicomVolume]:
    """Group fake DICOM files by SERIES, one volume per series, first-seen order."""
    series: dict[str, VolumeInfo] = {}
    for file_src in files:
        fields = dict(
            part.split("=", 1) for part in file_src.data[132:].decode().split(";")
        )
        uid = fields["SERIES"]
        if uid not in series:
            slices = fields.get("SLICES")
            series[uid] = VolumeInfo(
                modality=fields["MODALITY"],
                number_of_slices=int(slices) if slices else None,
                series_instance_uid=uid,
                series_description=f"series {uid}",
            )
    return [DicomVolume(info=info) for info in series.values()]


@pytest.fixture
def arena() -> DataSourceArena:
    return DataSourceArena()


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def stores():
    """Stores with the default Pillow readers and no DICOM reader."""
    stores = create_stores(LoaderConfig())
    yield stores
    stores.close()


@pytest.fixture
def dicom_stores():
    """Stores with a fake DICOM series reader registered."""
    stores = create_stores(LoaderConfig(), dicom_reader=fake_dicom_series_reader)
    yield stores
    stores.close()
