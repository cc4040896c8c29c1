"""Decoded dataset objects produced by format readers."""

from __future__ import annotations

from dataclasses import dataclass, field

from PIL import Image


@dataclass
class ImageData:
    image: Image.Image
    spacing: tuple[float, float, float] = (1.0, 1.0, 1.0)

    @property
    def dimensions(self) -> tuple[int, int, int]:
        return (self.image.width, self.image.height, getattr(self.image, "n_frames", 1))


@dataclass
class ModelData:
    vertices: list[tuple[float, float, float]] = field(default_factory=list)
    faces: list[tuple[int, ...]] = field(default_factory=list)


@dataclass
class VolumeInfo:
    modality: str | None = None
    number_of_slices: int | None = None
    series_instance_uid: str | None = None
    series_description: str | None = None
    patient_name: str | None = None


@dataclass
class DicomVolume:
    info: VolumeInfo
    image: ImageData | None = None
