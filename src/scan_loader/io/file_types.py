from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

UNKNOWN_FILE_TYPE = "unknown"

# Longest suffixes first so "scan.nii.gz" is not classified by ".gz"
EXTENSION_TYPES = {
    "nii.gz": "nifti",
    "tar.gz": "tar",
    "tgz": "tar",
    "tar": "tar",
    "zip": "zip",
    "dcm": "dicom",
    "dicom": "dicom",
    "nii": "nifti",
    "nrrd": "nrrd",
    "mha": "mha",
    "mhd": "mha",
    "vti": "vti",
    "png": "png",
    "jpg": "jpeg",
    "jpeg": "jpeg",
    "bmp": "bmp",
    "tif": "tiff",
    "tiff": "tiff",
    "gif": "gif",
    "stl": "stl",
    "obj": "obj",
    "vtp": "vtp",
}


def _sniff(data: bytes) -> str | None:
    if data.startswith(b"PK\x03\x04") or data.startswith(b"PK\x05\x06"):
        return "zip"
    if len(data) >= 132 and data[128:132] == b"DICM":
        return "dicom"
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "png"
    if data.startswith(b"\xff\xd8\xff"):
        return "jpeg"
    if len(data) >= 262 and data[257:262] == b"ustar":
        return "tar"
    return None


def extension_type(name: str) -> str | None:
    lowered = name.lower()
    for ext, file_type in EXTENSION_TYPES.items():
        if lowered.endswith("." + ext):
            return file_type
    return None


def classify_file(name: str, data: bytes) -> str:
    """Classify a file by its content signature, falling back to its name.

    Signatures win over extensions so a mislabelled upload (a zip saved as
    ".dat", a DICOM file with no extension) still reaches the right handler.
    """
    file_type = _sniff(data) or extension_type(name)
    if file_type is None:
        logger.debug("file_types: no type for %s", name)
        return UNKNOWN_FILE_TYPE
    return file_type
