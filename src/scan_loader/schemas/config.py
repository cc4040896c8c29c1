from dataclasses import dataclass


@dataclass
class LoaderConfig:
    segment_group_extension: str = "seg"  # "brain.seg.nii" is a segmentation, not a base image
    max_depth: int = 8  # archive-inside-archive nesting limit
    archive_types: tuple[str, ...] = ("zip", "tar")
