"""Exceptions raised by the import pipeline."""


class ScanLoaderError(Exception):
    pass


class ArchiveError(ScanLoaderError):
    """Archive container could not be opened or read."""


class UnsupportedDatasetError(ScanLoaderError):
    """A reader produced an object the stores cannot hold."""


class UnhandledResourceError(ScanLoaderError):
    """No handler in the chain recognised the input."""


class ReaderNotFoundError(ScanLoaderError):
    pass


class NestingDepthError(ScanLoaderError):
    """Archives nested deeper than the configured limit."""


class LoadFilesError(ScanLoaderError):
    """Aggregate failure for a batch where one or more inputs failed."""
