from __future__ import annotations

import asyncio
import inspect
import io
import logging
from typing import Any, Awaitable, Callable, Union

from PIL import Image, UnidentifiedImageError

from scan_loader.errors import ReaderNotFoundError
from scan_loader.schemas.datasets import ImageData

logger = logging.getLogger(__name__)

FileReader = Callable[[bytes], Union[Any, Awaitable[Any]]]

PIL_IMAGE_TYPES = ("png", "jpeg", "bmp", "tiff", "gif")


class FileReaderRegistry:
    """Maps a file type token to the reader that decodes it."""

    def __init__(self) -> None:
        self._readers: dict[str, FileReader] = {}

    def register(self, file_type: str, reader: FileReader) -> None:
        if file_type in self._readers:
            logger.debug("readers: replacing reader for %s", file_type)
        self._readers[file_type] = reader

    def get(self, file_type: str) -> FileReader:
        try:
            return self._readers[file_type]
        except KeyError:
            raise ReaderNotFoundError(f"No reader registered for {file_type!r}") from None

    def file_types(self) -> list[str]:
        return sorted(self._readers)


async def read_with(reader: Callable[..., Any], payload: Any) -> Any:
    """Call a reader, moving synchronous decoders off the event loop."""
    if inspect.iscoroutinefunction(reader):
        return await reader(payload)
    result = await asyncio.to_thread(reader, payload)
    if inspect.isawaitable(result):
        result = await result
    return result


def read_pil_image(data: bytes) -> ImageData:
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except UnidentifiedImageError as exc:
        raise ValueError(f"Not a readable image: {exc}") from exc
    logger.debug("readers: decoded %s image %dx%d", img.format, img.width, img.height)
    return ImageData(image=img)


def register_all_readers(registry: FileReaderRegistry) -> FileReaderRegistry:
    for file_type in PIL_IMAGE_TYPES:
        registry.register(file_type, read_pil_image)
    return registry
