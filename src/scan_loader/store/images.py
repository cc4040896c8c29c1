from __future__ import annotations

import logging
import uuid

from scan_loader.schemas.datasets import ImageData
from scan_loader.store.events import DatasetDeleted, EventBus

logger = logging.getLogger(__name__)


class ImageStore:
    """Holds decoded images keyed by a generated data id."""

    def __init__(self, bus: EventBus) -> None:
        self.bus = bus
        self.data_index: dict[str, ImageData] = {}
        self.names: dict[str, str] = {}

    @property
    def ids(self) -> list[str]:
        return list(self.data_index)

    def add_image(self, name: str, image: ImageData) -> str:
        data_id = uuid.uuid4().hex
        self.data_index[data_id] = image
        self.names[data_id] = name
        logger.info("images: added %s as %s", name, data_id)
        return data_id

    def get(self, data_id: str) -> ImageData | None:
        return self.data_index.get(data_id)

    def delete_data(self, data_id: str) -> None:
        if data_id not in self.data_index:
            return
        del self.data_index[data_id]
        self.names.pop(data_id, None)
        logger.info("images: deleted %s", data_id)
        self.bus.emit(DatasetDeleted(data_id=data_id, data_type="image"))
