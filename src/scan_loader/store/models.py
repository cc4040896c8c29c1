from __future__ import annotations

import logging
import uuid

from scan_loader.schemas.datasets import ModelData
from scan_loader.store.events import DatasetDeleted, EventBus

logger = logging.getLogger(__name__)


class ModelStore:
    def __init__(self, bus: EventBus) -> None:
        self.bus = bus
        self.data_index: dict[str, ModelData] = {}
        self.names: dict[str, str] = {}

    def add_model(self, name: str, model: ModelData) -> str:
        data_id = uuid.uuid4().hex
        self.data_index[data_id] = model
        self.names[data_id] = name
        logger.info("models: added %s as %s", name, data_id)
        return data_id

    def delete_data(self, data_id: str) -> None:
        if self.data_index.pop(data_id, None) is None:
            return
        self.names.pop(data_id, None)
        self.bus.emit(DatasetDeleted(data_id=data_id, data_type="model"))
