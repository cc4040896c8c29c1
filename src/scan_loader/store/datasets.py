from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel, ConfigDict

from scan_loader.schemas.results import ImportResult
from scan_loader.store.events import DatasetDeleted, EventBus

logger = logging.getLogger(__name__)


class DataSelection(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["image", "dicom"]
    data_id: str


def to_data_selection(result: ImportResult) -> DataSelection:
    if result.data_type not in ("image", "dicom"):
        raise ValueError(f"Cannot select a {result.data_type} dataset as primary")
    return DataSelection(type=result.data_type, data_id=result.data_id)


class DatasetStore:
    """Tracks which loaded dataset is the active (primary) selection."""

    def __init__(self, bus: EventBus) -> None:
        self.primary_selection: DataSelection | None = None
        bus.subscribe(DatasetDeleted, self._on_deleted)

    def set_primary_selection(self, selection: DataSelection | None) -> None:
        logger.info("datasets: primary selection -> %s", selection)
        self.primary_selection = selection

    def _on_deleted(self, event: DatasetDeleted) -> None:
        if self.primary_selection and self.primary_selection.data_id == event.data_id:
            self.set_primary_selection(None)
