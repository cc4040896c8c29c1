"""Per-view, per-dataset display configuration (slice index, window/level).

ViewConfigStore listens for DatasetDeleted so configuration for a dataset
disappears together with the dataset. Call attach() at setup and detach()
at teardown.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from scan_loader.store.events import DatasetDeleted, EventBus

logger = logging.getLogger(__name__)


@dataclass
class SliceConfig:
    slice: int = 0
    min: int = 0
    max: int = 0


@dataclass
class WindowLevelConfig:
    width: float = 1.0
    level: float = 0.5


class _PerViewConfigs:
    def __init__(self) -> None:
        # view_id -> data_id -> config
        self.configs: dict[str, dict[str, object]] = {}

    def get(self, view_id: str, data_id: str):
        return self.configs.get(view_id, {}).get(data_id)

    def set(self, view_id: str, data_id: str, config) -> None:
        self.configs.setdefault(view_id, {})[data_id] = config

    def remove_view(self, view_id: str) -> None:
        self.configs.pop(view_id, None)

    def remove_data(self, data_id: str, view_id: str | None = None) -> None:
        view_ids = [view_id] if view_id is not None else list(self.configs)
        for vid in view_ids:
            self.configs.get(vid, {}).pop(data_id, None)


class ViewSliceStore(_PerViewConfigs):
    def update_slice(self, view_id: str, data_id: str, slice_index: int) -> SliceConfig:
        config = self.get(view_id, data_id) or SliceConfig()
        config.slice = max(config.min, min(slice_index, config.max)) if config.max else slice_index
        self.set(view_id, data_id, config)
        return config


class WindowingStore(_PerViewConfigs):
    def update_window_level(
        self, view_id: str, data_id: str, width: float, level: float
    ) -> WindowLevelConfig:
        config = WindowLevelConfig(width=width, level=level)
        self.set(view_id, data_id, config)
        return config


class ViewConfigStore:
    def __init__(self) -> None:
        self.slicing = ViewSliceStore()
        self.windowing = WindowingStore()
        self._bus: EventBus | None = None

    def attach(self, bus: EventBus) -> None:
        if self._bus is not None:
            self.detach()
        bus.subscribe(DatasetDeleted, self._on_dataset_deleted)
        self._bus = bus

    def detach(self) -> None:
        if self._bus is None:
            return
        self._bus.unsubscribe(DatasetDeleted, self._on_dataset_deleted)
        self._bus = None

    def remove_view(self, view_id: str) -> None:
        self.slicing.remove_view(view_id)
        self.windowing.remove_view(view_id)

    def remove_data(self, data_id: str, view_id: str | None = None) -> None:
        self.slicing.remove_data(data_id, view_id)
        self.windowing.remove_data(data_id, view_id)

    def _on_dataset_deleted(self, event: DatasetDeleted) -> None:
        logger.debug("view_configs: dropping configs for %s", event.data_id)
        self.remove_data(event.data_id)
