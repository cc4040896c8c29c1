from __future__ import annotations

from scan_loader.schemas.data_source import DataSource
from scan_loader.store.events import DatasetDeleted, EventBus


class FileStore:
    """Remembers which DataSources each dataset was loaded from."""

    def __init__(self, bus: EventBus) -> None:
        self.by_data_id: dict[str, list[DataSource]] = {}
        bus.subscribe(DatasetDeleted, self._on_deleted)

    def add(self, data_id: str, sources: list[DataSource]) -> None:
        self.by_data_id.setdefault(data_id, []).extend(sources)

    def get_data_sources(self, data_id: str) -> list[DataSource]:
        return list(self.by_data_id.get(data_id, []))

    def remove(self, data_id: str) -> None:
        self.by_data_id.pop(data_id, None)

    def _on_deleted(self, event: DatasetDeleted) -> None:
        self.remove(event.data_id)
