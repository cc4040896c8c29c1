from __future__ import annotations

from dataclasses import dataclass, field

from scan_loader.io.readers import FileReaderRegistry, register_all_readers
from scan_loader.schemas.config import LoaderConfig
from scan_loader.schemas.data_source import DataSourceArena
from scan_loader.store.datasets import DatasetStore
from scan_loader.store.dicom import DicomSeriesReader, DicomStore
from scan_loader.store.events import EventBus
from scan_loader.store.files import FileStore
from scan_loader.store.images import ImageStore
from scan_loader.store.load_data import LoadDataStore
from scan_loader.store.models import ModelStore
from scan_loader.store.view_configs import ViewConfigStore


@dataclass
class AppStores:
    """Every store the import pipeline reads from or writes to, wired to one bus."""

    config: LoaderConfig
    bus: EventBus
    arena: DataSourceArena
    readers: FileReaderRegistry
    images: ImageStore
    models: ModelStore
    dicom: DicomStore
    files: FileStore
    datasets: DatasetStore
    load_data: LoadDataStore
    view_configs: ViewConfigStore = field(default_factory=ViewConfigStore)

    def close(self) -> None:
        self.view_configs.detach()


def create_stores(
    config: LoaderConfig | None = None,
    readers: FileReaderRegistry | None = None,
    dicom_reader: DicomSeriesReader | None = None,
) -> AppStores:
    config = config or LoaderConfig()
    bus = EventBus()
    if readers is None:
        readers = register_all_readers(FileReaderRegistry())
    stores = AppStores(
        config=config,
        bus=bus,
        arena=DataSourceArena(),
        readers=readers,
        images=ImageStore(bus),
        models=ModelStore(bus),
        dicom=DicomStore(bus, dicom_reader),
        files=FileStore(bus),
        datasets=DatasetStore(bus),
        load_data=LoadDataStore(config.segment_group_extension),
    )
    stores.view_configs.attach(bus)
    return stores
