from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class LoadDataStore:
    """Busy/error state for file loading, as seen by callers.

    Loading calls nest: `is_loading` stays true until every
    `start_loading` has been matched by a `stop_loading`.
    """

    def __init__(self, segment_group_extension: str = "seg") -> None:
        self.segment_group_extension = segment_group_extension
        self.loading_count = 0
        self.error: Exception | None = None

    @property
    def is_loading(self) -> bool:
        return self.loading_count > 0

    def start_loading(self) -> None:
        self.loading_count += 1

    def stop_loading(self) -> None:
        if self.loading_count == 0:
            logger.warning("load_data: stop_loading called while idle")
            return
        self.loading_count -= 1

    def set_error(self, error: Exception) -> None:
        logger.error("load_data: %s", error)
        self.error = error

    def clear_error(self) -> None:
        self.error = None
