"""Holder for the active dataset of one user session."""

from __future__ import annotations

import threading
from typing import Optional

from .logging_config import get_logger
from .models import Dataset, NormalizedRecord

logger = get_logger("session")


class DatasetSession:
    """Owns the single active Dataset and the optionally focused record.

    ``replace`` swaps the whole dataset in one step, so readers see either
    the previous or the new collection, never a mix. Replacing the dataset
    clears the focus.
    """

    def __init__(self, dataset: Optional[Dataset] = None) -> None:
        self._lock = threading.Lock()
        self._dataset = dataset or Dataset()
        self._focused: Optional[NormalizedRecord] = None

    @property
    def dataset(self) -> Dataset:
        return self._dataset

    @property
    def focused(self) -> Optional[NormalizedRecord]:
        return self._focused

    def replace(self, dataset: Dataset) -> Dataset:
        """Swap in a new dataset and return the previous one."""
        with self._lock:
            previous = self._dataset
            self._dataset = dataset
            self._focused = None
        logger.info(f"Active dataset replaced: {len(previous)} -> {len(dataset)} records")
        return previous

    def focus(self, message_url: Optional[str]) -> Optional[NormalizedRecord]:
        """Focus a record of the active dataset by URL; None clears the focus.

        Raises:
            KeyError: if no record with that URL is loaded.
        """
        with self._lock:
            if message_url is None:
                self._focused = None
                return None
            record = self._dataset.find(message_url)
            if record is None:
                raise KeyError(f"No record with message URL {message_url!r}")
            self._focused = record
            return record
