# -*- coding: utf-8 -*-
# engine/roi_store.py

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, TypeVar

import numpy as np

from .errors import MissingLabelGuardError, StoreSealedError
from pyroifeat.features.feature_names import FeatureId

logger = logging.getLogger("Dev_logger")

T = TypeVar("T")


class PixelMatrix:
    """Read-only 2-D intensity block covering one ROI's bounding box."""

    def __init__(self, data: np.ndarray) -> None:
        arr = np.array(data, copy=True)
        if arr.ndim != 2:
            raise ValueError(f"Pixel matrix must be 2-D, got shape {arr.shape}")
        arr.setflags(write=False)
        self._data = arr

    @property
    def height(self) -> int:
        return int(self._data.shape[0])

    @property
    def width(self) -> int:
        return int(self._data.shape[1])

    @property
    def array(self) -> np.ndarray:
        return self._data

    def __getitem__(self, pos) -> Any:
        row, col = pos
        return self._data[row, col]

    def safe(self, row: int, col: int) -> bool:
        """True when (row, col) lies inside the matrix."""
        return 0 <= row < self.height and 0 <= col < self.width


@dataclass
class RoiRecord:
    label: int
    pixels: PixelMatrix
    aux_area: float = 0.0
    aux_perimeter: float = 0.0
    aux_min: float = 0.0
    aux_max: float = 0.0
    bad_data: bool = False
    feature_values: Dict[FeatureId, List[float]] = field(default_factory=dict)

    def has_bad_data(self) -> bool:
        return self.bad_data


class RoiStore:
    """
    Label -> ROI record mapping with one guard per label.

    Guards are provisioned when a record is added. After ``seal()`` the label set is
    frozen, so workers only ever look guards up and never create them.
    """

    def __init__(self) -> None:
        self._records: Dict[int, RoiRecord] = {}
        self._guards: Dict[int, threading.Lock] = {}
        self._sealed = False

    # -------- population --------

    def add(self, label: int, pixels: Any, **aux: Any) -> RoiRecord:
        if self._sealed:
            raise StoreSealedError(f"Cannot add label {label}: store is sealed")
        label = int(label)
        if label <= 0:
            raise ValueError(f"ROI labels must be positive integers, got {label}")
        if label in self._records:
            raise ValueError(f"Label {label} already registered")

        matrix = pixels if isinstance(pixels, PixelMatrix) else PixelMatrix(pixels)
        record = RoiRecord(label=label, pixels=matrix, **aux)
        self._records[label] = record
        self._guards[label] = threading.Lock()
        return record

    def seal(self) -> None:
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def clear(self) -> None:
        self._records.clear()
        self._guards.clear()
        self._sealed = False

    # -------- access --------

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, label: int) -> bool:
        return int(label) in self._records

    def labels(self) -> List[int]:
        return sorted(self._records)

    def get(self, label: int) -> RoiRecord:
        try:
            return self._records[int(label)]
        except KeyError:
            raise KeyError(f"Label {label} is not registered") from None

    @contextmanager
    def guard(self, label: int) -> Iterator[RoiRecord]:
        """Hold the label's lock for the duration of the block."""
        lock: Optional[threading.Lock] = self._guards.get(int(label))
        if lock is None:
            raise MissingLabelGuardError(label)
        with lock:
            yield self._records[int(label)]

    def with_lock(self, label: int, fn: Callable[[RoiRecord], T]) -> T:
        with self.guard(label) as record:
            return fn(record)
