# -*- coding: utf-8 -*-
# engine/base_feature_method.py

from __future__ import annotations

import time
import psutil
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar, Dict, FrozenSet, List, Optional, Type

from pyroifeat.features.feature_names import FeatureId
from pyroifeat.engine.roi_store import RoiRecord

logger = logging.getLogger("Dev_logger")


@dataclass(frozen=True)
class MethodDescriptor:
    """Static description of a feature method used to build the dependency graph."""
    name: str
    provides: FrozenSet[FeatureId]
    depends_on: FrozenSet[FeatureId]
    method_cls: Type["BaseFeatureMethod"]

    def depends_on_method(self, other: "MethodDescriptor") -> bool:
        return bool(self.depends_on & other.provides)


class BaseFeatureMethod:
    """
    Base class for per-ROI feature methods.

    Subclasses declare ``PROVIDES`` and ``DEPENDS_ON`` and implement ``calculate``
    and ``save_value``. A fresh instance is created for every label, so instance
    attributes are scratch state for one ROI only.

    Methods defined in the extractors package are collected into each new
    ``MethodRegistry.builtin()``; pass ``register=False`` to keep one out.
    """

    NAME: ClassVar[Optional[str]] = None
    PROVIDES: ClassVar[FrozenSet[FeatureId]] = frozenset()
    DEPENDS_ON: ClassVar[FrozenSet[FeatureId]] = frozenset()

    _register: ClassVar[bool] = False

    def __init_subclass__(cls, register: bool = True, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)

        cls.PROVIDES = frozenset(cls.PROVIDES)
        cls.DEPENDS_ON = frozenset(cls.DEPENDS_ON)
        cls._register = register

    @classmethod
    def describe(cls) -> MethodDescriptor:
        return MethodDescriptor(
            name=cls.NAME or cls.__name__,
            provides=cls.PROVIDES,
            depends_on=cls.DEPENDS_ON,
            method_cls=cls,
        )

    # -------- per-ROI contract --------

    def calculate(self, record: RoiRecord) -> None:
        raise NotImplementedError

    def save_value(self, feature_values: Dict[FeatureId, List[float]]) -> None:
        raise NotImplementedError

    @staticmethod
    def dependency_value(record: RoiRecord, feature: FeatureId, index: int = 0) -> float:
        """Read a prerequisite feature's value from the same ROI record."""
        return float(record.feature_values[feature][index])

    # -------- profiling --------

    @staticmethod
    def _profile_snapshot() -> Dict[str, Any]:
        rss_kb = psutil.Process().memory_info().rss / 1024.0
        return {"time": time.perf_counter(), "wall": datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f"), "rss_kb": rss_kb}

    @staticmethod
    def _profile_delta(start: Dict[str, Any]) -> Dict[str, Any]:
        end = BaseFeatureMethod._profile_snapshot()

        return {
            "start_time": start["wall"],
            "end_time": end["wall"],
            "total_time_sec": round(end["time"] - start["time"], 6),
            "start_memory_KB": round(start["rss_kb"], 6),
            "end_memory_KB": round(end["rss_kb"], 6),
            "total_memory_KB": round(end["rss_kb"] - start["rss_kb"], 6),
        }
