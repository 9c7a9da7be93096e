# -*- coding: utf-8 -*-
# engine/extractors/intensity_features_method.py

from __future__ import annotations

import logging
import numpy as np
from typing import Dict, List

from pyroifeat.config.settings import BAD_ROI_FVAL
from pyroifeat.engine.base_feature_method import BaseFeatureMethod
from pyroifeat.engine.roi_store import RoiRecord
from pyroifeat.features.feature_names import FeatureId

logger = logging.getLogger("Dev_logger")


class IntensityFeatureMethod(BaseFeatureMethod):
    """First-order intensity statistics over the ROI's non-zero pixels."""

    NAME = "IntensityMethod"
    PROVIDES = frozenset({FeatureId.MIN, FeatureId.MAX, FeatureId.MEAN, FeatureId.STDDEV})

    def __init__(self) -> None:
        self.values: Dict[FeatureId, float] = {}

    def calculate(self, record: RoiRecord) -> None:
        data = record.pixels.array
        foreground = data[data != 0].astype(np.float64)

        if foreground.size == 0:
            self.values = {fid: BAD_ROI_FVAL for fid in self.PROVIDES}
            return

        self.values = {
            FeatureId.MIN: float(foreground.min()),
            FeatureId.MAX: float(foreground.max()),
            FeatureId.MEAN: float(foreground.mean()),
            FeatureId.STDDEV: float(foreground.std()),
        }
        record.aux_min = self.values[FeatureId.MIN]
        record.aux_max = self.values[FeatureId.MAX]

    def save_value(self, feature_values: Dict[FeatureId, List[float]]) -> None:
        for fid, value in self.values.items():
            feature_values[fid] = [value]
