# -*- coding: utf-8 -*-
# engine/extractors/morphological_features_method.py

from __future__ import annotations

import logging
import numpy as np
from scipy.ndimage import binary_erosion
from typing import Dict, List

from pyroifeat.engine.base_feature_method import BaseFeatureMethod
from pyroifeat.engine.roi_store import RoiRecord
from pyroifeat.features.feature_names import FeatureId

logger = logging.getLogger("Dev_logger")

# 4-connected structuring element
_CROSS = np.array([[0, 1, 0], [1, 1, 1], [0, 1, 0]], dtype=bool)


class AreaPerimeterFeatureMethod(BaseFeatureMethod):
    """Pixel area and contour length of the ROI mask."""

    NAME = "AreaPerimeterMethod"
    PROVIDES = frozenset({FeatureId.AREA_PIXELS_COUNT, FeatureId.PERIMETER})

    def __init__(self) -> None:
        self.area = 0.0
        self.perimeter = 0.0

    def calculate(self, record: RoiRecord) -> None:
        mask = record.pixels.array != 0
        # Pixels outside the bounding box count as background
        interior = binary_erosion(mask, structure=_CROSS, border_value=0)

        self.area = float(np.count_nonzero(mask))
        self.perimeter = float(np.count_nonzero(mask & ~interior))
        record.aux_area = self.area
        record.aux_perimeter = self.perimeter

    def save_value(self, feature_values: Dict[FeatureId, List[float]]) -> None:
        feature_values[FeatureId.AREA_PIXELS_COUNT] = [self.area]
        feature_values[FeatureId.PERIMETER] = [self.perimeter]


class GeodeticLengthThicknessFeatureMethod(BaseFeatureMethod):
    """
    Geodetic length and thickness of a ribbon-like ROI.

    Modelling the ROI as a rectangle of length L and thickness T gives
    ``perimeter = 2(L + T)`` and ``area = L * T``, so L is the larger root of
    ``L^2 - (perimeter / 2) L + area = 0``.
    """

    NAME = "GeodeticLengthThicknessMethod"
    PROVIDES = frozenset({FeatureId.GEODETIC_LENGTH, FeatureId.THICKNESS})
    DEPENDS_ON = frozenset({FeatureId.AREA_PIXELS_COUNT, FeatureId.PERIMETER})

    def __init__(self) -> None:
        self.geodetic_length = 0.0
        self.thickness = 0.0

    def calculate(self, record: RoiRecord) -> None:
        area = self.dependency_value(record, FeatureId.AREA_PIXELS_COUNT)
        perimeter = self.dependency_value(record, FeatureId.PERIMETER)

        # Clamp so the root stays real for compact shapes
        discriminant = max(perimeter * perimeter / 16.0 - area, 0.0)

        self.geodetic_length = perimeter / 4.0 + float(np.sqrt(discriminant))
        self.thickness = perimeter / 2.0 - self.geodetic_length

    def save_value(self, feature_values: Dict[FeatureId, List[float]]) -> None:
        feature_values[FeatureId.GEODETIC_LENGTH] = [self.geodetic_length]
        feature_values[FeatureId.THICKNESS] = [self.thickness]
