# -*- coding: utf-8 -*-
# engine/extractors/neighbourhood_gray_tone_difference_matrix_features_method.py

from __future__ import annotations

import logging
import numpy as np
from dataclasses import dataclass
from scipy.ndimage import convolve
from typing import Dict, List, Optional, Union

from pyroifeat.config.settings import BAD_ROI_FVAL, DEFAULT_PROBABILITY_MODE, PROBABILITY_MODES
from pyroifeat.engine.base_feature_method import BaseFeatureMethod
from pyroifeat.engine.roi_store import PixelMatrix, RoiRecord
from pyroifeat.features.feature_names import FeatureId

logger = logging.getLogger("Dev_logger")

# 8-neighbourhood, centre excluded
_NEIGHBOURHOOD_KERNEL = np.ones((3, 3), dtype=np.float64)
_NEIGHBOURHOOD_KERNEL[1, 1] = 0.0


class _Degenerate:
    """Marker returned instead of a matrix when the ROI cannot be characterised."""

    _instance: Optional["_Degenerate"] = None

    def __new__(cls) -> "_Degenerate":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DEGENERATE"

    def __bool__(self) -> bool:
        return False


DEGENERATE = _Degenerate()


@dataclass(frozen=True)
class NgtdmMatrix:
    """Gray-tone difference matrix of one ROI.

    Rows follow the ascending order of the distinct non-zero intensities in ``levels``.
    ``P`` is the per-level probability, ``S`` the per-level sum of absolute differences
    between a pixel and its neighbourhood average, and ``N`` the per-level pixel count.
    """
    levels: np.ndarray
    P: np.ndarray
    S: np.ndarray
    N: np.ndarray
    Ng: int
    Ngp: int
    Nvp: int


NgtdmResult = Union[NgtdmMatrix, _Degenerate]


def neighbourhood_average(pixels: np.ndarray) -> np.ndarray:
    """
    Mean of the in-bounds 8-neighbours of every pixel.

    Neighbours outside the matrix are excluded from the divisor. Background (zero)
    neighbours inside the matrix do count. A pixel without any neighbour (1x1 matrix)
    gets an average of 0.

    The average is kept as a float. Nyxus truncates it to an integer intensity, so
    S (and every statistic built on it) can differ slightly from Nyxus output.
    """
    data = np.asarray(pixels, dtype=np.float64)
    neigh_sum = convolve(data, _NEIGHBOURHOOD_KERNEL, mode="constant", cval=0.0)
    neigh_cnt = convolve(np.ones_like(data), _NEIGHBOURHOOD_KERNEL, mode="constant", cval=0.0)

    mean_nb = np.zeros_like(neigh_sum)
    has_nb = neigh_cnt > 0
    mean_nb[has_nb] = neigh_sum[has_nb] / neigh_cnt[has_nb]
    return mean_nb


def build_ngtdm(
        min_intensity: float,
        max_intensity: float,
        pixels: Union[PixelMatrix, np.ndarray],
        probability_mode: str = DEFAULT_PROBABILITY_MODE,
) -> NgtdmResult:
    """Build the NGTDM of a ROI, or return ``DEGENERATE`` for a flat or empty ROI."""

    if min_intensity == max_intensity:
        return DEGENERATE

    data = pixels.array if isinstance(pixels, PixelMatrix) else np.asarray(pixels)
    data = data.astype(np.float64, copy=False)
    height, width = data.shape

    foreground = data != 0
    if not foreground.any():
        return DEGENERATE

    intensities = data[foreground]
    averages = neighbourhood_average(data)[foreground]

    levels = np.unique(intensities)
    n_levels = int(levels.size)
    rows = np.searchsorted(levels, intensities)

    n_arr = np.bincount(rows, minlength=n_levels).astype(np.float64)
    s_arr = np.bincount(rows, weights=np.abs(intensities - averages), minlength=n_levels)
    n_vp = int(np.count_nonzero(averages > 0.0))

    if probability_mode == "LEGACY_UNIFORM":
        p_arr = np.full(n_levels, n_levels / float(height * width), dtype=np.float64)
    elif probability_mode == "EMPIRICAL":
        p_arr = n_arr / n_arr.sum()
    else:
        raise ValueError(f"Unknown probability mode '{probability_mode}', expected one of {PROBABILITY_MODES}")

    return NgtdmMatrix(levels=levels, P=p_arr, S=s_arr, N=n_arr, Ng=n_levels, Ngp=n_levels, Nvp=n_vp)


# ----------------------------------------------------------------------
# Statistics (only ever called with a validated matrix)
# ----------------------------------------------------------------------

def _rank_difference(n_levels: int) -> np.ndarray:
    ranks = np.arange(1, n_levels + 1, dtype=np.float64)
    return ranks[:, None] - ranks[None, :]


def calc_coarseness(matrix: NgtdmMatrix) -> float:
    denom = float(np.dot(matrix.P, matrix.S))
    if denom == 0.0:
        return BAD_ROI_FVAL
    return 1.0 / denom


def calc_contrast(matrix: NgtdmMatrix) -> float:
    diff_sq = _rank_difference(matrix.Ng) ** 2
    n_gp = matrix.Ngp
    n_gp_pairs = n_gp * (n_gp - 1) if n_gp > 1 else n_gp

    term1 = float(np.sum(np.outer(matrix.P, matrix.P) * diff_sq)) / n_gp_pairs
    term2 = float(np.sum(matrix.S)) / n_gp
    return term1 * term2


def calc_busyness(matrix: NgtdmMatrix) -> float:
    # Trivial case
    if matrix.Ngp == 1:
        return 0.0

    numerator = float(np.dot(matrix.P, matrix.S))
    weighted = matrix.P * np.arange(matrix.Ng, dtype=np.float64)
    denom = float(np.sum(np.abs(weighted[:, None] - weighted[None, :])))
    if denom == 0.0:
        return BAD_ROI_FVAL
    return numerator / denom


def calc_complexity(matrix: NgtdmMatrix) -> float:
    if matrix.Nvp == 0:
        return BAD_ROI_FVAL

    ps = matrix.P * matrix.S
    p_sum = matrix.P[:, None] + matrix.P[None, :]
    summand = np.abs(_rank_difference(matrix.Ng)) * (ps[:, None] + ps[None, :]) / p_sum
    return float(np.sum(summand)) / matrix.Nvp


def calc_strength(matrix: NgtdmMatrix) -> float:
    denom = float(np.sum(matrix.S))
    if denom == 0.0:
        return BAD_ROI_FVAL

    p_sum = matrix.P[:, None] + matrix.P[None, :]
    numerator = float(np.sum(p_sum * _rank_difference(matrix.Ng) ** 2))
    return numerator / denom


NGTDM_STATISTICS = {
    FeatureId.NGTDM_COARSENESS: calc_coarseness,
    FeatureId.NGTDM_CONTRAST: calc_contrast,
    FeatureId.NGTDM_BUSYNESS: calc_busyness,
    FeatureId.NGTDM_COMPLEXITY: calc_complexity,
    FeatureId.NGTDM_STRENGTH: calc_strength,
}


class NeighbourhoodGrayToneDifferenceMatrixFeatureMethod(BaseFeatureMethod):
    """NGTDM texture features of a 2-D ROI."""

    NAME = "NGTDMMethod"
    PROVIDES = frozenset(NGTDM_STATISTICS)
    DEPENDS_ON = frozenset({FeatureId.MIN, FeatureId.MAX})

    def __init__(self, probability_mode: str = DEFAULT_PROBABILITY_MODE) -> None:
        if probability_mode not in PROBABILITY_MODES:
            raise ValueError(f"Unknown probability mode '{probability_mode}', expected one of {PROBABILITY_MODES}")
        self.probability_mode = probability_mode
        self.matrix: NgtdmResult = DEGENERATE
        self.values: Dict[FeatureId, float] = {}

    def initialize(self, min_intensity: float, max_intensity: float, pixels: PixelMatrix) -> NgtdmResult:
        self.matrix = build_ngtdm(min_intensity, max_intensity, pixels, self.probability_mode)
        return self.matrix

    def calculate(self, record: RoiRecord) -> None:
        matrix = self.initialize(
            self.dependency_value(record, FeatureId.MIN),
            self.dependency_value(record, FeatureId.MAX),
            record.pixels,
        )

        if matrix is DEGENERATE:
            logger.debug("ROI %d has degenerate intensities; NGTDM features set to %s", record.label, BAD_ROI_FVAL)
            self.values = {fid: BAD_ROI_FVAL for fid in NGTDM_STATISTICS}
            return

        self.values = {fid: float(calc(matrix)) for fid, calc in NGTDM_STATISTICS.items()}

    def save_value(self, feature_values: Dict[FeatureId, List[float]]) -> None:
        for fid, value in self.values.items():
            feature_values[fid] = [value]
