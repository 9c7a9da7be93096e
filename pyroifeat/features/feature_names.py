"""
Feature identifier definitions shared by feature providers and consumers.
"""

from enum import Enum
from typing import Dict, List, Optional
import logging

logger = logging.getLogger("Dev_logger")


class FeatureId(Enum):
    """Globally unique feature codes. The value doubles as the output column name."""

    # Pixel intensity
    MIN = "int_min"
    MAX = "int_max"
    MEAN = "int_mean"
    STDDEV = "int_stddev"

    # Morphology
    AREA_PIXELS_COUNT = "morph_area_pixels_count"
    PERIMETER = "morph_perimeter"
    GEODETIC_LENGTH = "morph_geodetic_length"
    THICKNESS = "morph_thickness"

    # Neighbourhood gray-tone difference matrix
    NGTDM_COARSENESS = "ngtdm_coarseness"
    NGTDM_CONTRAST = "ngtdm_contrast"
    NGTDM_BUSYNESS = "ngtdm_busyness"
    NGTDM_COMPLEXITY = "ngtdm_complexity"
    NGTDM_STRENGTH = "ngtdm_strength"


FEATURE_CATEGORIES: Dict[str, List[FeatureId]] = {
    "int": [FeatureId.MIN, FeatureId.MAX, FeatureId.MEAN, FeatureId.STDDEV],
    "morph": [FeatureId.AREA_PIXELS_COUNT, FeatureId.PERIMETER, FeatureId.GEODETIC_LENGTH, FeatureId.THICKNESS],
    "ngtdm": [
        FeatureId.NGTDM_COARSENESS, FeatureId.NGTDM_CONTRAST, FeatureId.NGTDM_BUSYNESS,
        FeatureId.NGTDM_COMPLEXITY, FeatureId.NGTDM_STRENGTH,
    ],
}


def get_feature_names(categories: Optional[str] = None) -> List[str]:
    """
    Get feature column names for a comma separated list of categories.

    Args:
        categories: e.g. "int,ngtdm". None selects every category.

    Returns:
        List of feature names in canonical order
    """
    if categories is None:
        selected = list(FEATURE_CATEGORIES)
    else:
        selected = [c.strip().lower() for c in categories.split(",") if c.strip()]

    names: List[str] = []
    for category in selected:
        if category not in FEATURE_CATEGORIES:
            logger.warning(f"Unknown feature category '{category}' ignored")
            continue
        names.extend(f.value for f in FEATURE_CATEGORIES[category])
    return names
