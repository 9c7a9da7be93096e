"""
Read the per-ROI feature values out of a store into a tabular buffer.
"""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from ..config.settings import BAD_ROI_FVAL
from ..engine.roi_store import RoiStore
from ..features.feature_names import FeatureId

logger = logging.getLogger("Dev_logger")


def _feature_widths(store: RoiStore, features: Sequence[FeatureId]) -> Dict[FeatureId, int]:
    """Number of values each feature carries; at least one column per feature."""
    widths = {fid: 1 for fid in features}
    for label in store.labels():
        values = store.get(label).feature_values
        for fid in features:
            widths[fid] = max(widths[fid], len(values.get(fid, ())))
    return widths


def _column_names(fid: FeatureId, width: int) -> List[str]:
    if width == 1:
        return [fid.value]
    return [f"{fid.value}_{i}" for i in range(width)]


def collect_feature_table(store: RoiStore, features: Optional[Sequence[FeatureId]] = None) -> pd.DataFrame:
    """
    Build a DataFrame with one row per label and one column per feature value.

    Values missing for a label (bad data, failed computation) are filled with the
    sentinel so every ROI contributes every column.
    """
    if features is None:
        seen: Dict[FeatureId, None] = {}
        for label in store.labels():
            for fid in store.get(label).feature_values:
                seen.setdefault(fid, None)
        features = sorted(seen, key=lambda f: list(FeatureId).index(f))

    widths = _feature_widths(store, features)
    columns = [name for fid in features for name in _column_names(fid, widths[fid])]

    rows = []
    for label in store.labels():
        values = store.get(label).feature_values
        row: List[float] = []
        for fid in features:
            vals = list(values.get(fid, ()))
            vals += [BAD_ROI_FVAL] * (widths[fid] - len(vals))
            row.extend(vals)
        rows.append(row)

    table = pd.DataFrame(
        np.asarray(rows, dtype=np.float64).reshape(len(rows), len(columns)),
        index=pd.Index(store.labels(), name="label"),
        columns=columns,
    )
    logger.debug("Feature table: %d labels x %d columns", table.shape[0], table.shape[1])
    return table
