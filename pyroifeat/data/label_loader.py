"""
Populate a ROI store from an intensity image and a label image.
"""

import logging
from typing import Optional

import numpy as np
from scipy import ndimage

from ..engine.roi_store import RoiStore

logger = logging.getLogger("Dev_logger")


def load_rois(intensity_image: np.ndarray, label_image: np.ndarray, store: Optional[RoiStore] = None) -> RoiStore:
    """
    Crop every labeled region to its bounding box and register it in the store.

    Args:
        intensity_image: 2-D array of pixel intensities
        label_image: 2-D integer array, 0 is background
        store: Store to fill; a new one is created when omitted

    Returns:
        The populated store
    """
    intensity_image = np.asarray(intensity_image)
    label_image = np.asarray(label_image)

    if intensity_image.ndim != 2 or label_image.ndim != 2:
        raise ValueError("intensity_image and label_image must be 2-D arrays")
    if intensity_image.shape != label_image.shape:
        raise ValueError(
            f"Shape mismatch: intensity {intensity_image.shape} vs labels {label_image.shape}"
        )
    if not np.issubdtype(label_image.dtype, np.integer):
        raise ValueError(f"label_image must hold integers, got {label_image.dtype}")
    if label_image.size and label_image.min() < 0:
        raise ValueError("label_image must not contain negative labels")

    store = store if store is not None else RoiStore()

    for index, bbox in enumerate(ndimage.find_objects(label_image)):
        if bbox is None:
            continue
        label = index + 1

        in_roi = label_image[bbox] == label
        pixels = np.where(in_roi, intensity_image[bbox], 0)
        foreground = pixels[pixels != 0]

        record = store.add(label, pixels, aux_area=float(np.count_nonzero(in_roi)))
        if foreground.size == 0:
            logger.warning("ROI %d has no non-zero intensity; flagged as bad data", label)
            record.bad_data = True
            continue

        record.aux_min = float(foreground.min())
        record.aux_max = float(foreground.max())

    logger.info("Loaded %d ROIs", len(store))
    return store
