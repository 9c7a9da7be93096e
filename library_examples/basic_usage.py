#!/usr/bin/env python3
"""
Basic usage library_examples for pyroifeat.

Builds a small synthetic label image, extracts every built-in feature for each
label and shows how to plug a custom feature method into the scheduler.
"""

import numpy as np

import pyroifeat
from pyroifeat.data.label_loader import load_rois
from pyroifeat.engine.base_feature_method import BaseFeatureMethod
from pyroifeat.engine.context import ExtractionContext
from pyroifeat.engine.extractors.morphological_features_method import AreaPerimeterFeatureMethod
from pyroifeat.engine.feature_manager import ManagerConfig
from pyroifeat.features.feature_names import FeatureId
from pyroifeat.processing.feature_table import collect_feature_table


def make_synthetic_images(seed: int = 0):
    rng = np.random.default_rng(seed)
    intensity = rng.integers(1, 32, size=(64, 64)).astype(np.uint16)
    labels = np.zeros((64, 64), dtype=np.int32)
    labels[4:20, 4:30] = 1
    labels[30:60, 10:18] = 2
    labels[40:50, 40:60] = 3
    return intensity, labels


def example_1_basic_processing():
    """Example 1: all built-in features with default settings."""
    print("=== Example 1: Basic Processing ===")
    intensity, labels = make_synthetic_images()

    result = pyroifeat.process_labels(intensity, labels, num_workers=4)

    if result['success']:
        print(f"✅ {result['labels_processed']} labels, {result['features_extracted']} feature columns "
              f"in {result['processing_time']:.2f} seconds")
        print(result['features'].round(4).to_string())
    else:
        print(f"❌ Processing failed: {result.get('error')}")


class CompactnessFeatureMethod(BaseFeatureMethod, register=False):
    """Example 2 helper: a custom method reading another method's output."""

    PROVIDES = {FeatureId.THICKNESS}
    DEPENDS_ON = {FeatureId.AREA_PIXELS_COUNT, FeatureId.PERIMETER}

    def calculate(self, record):
        area = self.dependency_value(record, FeatureId.AREA_PIXELS_COUNT)
        perimeter = self.dependency_value(record, FeatureId.PERIMETER)
        self.value = area / perimeter if perimeter else 0.0

    def save_value(self, feature_values):
        feature_values[FeatureId.THICKNESS] = [self.value]


def example_2_custom_method():
    """Example 2: schedule a custom method together with the one it depends on."""
    print("\n=== Example 2: Custom Feature Method ===")
    intensity, labels = make_synthetic_images()

    config = ManagerConfig(max_workers=2, batch_size=1)
    with ExtractionContext(config, methods=[CompactnessFeatureMethod, AreaPerimeterFeatureMethod]) as context:
        load_rois(intensity, labels, context.store)
        context.run()
        print("Waves:", [[d.name for d in wave] for wave in context.manager.waves])
        print(collect_feature_table(context.store).to_string())


if __name__ == "__main__":
    example_1_basic_processing()
    example_2_custom_method()
