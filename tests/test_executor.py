# tests/test_executor.py
import numpy as np
import pytest

from pyroifeat.engine.base_feature_method import BaseFeatureMethod
from pyroifeat.engine.extractors.intensity_features_method import IntensityFeatureMethod
from pyroifeat.engine.extractors.neighbourhood_gray_tone_difference_matrix_features_method import (
    NeighbourhoodGrayToneDifferenceMatrixFeatureMethod,
)
from pyroifeat.engine.feature_manager import FeatureManager, ManagerConfig
from pyroifeat.engine.roi_store import RoiStore
from pyroifeat.features.feature_names import FeatureId

METHODS = [NeighbourhoodGrayToneDifferenceMatrixFeatureMethod, IntensityFeatureMethod]

GUARD_STORE = {}


class FailsOnSeven(BaseFeatureMethod, register=False):
    PROVIDES = {FeatureId.PERIMETER}

    def calculate(self, record):
        if record.label == 7:
            raise ZeroDivisionError("label seven")
        self.value = float(record.label)

    def save_value(self, feature_values):
        feature_values[FeatureId.PERIMETER] = [self.value]


class ChecksGuard(BaseFeatureMethod, register=False):
    PROVIDES = {FeatureId.AREA_PIXELS_COUNT}

    def calculate(self, record):
        self.locked = GUARD_STORE["store"]._guards[record.label].locked()

    def save_value(self, feature_values):
        feature_values[FeatureId.AREA_PIXELS_COUNT] = [1.0 if self.locked else 0.0]


def _snapshot(store):
    return {
        label: {fid: np.asarray(vals, dtype=np.float64).tobytes() for fid, vals in
                store.get(label).feature_values.items()}
        for label in store.labels()
    }


def _copy_store(source):
    store = RoiStore()
    for label in source.labels():
        store.add(label, source.get(label).pixels.array)
    return store


def test_results_identical_for_any_worker_count(random_store):
    n_labels = len(random_store)
    snapshots = []

    for workers, batch_size in [(1, None), (4, None), (n_labels, None), (3, 1), (2, 7)]:
        store = _copy_store(random_store)
        FeatureManager(METHODS, ManagerConfig(max_workers=workers, batch_size=batch_size)).run(store)
        snapshots.append(_snapshot(store))

    assert all(s == snapshots[0] for s in snapshots[1:])
    assert len(snapshots[0]) == n_labels


def test_flat_rois_get_sentinel_ngtdm_values(random_store):
    FeatureManager(METHODS, ManagerConfig(max_workers=4)).run(random_store)

    for label in (10, 20, 30, 40):
        values = random_store.get(label).feature_values
        assert values[FeatureId.NGTDM_COARSENESS] == [0.0]
        assert values[FeatureId.NGTDM_STRENGTH] == [0.0]
        assert values[FeatureId.MIN] == values[FeatureId.MAX] == [7.0]


def test_bad_data_labels_are_skipped(random_store):
    random_store.get(3).bad_data = True

    summary = FeatureManager(METHODS, ManagerConfig(max_workers=4)).run(random_store)

    assert random_store.get(3).feature_values == {}
    assert FeatureId.NGTDM_BUSYNESS in random_store.get(4).feature_values
    assert summary["failures"] == []


def test_one_failing_label_does_not_affect_siblings():
    store = RoiStore()
    for label in range(1, 13):
        store.add(label, [[label]])

    manager = FeatureManager([FailsOnSeven], ManagerConfig(max_workers=3, batch_size=4))
    summary = manager.run(store)

    assert [(f.method, f.label) for f in summary["failures"]] == [("FailsOnSeven", 7)]
    assert FeatureId.PERIMETER not in store.get(7).feature_values
    for label in set(range(1, 13)) - {7}:
        assert store.get(label).feature_values[FeatureId.PERIMETER] == [float(label)]


def test_calculation_runs_under_label_guard():
    store = RoiStore()
    for label in range(1, 9):
        store.add(label, [[label]])
    GUARD_STORE["store"] = store

    FeatureManager([ChecksGuard], ManagerConfig(max_workers=4)).run(store)

    assert all(store.get(l).feature_values[FeatureId.AREA_PIXELS_COUNT] == [1.0] for l in store.labels())


def test_run_seals_store():
    store = RoiStore()
    store.add(1, [[1, 2]])
    FeatureManager([IntensityFeatureMethod]).run(store)
    assert store.sealed


@pytest.mark.parametrize("labels,workers,batch_size,expected", [
    ([1, 2, 3, 4, 5], 2, None, [[1, 2, 3], [4, 5]]),
    ([1, 2, 3, 4, 5], 2, 2, [[1, 2], [3, 4], [5]]),
    ([], 4, None, []),
])
def test_partition_is_contiguous(labels, workers, batch_size, expected):
    manager = FeatureManager([IntensityFeatureMethod], ManagerConfig(batch_size=batch_size))
    assert manager._partition(labels, workers) == expected


def test_probability_mode_reaches_methods(example_pixels):
    results = {}
    for mode in ("LEGACY_UNIFORM", "EMPIRICAL"):
        store = RoiStore()
        store.add(1, example_pixels)
        FeatureManager(METHODS, ManagerConfig(probability_mode=mode)).run(store)
        results[mode] = store.get(1).feature_values[FeatureId.NGTDM_COARSENESS][0]

    assert results["LEGACY_UNIFORM"] == pytest.approx(135 / 376)
    # P = [8/9, 1/9]
    assert results["EMPIRICAL"] == pytest.approx(1 / (8 / 9 * 128 / 15 + 1 / 9 * 4))
