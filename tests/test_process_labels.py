# tests/test_process_labels.py
import numpy as np
import pytest

import pyroifeat
from pyroifeat.data.label_loader import load_rois
from pyroifeat.engine.base_feature_method import BaseFeatureMethod
from pyroifeat.engine.context import ExtractionContext
from pyroifeat.engine.errors import DependencyCycleError, DuplicateProviderError
from pyroifeat.engine.feature_manager import ManagerConfig
from pyroifeat.engine.method_registry import MethodRegistry
from pyroifeat.engine.roi_store import RoiStore
from pyroifeat.features.feature_names import FeatureId, get_feature_names
from pyroifeat.processing.feature_table import collect_feature_table


@pytest.fixture
def images():
    intensity = np.zeros((8, 10), dtype=np.uint16)
    labels = np.zeros((8, 10), dtype=np.int32)

    # label 1: the hand-computed 3x3 example
    intensity[1:4, 1:4] = [[5, 5, 5], [5, 9, 5], [5, 5, 5]]
    labels[1:4, 1:4] = 1
    # label 2: flat intensity
    intensity[5:7, 1:5] = 4
    labels[5:7, 1:5] = 2
    # label 4: labeled but dark; label 3 is absent
    labels[1:3, 7:9] = 4
    return intensity, labels


class Ping(BaseFeatureMethod, register=False):
    PROVIDES = {FeatureId.MIN}
    DEPENDS_ON = {FeatureId.MAX}


class Pong(BaseFeatureMethod, register=False):
    PROVIDES = {FeatureId.MAX}
    DEPENDS_ON = {FeatureId.MIN}


class Pair(BaseFeatureMethod, register=False):
    PROVIDES = {FeatureId.THICKNESS}

    def calculate(self, record):
        pass

    def save_value(self, feature_values):
        feature_values[FeatureId.THICKNESS] = [1.0, 2.0]


def test_loader_crops_bounding_boxes(images):
    intensity, labels = images
    store = load_rois(intensity, labels)

    assert store.labels() == [1, 2, 4]
    roi = store.get(1)
    assert (roi.pixels.height, roi.pixels.width) == (3, 3)
    assert (roi.aux_min, roi.aux_max, roi.aux_area) == (5.0, 9.0, 9.0)
    assert store.get(2).pixels.array.shape == (2, 4)
    assert store.get(4).bad_data


def test_loader_masks_out_other_labels():
    intensity = np.array([[3, 8], [3, 8]])
    labels = np.array([[1, 1], [1, 2]])
    store = load_rois(intensity, labels)

    assert store.get(1).pixels.array.tolist() == [[3, 8], [3, 0]]
    assert store.get(2).pixels.array.tolist() == [[8]]


@pytest.mark.parametrize("intensity,labels", [
    (np.zeros((2, 2)), np.zeros((3, 3), dtype=int)),
    (np.zeros((2, 2)), np.zeros((2, 2), dtype=float)),
    (np.zeros(4), np.zeros(4, dtype=int)),
])
def test_loader_rejects_bad_input(intensity, labels):
    with pytest.raises(ValueError):
        load_rois(intensity, labels)


def test_feature_table_fills_sentinels_and_expands_vectors():
    store = RoiStore()
    store.add(1, [[1]])
    store.add(2, [[2]]).bad_data = True
    ExtractionContext(methods=[Pair], store=store).run()

    table = collect_feature_table(store, [FeatureId.THICKNESS, FeatureId.MIN])

    assert list(table.columns) == ["morph_thickness_0", "morph_thickness_1", "int_min"]
    assert table.loc[1].tolist() == [1.0, 2.0, 0.0]
    assert table.loc[2].tolist() == [0.0, 0.0, 0.0]


def test_context_releases_records_on_exit(images):
    intensity, labels = images
    with ExtractionContext(ManagerConfig(enabled_methods=["IntensityMethod"])) as context:
        load_rois(intensity, labels, context.store)
        context.run()
        assert context.store.get(1).feature_values[FeatureId.MAX] == [9.0]
    assert len(context.store) == 0


def test_process_labels_end_to_end(images):
    intensity, labels = images
    result = pyroifeat.process_labels(intensity, labels, num_workers=2, report="none")

    assert result["success"]
    table = result["features"]
    assert list(table.index) == [1, 2, 4]
    assert set(get_feature_names()) <= set(table.columns)

    assert table.loc[1, "ngtdm_coarseness"] == pytest.approx(135 / 376)
    assert table.loc[1, "ngtdm_strength"] == pytest.approx(10 / 141)
    # flat ROI: intensity features present, texture features at the sentinel
    assert table.loc[2, "int_max"] == 4.0
    assert table.loc[2, ["ngtdm_coarseness", "ngtdm_busyness", "ngtdm_contrast"]].tolist() == [0.0, 0.0, 0.0]
    # dark ROI contributes a row of sentinels
    assert (table.loc[4] == 0.0).all()


def test_process_labels_subset_and_logs(images):
    intensity, labels = images
    result = pyroifeat.process_labels(intensity, labels, methods=["NGTDM"], report="info")

    assert result["success"]
    assert list(result["features"].columns)[:4] == ["int_max", "int_mean", "int_min", "int_stddev"]
    assert "morph_perimeter" not in result["features"].columns
    assert any("Wave 0" in line for line in result["logs"])


def test_process_labels_reports_data_errors():
    result = pyroifeat.process_labels(np.zeros((2, 2)), np.zeros((3, 3), dtype=int), report="none")

    assert not result["success"]
    assert "Shape mismatch" in result["error"]


def test_process_labels_raises_on_cycle(monkeypatch, images):
    intensity, labels = images
    monkeypatch.setattr(
        "pyroifeat.engine.feature_manager.FeatureManager._with_providers",
        staticmethod(lambda selected, available: [Ping, Pong]),
    )
    with pytest.raises(DependencyCycleError):
        pyroifeat.process_labels(intensity, labels, report="none")


def test_user_subclass_does_not_leak_into_later_runs(images):
    intensity, labels = images
    assert pyroifeat.process_labels(intensity, labels, report="none")["success"]

    class UserMin(BaseFeatureMethod):
        PROVIDES = {FeatureId.MIN}

    del UserMin
    result = pyroifeat.process_labels(intensity, labels, report="none")

    assert result["success"]
    assert result["features"].loc[1, "int_min"] == 5.0


def test_context_registry_is_isolated():
    class UserMin(BaseFeatureMethod):
        PROVIDES = {FeatureId.MIN}

    registry = MethodRegistry.builtin()
    registry.register(UserMin)
    with pytest.raises(DuplicateProviderError):
        ExtractionContext(registry=registry)

    context = ExtractionContext()
    assert "UserMin" not in context.registry
    context.registry.register(UserMin)
    assert "UserMin" not in ExtractionContext().registry


def test_process_labels_warns_on_unknown_method(images):
    intensity, labels = images
    result = pyroifeat.process_labels(intensity, labels, methods=["Typo"], report="warning")

    assert result["success"]
    assert result["features_extracted"] == 0
    assert any("No feature method matches 'Typo'" in line for line in result["logs"])
