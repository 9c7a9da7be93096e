# tests/test_log_record.py
import logging

import pytest

from pyroifeat.engine.base_feature_method import BaseFeatureMethod
from pyroifeat.engine.feature_manager import FeatureManager, ManagerConfig
from pyroifeat.engine.roi_store import RoiStore
from pyroifeat.features.feature_names import FeatureId
from pyroifeat.utils.log_record import RoiContextFilter, initialize_logging, roi_log_extra


class Boom(BaseFeatureMethod, register=False):
    PROVIDES = {FeatureId.PERIMETER}

    def calculate(self, record):
        if record.label == 2:
            raise ValueError("bad pixels")
        self.value = 1.0

    def save_value(self, feature_values):
        feature_values[FeatureId.PERIMETER] = [self.value]


@pytest.fixture(autouse=True)
def _restore_logger():
    yield
    dev_logger = logging.getLogger("Dev_logger")
    dev_logger.handlers.clear()
    dev_logger.disabled = False


def _record(**extra):
    record = logging.LogRecord("Dev_logger", logging.ERROR, __file__, 1, "msg", None, None)
    record.__dict__.update(extra)
    return record


def test_context_filter_renders_method_and_label():
    record = _record(**roi_log_extra("NGTDMMethod", 12))
    assert RoiContextFilter().filter(record)
    assert record.roi_context == "[NGTDMMethod ROI 12] "

    plain = _record()
    RoiContextFilter().filter(plain)
    assert plain.roi_context == ""


def test_label_failures_are_tagged_with_method_and_roi():
    logger, memory = initialize_logging("all")
    store = RoiStore()
    for label in (1, 2, 3):
        store.add(label, [[label]])

    FeatureManager([Boom], ManagerConfig(max_workers=2)).run(store)

    failures = [line for line in memory.get_logs() if "Feature calculation failed" in line]
    assert len(failures) == 1
    assert "ERROR - [Boom ROI 2] Feature calculation failed: bad pixels" in failures[0]


def test_info_mode_keeps_info_records_only():
    logger, memory = initialize_logging("info")
    logger.info("wave started")
    logger.warning("slow wave")
    logger.debug("details")

    logs = memory.get_logs()
    assert len(logs) == 1
    assert logs[0].endswith("INFO - wave started")


def test_warning_mode_drops_info():
    logger, memory = initialize_logging("warning")
    logger.info("wave started")
    logger.error("broken", extra=roi_log_extra("IntensityMethod", 4))

    assert [line.split(" - ", 1)[1] for line in memory.get_logs()] == [
        "ERROR - [IntensityMethod ROI 4] broken"]


def test_none_mode_disables_logger():
    logger, memory = initialize_logging("none")

    assert memory is None
    assert logger.disabled
    assert logger.handlers == []


def test_unknown_mode_falls_back_to_all():
    logger, memory = initialize_logging("loud")

    assert not logger.disabled
    assert any("Unknown report mode 'loud'" in line for line in memory.get_logs())


def test_handlers_are_replaced_between_runs():
    initialize_logging("all")
    logger, _ = initialize_logging("all")

    assert len(logger.handlers) == 2
