# -*- coding: utf-8 -*-
# engine/context.py

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Type

from pyroifeat.engine.base_feature_method import BaseFeatureMethod
from pyroifeat.engine.feature_manager import FeatureManager, ManagerConfig
from pyroifeat.engine.method_registry import MethodRegistry
from pyroifeat.engine.roi_store import RoiStore

logger = logging.getLogger("Dev_logger")


class ExtractionContext:
    """
    Owns the method registry, the ROI store and the feature manager for one extraction run.

    The registry starts as a copy of the built-in methods, so methods registered
    here are invisible to every other context. Use as a context manager; leaving
    the block releases every ROI record.
    """

    def __init__(
            self,
            config: Optional[ManagerConfig] = None,
            methods: Optional[List[Type[BaseFeatureMethod]]] = None,
            store: Optional[RoiStore] = None,
            registry: Optional[MethodRegistry] = None,
    ) -> None:
        self.config = config or ManagerConfig()
        self.store = store if store is not None else RoiStore()
        self.registry = registry.copy() if registry is not None else MethodRegistry.builtin()

        if methods is not None:
            self.manager = FeatureManager(methods, self.config)
        else:
            self.manager = FeatureManager.from_registry(self.config.enabled_methods, self.config, self.registry)

    def __enter__(self) -> "ExtractionContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        logger.debug("Releasing %d ROI records", len(self.store))
        self.store.clear()

    def run(self) -> Dict[str, Any]:
        return self.manager.run(self.store)
