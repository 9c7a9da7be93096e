# -*- coding: utf-8 -*-
# engine/feature_manager.py

from __future__ import annotations

import inspect
import logging
import math
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set, Type

from pyroifeat.config.settings import AUTO_WORKERS_CAP, DEFAULT_PROBABILITY_MODE, MAX_WORKERS, MIN_WORKERS
from pyroifeat.engine.base_feature_method import BaseFeatureMethod, MethodDescriptor
from pyroifeat.engine.errors import (
    DependencyCycleError,
    DuplicateProviderError,
    MissingLabelGuardError,
    UnresolvedDependencyError,
)
from pyroifeat.engine.method_registry import MethodRegistry
from pyroifeat.engine.roi_store import RoiStore
from pyroifeat.features.feature_names import FeatureId
from pyroifeat.utils.log_record import roi_log_extra

logger = logging.getLogger("Dev_logger")


@dataclass
class ManagerConfig:
    max_workers: Optional[int] = None
    batch_size: Optional[int] = None
    probability_mode: str = DEFAULT_PROBABILITY_MODE
    enabled_methods: Optional[List[str]] = None
    method_params: Dict[str, Any] = field(default_factory=dict)
    log_level: Optional[int] = None


@dataclass(frozen=True)
class LabelFailure:
    method: str
    label: int
    error: str


class FeatureManager:
    """Orders registered feature methods by their dependencies and runs them over a ROI store."""

    @staticmethod
    def _filter_kwargs(callable_object, config: Dict[str, Any]) -> Dict[str, Any]:
        if not config:
            return {}
        try:
            params = inspect.signature(callable_object).parameters
            return {k: v for k, v in config.items() if k in params}
        except (ValueError, TypeError):
            return {}

    def __init__(
            self,
            methods: Iterable[Type[BaseFeatureMethod]],
            config: Optional[ManagerConfig] = None,
    ) -> None:
        self.config = config or ManagerConfig()
        if self.config.log_level is not None:
            logger.setLevel(self.config.log_level)

        self.descriptors: List[MethodDescriptor] = self._describe_all(methods)
        self._check_providers()

        # Scheduling errors surface here, before any ROI is touched
        self.waves: List[List[MethodDescriptor]] = self._build_waves()
        self.order: List[MethodDescriptor] = [d for wave in self.waves for d in wave]
        logger.debug("Execution order: %s", [d.name for d in self.order])

        self.last_perf: Dict[str, Dict[str, Any]] = {}
        self.failures: List[LabelFailure] = []

    @classmethod
    def from_registry(
            cls,
            names: Optional[List[str]] = None,
            config: Optional[ManagerConfig] = None,
            registry: Optional[MethodRegistry] = None,
    ) -> "FeatureManager":
        """Build a manager from a method registry, pulling in every required provider."""
        config = config or ManagerConfig()
        registry = registry if registry is not None else MethodRegistry.builtin()

        registry.enable_methods_from_list(names if names is not None else config.enabled_methods)
        selected = list(registry.get_enabled_methods().values())
        available = registry.methods()

        return cls(cls._with_providers(selected, available), config)

    # ---------- graph construction ----------

    @staticmethod
    def _describe_all(methods: Iterable[Type[BaseFeatureMethod]]) -> List[MethodDescriptor]:
        descriptors: List[MethodDescriptor] = []
        by_name: Dict[str, MethodDescriptor] = {}
        for method_cls in methods:
            desc = method_cls.describe()
            known = by_name.get(desc.name)
            if known is not None:
                if known.method_cls is not method_cls:
                    raise ValueError(f"Two different feature methods are named '{desc.name}'")
                continue
            by_name[desc.name] = desc
            descriptors.append(desc)
        return descriptors

    @staticmethod
    def _with_providers(
            selected: List[Type[BaseFeatureMethod]],
            available: List[Type[BaseFeatureMethod]],
    ) -> List[Type[BaseFeatureMethod]]:
        providers: Dict[FeatureId, List[Type[BaseFeatureMethod]]] = {}
        for method_cls in available:
            for fid in method_cls.PROVIDES:
                providers.setdefault(fid, []).append(method_cls)

        result = list(selected)
        pending = list(selected)
        while pending:
            method_cls = pending.pop()
            for fid in sorted(method_cls.DEPENDS_ON, key=lambda f: f.value):
                candidates = providers.get(fid, [])
                if len(candidates) > 1:
                    raise DuplicateProviderError(fid.value, [c.describe().name for c in candidates])
                if candidates and candidates[0] not in result:
                    result.append(candidates[0])
                    pending.append(candidates[0])
        return result

    def _check_providers(self) -> None:
        provided_by: Dict[FeatureId, List[str]] = {}
        for desc in self.descriptors:
            for fid in desc.provides:
                provided_by.setdefault(fid, []).append(desc.name)

        for fid, names in provided_by.items():
            if len(names) > 1:
                raise DuplicateProviderError(fid.value, names)

        for desc in self.descriptors:
            missing = desc.depends_on - set(provided_by)
            if missing:
                raise UnresolvedDependencyError(desc.name, [f.value for f in missing])

    def _dependency_map(self) -> Dict[str, Set[str]]:
        return {
            desc.name: {other.name for other in self.descriptors if desc.depends_on_method(other)}
            for desc in self.descriptors
        }

    @staticmethod
    def _cycle_members(remaining: Dict[str, Set[str]]) -> Set[str]:
        """Drop blocked methods that only sit downstream of a cycle."""
        members = set(remaining)
        changed = True
        while changed:
            changed = False
            for name in sorted(members):
                needed_by_other = any(name in remaining[o] for o in members if o != name)
                if not needed_by_other and name not in remaining[name]:
                    members.discard(name)
                    changed = True
        return members

    def _build_waves(self) -> List[List[MethodDescriptor]]:
        by_name = {d.name: d for d in self.descriptors}
        remaining = self._dependency_map()
        done: Set[str] = set()
        waves: List[List[MethodDescriptor]] = []

        while remaining:
            ready = sorted(name for name, deps in remaining.items() if deps <= done)
            if not ready:
                members = self._cycle_members(remaining)
                logger.error("Dependency cycle among feature methods: %s", sorted(members))
                raise DependencyCycleError(members)

            waves.append([by_name[name] for name in ready])
            done.update(ready)
            for name in ready:
                del remaining[name]

        return waves

    # ---------- execution ----------

    def _resolve_workers(self) -> int:
        requested = self.config.max_workers or min(AUTO_WORKERS_CAP, os.cpu_count() or 1)
        return max(MIN_WORKERS, min(MAX_WORKERS, int(requested)))

    def _partition(self, labels: List[int], max_workers: int) -> List[List[int]]:
        if not labels:
            return []
        batch_size = self.config.batch_size or math.ceil(len(labels) / max_workers)
        batch_size = max(1, int(batch_size))
        return [labels[start:start + batch_size] for start in range(0, len(labels), batch_size)]

    def _method_kwargs(self, desc: MethodDescriptor) -> Dict[str, Any]:
        params = {"probability_mode": self.config.probability_mode}
        params.update(self.config.method_params)
        return self._filter_kwargs(desc.method_cls.__init__, params)

    def _process_batch(
            self,
            desc: MethodDescriptor,
            labels: List[int],
            store: RoiStore,
            method_kwargs: Dict[str, Any],
    ) -> List[LabelFailure]:
        failures: List[LabelFailure] = []

        for label in labels:
            if store.get(label).has_bad_data():
                continue

            method = desc.method_cls(**method_kwargs)
            try:
                with store.guard(label) as record:
                    method.calculate(record)
                    method.save_value(record.feature_values)
            except MissingLabelGuardError:
                raise
            except Exception as exc:
                logger.error("Feature calculation failed: %s", exc, extra=roi_log_extra(desc.name, label))
                failures.append(LabelFailure(desc.name, label, str(exc)))

        return failures

    def run(self, store: RoiStore) -> Dict[str, Any]:
        """
        Run every method wave by wave over all labels of the store.

        Each method finishes on all labels before the next one starts, so a method
        can always read the final values of its prerequisites on the same record.
        """
        store.seal()
        labels = store.labels()
        max_workers = self._resolve_workers()
        self.failures = []
        self.last_perf = {}

        overall = BaseFeatureMethod._profile_snapshot()

        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            for wave_index, wave in enumerate(self.waves):
                logger.info("Wave %d: %s", wave_index, ", ".join(d.name for d in wave))

                for desc in wave:
                    prof = BaseFeatureMethod._profile_snapshot()
                    kwargs = self._method_kwargs(desc)

                    futures = [
                        pool.submit(self._process_batch, desc, batch, store, kwargs)
                        for batch in self._partition(labels, max_workers)
                    ]
                    for fut in futures:
                        self.failures.extend(fut.result())

                    self.last_perf[desc.name] = BaseFeatureMethod._profile_delta(prof)

        if self.failures:
            logger.warning("%d label computations failed", len(self.failures))

        return {
            "labels": len(labels),
            "methods": [d.name for d in self.order],
            "waves": [[d.name for d in wave] for wave in self.waves],
            "failures": list(self.failures),
            "perf": dict(self.last_perf),
            "overall_perf": BaseFeatureMethod._profile_delta(overall),
        }

    def provided_features(self) -> List[FeatureId]:
        return [fid for desc in self.order for fid in sorted(desc.provides, key=lambda f: f.value)]
