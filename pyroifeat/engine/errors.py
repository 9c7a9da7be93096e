# -*- coding: utf-8 -*-
# engine/errors.py

from __future__ import annotations

from typing import Iterable, List


class FeatureConfigurationError(Exception):
    """Raised when the registered feature methods cannot be scheduled."""


class DependencyCycleError(FeatureConfigurationError):
    def __init__(self, methods: Iterable[str]) -> None:
        self.methods: List[str] = sorted(methods)
        super().__init__(f"Cyclic dependency among feature methods: {', '.join(self.methods)}")


class DuplicateProviderError(FeatureConfigurationError):
    def __init__(self, feature: str, methods: Iterable[str]) -> None:
        self.feature = feature
        self.methods: List[str] = sorted(methods)
        super().__init__(f"Feature '{feature}' is provided by more than one method: {', '.join(self.methods)}")


class UnresolvedDependencyError(FeatureConfigurationError):
    def __init__(self, method: str, features: Iterable[str]) -> None:
        self.method = method
        self.features: List[str] = sorted(features)
        super().__init__(f"Method '{method}' depends on features nobody provides: {', '.join(self.features)}")


class MissingLabelGuardError(KeyError):
    """A label was accessed for mutation without a provisioned guard."""

    def __init__(self, label: int) -> None:
        self.label = label
        super().__init__(f"No guard provisioned for label {label}")


class StoreSealedError(RuntimeError):
    """Records cannot be added once parallel execution has been prepared."""
