# -*- coding: utf-8 -*-
# engine/method_registry.py

from __future__ import annotations

import importlib
import inspect
import logging
import pkgutil
from typing import Dict, Iterable, List, Optional, Type

from pyroifeat.engine.base_feature_method import BaseFeatureMethod

logger = logging.getLogger("Dev_logger")

BUILTIN_PACKAGE = "pyroifeat.engine.extractors"


def _import_all_methods(package_name: str = BUILTIN_PACKAGE) -> List[Type[BaseFeatureMethod]]:
    """Import every module of the extractors package and return the methods defined there."""
    pkg = importlib.import_module(package_name)
    found: List[Type[BaseFeatureMethod]] = []
    for _, module_name, is_pkg in pkgutil.iter_modules(pkg.__path__, package_name + "."):
        if is_pkg:
            continue
        module = importlib.import_module(module_name)
        for _, obj in inspect.getmembers(module, inspect.isclass):
            if (issubclass(obj, BaseFeatureMethod) and obj is not BaseFeatureMethod
                    and obj.__module__ == module.__name__ and obj._register):
                found.append(obj)
    return found


class MethodRegistry:
    """
    Named feature methods available to one extraction context.

    Methods are keyed by class name and, when set, by their ``NAME`` alias.
    Each registry is independent: registering into one never shows up in another.
    """

    def __init__(self, methods: Iterable[Type[BaseFeatureMethod]] = ()) -> None:
        self._methods: Dict[str, Type[BaseFeatureMethod]] = {}
        self._enabled_order: Optional[List[str]] = None
        for method_cls in methods:
            self.register(method_cls)

    @classmethod
    def builtin(cls) -> "MethodRegistry":
        """A fresh registry holding every method shipped in the extractors package."""
        return cls(_import_all_methods())

    def copy(self) -> "MethodRegistry":
        return MethodRegistry(self.methods())

    # -------- membership --------

    def register(self, method_cls: Type[BaseFeatureMethod]) -> Type[BaseFeatureMethod]:
        self._methods[method_cls.__name__] = method_cls
        alias = method_cls.NAME
        if isinstance(alias, str) and alias and alias not in self._methods:
            self._methods[alias] = method_cls
        return method_cls

    def unregister(self, name: str) -> None:
        """Remove a method by class name or alias, together with its other key."""
        method_cls = self._methods.get(name)
        if method_cls is None:
            raise KeyError(f"No feature method registered as '{name}'")
        for key in [k for k, v in self._methods.items() if v is method_cls]:
            del self._methods[key]
        if self._enabled_order is not None:
            self._enabled_order = [n for n in self._enabled_order if n != method_cls.__name__]

    def __contains__(self, name: str) -> bool:
        return name in self._methods

    def __len__(self) -> int:
        return len(self.methods())

    def methods(self) -> List[Type[BaseFeatureMethod]]:
        # Aliases point at an already listed class; report each class once
        unique: Dict[str, Type[BaseFeatureMethod]] = {}
        for reg_cls in self._methods.values():
            unique.setdefault(reg_cls.__name__, reg_cls)
        return list(unique.values())

    # -------- selection --------

    def enable_methods_from_list(self, names: Optional[List[str]]) -> None:
        """
        Enable methods honoring caller-provided order.
        If names is None -> enable all. If [] -> disable all.
        A name may be a class name, an alias or a case-insensitive prefix of either.
        """
        if names is None:
            self._enabled_order = None
            return

        enabled: List[str] = []
        seen = set()

        for name in names:
            if name in self._methods:
                reg_cls = self._methods[name]
                if reg_cls.__name__ not in seen:
                    enabled.append(reg_cls.__name__)
                    seen.add(reg_cls.__name__)
                continue

            matched = False
            name_lower = name.lower()
            for reg_name, reg_cls in self._methods.items():
                if not reg_name.lower().startswith(name_lower):
                    continue
                matched = True
                if reg_cls.__name__ not in seen:
                    enabled.append(reg_cls.__name__)
                    seen.add(reg_cls.__name__)

            if not matched:
                logger.warning("No feature method matches '%s'; it is ignored", name)

        self._enabled_order = enabled

    def get_enabled_methods(self) -> Dict[str, Type[BaseFeatureMethod]]:
        unique = {m.__name__: m for m in self.methods()}
        if self._enabled_order is None:
            return unique
        return {n: unique[n] for n in self._enabled_order if n in unique}
