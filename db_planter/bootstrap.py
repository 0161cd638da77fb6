"""
Bootstrapping a registry from a database schema.

A bootstrap pass for a target (the dotted name of the module that owns the
registry) either reuses a class hierarchy previously materialized beside the
target module, or asks the schema loader to generate classes from the live
schema. ``plant`` forces the second path and writes the generated classes to
disk; it works by importing the target module, whose own bootstrap call
notices that the target is being planted.

Generating classes can lead back into a bootstrap of the same target (for
example when generated code imports the target module). Such a reentrant
call returns ``BootstrapResult.DEFERRED`` instead of starting a second pass.
"""

import importlib
import logging
import re
import sys
import threading
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Set, Union

from .config import PlanterConfig
from .constants import LoaderDefaults
from .descriptors import ClassDescriptor
from .exceptions import ConfigurationError
from .materialize import has_materialized_modules
from .nested import NestedRelationResolver
from .registry import Registry
from .schema_loader import DjangoSchemaLoader, LoaderSettings, SchemaLoader
from .tracing import trace


logger = logging.getLogger(__name__)


class BootstrapState(Enum):
    IDLE = "idle"
    PLANTING = "planting"
    POPULATING = "populating"
    READY = "ready"


class BootstrapResult(Enum):
    READY = "ready"
    DEFERRED = "deferred"


class PlantingGuard:
    """
    Per-target bootstrap bookkeeping.

    ``sow`` records that a target is being planted into a directory; the
    record is kept for the life of the guard unless the plant fails. ``enter`` marks a bootstrap
    pass for a target as in flight and refuses a second one until ``leave``
    is called at the end of the pass.
    """

    def __init__(self):
        self._sown: Dict[str, Path] = {}
        self._in_flight: Set[str] = set()
        self._lock = threading.Lock()

    def sow(self, target: str, output_dir: Union[str, Path]) -> None:
        with self._lock:
            self._sown[target] = Path(output_dir)

    def unsow(self, target: str) -> None:
        with self._lock:
            self._sown.pop(target, None)

    def output_dir_for(self, target: str) -> Optional[Path]:
        return self._sown.get(target)

    def is_planting(self, target: str) -> bool:
        return target in self._sown

    def enter(self, target: str) -> bool:
        with self._lock:
            if target in self._in_flight:
                return False
            self._in_flight.add(target)
            return True

    def leave(self, target: str) -> None:
        with self._lock:
            self._in_flight.discard(target)

    def in_flight(self, target: str) -> bool:
        return target in self._in_flight


# Shared by every controller in the process, so that ``plant`` called from
# one place is seen by the bootstrap call inside the planted module.
PLANTING_GUARD = PlantingGuard()


def default_cache_dir(target: str) -> Optional[Path]:
    """
    Directory a materialized hierarchy for ``target`` is expected in.

    ``myapp/objects.py`` -> ``myapp/objects_autolib``; for a package,
    ``myapp/objects/__init__.py`` -> ``myapp/objects/autolib``. None when
    the target module is not imported from a file.
    """
    module = sys.modules.get(target)
    module_file = getattr(module, "__file__", None)
    if not module_file:
        return None
    path = Path(module_file)
    if path.stem == "__init__":
        return path.parent / LoaderDefaults.AUTOLIB_SUFFIX.lstrip("_")
    return path.with_name(path.stem + LoaderDefaults.AUTOLIB_SUFFIX)


def autolib_namespace(target: str) -> str:
    """Package name the materialized hierarchy of ``target`` is imported under."""
    return re.sub(r"\W", "_", target) + LoaderDefaults.AUTOLIB_SUFFIX


class BootstrapController:
    """Drives a schema loader and publishes its classes into a registry."""

    def __init__(
        self,
        registry: Registry,
        loader: Optional[SchemaLoader] = None,
        resolver: Optional[NestedRelationResolver] = None,
        guard: Optional[PlantingGuard] = None,
    ):
        self.registry = registry
        self.loader = loader
        self.resolver = resolver or NestedRelationResolver()
        self.guard = guard or PLANTING_GUARD
        self._states: Dict[str, BootstrapState] = {}

    def state(self, target: str) -> BootstrapState:
        return self._states.get(target, BootstrapState.IDLE)

    def plant(self, target: str, output_dir: Union[str, Path]) -> None:
        """
        Write the class hierarchy of ``target`` to ``output_dir``.

        Raises:
            ConfigurationError: if ``target`` has already been imported.

        A failed plant leaves no planting record behind.
        """
        if target in sys.modules:
            raise ConfigurationError(f"Cannot plant {target} since it has already been loaded.", target=target)
        previous_state = self.state(target)
        self.guard.sow(target, output_dir)
        self._states[target] = BootstrapState.PLANTING
        trace(f"Planting {target} in {output_dir}")
        try:
            importlib.import_module(target)
        except Exception:
            self.guard.unsow(target)
            self._states[target] = previous_state
            raise

    def bootstrap(self, target: str, config: PlanterConfig) -> BootstrapResult:
        """
        Populate the registry with the classes for ``target``.

        Returns:
            READY once the registry is published, or DEFERRED when a pass
            for ``target`` is already in flight.

        Raises:
            ConfigurationError: when the loader makes no classes or a nested
                table spec names an unknown table. The published registry
                is left as it was.
        """
        if not self.guard.enter(target):
            trace(f"Bootstrap of {target} already in flight, deferring")
            logger.debug(f"Bootstrap of {target} already in flight, deferring")
            return BootstrapResult.DEFERRED

        previous_state = self.state(target)
        try:
            convention = config.convention_manager_params.build()
            descriptors = self._collect(target, config, convention)
            if not descriptors:
                raise ConfigurationError("did not make any classes", target=target)

            self._states[target] = BootstrapState.POPULATING
            staging = Registry(convention)
            for descriptor in descriptors:
                staging.register(descriptor)
            self.resolver.attach_all(config.nested_tables, staging)

            self.registry.publish(staging)
            self._states[target] = BootstrapState.READY
            logger.info(f"Registry ready for {target}: {len(descriptors)} classes")
            return BootstrapResult.READY
        except Exception:
            self._states[target] = previous_state
            raise
        finally:
            self.guard.leave(target)

    def _loader_for(self, config: PlanterConfig) -> SchemaLoader:
        return self.loader or DjangoSchemaLoader(config.databases)

    def _collect(self, target: str, config: PlanterConfig, convention) -> List[ClassDescriptor]:
        loader = self._loader_for(config)

        if self.guard.is_planting(target):
            output_dir = self.guard.output_dir_for(target)
            settings = LoaderSettings.from_config(config, convention, output_dir, autolib_namespace(target))
            logger.warning(f"Writing classes for {target} to {output_dir}")
            return loader.make_modules(settings)

        settings = LoaderSettings.from_config(config, convention, autolib_namespace=autolib_namespace(target))
        cache_dir = Path(config.cache_dir) if config.cache_dir else default_cache_dir(target)
        trace(f"Looking for materialized classes of {target} in {cache_dir}")
        if has_materialized_modules(cache_dir):
            return loader.load_cached(cache_dir, settings)

        if cache_dir is not None:
            logger.warning(
                f"No materialized classes found for {target} in {cache_dir}, try: "
                f"db-planter plant {target} {cache_dir}"
            )
        return loader.make_classes(settings)
