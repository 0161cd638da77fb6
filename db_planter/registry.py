"""
Registry of generated classes.

Three mappings are kept:

* table name -> model descriptor
* table name without its definition suffix -> model descriptor
* plural of the (suffix-stripped) table name -> manager descriptor

Entries are only added through ``register_model`` / ``register_manager``.
A name that is already taken by a different descriptor is overwritten
(last write wins); the collision is logged and recorded in ``collisions``.

Bootstrap fills a staging registry and then publishes it in one step, so
readers see either the previous population or the complete new one.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, NamedTuple, Optional

from .constants import RegistryMaps
from .descriptors import ClassDescriptor, ManagerDescriptor, ModelDescriptor
from .naming import ConventionManager
from .tracing import trace


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Collision:
    """A registry key that was overwritten by a different descriptor."""

    mapping: str
    key: str
    previous: ClassDescriptor
    replacement: ClassDescriptor


class _Maps(NamedTuple):
    tables: Dict[str, ModelDescriptor]
    def_prefixes: Dict[str, ModelDescriptor]
    plurals: Dict[str, ManagerDescriptor]


def _empty_maps() -> _Maps:
    return _Maps({}, {}, {})


class Registry:
    """Maps table names, definition prefixes and plurals to generated classes."""

    def __init__(self, convention: Optional[ConventionManager] = None):
        self.convention = convention or ConventionManager()
        self.collisions: List[Collision] = []
        self._maps = _empty_maps()
        self._write_lock = threading.RLock()

    def __repr__(self) -> str:
        maps = self._maps
        return (
            f"<Registry tables={len(maps.tables)} def_prefixes={len(maps.def_prefixes)} "
            f"plurals={len(maps.plurals)}>"
        )

    def __len__(self) -> int:
        maps = self._maps
        return len(maps.tables) + len(maps.def_prefixes) + len(maps.plurals)

    def __contains__(self, name: str) -> bool:
        return self.find_class(name) is not None

    # --- Population ---

    def _insert(self, mapping_name: str, mapping: Dict[str, ClassDescriptor], key: str, descriptor: ClassDescriptor) -> None:
        if not key:
            raise ValueError(f"Refusing to register {descriptor!r} under an empty {mapping_name} key")
        previous = mapping.get(key)
        if previous is not None and previous is not descriptor:
            logger.warning(
                f"Replacing {key} ({previous.class_name}) with {descriptor.class_name}"
            )
            self.collisions.append(Collision(mapping_name, key, previous, descriptor))
        mapping[key] = descriptor

    def register_model(self, descriptor: ModelDescriptor) -> None:
        """Register a model under its table and, for definition tables, its base name."""
        table = descriptor.table
        base, is_def_variant = self.convention.normalize_definition_suffix(table)
        with self._write_lock:
            trace(f"Made object class {descriptor.class_name}")
            self._insert(RegistryMaps.TABLE, self._maps.tables, table, descriptor)
            if is_def_variant:
                self._insert(RegistryMaps.DEF_PREFIX, self._maps.def_prefixes, base, descriptor)

    def register_manager(
        self,
        descriptor: ManagerDescriptor,
        convention: Optional[ConventionManager] = None,
    ) -> None:
        """Register a manager under the plural of its object class's base table."""
        convention = convention or self.convention
        base, _ = convention.normalize_definition_suffix(descriptor.object_class.table)
        plural = convention.to_plural(base)
        with self._write_lock:
            trace(f"Made manager class {descriptor.class_name}")
            self._insert(RegistryMaps.PLURAL, self._maps.plurals, plural, descriptor)

    def register(self, descriptor: ClassDescriptor) -> None:
        if isinstance(descriptor, ModelDescriptor):
            self.register_model(descriptor)
        else:
            self.register_manager(descriptor)

    def staging(self) -> "Registry":
        """Return an empty registry sharing this registry's conventions."""
        return Registry(self.convention)

    def publish(self, staging: "Registry") -> None:
        """Replace this registry's contents and collision record with those of ``staging`` in one step."""
        with self._write_lock:
            self._maps = staging._maps
            self.convention = staging.convention
            self.collisions = list(staging.collisions)
        logger.debug(f"Published registry: {self!r}")

    # --- Lookups ---

    def find_class(self, name: str) -> Optional[ClassDescriptor]:
        """
        Find the descriptor for a table name, definition prefix or plural.

        Tables are consulted first, then definition prefixes, then plurals.
        Returns None when the name is unknown.
        """
        maps = self._maps
        return maps.tables.get(name) or maps.def_prefixes.get(name) or maps.plurals.get(name)

    def all_tables(self) -> FrozenSet[str]:
        """Every table name and definition prefix."""
        maps = self._maps
        return frozenset(maps.tables) | frozenset(maps.def_prefixes)

    def all_plurals(self) -> FrozenSet[str]:
        return frozenset(self._maps.plurals)

    def models(self) -> List[ModelDescriptor]:
        return list(self._maps.tables.values())

    def managers(self) -> List[ManagerDescriptor]:
        return list(self._maps.plurals.values())
