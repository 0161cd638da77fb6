"""
Attachment of nested table specifications to model descriptors.

A nested table spec names the related tables that are loaded together with
an object of a base table. Specs are attached after the whole generation
pass has been registered, since they may refer to any table of the pass.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Tuple

from .descriptors import ModelDescriptor
from .exceptions import ConfigurationError
from .registry import Registry
from .tracing import trace


logger = logging.getLogger(__name__)

NestedTableSpec = Tuple[str, ...]


def normalize_spec(related_tables: Iterable[str]) -> NestedTableSpec:
    """Order-preserving, duplicate-free tuple of related table names."""
    return tuple(dict.fromkeys(related_tables))


class NestedRelationResolver:
    """Resolves base tables through a registry and records their nested specs."""

    def _resolve(self, table: str, registry: Registry) -> ModelDescriptor:
        found = registry.find_class(table)
        if found is None:
            raise ConfigurationError(f"could not find class for base table {table}", target=table)
        if not isinstance(found, ModelDescriptor):
            raise ConfigurationError(
                f"{table} names the manager {found.class_name}, nested tables need a model table",
                target=table,
            )
        return found

    def attach(self, table: str, spec: Iterable[str], registry: Registry) -> ModelDescriptor:
        """Attach ``spec`` to the model registered for ``table``."""
        descriptor = self._resolve(table, registry)
        descriptor.attach_nested(normalize_spec(spec))
        trace(f"Nested tables for {descriptor.class_name}: {', '.join(descriptor.nested_tables)}")
        return descriptor

    def attach_all(self, nested_tables: Mapping[str, Iterable[str]], registry: Registry) -> List[ModelDescriptor]:
        """
        Attach every spec in ``nested_tables``.

        All base tables are resolved before any descriptor is touched, so an
        unknown table leaves every descriptor unchanged.
        """
        resolved: Dict[str, ModelDescriptor] = {
            table: self._resolve(table, registry) for table in nested_tables
        }
        attached = []
        for table, descriptor in resolved.items():
            descriptor.attach_nested(normalize_spec(nested_tables[table]))
            trace(f"Nested tables for {descriptor.class_name}: {', '.join(descriptor.nested_tables)}")
            attached.append(descriptor)
        if attached:
            logger.debug(f"Attached nested tables to {len(attached)} classes")
        return attached
