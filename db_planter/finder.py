"""
Object lookup by table name and key values.
"""

import logging
from typing import Any, Optional, Sequence

from .descriptors import ModelDescriptor
from .exceptions import ClassNotFoundError
from .registry import Registry


logger = logging.getLogger(__name__)


class ObjectFinder:
    """Finds and loads objects through the classes of a registry."""

    def __init__(self, registry: Registry):
        self.registry = registry

    def find(self, table: str, key_values: Sequence[Any]) -> Optional[Any]:
        """
        Given a table and the values of a primary or other unique key, load an object.

        The primary key is tried first, then each unique key in declared
        order; only key groups with as many columns as ``key_values`` are
        tried. Nested tables attached to the model are loaded along with it.

        Returns:
            The loaded object, or None if no key group fits or no row matches.

        Raises:
            ClassNotFoundError: if ``table`` is unknown to the registry.
        """
        descriptor = self.registry.find_class(table)
        if descriptor is None:
            raise ClassNotFoundError(f"could not find class for {table}", table=table)
        if not isinstance(descriptor, ModelDescriptor):
            return None

        key_values = list(key_values)
        for key_columns in descriptor.key_column_groups():
            if len(key_columns) != len(key_values):
                continue
            key_map = dict(zip(key_columns, key_values))
            logger.debug(f"Trying {descriptor.class_name} with {key_map}")
            obj = descriptor.speculative_load(key_map)
            if obj is not None:
                return obj

        return None
