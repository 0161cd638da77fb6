"""
Descriptors for generated classes.

The schema loader classifies every class it produces once, at generation
time, into a ModelDescriptor (one table's row shape and keys) or a
ManagerDescriptor (collection operations over a model's table). Nothing
downstream inspects the classes for capabilities.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class DescriptorKind(Enum):
    """Capability variant of a generated class."""

    MODEL = "model"
    MANAGER = "manager"


@dataclass(eq=False)
class ModelDescriptor:
    """
    A generated model class for a single table.

    ``model_class`` must accept column values as keyword arguments and
    provide ``load(speculative=..., with_=...)`` returning a truthy value
    when a row was found. Its ``table``, ``primary_key_columns`` and
    ``unique_key_groups`` class attributes describe the table.
    """

    class_name: str
    model_class: type
    nested_tables: Tuple[str, ...] = field(default=())

    kind = DescriptorKind.MODEL

    @property
    def table(self) -> str:
        return self.model_class.table

    @property
    def primary_key_columns(self) -> Tuple[str, ...]:
        return tuple(getattr(self.model_class, "primary_key_columns", ()) or ())

    @property
    def unique_key_groups(self) -> Tuple[Tuple[str, ...], ...]:
        groups = getattr(self.model_class, "unique_key_groups", ()) or ()
        return tuple(tuple(group) for group in groups)

    def key_column_groups(self) -> List[Tuple[str, ...]]:
        """Primary key columns first, then each unique key in declared order."""
        groups = []
        if self.primary_key_columns:
            groups.append(self.primary_key_columns)
        groups.extend(self.unique_key_groups)
        return groups

    def attach_nested(self, spec: Tuple[str, ...]) -> None:
        self.nested_tables = tuple(spec)

    def speculative_load(self, key_map: Dict[str, Any]) -> Optional[Any]:
        """Load the object matching ``key_map``; return None if there is no such row."""
        obj = self.model_class(**key_map)
        if obj.load(speculative=True, with_=self.nested_tables):
            return obj
        return None

    def __repr__(self) -> str:
        return f"<ModelDescriptor {self.class_name} table={self.table!r}>"


@dataclass(eq=False)
class ManagerDescriptor:
    """A generated manager class and the model descriptor it manages."""

    class_name: str
    manager_class: type
    object_class: ModelDescriptor

    kind = DescriptorKind.MANAGER

    @property
    def table(self) -> str:
        return self.object_class.table

    def __repr__(self) -> str:
        return f"<ManagerDescriptor {self.class_name} object_class={self.object_class.class_name}>"


ClassDescriptor = Union[ModelDescriptor, ManagerDescriptor]
