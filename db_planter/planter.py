"""
The Planter ties a registry to its bootstrap controller and lookups.

In myapp/objects.py::

    from db_planter import Planter

    planter = Planter()
    planter.bootstrap(__name__, {
        "loader_params": {"class_prefix": "myapp_objects"},
        "nested_tables": {"foo": ["params"]},
    })

Elsewhere::

    from myapp.objects import planter

    cls = planter.find_class("my_table")
    obj = planter.find_object("my_table", "my_key1", "my_key2")
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Pattern, Union

from .bootstrap import BootstrapController, BootstrapResult, PlantingGuard
from .config import PlanterConfig, parse_config
from .descriptors import ClassDescriptor
from .finder import ObjectFinder
from .naming import ConventionManager
from .patterns import plural_matcher, table_matcher
from .registry import Registry
from .schema_loader import SchemaLoader


class Planter:
    """Keeps track of the classes generated for a database schema."""

    def __init__(
        self,
        loader: Optional[SchemaLoader] = None,
        guard: Optional[PlantingGuard] = None,
        convention: Optional[ConventionManager] = None,
    ):
        self.registry = Registry(convention)
        self.finder = ObjectFinder(self.registry)
        self.controller = BootstrapController(self.registry, loader=loader, guard=guard)

    def __repr__(self) -> str:
        return f"<Planter {self.registry!r}>"

    def bootstrap(self, target: str, config: Union[PlanterConfig, Dict[str, Any]]) -> BootstrapResult:
        if not isinstance(config, PlanterConfig):
            config = parse_config(config)
        return self.controller.bootstrap(target, config)

    def plant(self, target: str, output_dir: Union[str, Path]) -> None:
        """Write a class hierarchy to disk."""
        self.controller.plant(target, output_dir)

    def find_class(self, name: str) -> Optional[ClassDescriptor]:
        """
        Given the name of a table, return the descriptor of its model class.

        If the table name ends in the definition suffix the prefix may be
        used too, so ``find_class("esdt_def")`` and ``find_class("esdt")``
        are equivalent. Given the plural of a table name, return the
        descriptor of its manager class.
        """
        return self.registry.find_class(name)

    def find_object(self, table: str, *keys: Any) -> Optional[Any]:
        """Given a table and a primary or other unique key, find and load an object."""
        return self.finder.find(table, keys)

    def tables(self) -> List[str]:
        return sorted(self.registry.all_tables())

    def plurals(self) -> List[str]:
        return sorted(self.registry.all_plurals())

    def regex_for_tables(self) -> Pattern:
        return table_matcher(self.registry)

    def regex_for_plurals(self) -> Pattern:
        return plural_matcher(self.registry)
