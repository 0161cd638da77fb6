"""
Schema loaders produce the classes that the registry keeps track of.

A loader is handed a LoaderSettings bag and returns an ordered list of
class descriptors, already classified as models or managers. The bundled
DjangoSchemaLoader introspects the database through Django and builds
Soil / Gardener subclasses, one model and one manager per table.
"""

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from django.utils.module_loading import import_string

from .config import DatabaseSettings, PlanterConfig
from .constants import LoaderDefaults
from .descriptors import ClassDescriptor, ManagerDescriptor, ModelDescriptor
from .exceptions import ConfigurationError
from .introspection import TableInfo, introspect_schema, setup_django
from .materialize import import_materialized, write_modules
from .naming import ConventionManager
from .soil import Gardener, Soil


logger = logging.getLogger(__name__)


@dataclass
class LoaderSettings:
    """Configuration bag handed to a schema loader."""

    class_prefix: str
    convention: ConventionManager
    db_alias: str = LoaderDefaults.DB_ALIAS
    base_class: type = Soil
    manager_base_class: type = Gardener
    output_dir: Optional[Path] = None
    include_tables: Optional[List[str]] = None
    exclude_tables: Optional[List[str]] = None
    autolib_namespace: str = LoaderDefaults.AUTOLIB_NAMESPACE

    @classmethod
    def from_config(
        cls,
        config: PlanterConfig,
        convention: ConventionManager,
        output_dir: Union[str, Path, None] = None,
        autolib_namespace: str = LoaderDefaults.AUTOLIB_NAMESPACE,
    ) -> "LoaderSettings":
        params = config.loader_params
        base_class = _resolve_class(params.base_class or LoaderDefaults.BASE_CLASS, Soil)
        manager_base_class = _resolve_class(
            params.manager_base_class or LoaderDefaults.MANAGER_BASE_CLASS, Gardener
        )
        return cls(
            class_prefix=params.class_prefix,
            convention=convention,
            db_alias=params.db_alias,
            base_class=base_class,
            manager_base_class=manager_base_class,
            output_dir=Path(output_dir) if output_dir else None,
            include_tables=params.include_tables,
            exclude_tables=params.exclude_tables,
            autolib_namespace=autolib_namespace,
        )


def _resolve_class(dotted_path: str, required_base: type) -> type:
    try:
        cls = import_string(dotted_path)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import base class {dotted_path}: {e}") from e
    if not isinstance(cls, type) or not issubclass(cls, required_base):
        raise ConfigurationError(f"{dotted_path} must be a subclass of {required_base.__name__}")
    return cls


class SchemaLoader(ABC):
    """Produces classified class descriptors for a database schema."""

    @abstractmethod
    def make_classes(self, settings: LoaderSettings) -> List[ClassDescriptor]:
        """Generate classes in memory from the live schema."""

    @abstractmethod
    def make_modules(self, settings: LoaderSettings) -> List[ClassDescriptor]:
        """Generate classes from the live schema and write them to ``settings.output_dir``."""

    @abstractmethod
    def load_cached(self, cache_dir: Path, settings: LoaderSettings) -> List[ClassDescriptor]:
        """Load classes from a previously materialized hierarchy."""


class DjangoSchemaLoader(SchemaLoader):
    """Schema loader backed by Django's database introspection."""

    def __init__(self, databases: Optional[Dict[str, Union[DatabaseSettings, dict]]] = None):
        self.databases = databases

    def introspect(self, settings: LoaderSettings) -> List[TableInfo]:
        if self.databases:
            setup_django(self.databases)
        return introspect_schema(
            db_alias=settings.db_alias,
            include_tables=settings.include_tables,
            exclude_tables=settings.exclude_tables,
        )

    def make_classes(self, settings: LoaderSettings) -> List[ClassDescriptor]:
        return self.build_descriptors(self.introspect(settings), settings)

    def make_modules(self, settings: LoaderSettings) -> List[ClassDescriptor]:
        if settings.output_dir is None:
            raise ConfigurationError("make_modules needs an output directory")
        descriptors = self.make_classes(settings)
        write_modules(descriptors, settings.output_dir, settings.class_prefix)
        return descriptors

    def build_descriptors(self, tables: Sequence[TableInfo], settings: LoaderSettings) -> List[ClassDescriptor]:
        """Build a model and a manager class for every table."""
        convention = settings.convention
        referenced_by: Dict[str, List[tuple]] = defaultdict(list)
        for table in tables:
            for fk in table.foreign_keys:
                referenced_by[fk.target_table].append((table.name, fk.column, fk.target_column))

        models: List[ModelDescriptor] = []
        for table in tables:
            if not table.primary_key_columns:
                logger.warning(f"Table {table.name} has no primary key")
            class_name = convention.derive_class_name(table.name, settings.class_prefix)
            short_name = class_name.rsplit(".", 1)[-1]
            model_class = type(short_name, (settings.base_class,), {
                "__module__": f"{settings.class_prefix}.{convention.module_name_for(short_name)}",
                "table": table.name,
                "columns": tuple(table.columns),
                "primary_key_columns": tuple(table.primary_key_columns),
                "unique_key_groups": tuple(tuple(group) for group in table.unique_key_groups),
                "foreign_keys": tuple(
                    (fk.column, fk.target_table, fk.target_column) for fk in table.foreign_keys
                ),
                "referenced_by": tuple(referenced_by.get(table.name, ())),
                "db_alias": settings.db_alias,
            })
            models.append(ModelDescriptor(class_name, model_class))

        managers: List[ManagerDescriptor] = []
        for model in models:
            manager_name = convention.manager_class_name(model.model_class.__name__)
            manager_class = type(manager_name, (settings.manager_base_class,), {
                "__module__": f"{settings.class_prefix}.{convention.module_name_for(manager_name)}",
                "object_class": model.model_class,
            })
            managers.append(
                ManagerDescriptor(f"{settings.class_prefix}.{manager_name}", manager_class, model)
            )

        logger.info(f"Made {len(models)} object classes and {len(managers)} manager classes")
        return [*models, *managers]

    def load_cached(self, cache_dir: Path, settings: LoaderSettings) -> List[ClassDescriptor]:
        modules = import_materialized(cache_dir, settings.class_prefix, settings.autolib_namespace)
        model_classes = []
        manager_classes = []
        for module in modules:
            for value in vars(module).values():
                if not isinstance(value, type) or value.__module__ != module.__name__:
                    continue
                if issubclass(value, settings.manager_base_class):
                    manager_classes.append(value)
                elif issubclass(value, settings.base_class):
                    model_classes.append(value)

        models = {
            cls: ModelDescriptor(f"{settings.class_prefix}.{cls.__name__}", cls) for cls in model_classes
        }
        descriptors: List[ClassDescriptor] = list(models.values())
        for cls in manager_classes:
            object_class = models.get(cls.object_class)
            if object_class is None:
                logger.warning(f"Skipping {cls.__name__}: its object class was not materialized")
                continue
            descriptors.append(ManagerDescriptor(f"{settings.class_prefix}.{cls.__name__}", cls, object_class))
        logger.info(f"Loaded {len(descriptors)} classes from {cache_dir}")
        return descriptors
