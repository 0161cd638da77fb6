"""
db-planter: keep track of classes generated from a database schema.
"""

from .bootstrap import (
    BootstrapController,
    BootstrapResult,
    BootstrapState,
    PlantingGuard,
)
from .config import PlanterConfig, load_config, parse_config
from .descriptors import (
    ClassDescriptor,
    DescriptorKind,
    ManagerDescriptor,
    ModelDescriptor,
)
from .exceptions import (
    PlanterError,
    ConfigurationError,
    ClassNotFoundError,
    SchemaIntrospectionError,
    CodeGenerationError,
    ObjectNotFoundError,
)
from .finder import ObjectFinder
from .naming import ConventionManager
from .nested import NestedRelationResolver
from .patterns import build_matcher, plural_matcher, table_matcher
from .planter import Planter
from .registry import Collision, Registry
from .schema_loader import DjangoSchemaLoader, LoaderSettings, SchemaLoader
from .soil import Gardener, Soil

__version__ = "0.1.0"

__all__ = [
    # Entry point
    'Planter',

    # Bootstrap
    'BootstrapController',
    'BootstrapResult',
    'BootstrapState',
    'PlantingGuard',

    # Configuration
    'PlanterConfig',
    'load_config',
    'parse_config',

    # Registry and lookups
    'Registry',
    'Collision',
    'ObjectFinder',
    'NestedRelationResolver',
    'ConventionManager',
    'build_matcher',
    'table_matcher',
    'plural_matcher',

    # Descriptors
    'ClassDescriptor',
    'DescriptorKind',
    'ModelDescriptor',
    'ManagerDescriptor',

    # Schema loading
    'SchemaLoader',
    'DjangoSchemaLoader',
    'LoaderSettings',
    'Soil',
    'Gardener',

    # Errors
    'PlanterError',
    'ConfigurationError',
    'ClassNotFoundError',
    'SchemaIntrospectionError',
    'CodeGenerationError',
    'ObjectNotFoundError',
]
