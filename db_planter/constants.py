"""
Centralized constants for db-planter.
"""

from typing import Set


# =============================================================================
# NAMING
# =============================================================================

class NamingDefaults:
    """Default naming-convention settings."""

    # Tables ending with this token are "definition" variants of a base entity.
    DEFINITION_SUFFIX = "_def"

    # Suffix appended to a model class name for its manager class.
    MANAGER_CLASS_SUFFIX = "Manager"


# =============================================================================
# LOADER
# =============================================================================

class LoaderDefaults:
    """Defaults handed to the schema loader."""

    DB_ALIAS = "default"
    BASE_CLASS = "db_planter.soil.Soil"
    MANAGER_BASE_CLASS = "db_planter.soil.Gardener"

    # Suffix of the default materialized cache directory, placed beside the
    # module that bootstraps the registry: myapp/objects.py -> myapp/objects_autolib
    AUTOLIB_SUFFIX = "_autolib"

    # Package name a cached hierarchy is imported under when no target names it.
    AUTOLIB_NAMESPACE = "db_planter_autolib"


class RegistryMaps:
    """Names of the three registry mappings, used in collision records."""

    TABLE = "table"
    DEF_PREFIX = "def_prefix"
    PLURAL = "plural"


# =============================================================================
# TRACING
# =============================================================================

TRACE_ENV_VAR = "DB_PLANTER_DEBUG"
TRACE_FILE_ENV_VAR = "DB_PLANTER_TRACE_FILE"
DEFAULT_TRACE_FILE = "/tmp/db_planter.log"


# =============================================================================
# CODE GENERATION
# =============================================================================

# Class attributes copied from a generated model class into its module.
MODEL_CLASS_ATTRIBUTES = [
    "table",
    "columns",
    "primary_key_columns",
    "unique_key_groups",
    "foreign_keys",
    "referenced_by",
    "db_alias",
]

GENERATED_MODULE_HEADER = "Generated by db-planter. Do not edit."

# Files in a cache directory that do not count as materialized modules.
IGNORED_CACHE_FILES: Set[str] = {"__init__.py"}
