"""
Database schema introspection through Django's connection layer.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

import django
from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, connections

from .exceptions import SchemaIntrospectionError


logger = logging.getLogger(__name__)


# --- Data Structures for Introspection Results ---
@dataclass(frozen=True)
class ForeignKeyInfo:
    """A single-column foreign key."""
    column: str
    target_table: str
    target_column: str


@dataclass
class TableInfo:
    """Holds what the schema loader needs to know about a single table."""
    name: str
    columns: List[str] = field(default_factory=list)
    primary_key_columns: List[str] = field(default_factory=list)
    unique_key_groups: List[List[str]] = field(default_factory=list)
    foreign_keys: List[ForeignKeyInfo] = field(default_factory=list)


# --- Django Setup Helper ---
def setup_django(db_settings: Dict[str, Any], secret_key: str = "db-planter") -> None:
    """Configures minimal Django settings and runs django.setup()."""
    if settings.configured:
        logger.debug("Django setup already performed.")
        return

    logger.info("Configuring Django settings for introspection...")
    plain_db_settings: Dict[str, Dict[str, Any]] = {}
    for alias, db_model in db_settings.items():
        if hasattr(db_model, "model_dump"):
            plain_db_settings[alias] = db_model.model_dump(exclude_none=True)
        elif isinstance(db_model, dict):
            plain_db_settings[alias] = db_model
        else:
            raise TypeError(f"Invalid database settings type for alias '{alias}'.")
    logger.debug(f"Using DB settings for Django: {list(plain_db_settings)}")

    settings.configure(
        SECRET_KEY=secret_key,
        DATABASES=plain_db_settings,
        TIME_ZONE="UTC",
        USE_TZ=True,
        DEFAULT_AUTO_FIELD="django.db.models.BigAutoField",
    )
    django.setup()
    logger.info("Django setup complete.")


def _primary_key_columns(introspector, cursor, table_name: str, constraints: Dict[str, Dict[str, Any]]) -> List[str]:
    pk_constraint = next((c for c in constraints.values() if c.get("primary_key")), None)
    if pk_constraint and pk_constraint.get("columns"):
        return list(pk_constraint["columns"])

    # Some backends do not report the primary key among the constraints
    if hasattr(introspector, "get_primary_key_columns"):
        return list(introspector.get_primary_key_columns(cursor, table_name) or [])
    single = introspector.get_primary_key_column(cursor, table_name)
    return [single] if single else []


def _unique_key_groups(constraints: Dict[str, Dict[str, Any]], pk_columns: List[str]) -> List[List[str]]:
    groups: List[List[str]] = []
    # Sorted by constraint name so the declared order is stable across runs
    for name in sorted(constraints):
        c_data = constraints[name]
        columns = list(c_data.get("columns") or [])
        if not c_data.get("unique") or c_data.get("primary_key") or not columns:
            continue
        if columns == pk_columns or columns in groups:
            continue
        groups.append(columns)
    return groups


def _foreign_keys(relations: Dict[str, Tuple[str, str]], constraints: Dict[str, Dict[str, Any]]) -> List[ForeignKeyInfo]:
    fk_column_map: Dict[str, Tuple[str, str]] = {}
    for fk_col, (target_col, target_table) in relations.items():
        fk_column_map[fk_col] = (target_table, target_col)
    for c_data in constraints.values():
        fk_cols = c_data.get("columns") or []
        target = c_data.get("foreign_key")
        # Only single column foreign keys are followed
        if isinstance(target, tuple) and len(fk_cols) == 1:
            fk_column_map.setdefault(fk_cols[0], target)
    return [
        ForeignKeyInfo(column, target_table, target_col)
        for column, (target_table, target_col) in sorted(fk_column_map.items())
    ]


# --- Main Introspection Function ---
def introspect_schema(
    db_alias: str = DEFAULT_DB_ALIAS,
    include_tables: Optional[List[str]] = None,
    exclude_tables: Optional[List[str]] = None,
) -> List[TableInfo]:
    """Introspects the tables of a database through Django's connection.introspection."""
    if not settings.configured:
        raise SchemaIntrospectionError(
            "Django has not been set up. Call setup_django() first.", db_alias=db_alias
        )

    logger.info(f"Starting schema introspection for alias '{db_alias}'...")
    try:
        conn = connections[db_alias]
        introspector = conn.introspection
    except Exception as e:
        raise SchemaIntrospectionError(
            f"Could not get Django connection for alias '{db_alias}': {e}", db_alias=db_alias
        ) from e

    include_set: Optional[Set[str]] = set(include_tables) if include_tables else None
    exclude_set: Set[str] = set(exclude_tables) if exclude_tables else set()
    all_tables_info: List[TableInfo] = []

    with conn.cursor() as cursor:
        tables_to_process = []
        for item in introspector.get_table_list(cursor):
            table_name = getattr(item, "name", None)
            if not table_name:
                continue
            if getattr(item, "type", "t") != "t":
                logger.debug(f"Skipping view '{table_name}'.")
                continue
            if table_name in exclude_set:
                logger.info(f"Excluding table: {table_name}")
                continue
            if include_set is not None and table_name not in include_set:
                logger.debug(f"Skipping table '{table_name}' (not in include list).")
                continue
            tables_to_process.append(table_name)

        for table_name in tables_to_process:
            try:
                description = introspector.get_table_description(cursor, table_name)
                constraints = introspector.get_constraints(cursor, table_name)
                try:
                    relations = introspector.get_relations(cursor, table_name)
                except NotImplementedError:
                    logger.warning(f"Backend {conn.vendor} does not support get_relations.")
                    relations = {}
                pk_columns = _primary_key_columns(introspector, cursor, table_name, constraints)
            except Exception as e:
                raise SchemaIntrospectionError(
                    f"Could not introspect table '{table_name}': {e}",
                    table=table_name,
                    db_alias=db_alias,
                ) from e

            table_info = TableInfo(
                name=table_name,
                columns=[col.name for col in description],
                primary_key_columns=pk_columns,
                unique_key_groups=_unique_key_groups(constraints, pk_columns),
                foreign_keys=_foreign_keys(relations, constraints),
            )
            logger.debug(f"Introspected {table_info}")
            all_tables_info.append(table_info)

    logger.info(f"Introspection complete. Processed {len(all_tables_info)} tables.")
    return all_tables_info
