"""
Base classes for generated model (Soil) and manager (Gardener) classes.

Generated classes only set class attributes describing their table; all
database access goes through the Django connection named by ``db_alias``.
"""

import logging
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Tuple

from django.db import connections

from .constants import LoaderDefaults
from .exceptions import ObjectNotFoundError


logger = logging.getLogger(__name__)


def select_rows(
    db_alias: str,
    table: str,
    filters: Dict[str, Any],
    columns: Optional[Iterable[str]] = None,
) -> List[Dict[str, Any]]:
    """Run ``SELECT columns FROM table WHERE col = value AND ...`` and return rows as dicts."""
    connection = connections[db_alias]
    qn = connection.ops.quote_name
    select = ", ".join(qn(col) for col in columns) if columns else "*"
    sql = f"SELECT {select} FROM {qn(table)}"
    params: List[Any] = []
    clauses = []
    for col, value in filters.items():
        if value is None:
            clauses.append(f"{qn(col)} IS NULL")
        else:
            clauses.append(f"{qn(col)} = %s")
            params.append(value)
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)

    logger.debug(f"{sql} {params}")
    with connection.cursor() as cursor:
        cursor.execute(sql, params)
        names = [d[0] for d in cursor.description]
        return [dict(zip(names, row)) for row in cursor.fetchall()]


def count_rows(db_alias: str, table: str, filters: Dict[str, Any]) -> int:
    connection = connections[db_alias]
    qn = connection.ops.quote_name
    sql = f"SELECT COUNT(*) FROM {qn(table)}"
    params: List[Any] = []
    if filters:
        sql += " WHERE " + " AND ".join(f"{qn(col)} = %s" for col in filters)
        params.extend(filters.values())
    with connection.cursor() as cursor:
        cursor.execute(sql, params)
        return cursor.fetchone()[0]


class Soil:
    """
    Base class for generated model classes.

    ``foreign_keys`` holds ``(column, target_table, target_column)`` triples
    for this table's many-to-one relationships; ``referenced_by`` holds
    ``(table, column, local_column)`` triples for tables pointing at this one.
    """

    table: ClassVar[str] = ""
    columns: ClassVar[Tuple[str, ...]] = ()
    primary_key_columns: ClassVar[Tuple[str, ...]] = ()
    unique_key_groups: ClassVar[Tuple[Tuple[str, ...], ...]] = ()
    foreign_keys: ClassVar[Tuple[Tuple[str, str, str], ...]] = ()
    referenced_by: ClassVar[Tuple[Tuple[str, str, str], ...]] = ()
    db_alias: ClassVar[str] = LoaderDefaults.DB_ALIAS

    def __init__(self, **values: Any):
        self._values: Dict[str, Any] = dict(values)
        self.related: Dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._values!r}>"

    def __getattr__(self, name: str) -> Any:
        values = self.__dict__.get("_values", {})
        if name in values:
            return values[name]
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __getitem__(self, column: str) -> Any:
        return self._values[column]

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    def _key_filter(self) -> Dict[str, Any]:
        groups = []
        if self.primary_key_columns:
            groups.append(self.primary_key_columns)
        groups.extend(self.unique_key_groups)
        for group in groups:
            if all(col in self._values for col in group):
                return {col: self._values[col] for col in group}
        raise ValueError(
            f"Cannot load {type(self).__name__} without a value for every column of a primary or unique key"
        )

    def load(self, speculative: bool = False, with_: Iterable[str] = ()) -> bool:
        """
        Load this object's row by its primary key or a unique key.

        Args:
            speculative: return False instead of raising when no row matches
            with_: related tables to load into ``related``

        Raises:
            ObjectNotFoundError: when no row matches and ``speculative`` is false
        """
        key = self._key_filter()
        rows = select_rows(self.db_alias, self.table, key, self.columns or None)
        if not rows:
            if speculative:
                return False
            raise ObjectNotFoundError(f"No {self.table} row matches {key}", table=self.table, key=key)
        self._values.update(rows[0])
        for related_table in with_:
            self.related[related_table] = self._load_related(related_table)
        return True

    def _load_related(self, related_table: str) -> Any:
        for column, target_table, target_column in self.foreign_keys:
            if target_table == related_table:
                rows = select_rows(self.db_alias, target_table, {target_column: self._values.get(column)})
                return rows[0] if rows else None
        for table, column, local_column in self.referenced_by:
            if table == related_table:
                return select_rows(self.db_alias, table, {column: self._values.get(local_column)})
        raise ValueError(f"{self.table} has no relationship to {related_table}")


class Gardener:
    """Base class for generated manager classes."""

    object_class: ClassVar[type] = Soil

    @classmethod
    def get_objects(cls, **filters: Any) -> List[Soil]:
        """Return every object whose columns equal ``filters``."""
        object_class = cls.object_class
        rows = select_rows(object_class.db_alias, object_class.table, filters, object_class.columns or None)
        return [object_class(**row) for row in rows]

    @classmethod
    def get_objects_count(cls, **filters: Any) -> int:
        object_class = cls.object_class
        return count_rows(object_class.db_alias, object_class.table, filters)
