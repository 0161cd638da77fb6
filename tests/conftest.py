# File: tests/conftest.py
# Fixtures shared by the test suite: an in-memory SQLite schema configured
# through Django, and stand-ins for generated model classes.

from typing import Any, Dict, Generator, List, Optional, Sequence

import pytest

from db_planter.introspection import setup_django


SCHEMA_STATEMENTS = [
    "CREATE TABLE customer (id INTEGER PRIMARY KEY, name TEXT NOT NULL)",
    """CREATE TABLE orders (
        id INTEGER PRIMARY KEY,
        email TEXT NOT NULL,
        customer_id INTEGER REFERENCES customer (id)
    )""",
    "CREATE UNIQUE INDEX orders_email_uniq ON orders (email)",
    """CREATE TABLE order_item (
        id INTEGER PRIMARY KEY,
        order_id INTEGER NOT NULL REFERENCES orders (id),
        sku TEXT NOT NULL
    )""",
    "CREATE TABLE esdt_def (id INTEGER PRIMARY KEY, short_name TEXT NOT NULL)",
    "CREATE VIEW order_summary AS SELECT id, email FROM orders",
    "INSERT INTO customer (id, name) VALUES (1, 'Ada')",
    "INSERT INTO orders (id, email, customer_id) VALUES (42, 'a@example.com', 1)",
    "INSERT INTO orders (id, email, customer_id) VALUES (43, 'b@example.com', NULL)",
    "INSERT INTO order_item (id, order_id, sku) VALUES (1, 42, 'SKU-1')",
    "INSERT INTO order_item (id, order_id, sku) VALUES (2, 42, 'SKU-2')",
    "INSERT INTO esdt_def (id, short_name) VALUES (7, 'MOD09')",
]


# --- Fixture for the SQLite database ---
@pytest.fixture(scope="session")
def django_db() -> Generator[Any, Any, None]:
    """
    Configures Django with an in-memory SQLite database and loads the test schema.
    Yields the Django connection.
    """
    setup_django({"default": {"ENGINE": "django.db.backends.sqlite3", "NAME": ":memory:"}})
    from django.db import connections

    conn = connections["default"]
    with conn.cursor() as cursor:
        for statement in SCHEMA_STATEMENTS:
            cursor.execute(statement)
    yield conn


# --- Stand-ins for generated classes ---
def make_model_class(
    table: str,
    primary_key_columns: Sequence[str] = ("id",),
    unique_key_groups: Sequence[Sequence[str]] = (),
    rows: Optional[List[Dict[str, Any]]] = None,
) -> type:
    """
    Build a class that behaves like a generated model class, backed by a list of rows.

    Every load attempt is recorded in the class attribute ``load_calls``.
    """

    class FakeModel:
        load_calls: List[Dict[str, Any]] = []

        def __init__(self, **values):
            self.values = dict(values)
            self.loaded_with = None

        def load(self, speculative=False, with_=()):
            type(self).load_calls.append(
                {"key": dict(self.values), "speculative": speculative, "with_": tuple(with_)}
            )
            for row in type(self).rows:
                if all(row.get(col) == value for col, value in self.values.items()):
                    self.values = dict(row)
                    self.loaded_with = tuple(with_)
                    return True
            return False

    FakeModel.__name__ = f"Fake{table.title().replace('_', '')}"
    FakeModel.table = table
    FakeModel.primary_key_columns = tuple(primary_key_columns)
    FakeModel.unique_key_groups = tuple(tuple(group) for group in unique_key_groups)
    FakeModel.rows = list(rows or [])
    FakeModel.load_calls = []
    return FakeModel


@pytest.fixture
def model_factory():
    return make_model_class
