"""
Tests for the Soil and Gardener base classes against the SQLite test schema.
"""
import pytest

from db_planter.exceptions import ObjectNotFoundError
from db_planter.soil import Gardener, Soil, count_rows, select_rows


class Customer(Soil):
    table = "customer"
    columns = ("id", "name")
    primary_key_columns = ("id",)
    referenced_by = (("orders", "customer_id", "id"),)


class Order(Soil):
    table = "orders"
    columns = ("id", "email", "customer_id")
    primary_key_columns = ("id",)
    unique_key_groups = (("email",),)
    foreign_keys = (("customer_id", "customer", "id"),)
    referenced_by = (("order_item", "order_id", "id"),)


class OrderManager(Gardener):
    object_class = Order


def test_select_rows(django_db):
    rows = select_rows("default", "order_item", {"order_id": 42}, ["sku"])
    assert sorted(row["sku"] for row in rows) == ["SKU-1", "SKU-2"]


def test_select_rows_null_filter(django_db):
    rows = select_rows("default", "orders", {"customer_id": None})
    assert [row["id"] for row in rows] == [43]


def test_count_rows(django_db):
    assert count_rows("default", "order_item", {}) == 2
    assert count_rows("default", "order_item", {"sku": "SKU-1"}) == 1


def test_load_by_primary_key(django_db):
    order = Order(id=42)
    assert order.load() is True
    assert order.email == "a@example.com"
    assert order["customer_id"] == 1
    assert order.as_dict() == {"id": 42, "email": "a@example.com", "customer_id": 1}


def test_load_by_unique_key(django_db):
    order = Order(email="b@example.com")
    assert order.load()
    assert order.id == 43


def test_speculative_load_of_missing_row(django_db):
    assert Order(id=999).load(speculative=True) is False


def test_load_of_missing_row_raises(django_db):
    with pytest.raises(ObjectNotFoundError):
        Order(id=999).load()


def test_load_without_key_values(django_db):
    with pytest.raises(ValueError):
        Order(customer_id=1).load()


def test_unknown_attribute():
    with pytest.raises(AttributeError):
        Order(id=1).missing


def test_load_related(django_db):
    order = Order(id=42)
    order.load(with_=("order_item", "customer"))
    assert sorted(item["sku"] for item in order.related["order_item"]) == ["SKU-1", "SKU-2"]
    assert order.related["customer"]["name"] == "Ada"


def test_load_related_to_null_foreign_key(django_db):
    order = Order(id=43)
    order.load(with_=("customer",))
    assert order.related["customer"] is None


def test_load_unrelated_table_raises(django_db):
    with pytest.raises(ValueError, match="no relationship to esdt_def"):
        Order(id=42).load(with_=("esdt_def",))


def test_gardener(django_db):
    orders = OrderManager.get_objects(customer_id=1)
    assert [o.id for o in orders] == [42]
    assert isinstance(orders[0], Order)
    assert OrderManager.get_objects_count() == 2
