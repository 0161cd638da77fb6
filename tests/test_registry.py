"""
Tests for the registry of generated classes.
"""
import threading
from unittest import TestCase

from db_planter.descriptors import ManagerDescriptor, ModelDescriptor
from db_planter.naming import ConventionManager
from db_planter.registry import Registry

from conftest import make_model_class


def model(table, class_name=None, **kwargs):
    return ModelDescriptor(class_name or f"objects.{table}", make_model_class(table, **kwargs))


def manager(object_descriptor, class_name=None):
    return ManagerDescriptor(
        class_name or f"{object_descriptor.class_name}Manager", type("Manager", (), {}), object_descriptor
    )


class TestRegisterModel(TestCase):
    """Test cases for table and definition-prefix registration"""

    def setUp(self):
        self.registry = Registry()

    def test_find_by_table(self):
        app = model("app")
        self.registry.register_model(app)
        self.assertIs(self.registry.find_class("app"), app)

    def test_definition_table_found_by_base_name(self):
        esdt = model("esdt_def")
        self.registry.register_model(esdt)
        self.assertIs(self.registry.find_class("esdt_def"), esdt)
        self.assertIs(self.registry.find_class("esdt"), esdt)

    def test_last_write_wins_and_collision_is_recorded(self):
        first = model("app", "objects.App")
        second = model("app", "objects.OtherApp")
        self.registry.register_model(first)
        with self.assertLogs("db_planter.registry", level="WARNING") as logs:
            self.registry.register_model(second)

        self.assertIs(self.registry.find_class("app"), second)
        self.assertEqual(len(self.registry.collisions), 1)
        collision = self.registry.collisions[0]
        self.assertEqual(collision.mapping, "table")
        self.assertEqual(collision.key, "app")
        self.assertIs(collision.previous, first)
        self.assertIs(collision.replacement, second)
        self.assertIn("Replacing app", logs.output[0])

    def test_registering_same_descriptor_twice_is_not_a_collision(self):
        app = model("app")
        self.registry.register_model(app)
        self.registry.register_model(app)
        self.assertEqual(self.registry.collisions, [])

    def test_definition_prefix_collision(self):
        first = model("esdt_def", "objects.EsdtDef")
        second = model("esdt_def", "objects.EsdtDef2")
        self.registry.register_model(first)
        self.registry.register_model(second)
        self.assertIs(self.registry.find_class("esdt"), second)
        self.assertEqual(
            sorted(c.mapping for c in self.registry.collisions), ["def_prefix", "table"]
        )

    def test_table_map_is_consulted_before_definition_prefixes(self):
        base = model("esdt", "objects.Esdt")
        definition = model("esdt_def", "objects.EsdtDef")
        self.registry.register_model(definition)
        self.registry.register_model(base)
        self.assertIs(self.registry.find_class("esdt"), base)
        self.assertIs(self.registry.find_class("esdt_def"), definition)


class TestRegisterManager(TestCase):
    """Test cases for plural registration of managers"""

    def setUp(self):
        self.registry = Registry()

    def test_manager_found_by_plural(self):
        app = model("app")
        app_manager = manager(app)
        self.registry.register_model(app)
        self.registry.register_manager(app_manager)
        self.assertIs(self.registry.find_class("apps"), app_manager)

    def test_definition_suffix_stripped_before_pluralizing(self):
        esdt = model("esdt_def")
        esdt_manager = manager(esdt)
        self.registry.register_manager(esdt_manager)
        self.assertIs(self.registry.find_class("esdts"), esdt_manager)
        self.assertIsNone(self.registry.find_class("esdt_defs"))

    def test_explicit_convention_is_used(self):
        app = model("app")
        app_manager = manager(app)
        self.registry.register_manager(app_manager, ConventionManager(irregular_plurals={"app": "applications"}))
        self.assertIs(self.registry.find_class("applications"), app_manager)
        self.assertIsNone(self.registry.find_class("apps"))

    def test_plural_collision_overwrites(self):
        first = manager(model("app"), "objects.AppManager")
        second = manager(model("app"), "objects.OtherAppManager")
        self.registry.register_manager(first)
        self.registry.register_manager(second)
        self.assertIs(self.registry.find_class("apps"), second)
        self.assertEqual(self.registry.collisions[0].mapping, "plural")


class TestLookups(TestCase):
    """Test cases for lookups and name listings"""

    def setUp(self):
        self.registry = Registry()
        self.app = model("app")
        self.esdt = model("esdt_def")
        for descriptor in (self.app, self.esdt):
            self.registry.register_model(descriptor)
            self.registry.register_manager(manager(descriptor))

    def test_unknown_name_returns_none(self):
        self.assertIsNone(self.registry.find_class("nope"))
        self.assertNotIn("nope", self.registry)

    def test_find_class_has_no_side_effects(self):
        before = (self.registry.all_tables(), self.registry.all_plurals(), len(self.registry))
        self.registry.find_class("nope")
        self.registry.find_class("app")
        self.assertEqual(before, (self.registry.all_tables(), self.registry.all_plurals(), len(self.registry)))

    def test_all_tables_includes_definition_prefixes(self):
        self.assertEqual(self.registry.all_tables(), {"app", "esdt_def", "esdt"})

    def test_all_plurals(self):
        self.assertEqual(self.registry.all_plurals(), {"apps", "esdts"})

    def test_models_and_managers(self):
        self.assertEqual(set(self.registry.models()), {self.app, self.esdt})
        self.assertEqual(len(self.registry.managers()), 2)


class TestStagingAndPublish(TestCase):
    """Test cases for publishing a staged population"""

    def test_staging_is_invisible_until_published(self):
        registry = Registry()
        staging = registry.staging()
        app = model("app")
        staging.register_model(app)

        self.assertIsNone(registry.find_class("app"))
        registry.publish(staging)
        self.assertIs(registry.find_class("app"), app)

    def test_publish_replaces_previous_population(self):
        registry = Registry()
        registry.register_model(model("old"))
        staging = registry.staging()
        staging.register_model(model("new"))
        registry.publish(staging)
        self.assertEqual(registry.all_tables(), {"new"})

    def test_publish_replaces_collision_record(self):
        registry = Registry()
        staging = registry.staging()
        staging.register_model(model("app", "objects.First"))
        staging.register_model(model("app", "objects.Second"))
        registry.publish(staging)
        self.assertEqual(len(registry.collisions), 1)

        staging = registry.staging()
        staging.register_model(model("app"))
        registry.publish(staging)
        self.assertEqual(registry.collisions, [])

    def test_readers_see_complete_populations_only(self):
        registry = Registry()
        tables = [f"table_{i}" for i in range(200)]
        seen_sizes = set()
        stop = threading.Event()

        def reader():
            while not stop.is_set():
                seen_sizes.add(len(registry.all_tables()))

        thread = threading.Thread(target=reader)
        thread.start()
        try:
            staging = registry.staging()
            for table in tables:
                staging.register_model(model(table))
            registry.publish(staging)
        finally:
            stop.set()
            thread.join()

        self.assertTrue(seen_sizes <= {0, len(tables)})

    def test_empty_key_rejected(self):
        registry = Registry()
        with self.assertRaises(ValueError):
            registry.register_model(model(""))
