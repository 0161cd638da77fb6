"""
Tests for the naming conventions.
"""
from unittest import TestCase

from db_planter.naming import ConventionManager, to_pascal_case, to_snake_case


class TestCaseConversion(TestCase):
    """Test cases for the module-level case helpers"""

    def test_to_snake_case(self):
        self.assertEqual(to_snake_case("UserAccount"), "user_account")
        self.assertEqual(to_snake_case("XMLHttpRequest"), "xml_http_request")
        self.assertEqual(to_snake_case("OrderItemManager"), "order_item_manager")

    def test_to_pascal_case(self):
        self.assertEqual(to_pascal_case("app_group"), "AppGroup")
        self.assertEqual(to_pascal_case("esdt_def"), "EsdtDef")

    def test_non_string_raises(self):
        with self.assertRaises(TypeError):
            to_snake_case(None)
        with self.assertRaises(TypeError):
            to_pascal_case(3)


class TestPlurals(TestCase):
    """Test cases for singular/plural conversion"""

    def setUp(self):
        self.convention = ConventionManager()

    def test_regular_plurals(self):
        self.assertEqual(self.convention.to_plural("app"), "apps")
        self.assertEqual(self.convention.to_plural("category"), "categories")
        self.assertEqual(self.convention.to_plural("box"), "boxes")
        self.assertEqual(self.convention.to_plural("order_item"), "order_items")

    def test_plural_is_deterministic(self):
        self.assertEqual(self.convention.to_plural("esdt"), self.convention.to_plural("esdt"))

    def test_irregular_override_wins(self):
        convention = ConventionManager(irregular_plurals={"datum": "datums", "esdt": "esdt_list"})
        self.assertEqual(convention.to_plural("esdt"), "esdt_list")
        self.assertEqual(convention.to_plural("datum"), "datums")
        self.assertEqual(convention.to_singular("esdt_list"), "esdt")

    def test_overrides_do_not_leak_between_instances(self):
        ConventionManager(irregular_plurals={"app": "appz"})
        self.assertEqual(ConventionManager().to_plural("app"), "apps")

    def test_to_singular(self):
        self.assertEqual(self.convention.to_singular("categories"), "category")
        self.assertEqual(self.convention.to_singular("app"), "app")

    def test_empty_name_rejected(self):
        with self.assertRaises(ValueError):
            self.convention.to_plural("")


class TestDefinitionSuffix(TestCase):
    """Test cases for collapsing definition-suffixed table names"""

    def setUp(self):
        self.convention = ConventionManager()

    def test_suffixed_table(self):
        self.assertEqual(self.convention.normalize_definition_suffix("esdt_def"), ("esdt", True))

    def test_plain_table(self):
        self.assertEqual(self.convention.normalize_definition_suffix("esdt"), ("esdt", False))

    def test_suffix_in_the_middle_is_not_stripped(self):
        self.assertEqual(
            self.convention.normalize_definition_suffix("esdt_definition"),
            ("esdt_definition", False),
        )

    def test_bare_suffix_is_not_a_variant(self):
        self.assertEqual(self.convention.normalize_definition_suffix("_def"), ("_def", False))

    def test_custom_suffix(self):
        convention = ConventionManager(definition_suffix="_spec")
        self.assertEqual(convention.normalize_definition_suffix("app_spec"), ("app", True))
        self.assertEqual(convention.normalize_definition_suffix("app_def"), ("app_def", False))


class TestClassNames(TestCase):
    """Test cases for class name hints"""

    def setUp(self):
        self.convention = ConventionManager()

    def test_derive_class_name_with_prefix(self):
        self.assertEqual(
            self.convention.derive_class_name("app_groups", "myapp.objects"),
            "myapp.objects.AppGroup",
        )

    def test_derive_class_name_keeps_definition_suffix(self):
        self.assertEqual(self.convention.derive_class_name("esdt_def"), "EsdtDef")

    def test_manager_and_module_names(self):
        self.assertEqual(self.convention.manager_class_name("Order"), "OrderManager")
        self.assertEqual(self.convention.module_name_for("myapp.objects.OrderItem"), "order_item")
