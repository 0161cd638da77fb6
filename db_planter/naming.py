"""
Naming convention utilities for db-planter.

The ConventionManager turns table names into plurals, collapses the
definition-suffix convention (``esdt_def`` is the definition variant of
``esdt``) and derives class-name hints for the schema loader.
"""

import re
from typing import Dict, Optional, Tuple
import inflect

from .constants import NamingDefaults


# Initialize inflect engine for pluralization
p = inflect.engine()


def to_snake_case(name: str) -> str:
    """
    Convert CamelCase or PascalCase to snake_case.

    Example:
        >>> to_snake_case("UserAccount")
        'user_account'
        >>> to_snake_case("XMLHttpRequest")
        'xml_http_request'
    """
    if not isinstance(name, str):
        raise TypeError(f"Expected string, got {type(name).__name__}")

    name = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    name = re.sub("__([A-Z])", r"_\1", name)
    name = re.sub("([a-z0-9])([A-Z])", r"\1_\2", name)
    return name.lower()


def to_pascal_case(name: str) -> str:
    """
    Convert snake_case to PascalCase.

    Example:
        >>> to_pascal_case("app_group")
        'AppGroup'
    """
    if not isinstance(name, str):
        raise TypeError(f"Expected string, got {type(name).__name__}")

    return "".join(word.capitalize() for word in name.split("_") if word)


def _require_name(name: str) -> None:
    if not isinstance(name, str):
        raise TypeError(f"Expected string, got {type(name).__name__}")
    if not name:
        raise ValueError("Name must not be empty")


class ConventionManager:
    """
    Naming conventions shared by the registry and the schema loader.

    Pure functions of the configuration: the definition suffix and a mapping
    of irregular singular -> plural overrides that take precedence over
    inflect.
    """

    def __init__(
        self,
        definition_suffix: str = NamingDefaults.DEFINITION_SUFFIX,
        irregular_plurals: Optional[Dict[str, str]] = None,
    ):
        if not definition_suffix:
            raise ValueError("definition_suffix must not be empty")
        self.definition_suffix = definition_suffix
        self.irregular_plurals: Dict[str, str] = dict(irregular_plurals or {})
        self._irregular_singulars: Dict[str, str] = {
            plural: singular for singular, plural in self.irregular_plurals.items()
        }

    def __repr__(self) -> str:
        return (
            f"ConventionManager(definition_suffix={self.definition_suffix!r}, "
            f"irregular_plurals={self.irregular_plurals!r})"
        )

    def to_plural(self, singular: str) -> str:
        """
        Return the plural form of a singular table name.

        Example:
            >>> ConventionManager().to_plural("category")
            'categories'
        """
        _require_name(singular)
        if singular in self.irregular_plurals:
            return self.irregular_plurals[singular]
        return p.plural(singular)

    def to_singular(self, plural: str) -> str:
        """Return the singular form of a name, or the name itself if already singular."""
        _require_name(plural)
        if plural in self._irregular_singulars:
            return self._irregular_singulars[plural]
        singular = p.singular_noun(plural)
        # inflect returns False when the word is already singular
        return singular or plural

    def normalize_definition_suffix(self, table: str) -> Tuple[str, bool]:
        """
        Strip the definition suffix from a table name.

        Returns:
            ``(base, True)`` for a definition-suffixed table, otherwise
            ``(table, False)``.

        Example:
            >>> ConventionManager().normalize_definition_suffix("esdt_def")
            ('esdt', True)
        """
        _require_name(table)
        suffix = self.definition_suffix
        if table.endswith(suffix) and len(table) > len(suffix):
            return table[: -len(suffix)], True
        return table, False

    def derive_class_name(self, table: str, prefix: str = "") -> str:
        """
        Derive a class name hint from a table name.

        Example:
            >>> ConventionManager().derive_class_name("app_groups", "myapp.objects")
            'myapp.objects.AppGroup'
        """
        class_name = to_pascal_case(self.to_singular(table))
        if prefix:
            return f"{prefix}.{class_name}"
        return class_name

    def manager_class_name(self, model_class_name: str) -> str:
        """Class name of the manager for a model class name."""
        return f"{model_class_name}{NamingDefaults.MANAGER_CLASS_SUFFIX}"

    def module_name_for(self, class_name: str) -> str:
        """Module basename used when materializing a class to disk."""
        return to_snake_case(class_name.rsplit(".", 1)[-1])
