"""
Regular expressions that recognize registered names inside free text.
"""

import re
from typing import Iterable, Pattern

from .registry import Registry


# Matches nothing; used when there are no names to match.
_NEVER = r"(?!)"


def build_matcher(names: Iterable[str]) -> Pattern:
    """
    Build an alternation over ``names``.

    Names are sorted in descending order so that a name which is a prefix
    of another is tried after it: with ``app`` and ``appgroup``, the text
    ``appgroup-1`` matches ``appgroup``, not ``app``.
    """
    alternatives = [re.escape(name) for name in sorted(set(names), reverse=True)]
    if not alternatives:
        return re.compile(_NEVER)
    return re.compile("|".join(alternatives))


def table_matcher(registry: Registry) -> Pattern:
    """Match any table name or definition prefix known to ``registry``."""
    return build_matcher(registry.all_tables())


def plural_matcher(registry: Registry) -> Pattern:
    """Match any plural known to ``registry``."""
    return build_matcher(registry.all_plurals())
