"""
Exception hierarchy for db-planter.

Every error carries a message, optional context, recovery suggestions and an
error code. Name collisions in the registry and lookup misses are not errors
and never appear here.
"""

from typing import Dict, Any, Optional, List


class PlanterError(Exception):
    """
    Base exception for all db-planter errors.

    Provides rich context and error recovery guidance.
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        error_code: Optional[str] = None
    ):
        """
        Initialize the exception with context and recovery suggestions.

        Args:
            message: Human-readable error message
            context: Additional context about where/why the error occurred
            suggestions: List of potential solutions or next steps
            error_code: Unique error code for programmatic handling
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.suggestions = suggestions or []
        self.error_code = error_code

    def __str__(self) -> str:
        """Return formatted error message with context."""
        lines = [super().__str__()]

        if self.error_code:
            lines.append(f"Error Code: {self.error_code}")

        if self.context:
            lines.append("Context:")
            for key, value in self.context.items():
                lines.append(f"  {key}: {value}")

        if self.suggestions:
            lines.append("Suggestions:")
            for suggestion in self.suggestions:
                lines.append(f"  • {suggestion}")

        return "\n".join(lines)


class ConfigurationError(PlanterError):
    """Raised when a bootstrap cannot proceed because of its configuration."""

    def __init__(self, message: str, target: str = None, **kwargs):
        context = kwargs.get('context', {})
        if target:
            context['target'] = target

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Check the loader_params and nested_tables settings",
                "Verify the database contains the tables you expect",
                "Check the include_tables/exclude_tables filters"
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="CONFIG_ERROR"
        )


class ClassNotFoundError(PlanterError):
    """Raised when an object lookup names a table the registry does not know."""

    def __init__(self, message: str, table: str = None, **kwargs):
        context = kwargs.get('context', {})
        if table:
            context['table'] = table

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Check the spelling of the table name",
                "Make sure bootstrap() ran before looking up objects",
                "Use find_class() to test whether a name is known"
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="CLASS_NOT_FOUND"
        )


class SchemaIntrospectionError(PlanterError):
    """Raised when database schema introspection fails."""

    def __init__(self, message: str, table: str = None, db_alias: str = None, **kwargs):
        context = kwargs.get('context', {})
        if table:
            context['table'] = table
        if db_alias:
            context['db_alias'] = db_alias

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Check database connection settings",
                "Verify the table exists in the database",
                "Check database user permissions"
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="INTROSPECTION_ERROR"
        )


class CodeGenerationError(PlanterError):
    """Raised when materializing or importing generated modules fails."""

    def __init__(self, message: str, module: str = None, path: str = None, **kwargs):
        context = kwargs.get('context', {})
        if module:
            context['module'] = module
        if path:
            context['path'] = path

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Check that the output directory is writable",
                "Check that class_prefix is a valid dotted module path",
                "Delete the materialized directory and plant again"
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="CODE_GENERATION_ERROR"
        )


class ObjectNotFoundError(PlanterError):
    """Raised by a non-speculative load when no row matches the key."""

    def __init__(self, message: str, table: str = None, key: Dict[str, Any] = None, **kwargs):
        context = kwargs.get('context', {})
        if table:
            context['table'] = table
        if key:
            context['key'] = key

        super().__init__(
            message,
            context=context,
            suggestions=kwargs.get('suggestions', []),
            error_code="OBJECT_NOT_FOUND"
        )
