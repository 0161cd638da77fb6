"""
Writing generated classes to disk and importing them back.

A materialized hierarchy lives under ``<output_dir>/<class_prefix as path>/``
with one module per generated class. Modules of the hierarchy refer to each
other with relative imports, so it can be imported back under a package name
of the loader's choosing.
"""

import ast
import importlib
import importlib.util
import logging
import sys
from pathlib import Path
from types import ModuleType
from typing import Any, Dict, List, Sequence, Union

from black import FileMode, NothingChanged, format_str

from .constants import GENERATED_MODULE_HEADER, IGNORED_CACHE_FILES, MODEL_CLASS_ATTRIBUTES, LoaderDefaults
from .descriptors import ClassDescriptor, ManagerDescriptor, ModelDescriptor
from .exceptions import CodeGenerationError
from .tracing import trace


logger = logging.getLogger(__name__)

BLACK_FORMATTER_MODE = FileMode(line_length=120)


# --- AST helpers ---

def add_location(node):
    """Add location info to AST nodes"""
    node.lineno = 1
    node.col_offset = 0
    return node


def create_docstring(content: str) -> ast.Expr:
    """Creates an AST node for a docstring."""
    return add_location(ast.Expr(value=add_location(ast.Constant(value=content))))


def create_import_from(module: str, name: str, level: int = 0) -> ast.ImportFrom:
    node = ast.ImportFrom(
        module=module,
        names=[ast.alias(name=name, lineno=1, col_offset=0)],
        level=level,
    )
    return add_location(node)


def create_literal(value: Any) -> ast.expr:
    """Creates an AST node for a constant or a (nested) tuple of constants."""
    if isinstance(value, (tuple, list)):
        return add_location(ast.Tuple(elts=[create_literal(item) for item in value], ctx=ast.Load()))
    return add_location(ast.Constant(value=value))


def create_assign(target: str, value: ast.expr) -> ast.Assign:
    """Creates an AST node for an assignment."""
    node = ast.Assign(
        targets=[add_location(ast.Name(id=target, ctx=ast.Store()))],
        value=value,
    )
    return add_location(node)


def create_class_def(name: str, base: str, body: List[ast.stmt]) -> ast.ClassDef:
    """Creates an AST node for a class definition."""
    node = ast.ClassDef(
        name=name,
        bases=[add_location(ast.Name(id=base, ctx=ast.Load()))],
        keywords=[],
        body=body,
        decorator_list=[],
    )
    return add_location(node)


# --- Module generation ---

def _module_basename(cls: type) -> str:
    return cls.__module__.rsplit(".", 1)[-1]


def generate_model_module(descriptor: ModelDescriptor) -> str:
    model_class = descriptor.model_class
    base = model_class.__bases__[0]
    body = [
        create_assign(attr, create_literal(getattr(model_class, attr)))
        for attr in MODEL_CLASS_ATTRIBUTES
    ]
    module_ast = ast.Module(
        body=[
            create_docstring(GENERATED_MODULE_HEADER),
            create_import_from(base.__module__, base.__name__),
            create_class_def(model_class.__name__, base.__name__, body),
        ],
        type_ignores=[],
    )
    return ast.unparse(ast.fix_missing_locations(module_ast))


def generate_manager_module(descriptor: ManagerDescriptor) -> str:
    manager_class = descriptor.manager_class
    base = manager_class.__bases__[0]
    object_class = descriptor.object_class.model_class
    module_ast = ast.Module(
        body=[
            create_docstring(GENERATED_MODULE_HEADER),
            create_import_from(base.__module__, base.__name__),
            # Sibling module, so the hierarchy can be imported under any package name
            create_import_from(_module_basename(object_class), object_class.__name__, level=1),
            create_class_def(
                manager_class.__name__,
                base.__name__,
                [create_assign("object_class", add_location(ast.Name(id=object_class.__name__, ctx=ast.Load())))],
            ),
        ],
        type_ignores=[],
    )
    return ast.unparse(ast.fix_missing_locations(module_ast))


def format_python_code_using_black(filepath: Path, code_string: str) -> str:
    """Formats the given Python code using Black."""
    try:
        return format_str(code_string, mode=BLACK_FORMATTER_MODE)
    except NothingChanged:
        logger.debug(f"Black formatter did not change the code: {filepath}")
        return code_string


def _package_dir(output_dir: Union[str, Path], class_prefix: str) -> Path:
    return Path(output_dir).joinpath(*class_prefix.split("."))


def write_modules(
    descriptors: Sequence[ClassDescriptor],
    output_dir: Union[str, Path],
    class_prefix: str,
) -> List[Path]:
    """Write one module per descriptor and return the written paths."""
    output_dir = Path(output_dir)
    package_dir = _package_dir(output_dir, class_prefix)
    logger.info(f"Writing classes to {package_dir}")
    try:
        package_dir.mkdir(parents=True, exist_ok=True)
        # Every level of the prefix must be a package
        current = output_dir
        for part in class_prefix.split("."):
            current = current / part
            init_file = current / "__init__.py"
            if not init_file.exists():
                init_file.write_text(f'"""{GENERATED_MODULE_HEADER}"""\n', encoding="utf-8")
    except OSError as e:
        raise CodeGenerationError(f"Could not create {package_dir}: {e}", path=str(package_dir)) from e

    written = []
    owners: Dict[Path, ClassDescriptor] = {}
    for descriptor in descriptors:
        if isinstance(descriptor, ModelDescriptor):
            cls = descriptor.model_class
            code = generate_model_module(descriptor)
        else:
            cls = descriptor.manager_class
            code = generate_manager_module(descriptor)
        path = package_dir / f"{_module_basename(cls)}.py"
        previous = owners.get(path)
        if previous is not None:
            logger.warning(
                f"Overwriting {path}: {previous.class_name} (table {previous.table}) and "
                f"{descriptor.class_name} (table {descriptor.table}) share a module"
            )
        owners[path] = descriptor
        try:
            path.write_text(format_python_code_using_black(path, code), encoding="utf-8")
        except OSError as e:
            raise CodeGenerationError(f"Could not write {path}: {e}", module=cls.__module__, path=str(path)) from e
        trace(f"wrote {descriptor.class_name} to {path}")
        written.append(path)

    logger.info(f"Wrote {len(written)} modules to {package_dir}")
    return written


def has_materialized_modules(cache_dir: Union[str, Path, None]) -> bool:
    """True when ``cache_dir`` exists and holds at least one generated module."""
    if cache_dir is None:
        return False
    cache_dir = Path(cache_dir)
    if not cache_dir.is_dir():
        return False
    return any(path.name not in IGNORED_CACHE_FILES for path in cache_dir.rglob("*.py"))


def import_materialized(
    cache_dir: Union[str, Path],
    class_prefix: str,
    namespace: str = LoaderDefaults.AUTOLIB_NAMESPACE,
) -> List[ModuleType]:
    """
    Import every module of a materialized hierarchy.

    The package at ``<cache_dir>/<class_prefix as path>`` is imported as
    ``<namespace>.<class_prefix>``, so it never competes with a real package
    sharing the first part of ``class_prefix``. Modules already imported
    under that name are dropped first, so a fresh materialization replaces
    the old one.
    """
    package_dir = _package_dir(cache_dir, class_prefix)
    init_file = package_dir / "__init__.py"
    if not init_file.is_file():
        raise CodeGenerationError(
            f"No materialized package {class_prefix} in {cache_dir}", module=class_prefix, path=str(package_dir)
        )

    package_name = f"{namespace}.{class_prefix}"
    for name in list(sys.modules):
        if name == package_name or name.startswith(package_name + "."):
            del sys.modules[name]

    logger.debug(f"Importing {package_dir} as {package_name}")
    spec = importlib.util.spec_from_file_location(
        package_name, init_file, submodule_search_locations=[str(package_dir)]
    )
    package = importlib.util.module_from_spec(spec)
    sys.modules[package_name] = package
    try:
        spec.loader.exec_module(package)
    except (ImportError, OSError, SyntaxError) as e:
        del sys.modules[package_name]
        raise CodeGenerationError(f"Errors using {package_name}: {e}", module=package_name, path=str(init_file)) from e

    modules = []
    for path in sorted(package_dir.glob("*.py")):
        if path.name in IGNORED_CACHE_FILES:
            continue
        module_name = f"{package_name}.{path.stem}"
        try:
            modules.append(importlib.import_module(module_name))
        except ImportError as e:
            raise CodeGenerationError(f"Errors using {module_name}: {e}", module=module_name, path=str(path)) from e
        trace(f"used {module_name}")
    return modules
