import argparse
import logging
import sys
from typing import List, Optional

from db_planter.colored_logging import (
    setup_colored_logging,
    log_success,
    log_progress,
    log_section,
)
from db_planter.config import load_config
from db_planter.descriptors import ModelDescriptor
from db_planter.exceptions import PlanterError
from db_planter.planter import Planter


logger = logging.getLogger(__name__)

# Target name used when bootstrapping straight from a config file; it names
# no module, so only config.cache_dir can point at materialized classes.
CLI_TARGET = "db-planter-cli"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="db-planter",
        description="Generate, materialize and inspect classes for a database schema.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose DEBUG logging.",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output (useful for CI/CD environments).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    plant = subparsers.add_parser("plant", help="Write the class hierarchy of a module to disk.")
    plant.add_argument("target", help="Dotted name of the module that bootstraps the registry.")
    plant.add_argument("output_dir", help="Directory to write the generated modules to.")

    tables = subparsers.add_parser("tables", help="List the tables and plurals of a schema.")
    tables.add_argument("-c", "--config", required=True, help="Path to the YAML configuration file.")

    find = subparsers.add_parser("find", help="Find an object by table name and key values.")
    find.add_argument("-c", "--config", required=True, help="Path to the YAML configuration file.")
    find.add_argument("table", help="Table name.")
    find.add_argument("keys", nargs="+", help="Values of the primary key or another unique key.")

    return parser


def _bootstrapped_planter(config_path: str) -> Planter:
    log_progress(logger, f"Loading configuration from {config_path}...")
    config = load_config(config_path)
    planter = Planter()
    planter.bootstrap(CLI_TARGET, config)
    return planter


def cmd_plant(args: argparse.Namespace) -> int:
    log_section(logger, "Planting")
    log_progress(logger, f"Writing classes for {args.target} to {args.output_dir}...")
    Planter().plant(args.target, args.output_dir)
    log_success(logger, f"Planted {args.target} in {args.output_dir}")
    return 0


def cmd_tables(args: argparse.Namespace) -> int:
    planter = _bootstrapped_planter(args.config)
    for table in planter.tables():
        descriptor = planter.find_class(table)
        print(f"{table}\t{descriptor.class_name}")
    for plural in planter.plurals():
        print(f"{plural}\t{planter.find_class(plural).class_name}")
    return 0


def cmd_find(args: argparse.Namespace) -> int:
    planter = _bootstrapped_planter(args.config)
    descriptor = planter.find_class(args.table)
    obj = planter.find_object(args.table, *args.keys)
    if obj is None:
        logger.error(f"No {args.table} matches {args.keys}")
        return 1
    if isinstance(descriptor, ModelDescriptor):
        for column, value in obj.as_dict().items():
            print(f"{column}: {value}")
        for related_table, rows in obj.related.items():
            print(f"{related_table}: {rows}")
    return 0


COMMANDS = {
    "plant": cmd_plant,
    "tables": cmd_tables,
    "find": cmd_find,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    setup_colored_logging(level=log_level, use_colors=not args.no_color)

    try:
        return COMMANDS[args.command](args)
    except PlanterError as e:
        logger.error(str(e), exc_info=args.verbose)
        return 1
    except ImportError as e:
        logger.error(
            f"Import Error: {e}. Ensure the target module and database drivers are installed.",
            exc_info=args.verbose,
        )
        return 1


if __name__ == "__main__":
    sys.exit(main())
