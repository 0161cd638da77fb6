"""
Configuration schema and loading for db-planter.

Configuration may come from a dictionary (usually written inline in the
module that bootstraps the registry) or from a YAML file.
"""

import keyword
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from .constants import LoaderDefaults, NamingDefaults
from .exceptions import ConfigurationError
from .naming import ConventionManager


logger = logging.getLogger(__name__)


def is_valid_dotted_path(name: str) -> bool:
    """Check that every part of a dotted name is an identifier and not a keyword."""
    return bool(name) and all(
        part.isidentifier() and not keyword.iskeyword(part) for part in name.split(".")
    )


class DatabaseSettings(BaseModel):
    """Schema for a single database connection within the DATABASES dict."""

    ENGINE: str = Field(
        ...,
        min_length=1,
        description="Django database engine (e.g., 'django.db.backends.postgresql').",
    )
    NAME: str = Field(..., min_length=1, description="Database name.")
    USER: Optional[str] = Field(default=None, description="Database user.")
    PASSWORD: Optional[str] = Field(default=None, description="Database password.")
    HOST: Optional[str] = Field(default=None, description="Database host address.")
    PORT: Optional[int] = Field(default=None, description="Database port number.")
    OPTIONS: Dict[str, Any] = Field(
        default_factory=dict, description="Database engine specific options."
    )

    @field_validator("PORT", mode="before")
    @classmethod
    def validate_port(cls, v: Any) -> Optional[int]:
        """Ensure port is a number or string representation of one, and within range."""
        if v is None or v == "":
            return None
        if isinstance(v, str):
            if not v.isdigit():
                raise ValueError(
                    f"Port must be a number or string containing only digits, got '{v}'"
                )
            v = int(v)
        if not isinstance(v, int):
            raise TypeError(
                f"Port must be an integer or string containing digits, got {type(v).__name__}"
            )
        if not 0 <= v <= 65535:
            raise ValueError(f"Port must be between 0 and 65535, got {v}")
        return v


class LoaderParams(BaseModel):
    """Parameters handed to the schema loader."""

    class_prefix: str = Field(
        ...,
        min_length=1,
        description="Dotted module path that generated classes live under.",
    )
    db_alias: str = Field(
        LoaderDefaults.DB_ALIAS,
        min_length=1,
        description="Django connection alias used by generated classes.",
    )
    base_class: Optional[str] = Field(
        default=None, description="Dotted path of the base class for generated models."
    )
    manager_base_class: Optional[str] = Field(
        default=None, description="Dotted path of the base class for generated managers."
    )
    include_tables: Optional[List[str]] = Field(
        default=None, description="Optional list of table names to include."
    )
    exclude_tables: Optional[List[str]] = Field(
        default=None, description="Optional list of table names to exclude."
    )

    model_config = ConfigDict(extra="forbid")

    @field_validator("class_prefix", "base_class", "manager_base_class")
    @classmethod
    def check_dotted_path(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not is_valid_dotted_path(v):
            raise ValueError(f"'{v}' is not a valid dotted Python path.")
        return v

    @field_validator("include_tables", "exclude_tables", mode="before")
    @classmethod
    def check_table_names_list(cls, v: Optional[List[Any]]) -> Optional[List[str]]:
        """Ensure items in table lists are non-empty strings."""
        if v is None:
            return None
        if not isinstance(v, list):
            raise TypeError("include_tables/exclude_tables must be a list.")
        processed_list = []
        for index, item in enumerate(v):
            if not isinstance(item, str):
                raise TypeError(
                    f"Item at index {index} must be a string, found: {type(item).__name__}"
                )
            stripped_item = item.strip()
            if not stripped_item:
                raise ValueError(
                    f"Item at index {index} cannot be empty or just whitespace."
                )
            processed_list.append(stripped_item)
        return processed_list


class ConventionParams(BaseModel):
    """Naming convention settings."""

    definition_suffix: str = Field(NamingDefaults.DEFINITION_SUFFIX, min_length=1)
    irregular_plurals: Dict[str, str] = Field(
        default_factory=dict,
        description="Singular -> plural overrides consulted before inflect.",
    )

    model_config = ConfigDict(extra="forbid")

    def build(self) -> ConventionManager:
        return ConventionManager(
            definition_suffix=self.definition_suffix,
            irregular_plurals=self.irregular_plurals,
        )


class PlanterConfig(BaseModel):
    """Everything a bootstrap pass needs."""

    loader_params: LoaderParams
    nested_tables: Dict[str, List[str]] = Field(
        default_factory=dict,
        description="Base table -> related tables loaded together with it.",
    )
    convention_manager_params: ConventionParams = Field(default_factory=ConventionParams)
    databases: Optional[Dict[str, DatabaseSettings]] = Field(
        default=None,
        description="Django DATABASES setting, used when Django is not configured yet.",
    )
    cache_dir: Optional[str] = Field(
        default=None, description="Directory holding a materialized class hierarchy."
    )

    model_config = ConfigDict(extra="forbid")

    @field_validator("nested_tables")
    @classmethod
    def check_nested_tables(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        for table, related in v.items():
            if not table:
                raise ValueError("nested_tables keys cannot be empty.")
            if any(not name for name in related):
                raise ValueError(f"nested_tables[{table!r}] contains an empty table name.")
        return v


def parse_config(config_dict: Dict[str, Any]) -> PlanterConfig:
    """
    Validate a raw configuration dictionary.

    Raises:
        ConfigurationError: listing every validation problem.
    """
    try:
        config = PlanterConfig.model_validate(config_dict)
    except ValidationError as e:
        problems = []
        for error in e.errors():
            loc_str = " -> ".join(str(loc) for loc in error.get("loc", ())) or "Model Level"
            problems.append(f"{loc_str}: {error.get('msg', 'Unknown validation error')}")
        raise ConfigurationError(
            "Configuration validation failed",
            context={"errors": "; ".join(problems)},
        ) from e
    logger.debug("Configuration dictionary parsed and validated successfully.")
    return config


def load_config(config_path: Union[str, Path]) -> PlanterConfig:
    """Load and validate a YAML configuration file."""
    config_file = Path(config_path)
    if not config_file.is_file():
        raise ConfigurationError(f"Config file not found at {config_file}")
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Error parsing YAML file {config_file}: {e}") from e
    if not isinstance(raw_config, dict):
        raise ConfigurationError(f"Content in config file {config_file} is not a dictionary.")
    logger.debug(f"Loaded configuration from {config_file}")
    return parse_config(raw_config)
