"""
Configuration loading and validation for the tradebook application.

Configuration objects are plain frozen dataclasses built from a YAML file.
Validation is a set of explicit checks on the raw dictionary that fail fast
with a ValueError naming the offending key.
"""

import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Literal, Type, cast

from tradebook.core.filters import FilterQuery, SortKey, StatusFilter
from tradebook.core.metrics import TimeRange

__all__ = ["load_config", "Config"]

_OUTPUT_FORMATS = ("json", "markdown", "csv")


# §1. Nested Configuration Dataclasses
# --------------------------------------------------------------------------------------


@dataclass(frozen=True)
class JournalConfig:
    path: Path
    currency: str = "$"


@dataclass(frozen=True)
class ViewConfig:
    status: str = StatusFilter.ALL.value
    symbol_search: str = ""
    sort_by: str = SortKey.DATE_DESC.value

    def to_query(self) -> FilterQuery:
        return FilterQuery(status=self.status, symbol_search=self.symbol_search, sort_by=self.sort_by)


@dataclass(frozen=True)
class DashboardConfig:
    time_range: str = TimeRange.MONTHLY.value
    pad_trailing: bool = False


@dataclass(frozen=True)
class ReportingConfig:
    output_dir: Path
    output_formats: List[Literal["json", "markdown", "csv"]]


# §2. Top-Level Configuration
# --------------------------------------------------------------------------------------


@dataclass(frozen=True)
class Config:
    """The root configuration object, composing all nested sections."""
    journal: JournalConfig
    view: ViewConfig
    dashboard: DashboardConfig
    reporting: ReportingConfig


# §3. Validation and Loading
# --------------------------------------------------------------------------------------


def _from_dict(data_class: Type[Any], data: Any) -> Any:
    """Recursively creates nested dataclasses from a dictionary."""
    if isinstance(data, dict) and hasattr(data_class, "__dataclass_fields__"):
        field_types = {f.name: f.type for f in data_class.__dataclass_fields__.values()}

        kwargs = {}
        for k, v in data.items():
            field_type = field_types.get(k)
            # Unknown keys are passed through so the dataclass constructor
            # raises a TypeError, which load_config reports.
            kwargs[k] = _from_dict(field_type, v) if field_type else v
        return data_class(**kwargs)

    if isinstance(data, str) and data_class is Path:
        return Path(data)
    return data


def _check_choice(value: Any, choices: List[str], key: str) -> None:
    if not isinstance(value, str) or value.strip().upper() not in choices:
        raise ValueError(f"{key} must be one of {', '.join(choices)}, got {value!r}")


def _validate_config(cfg: Dict[str, Any]) -> None:
    """
    Performs simple, explicit validation checks on the raw config dictionary.
    Fail fast on any logical inconsistencies.
    """
    if not isinstance(cfg, dict):
        raise ValueError("Configuration must be a YAML object.")

    for section in ("journal", "reporting"):
        if not isinstance(cfg.get(section), dict):
            raise ValueError(f"Missing required section '{section}'.")
    cfg.setdefault("view", {})
    cfg.setdefault("dashboard", {})

    if not cfg["journal"].get("path"):
        raise ValueError("journal.path must name the trade journal file.")

    view = cfg["view"]
    if "status" in view:
        _check_choice(view["status"], [s.value for s in StatusFilter], "view.status")
    if "sort_by" in view:
        _check_choice(view["sort_by"], [k.value for k in SortKey], "view.sort_by")

    dashboard = cfg["dashboard"]
    if "time_range" in dashboard:
        _check_choice(dashboard["time_range"], [r.value for r in TimeRange], "dashboard.time_range")

    formats = cfg["reporting"].get("output_formats", [])
    if not isinstance(formats, list):
        raise ValueError("reporting.output_formats must be a list.")
    unknown = [f for f in formats if f not in _OUTPUT_FORMATS]
    if unknown:
        raise ValueError(f"Unknown reporting.output_formats: {unknown}")


# impure
def load_config(config_path: Path) -> Config:
    """
    Loads and validates a YAML configuration file into a Config object.
    #impure: Reads from the filesystem.
    """
    if not config_path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in {config_path}: {e}") from e

    _validate_config(raw_config)

    # Relative paths are taken relative to the config file.
    for section, key in (("journal", "path"), ("reporting", "output_dir")):
        if key in raw_config[section]:
            path = Path(raw_config[section][key])
            if not path.is_absolute():
                raw_config[section][key] = str(config_path.parent / path)

    try:
        return cast(Config, _from_dict(Config, raw_config))
    except (TypeError, KeyError) as e:
        raise ValueError(f"Configuration validation failed: missing or invalid key. Details: {e}") from e
