"""
Configuration loader for suppression filters.

Loads and saves filter configuration from .hush/suppressions.yaml, and
parses host plugin options of the form "key=value".

Functions:
- build_filter_config: Validate raw values and build a FilterConfig
- load_filter_config: Load configuration from YAML file
- save_filter_config: Save configuration to YAML file
- parse_options: Build configuration from "key=value" option strings
"""

import os
from collections.abc import Iterable
from pathlib import Path, PurePath
from typing import Any

import yaml

from hush.shared.domain.base_model import to_camel_case, to_snake_case
from hush.shared.domain.exceptions import ConfigurationError, InvalidPatternError
from hush.shared.infrastructure.config import settings
from hush.shared.infrastructure.logging import get_logger
from hush.suppression.models import FilterConfig, Severity
from hush.suppression.patterns import compile_all

logger = get_logger(__name__)

LIST_SEPARATOR = ";"

_BOOLEAN_KEYS = ("check_unused", "report_unused_in_macro_expansion", "defer_unregistered")
_LIST_KEYS = ("global_filters", "path_filters", "source_roots", "suppressible_severities")


def _convert_keys_to_snake_case(data: Any) -> Any:
    """Recursively convert dictionary keys from camelCase to snake_case."""
    if isinstance(data, dict):
        return {
            to_snake_case(key): _convert_keys_to_snake_case(value)
            for key, value in data.items()
        }
    elif isinstance(data, list):
        return [_convert_keys_to_snake_case(item) for item in data]
    else:
        return data


def _as_list(key: str, value: Any) -> list[str]:
    """Accept a list of strings or a single separator-joined string."""
    if value is None:
        return []
    if isinstance(value, str):
        return [part for part in value.split(LIST_SEPARATOR) if part]
    if isinstance(value, list):
        return [str(item) for item in value]
    raise ConfigurationError(f"'{to_camel_case(key)}' must be a list of strings", context={"option": key})


def _validate_source_roots(roots: Iterable[str], base_dir: Path | None) -> tuple[PurePath, ...]:
    """Keep existing directories as absolute paths, warn about and drop the rest."""
    valid = []
    for root in roots:
        candidate = Path(root)
        if base_dir is not None and not candidate.is_absolute():
            candidate = base_dir / candidate

        if not candidate.is_dir():
            logger.warning("invalid_source_root", path=root, reason="not a directory")
            continue
        valid.append(PurePath(os.path.abspath(candidate)))
    return tuple(valid)


def build_filter_config(
    global_filters: Iterable[str] = (),
    path_filters: Iterable[str] = (),
    source_roots: Iterable[str] = (),
    check_unused: bool = False,
    report_unused_in_macro_expansion: bool = True,
    defer_unregistered: bool = False,
    suppressible_severities: Iterable[str] | None = None,
    base_dir: Path | None = None,
) -> FilterConfig:
    """
    Validate raw configuration values and build a FilterConfig.

    Args:
        global_filters: Message regexes applied to every diagnostic
        path_filters: Regexes applied to unit paths
        source_roots: Directories used to relativize unit paths
        check_unused: Enable unused-directive reporting
        report_unused_in_macro_expansion: Also report unused directives from expanded code
        defer_unregistered: Buffer diagnostics of units whose directives are not registered yet
        suppressible_severities: Severity names subject to suppression (default: all)
        base_dir: Directory relative source roots and unit paths are resolved
            against (default: the current working directory)

    Returns:
        Immutable FilterConfig

    Raises:
        ConfigurationError: If any pattern or severity is invalid
    """
    try:
        compiled_global = compile_all(global_filters, source="globalFilters")
        compiled_paths = compile_all(path_filters, source="pathFilters")
    except InvalidPatternError as e:
        raise ConfigurationError(str(e), context=dict(e.context, option=e.source)) from e

    if suppressible_severities is None:
        severities = frozenset(Severity)
    else:
        try:
            severities = frozenset(Severity.parse(name) for name in suppressible_severities)
        except ValueError as e:
            raise ConfigurationError(str(e), context={"option": "suppressibleSeverities"}) from e

    return FilterConfig(
        global_filters=compiled_global,
        path_filters=compiled_paths,
        source_roots=_validate_source_roots(source_roots, base_dir),
        check_unused=check_unused,
        report_unused_in_macro_expansion=report_unused_in_macro_expansion,
        defer_unregistered=defer_unregistered,
        suppressible_severities=severities,
        base_dir=PurePath(os.path.abspath(base_dir)) if base_dir is not None else None,
    )


def _config_from_dict(data: dict[str, Any], base_dir: Path | None) -> FilterConfig:
    data = _convert_keys_to_snake_case(data)

    kwargs: dict[str, Any] = {}
    for key in _LIST_KEYS:
        if key in data:
            kwargs[key] = _as_list(key, data[key])
    for key in _BOOLEAN_KEYS:
        if key in data:
            if not isinstance(data[key], bool):
                raise ConfigurationError(
                    f"'{to_camel_case(key)}' must be true or false",
                    context={"option": key, "value": data[key]},
                )
            kwargs[key] = data[key]

    unknown = set(data) - set(_LIST_KEYS) - set(_BOOLEAN_KEYS)
    if unknown:
        logger.warning("unknown_config_keys", keys=sorted(to_camel_case(k) for k in unknown))

    return build_filter_config(base_dir=base_dir, **kwargs)


def _resolve_config_path(config_path: Path | None, project_root: Path | None) -> Path:
    if config_path is None:
        if project_root is None:
            raise ValueError("Either config_path or project_root must be provided")
        config_path = project_root / settings.config_file
    return config_path


def load_filter_config(
    config_path: Path | None = None,
    project_root: Path | None = None,
) -> FilterConfig:
    """
    Load filter configuration from YAML file.

    Relative source roots are resolved against project_root, or against the
    current working directory when only config_path is given (the file
    usually lives in .hush/ under the project, not next to the sources).

    Args:
        config_path: Path to suppressions.yaml file
        project_root: Project root directory (uses settings.config_file under it)

    Returns:
        FilterConfig loaded from file, or default config if the file is missing or empty

    Raises:
        ConfigurationError: If YAML is invalid or contains invalid values
    """
    config_path = _resolve_config_path(config_path, project_root)
    base_dir = project_root if project_root is not None else Path.cwd()

    if not config_path.exists():
        logger.debug("filter_config_not_found", path=str(config_path))
        return FilterConfig()

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}", context={"path": str(config_path)}) from e

    if data is None:
        return FilterConfig()

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Expected a mapping at the top of {config_path}",
            context={"path": str(config_path)},
        )

    config = _config_from_dict(data, base_dir)
    logger.info(
        "filter_config_loaded",
        path=str(config_path),
        global_filters=len(config.global_filters),
        path_filters=len(config.path_filters),
        source_roots=len(config.source_roots),
    )
    return config


def _portable_root(root: PurePath, base_dir: PurePath | None) -> str:
    """Write roots under the base directory relative to it."""
    if base_dir is not None and root.is_relative_to(base_dir):
        return root.relative_to(base_dir).as_posix()
    return str(root)


def save_filter_config(
    config: FilterConfig,
    config_path: Path | None = None,
    project_root: Path | None = None,
) -> None:
    """
    Save filter configuration to YAML file.

    Args:
        config: FilterConfig to save
        config_path: Path to suppressions.yaml file
        project_root: Project root directory (uses settings.config_file under it)

    Raises:
        ValueError: If neither config_path nor project_root is provided
    """
    config_path = _resolve_config_path(config_path, project_root)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data: dict[str, Any] = {}

    # Add non-empty lists
    if config.global_filters:
        data["global_filters"] = [f.text for f in config.global_filters]
    if config.path_filters:
        data["path_filters"] = [f.text for f in config.path_filters]
    if config.source_roots:
        data["source_roots"] = [_portable_root(root, config.base_dir) for root in config.source_roots]

    data["check_unused"] = config.check_unused
    if not config.report_unused_in_macro_expansion:
        data["report_unused_in_macro_expansion"] = False
    if config.defer_unregistered:
        data["defer_unregistered"] = True
    if config.suppressible_severities != frozenset(Severity):
        data["suppressible_severities"] = [
            s.name.lower() for s in sorted(config.suppressible_severities, key=lambda s: s.value)
        ]

    data = {to_camel_case(key): value for key, value in data.items()}

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)


def parse_options(options: Iterable[str], base_dir: Path | None = None) -> FilterConfig:
    """
    Build configuration from host plugin options.

    Recognized options:
        globalFilters=<regex>;<regex>...   Message regexes filtered everywhere
        pathFilters=<regex>;<regex>...     Regexes filtered against unit paths
        sourceRoots=<dir>;<dir>...         Roots used to relativize unit paths
        checkUnused                        Report unused suppression directives

    Args:
        options: Option strings, in order
        base_dir: Directory relative source roots are resolved against

    Returns:
        FilterConfig

    Raises:
        ConfigurationError: If any pattern is invalid
    """
    lists: dict[str, list[str]] = {key: [] for key in ("global_filters", "path_filters", "source_roots")}
    check_unused = False

    for option in options:
        key, sep, value = option.partition("=")
        key = to_snake_case(key.strip())

        if sep and key in lists:
            lists[key].extend(_as_list(key, value))
        elif not sep and key == "check_unused":
            check_unused = True
        else:
            logger.debug("unknown_option_ignored", option=option)

    return build_filter_config(check_unused=check_unused, base_dir=base_dir, **lists)
