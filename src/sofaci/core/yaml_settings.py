"""YAML configuration loading with include directive support."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import yaml
from platformdirs import user_config_dir
from pydantic_settings import BaseSettings, YamlConfigSettingsSource

from sofaci.core.log import logger

PROJECT_CONFIG = "sofaci.yaml"


def _cli_includes(argv: list[str]) -> list[str]:
    """Collect `--include FILE` values before pydantic parses argv."""
    includes = []
    args = iter(argv[1:])
    for arg in args:
        if arg == "--include":
            value = next(args, None)
            if value is not None:
                includes.append(value)
        elif arg.startswith("--include="):
            includes.append(arg.split("=", 1)[1])
    return includes


def deep_merge(base: dict, override: dict) -> dict:
    """Merge override into a copy of base; nested dicts merge, the rest
    is replaced."""
    result = base.copy()
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class YamlWithIncludesSettingsSource(YamlConfigSettingsSource):
    """YAML settings source layering several config files.

    Load order, later wins:
        package defaults < user config < ./sofaci.yaml < --include files

    Any file may carry an `include:` key (string or list) naming other
    YAML files, resolved relative to the including file and merged
    underneath it.
    """

    def __init__(self, settings_cls: type[BaseSettings], yaml_file=None):
        includes = _cli_includes(sys.argv)
        base = yaml_file or settings_cls.model_config.get("yaml_file")
        if base and includes:
            yaml_file = (
                [base] if isinstance(base, (str, os.PathLike)) else list(base)
            ) + includes
        else:
            yaml_file = includes or base

        super().__init__(settings_cls, yaml_file)

    def _read_files(self, files):
        candidates = [
            Path(__file__).parent.parent / "defaults" / "default.yaml",
            Path(user_config_dir("sofaci", appauthor=False)) / PROJECT_CONFIG,
        ]
        if files:
            if isinstance(files, (str, os.PathLike)):
                files = [files]
            candidates.extend(Path(f).expanduser() for f in files)
        else:
            candidates.append(Path(PROJECT_CONFIG))

        result = {}
        for file_path in candidates:
            if not file_path.is_file():
                logger.debug(
                    "Configuration file not found (skipping)",
                    file=str(file_path),
                )
                continue
            logger.debug("Loading configuration", file=str(file_path))
            result = deep_merge(result, self._load_file(file_path, set()))
        return result

    def _load_file(self, filepath: Path, visited: set[Path]) -> dict:
        """Load one file with its include: chain.

        Raises:
            ValueError: On a circular include
        """
        filepath = filepath.resolve()
        if filepath in visited:
            raise ValueError(f"Circular include: {filepath}")
        visited = visited | {filepath}

        with open(filepath, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        includes = data.pop("include", None) or []
        if isinstance(includes, str):
            includes = [includes]

        merged = {}
        for inc in includes:
            inc_path = Path(inc).expanduser()
            if not inc_path.is_absolute():
                inc_path = filepath.parent / inc_path
            merged = deep_merge(merged, self._load_file(inc_path, visited))

        return deep_merge(merged, data)
