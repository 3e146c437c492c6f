"""Build configuration for PARA Publisher."""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from para_publisher.core.models import DirectoryNotFoundError, InvalidPathError

ENV_PREFIX = "PARA_PUBLISHER_"


def _default_workers() -> int:
    return min(32, (os.cpu_count() or 1) + 4)


@dataclass
class BuildConfig:
    """Settings for one site build.

    The core never writes to ``output_dir``; it is validated and used as
    the base for relative link computation only.
    """
    input_dir: Path
    output_dir: Path
    base_url: str = "/"
    site_title: str = "Knowledge Base"
    verbose: bool = False
    max_workers: int = field(default_factory=_default_workers)
    heading_ids: bool = True

    def __post_init__(self):
        self.input_dir = Path(self.input_dir)
        self.output_dir = Path(self.output_dir)
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")

    @classmethod
    def from_env(cls, input_dir: Path, output_dir: Path, **overrides: Any) -> "BuildConfig":
        """Create a configuration, reading optional settings from the environment.

        Recognised variables: PARA_PUBLISHER_BASE_URL, PARA_PUBLISHER_SITE_TITLE,
        PARA_PUBLISHER_MAX_WORKERS.
        """
        values: Dict[str, Any] = {}
        base_url = os.environ.get(f"{ENV_PREFIX}BASE_URL")
        if base_url:
            values['base_url'] = base_url
        site_title = os.environ.get(f"{ENV_PREFIX}SITE_TITLE")
        if site_title:
            values['site_title'] = site_title
        max_workers = os.environ.get(f"{ENV_PREFIX}MAX_WORKERS")
        if max_workers:
            values['max_workers'] = int(max_workers)
        values.update(overrides)
        return cls(input_dir=input_dir, output_dir=output_dir, **values)

    def validate(self) -> None:
        """Validate the input and output paths.

        Raises:
            DirectoryNotFoundError: If the input directory does not exist
            InvalidPathError: If the input is not a directory, or the output
                              path exists and is a file
        """
        if not self.input_dir.exists():
            raise DirectoryNotFoundError(self.input_dir)
        if not self.input_dir.is_dir():
            raise InvalidPathError(f"Input path '{self.input_dir}' is not a directory")
        if self.output_dir.exists() and not self.output_dir.is_dir():
            raise InvalidPathError(f"Output path '{self.output_dir}' exists and is a file")


def load_config(config_path: Path, **overrides: Any) -> BuildConfig:
    """Load a BuildConfig from a YAML file.

    Relative ``input_dir`` and ``output_dir`` values are resolved against
    the directory holding the config file.

    Args:
        config_path: Path to the YAML file
        overrides: Values taking precedence over the file

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not a mapping or has unknown keys
    """
    config_path = Path(config_path)
    with open(config_path, 'r', encoding='utf-8') as f:
        data: Optional[Dict[str, Any]] = yaml.safe_load(f)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")

    known = {f.name for f in fields(BuildConfig)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown config keys in {config_path}: {', '.join(sorted(unknown))}")

    data.update(overrides)
    for key in ('input_dir', 'output_dir'):
        if key not in data:
            raise ValueError(f"Config file {config_path} is missing '{key}'")
        path = Path(data[key])
        if not path.is_absolute():
            path = config_path.parent / path
        data[key] = path

    return BuildConfig(**data)
