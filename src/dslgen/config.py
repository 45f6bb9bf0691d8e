"""Generator configuration.

Settings come from ``dslgen.toml`` or the ``[tool.dslgen]`` table of
``pyproject.toml``; command-line options override file values. Relative paths
in a config file are resolved against the file's directory.
"""

import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from .document import JAVA_IDENTIFIER, JAVA_QUALIFIED_NAME
from .errors import ConfigError

CONFIG_FILENAME = "dslgen.toml"
PYPROJECT_FILENAME = "pyproject.toml"

DEFAULT_DESCRIPTION = "It contains views and their setters from the scanned libraries"

# TOML key -> GeneratorConfig field
_KEYS = {
    "archives": "archives",
    "dependencies": "dependencies",
    "root": "root",
    "package": "package",
    "class-name": "class_name",
    "output-dir": "output_dir",
    "superclass": "superclass",
    "description": "description",
    "runtime-package": "runtime_package",
    "runtime-class": "runtime_class",
    "dsl-class": "dsl_class",
    "nullable-annotation": "nullable_annotation",
    "nonnull-annotation": "nonnull_annotation",
    "quirks-module": "quirks_module",
    "quirks": "quirks",
}


@dataclass
class GeneratorConfig:
    """Configuration for one generator run."""
    root: str
    package: str
    class_name: str
    archives: list[Path] = field(default_factory=list)
    dependencies: list[Path] = field(default_factory=list)
    output_dir: Path = Path("generated")
    superclass: str | None = None
    description: str = DEFAULT_DESCRIPTION
    runtime_package: str = "org.widgetdsl"
    runtime_class: str = "Runtime"
    dsl_class: str = "BaseDSL"
    nullable_annotation: str = "androidx.annotation.Nullable"
    nonnull_annotation: str = "androidx.annotation.NonNull"
    quirks_module: str | None = None
    quirks: dict[str, dict[str, Any]] = field(default_factory=dict)

    @property
    def output_path(self) -> Path:
        """Where the generated source file goes."""
        return self.output_dir.joinpath(*self.package.split("."), f"{self.class_name}.java")

    def validate(self) -> None:
        """Check required settings and name shapes.

        Raises:
            ConfigError: on the first problem found.
        """
        if not self.archives:
            raise ConfigError("At least one archive is required")
        for label, value in (
            ("root", self.root),
            ("package", self.package),
            ("runtime-package", self.runtime_package),
            ("nullable-annotation", self.nullable_annotation),
            ("nonnull-annotation", self.nonnull_annotation),
        ):
            if not value or not JAVA_QUALIFIED_NAME.fullmatch(value):
                raise ConfigError(f"Invalid {label}: {value!r}")
        for label, value in (
            ("class-name", self.class_name),
            ("runtime-class", self.runtime_class),
            ("dsl-class", self.dsl_class),
        ):
            if not value or not JAVA_IDENTIFIER.fullmatch(value):
                raise ConfigError(f"Invalid {label}: {value!r}")
        if self.superclass is not None and not JAVA_QUALIFIED_NAME.fullmatch(self.superclass):
            raise ConfigError(f"Invalid superclass: {self.superclass!r}")
        if not isinstance(self.quirks, dict):
            raise ConfigError("quirks must be a table")


def find_config_file(start: Path) -> Path | None:
    """Locate ``dslgen.toml`` or a pyproject with a ``[tool.dslgen]`` table."""
    directory = start if start.is_dir() else start.parent
    candidate = directory / CONFIG_FILENAME
    if candidate.exists():
        return candidate
    candidate = directory / PYPROJECT_FILENAME
    if candidate.exists() and "dslgen" in _read_toml(candidate).get("tool", {}):
        return candidate
    return None


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse {path}: {e}") from e


def read_config_file(path: Path) -> dict[str, Any]:
    """Settings from a config file, keyed by ``GeneratorConfig`` field name."""
    data = _read_toml(path)
    if path.name == PYPROJECT_FILENAME:
        data = data.get("tool", {}).get("dslgen", {})
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: [tool.dslgen] must be a table")

    unknown = set(data) - set(_KEYS)
    if unknown:
        raise ConfigError(f"{path}: unknown settings {sorted(unknown)}")

    base = path.parent
    values: dict[str, Any] = {}
    for key, value in data.items():
        name = _KEYS[key]
        if name in ("archives", "dependencies"):
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigError(f"{path}: {key} must be a list of paths")
            value = [base / v for v in value]
        elif name == "output_dir":
            if not isinstance(value, str):
                raise ConfigError(f"{path}: {key} must be a path")
            value = base / value
        elif name == "quirks":
            if not isinstance(value, dict):
                raise ConfigError(f"{path}: quirks must be a table")
        elif not isinstance(value, str):
            raise ConfigError(f"{path}: {key} must be a string")
        values[name] = value
    return values


def load_config(path: Path | None = None, **overrides: Any) -> GeneratorConfig:
    """Build a validated config from an optional file plus overrides.

    Overrides that are None (or empty lists) leave the file value in place.
    """
    values: dict[str, Any] = read_config_file(path) if path is not None else {}
    known = {f.name for f in fields(GeneratorConfig)}
    for name, value in overrides.items():
        if name not in known:
            raise ConfigError(f"Unknown setting: {name}")
        if value is None or value == []:
            continue
        values[name] = value

    missing = [name for name in ("root", "package", "class_name") if not values.get(name)]
    if missing:
        raise ConfigError(f"Missing required settings: {', '.join(missing)}")

    config = GeneratorConfig(**values)
    config.validate()
    return config
