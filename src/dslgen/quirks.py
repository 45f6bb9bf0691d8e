"""Quirks table: hand-written overrides for generated code.

Entries are keyed by the declaring class's canonical name. Inside an entry:

- ``__classAlias``: a replacement factory name, or ``False`` to leave the
  whole class out of generation.
- ``"<method>:<valueType>"`` or ``"<method>"``: an override for one setter.
  The value type may be given by canonical or simple name.

An override is a callable taking the ``AttributeCandidate`` and returning
replacement code (a string or ``CodeBlock``) or ``None`` to fall back to the
default branch. A plain string is used verbatim; ``False`` drops the method.
"""

import importlib
from typing import Any, Callable, Mapping, Union

from .document import JAVA_IDENTIFIER, CodeBlock
from .errors import ConfigError
from .models import AttributeCandidate

CLASS_ALIAS_KEY = "__classAlias"

QuirkResult = Union[str, CodeBlock, None]
Quirk = Union[Callable[[AttributeCandidate], QuirkResult], str, CodeBlock, bool, None]


class QuirksTable:
    """Lookup of per-class and per-method overrides."""

    def __init__(self, entries: Mapping[str, Mapping[str, Any]] | None = None):
        self.entries: dict[str, dict[str, Any]] = {}
        for class_name, overrides in (entries or {}).items():
            self.entries[class_name] = _validate_entry(class_name, overrides)

    def merged(self, other: "QuirksTable") -> "QuirksTable":
        """New table with ``other``'s entries taking precedence."""
        combined = {name: dict(overrides) for name, overrides in self.entries.items()}
        for name, overrides in other.entries.items():
            combined.setdefault(name, {}).update(overrides)
        return QuirksTable(combined)

    def class_alias(self, class_name: str) -> str | bool | None:
        """Alias for the class's factory name, ``False`` if excluded."""
        return self.entries.get(class_name, {}).get(CLASS_ALIAS_KEY)

    def is_class_excluded(self, class_name: str) -> bool:
        return self.class_alias(class_name) is False

    def lookup(self, candidate: AttributeCandidate) -> Quirk:
        """Most specific override for a candidate, or None."""
        overrides = self.entries.get(candidate.declaring_class.canonical_name)
        if not overrides:
            return None
        method = candidate.method.name
        value_type = candidate.value_type
        for key in (
            f"{method}:{value_type.canonical_name}",
            f"{method}:{value_type.simple_name}",
            method,
        ):
            if key in overrides:
                return overrides[key]
        return None

    def is_method_excluded(self, candidate: AttributeCandidate) -> bool:
        return self.lookup(candidate) is False

    def replacement(self, candidate: AttributeCandidate) -> CodeBlock | None:
        """Replacement branch code, or None to generate the default branch."""
        quirk = self.lookup(candidate)
        if quirk is None or isinstance(quirk, bool):
            return None
        if callable(quirk):
            quirk = quirk(candidate)
        if quirk is None:
            return None
        if isinstance(quirk, CodeBlock):
            return quirk
        if isinstance(quirk, str):
            return CodeBlock.verbatim(quirk)
        raise ConfigError(
            f"Quirk for {candidate.declaring_class.canonical_name}.{candidate.method.name} "
            f"returned {type(quirk).__name__}, expected str, CodeBlock or None"
        )

    def __len__(self) -> int:
        return len(self.entries)


def _validate_entry(class_name: str, overrides: Any) -> dict[str, Any]:
    if not isinstance(overrides, Mapping):
        raise ConfigError(f"Quirks for {class_name} must be a table")
    result: dict[str, Any] = {}
    for key, value in overrides.items():
        if key == CLASS_ALIAS_KEY:
            if value is not False and not (isinstance(value, str) and JAVA_IDENTIFIER.fullmatch(value)):
                raise ConfigError(
                    f"{class_name}.{CLASS_ALIAS_KEY} must be an identifier or false, got {value!r}"
                )
        elif not (value is None or value is False or isinstance(value, (str, CodeBlock))
                  or callable(value)):
            raise ConfigError(f"Invalid quirk {class_name}.{key}: {value!r}")
        result[key] = value
    return result


def load_quirks_module(target: str) -> QuirksTable:
    """Load a quirks mapping from ``package.module:NAME``.

    The attribute may be a mapping or a ``QuirksTable``.
    """
    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise ConfigError(f"Quirks module must look like 'package.module:NAME', got {target!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(f"Cannot import quirks module {module_name}: {e}") from e
    try:
        value = getattr(module, attr)
    except AttributeError:
        raise ConfigError(f"Quirks module {module_name} has no attribute {attr}") from None
    if isinstance(value, QuirksTable):
        return value
    if not isinstance(value, Mapping):
        raise ConfigError(f"{target} must be a mapping of class names to overrides")
    return QuirksTable(value)
