"""Exception hierarchy for dslgen.

Fatal conditions (unreadable archives, bad configuration, a missing root type)
abort the run before anything is written. Unresolvable classes are recoverable
and are turned into warnings by the catalog.
"""


class DslGenError(Exception):
    """Base class for all dslgen errors."""


class ConfigError(DslGenError):
    """Invalid or incomplete generator configuration."""


class ArchiveError(DslGenError):
    """A descriptor archive is unreadable or malformed."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        if path:
            message = f"{path}: {message}"
        super().__init__(message)


class UnresolvableClassError(DslGenError):
    """A class could not be resolved because a dependency is missing."""

    def __init__(self, name: str, missing: str | None = None):
        self.name = name
        self.missing = missing or name
        if self.missing == name:
            message = f"Class not found: {name}"
        else:
            message = f"Cannot resolve {name}: missing dependency {self.missing}"
        super().__init__(message)


class GenerationError(DslGenError):
    """Generation cannot proceed; no output is written."""
