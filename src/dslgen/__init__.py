"""dslgen - generate a typed attribute DSL from a widget class library."""

__version__ = "0.1.0"

from .config import GeneratorConfig, load_config
from .errors import ArchiveError, ConfigError, DslGenError, GenerationError, UnresolvableClassError
from .generator import Generator, GeneratorResult, generate_dsl

__all__ = [
    "__version__",
    "ArchiveError",
    "ConfigError",
    "DslGenError",
    "GenerationError",
    "Generator",
    "GeneratorConfig",
    "GeneratorResult",
    "UnresolvableClassError",
    "generate_dsl",
    "load_config",
]
