"""Method classifier.

Decides which declared methods of a widget class become attributes, whether
each one is a plain setter or a listener setter, and what the attribute is
called. Ineligible methods are skipped silently.
"""

import re
from dataclasses import dataclass

from .archive import ClassLoader
from .errors import UnresolvableClassError
from .models import AttributeCandidate, ClassDescriptor, MethodDescriptor, Nullability
from .nullability import NullabilityOracle, UnknownNullability

_LISTENER_PATTERN = re.compile(r"^setOn(.+)Listener$")


@dataclass(frozen=True)
class FormattedName:
    """Derived attribute name for a setter-shaped method."""
    name: str
    is_listener: bool


def format_method_name(method_name: str, parameter_count: int) -> FormattedName | None:
    """Derive the attribute name from a method name.

    ``setOnClickListener`` -> ``onClick`` (listener), ``setText`` -> ``text``.
    Only single-parameter methods qualify.
    """
    if parameter_count != 1:
        return None
    match = _LISTENER_PATTERN.match(method_name)
    if match:
        return FormattedName("on" + match.group(1), True)
    if (method_name.startswith("set")
            and len(method_name) > 3
            and method_name[3].isupper()):
        return FormattedName(method_name[3].lower() + method_name[4:], False)
    return None


class MethodClassifier:
    """Classifies the declared methods of catalog classes."""

    def __init__(
        self,
        loader: ClassLoader,
        root: ClassDescriptor,
        oracle: NullabilityOracle | None = None,
    ):
        self.loader = loader
        self.root = root
        self.oracle = oracle or UnknownNullability()

    def classify(self, cls: ClassDescriptor) -> list[AttributeCandidate]:
        """Candidates for every eligible method, in (name, parameters) order."""
        candidates = []
        for method in sorted(cls.methods, key=lambda m: m.signature):
            candidate = self.classify_method(method)
            if candidate is not None:
                candidates.append(candidate)
        return candidates

    def classify_method(self, method: MethodDescriptor) -> AttributeCandidate | None:
        if not method.is_public or method.synthetic or method.bridge:
            return None
        if not method.parameter_types:
            return None

        try:
            value_type = self.loader.resolve(method.parameter_types[0])
        except UnresolvableClassError:
            return None
        # A non-public parameter type makes the method unusable from generated code
        if not value_type.is_public:
            return None
        if method.is_deprecated:
            return None

        formatted = format_method_name(method.name, len(method.parameter_types))
        if formatted is None:
            return None
        if formatted.is_listener and not self._is_callback_interface(value_type):
            return None
        if self.is_redundant(method):
            return None

        if formatted.is_listener:
            nullable = True
        else:
            nullable = (
                not value_type.is_primitive
                and self.oracle.parameter_nullability(method.declaring_class, method)
                == Nullability.NULLABLE
            )
        return AttributeCandidate(
            name=formatted.name,
            value_type=value_type,
            method=method,
            is_listener=formatted.is_listener,
            is_nullable=nullable,
        )

    def is_redundant(self, method: MethodDescriptor) -> bool:
        """Whether an ancestor up to the root already declares the same signature.

        Methods declared on the root are never redundant.
        """
        declaring = method.declaring_class
        if declaring is self.root:
            return False
        for ancestor in declaring.superclasses():
            if ancestor.declares(method.name, method.parameter_types):
                return True
            if ancestor is self.root:
                break
        return False

    @staticmethod
    def _is_callback_interface(value_type: ClassDescriptor) -> bool:
        return value_type.is_interface and bool(value_type.abstract_methods())
