"""Nullability oracles.

An oracle answers whether ``null`` is an accepted value for a method
parameter. It is consulted once per classified parameter and once more per
generated wrapper, where the answer becomes a contract annotation. Any lookup
miss is ``UNKNOWN``, which the classifier treats as non-null.
"""

from typing import Iterable, Protocol

from .archive import ClassLoader
from .errors import UnresolvableClassError
from .models import ClassDescriptor, MethodDescriptor, Nullability

NULLABLE_ANNOTATIONS = frozenset({
    "androidx.annotation.Nullable",
    "android.annotation.Nullable",
    "android.support.annotation.Nullable",
    "javax.annotation.Nullable",
    "org.jetbrains.annotations.Nullable",
    "org.jspecify.annotations.Nullable",
})

NON_NULL_ANNOTATIONS = frozenset({
    "androidx.annotation.NonNull",
    "android.annotation.NonNull",
    "android.support.annotation.NonNull",
    "javax.annotation.Nonnull",
    "org.jetbrains.annotations.NotNull",
    "org.jspecify.annotations.NonNull",
})


class NullabilityOracle(Protocol):
    """Interface expected from a nullability collaborator."""

    def parameter_nullability(
        self, declaring_class: ClassDescriptor, method: MethodDescriptor, index: int = 0,
    ) -> Nullability:
        ...

    def wrapper_nullability(self, class_name: str, method_name: str, type_name: str) -> Nullability:
        ...


class UnknownNullability:
    """Oracle with no information."""

    def parameter_nullability(
        self, declaring_class: ClassDescriptor, method: MethodDescriptor, index: int = 0,
    ) -> Nullability:
        return Nullability.UNKNOWN

    def wrapper_nullability(self, class_name: str, method_name: str, type_name: str) -> Nullability:
        return Nullability.UNKNOWN


class AnnotationNullability:
    """Reads nullability from parameter annotations recorded in descriptors."""

    def __init__(
        self,
        loader: ClassLoader,
        nullable: Iterable[str] = NULLABLE_ANNOTATIONS,
        non_null: Iterable[str] = NON_NULL_ANNOTATIONS,
    ):
        self.loader = loader
        self.nullable = frozenset(nullable)
        self.non_null = frozenset(non_null)

    def parameter_nullability(
        self, declaring_class: ClassDescriptor, method: MethodDescriptor, index: int = 0,
    ) -> Nullability:
        if index >= len(method.parameter_annotations):
            return Nullability.UNKNOWN
        annotations = set(method.parameter_annotations[index])
        if annotations & self.nullable:
            return Nullability.NULLABLE
        if annotations & self.non_null:
            return Nullability.NON_NULLABLE
        return Nullability.UNKNOWN

    def wrapper_nullability(self, class_name: str, method_name: str, type_name: str) -> Nullability:
        try:
            cls = self.loader.resolve(class_name)
        except UnresolvableClassError:
            return Nullability.UNKNOWN
        for method in cls.methods:
            if method.name == method_name and method.parameter_types == (type_name,):
                return self.parameter_nullability(cls, method)
        return Nullability.UNKNOWN
