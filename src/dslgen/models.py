"""Data models for the widget descriptor model and attribute analysis.

Descriptors are produced once by the class loader and are read-only after
that. Candidates and groups are derived from them by the classifier and the
override resolver, and drive the dispatch table and wrapper generation.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator

PRIMITIVE_TYPES = frozenset({
    "boolean", "byte", "char", "short", "int", "long", "float", "double",
})

BOXED_TYPES: dict[str, str] = {
    "boolean": "java.lang.Boolean",
    "byte": "java.lang.Byte",
    "char": "java.lang.Character",
    "short": "java.lang.Short",
    "int": "java.lang.Integer",
    "long": "java.lang.Long",
    "float": "java.lang.Float",
    "double": "java.lang.Double",
}

DEPRECATED_ANNOTATION = "java.lang.Deprecated"


class TypeKind(str, Enum):
    """Kind of a resolved type."""
    CLASS = "class"
    INTERFACE = "interface"
    PRIMITIVE = "primitive"
    ARRAY = "array"
    VOID = "void"


class Nullability(str, Enum):
    """Answer of a nullability oracle for a parameter."""
    NULLABLE = "nullable"
    NON_NULLABLE = "nonNullable"
    UNKNOWN = "unknown"


@dataclass(eq=False)
class MethodDescriptor:
    """A method declared by a class, as recorded in the descriptor archive."""
    name: str
    declaring_class: "ClassDescriptor" = field(repr=False)
    parameter_types: tuple[str, ...] = ()
    return_type: str = "void"
    modifiers: frozenset[str] = frozenset()
    annotations: tuple[str, ...] = ()
    parameter_annotations: tuple[tuple[str, ...], ...] = ()
    deprecated: bool = False
    synthetic: bool = False
    bridge: bool = False

    @property
    def is_public(self) -> bool:
        return "public" in self.modifiers

    @property
    def is_static(self) -> bool:
        return "static" in self.modifiers

    @property
    def is_abstract(self) -> bool:
        return "abstract" in self.modifiers

    @property
    def is_deprecated(self) -> bool:
        return self.deprecated or DEPRECATED_ANNOTATION in self.annotations

    @property
    def signature(self) -> tuple[str, tuple[str, ...]]:
        """Name plus parameter types, the identity used for override checks."""
        return (self.name, self.parameter_types)

    @property
    def key(self) -> str:
        return f"{self.name}({', '.join(self.parameter_types)})"


@dataclass(eq=False)
class ClassDescriptor:
    """A resolved type: widget classes, interfaces, primitives and arrays.

    ``name`` is the binary name (``com.example.Outer$Inner``). Supertypes and
    interfaces are resolved references into the same loader, so the hierarchy
    can be walked without further lookups.
    """
    name: str
    kind: TypeKind = TypeKind.CLASS
    modifiers: frozenset[str] = frozenset({"public"})
    supertype: "ClassDescriptor | None" = field(default=None, repr=False)
    interfaces: tuple["ClassDescriptor", ...] = field(default=(), repr=False)
    methods: tuple[MethodDescriptor, ...] = field(default=(), repr=False)
    component: "ClassDescriptor | None" = field(default=None, repr=False)
    origin: str | None = None

    @property
    def canonical_name(self) -> str:
        return self.name.replace("$", ".")

    @property
    def package(self) -> str:
        if self.kind in (TypeKind.PRIMITIVE, TypeKind.VOID, TypeKind.ARRAY):
            return ""
        return self.name.rpartition(".")[0]

    @property
    def simple_name(self) -> str:
        return self.name.rpartition(".")[2].rpartition("$")[2]

    @property
    def is_public(self) -> bool:
        return "public" in self.modifiers

    @property
    def is_abstract(self) -> bool:
        return "abstract" in self.modifiers

    @property
    def is_interface(self) -> bool:
        return self.kind == TypeKind.INTERFACE

    @property
    def is_primitive(self) -> bool:
        return self.kind == TypeKind.PRIMITIVE

    @property
    def is_nested(self) -> bool:
        return "$" in self.name

    @property
    def depth(self) -> int:
        """Length of the longest path to a type without supertypes."""
        parents = self.direct_supertypes()
        if not parents:
            return 0
        return 1 + max(parent.depth for parent in parents)

    def direct_supertypes(self) -> list["ClassDescriptor"]:
        parents = list(self.interfaces)
        if self.supertype is not None:
            parents.insert(0, self.supertype)
        return parents

    def superclasses(self) -> Iterator["ClassDescriptor"]:
        """Walk the superclass chain, nearest first."""
        current = self.supertype
        while current is not None:
            yield current
            current = current.supertype

    def is_subtype_of(self, other: "ClassDescriptor") -> bool:
        """Strict subtype check over superclasses and interfaces."""
        pending = self.direct_supertypes()
        seen: set[str] = set()
        while pending:
            current = pending.pop()
            if current is other or current.name == other.name:
                return True
            if current.name in seen:
                continue
            seen.add(current.name)
            pending.extend(current.direct_supertypes())
        return False

    def declares(self, name: str, parameter_types: tuple[str, ...]) -> bool:
        """Whether this class itself declares a public method with the signature."""
        return any(
            m.is_public and m.name == name and m.parameter_types == parameter_types
            for m in self.methods
        )

    def abstract_methods(self) -> list[MethodDescriptor]:
        """Abstract methods of an interface, including inherited ones.

        Sorted by name and parameter types; a redeclaration in a
        subinterface hides the inherited one.
        """
        found: dict[tuple[str, tuple[str, ...]], MethodDescriptor] = {}
        pending = [self]
        seen: set[str] = set()
        while pending:
            current = pending.pop(0)
            if current.name in seen:
                continue
            seen.add(current.name)
            for method in current.methods:
                if method.is_abstract and not method.is_static:
                    found.setdefault(method.signature, method)
            pending.extend(current.interfaces)
        return [found[key] for key in sorted(found)]


@dataclass
class AttributeCandidate:
    """A method classified as a settable attribute."""
    name: str
    value_type: ClassDescriptor
    method: MethodDescriptor
    is_listener: bool = False
    is_nullable: bool = False

    @property
    def declaring_class(self) -> ClassDescriptor:
        return self.method.declaring_class

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "value_type": self.value_type.canonical_name,
            "method": self.method.name,
            "declaring_class": self.declaring_class.canonical_name,
            "listener": self.is_listener,
            "nullable": self.is_nullable,
        }


@dataclass
class AttributeGroup:
    """All candidates sharing a derived attribute name.

    ``candidates`` holds the survivors of override elimination, most
    specific first; ``eliminated`` keeps the shadowed ones for reporting.
    """
    name: str
    candidates: list[AttributeCandidate] = field(default_factory=list)
    eliminated: list[AttributeCandidate] = field(default_factory=list)

    def value_types(self) -> list[ClassDescriptor]:
        """Distinct surviving value types, sorted by binary name."""
        types: dict[str, ClassDescriptor] = {}
        for candidate in self.candidates:
            types.setdefault(candidate.value_type.name, candidate.value_type)
        return [types[name] for name in sorted(types)]


@dataclass
class Warning:
    """Recoverable problem found while generating."""
    code: str
    message: str
    class_name: str | None = None


@dataclass
class Analysis:
    """Everything known about the library before code is emitted."""
    root: ClassDescriptor
    classes: list[ClassDescriptor] = field(default_factory=list)
    candidates: list[AttributeCandidate] = field(default_factory=list)
    groups: list[AttributeGroup] = field(default_factory=list)
    excluded_classes: list[str] = field(default_factory=list)
    warnings: list[Warning] = field(default_factory=list)

    def candidates_for(self, cls: ClassDescriptor) -> list[AttributeCandidate]:
        return [c for c in self.candidates if c.declaring_class is cls]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "root": self.root.canonical_name,
            "classes": [
                {
                    "name": cls.canonical_name,
                    "supertype": cls.supertype.canonical_name if cls.supertype else None,
                    "origin": cls.origin,
                    "attributes": [c.to_dict() for c in self.candidates_for(cls)],
                }
                for cls in self.classes
            ],
            "groups": [
                {
                    "name": group.name,
                    "branches": [c.to_dict() for c in group.candidates],
                    "eliminated": [c.to_dict() for c in group.eliminated],
                }
                for group in self.groups
            ],
            "excluded_classes": list(self.excluded_classes),
            "warnings": [
                {"code": w.code, "message": w.message, "class_name": w.class_name}
                for w in self.warnings
            ],
        }
