"""Immutable document model for the generated compilation unit.

Code is held as lines of fragments, where a fragment is either literal text or
a ``TypeName``. Keeping type references structured lets the emitter decide on
imports once, after the whole unit is known.
"""

import re
from dataclasses import dataclass
from typing import Iterator, Union

from .models import BOXED_TYPES, PRIMITIVE_TYPES, AttributeCandidate, Nullability

JAVA_IDENTIFIER = re.compile(r"[A-Za-z_$][\w$]*")
JAVA_QUALIFIED_NAME = re.compile(rf"{JAVA_IDENTIFIER.pattern}(\.{JAVA_IDENTIFIER.pattern})*")


@dataclass(frozen=True)
class TypeName:
    """A Java type reference: package, enclosing names, array depth."""
    package: str
    names: tuple[str, ...]
    array_depth: int = 0

    @classmethod
    def get(cls, name: str) -> "TypeName":
        """Parse a binary name (``a.b.Outer$Inner``), primitive or array type."""
        depth = 0
        while name.endswith("[]"):
            name = name[:-2]
            depth += 1
        if name in PRIMITIVE_TYPES or name == "void":
            return cls("", (name,), depth)
        package, _, simple = name.rpartition(".")
        return cls(package, tuple(simple.split("$")), depth)

    @property
    def is_primitive(self) -> bool:
        return self.package == "" and self.names[0] in PRIMITIVE_TYPES and not self.array_depth

    @property
    def is_builtin(self) -> bool:
        """Primitive or void, never imported."""
        return self.package == "" and (self.names[0] in PRIMITIVE_TYPES or self.names[0] == "void")

    @property
    def top_level(self) -> "TypeName":
        return TypeName(self.package, self.names[:1])

    @property
    def canonical(self) -> str:
        base = ".".join(self.names)
        if self.package:
            base = f"{self.package}.{base}"
        return base + "[]" * self.array_depth

    def nested(self, name: str) -> "TypeName":
        return TypeName(self.package, self.names + (name,), self.array_depth)

    def boxed(self) -> "TypeName":
        if self.is_primitive:
            return TypeName.get(BOXED_TYPES[self.names[0]])
        return self

    def __str__(self) -> str:
        return self.canonical


Part = Union[str, TypeName]


@dataclass(frozen=True)
class Line:
    depth: int
    parts: tuple[Part, ...]

    def type_names(self) -> Iterator[TypeName]:
        for part in self.parts:
            if isinstance(part, TypeName):
                yield part


@dataclass(frozen=True)
class CodeBlock:
    """Lines of code relative to the indentation they are placed at."""
    lines: tuple[Line, ...] = ()

    @classmethod
    def verbatim(cls, text: str) -> "CodeBlock":
        """Wrap hand-written code; its lines are emitted exactly as given."""
        return cls(tuple(Line(0, (raw,)) for raw in text.rstrip("\n").split("\n")))

    def type_names(self) -> Iterator[TypeName]:
        for line in self.lines:
            yield from line.type_names()

    def __add__(self, other: "CodeBlock") -> "CodeBlock":
        return CodeBlock(self.lines + other.lines)

    def __bool__(self) -> bool:
        return bool(self.lines)


class CodeWriter:
    """Accumulates lines for one block and freezes them into a ``CodeBlock``."""

    def __init__(self):
        self._lines: list[Line] = []
        self._depth = 0

    def line(self, *parts: Part) -> "CodeWriter":
        self._lines.append(Line(self._depth, parts))
        return self

    def statement(self, *parts: Part) -> "CodeWriter":
        return self.line(*parts, ";")

    def begin(self, *parts: Part) -> "CodeWriter":
        self.line(*parts, " {")
        self._depth += 1
        return self

    def next(self, *parts: Part) -> "CodeWriter":
        self._depth -= 1
        self.line("} ", *parts, " {")
        self._depth += 1
        return self

    def end(self, suffix: str = "") -> "CodeWriter":
        self._depth -= 1
        self.line("}" + suffix)
        return self

    def indent(self) -> "CodeWriter":
        self._depth += 1
        return self

    def unindent(self) -> "CodeWriter":
        self._depth -= 1
        return self

    def block(self, block: CodeBlock) -> "CodeWriter":
        for line in block.lines:
            self._lines.append(Line(self._depth + line.depth, line.parts))
        return self

    def build(self) -> CodeBlock:
        if self._depth != 0:
            raise ValueError(f"unbalanced block (depth {self._depth})")
        return CodeBlock(tuple(self._lines))


@dataclass(frozen=True)
class Branch:
    """One branch of a dispatch case.

    An exhaustive branch always returns, so nothing may follow it.
    """
    candidate: AttributeCandidate
    code: CodeBlock
    exhaustive: bool = False
    replaced: bool = False


@dataclass(frozen=True)
class DispatchCase:
    """All branches for one attribute name, most specific first."""
    name: str
    branches: tuple[Branch, ...] = ()

    def __post_init__(self):
        if any(branch.exhaustive for branch in self.branches[:-1]):
            raise ValueError(f"case {self.name!r}: only the last branch may be exhaustive")

    @property
    def exhaustive(self) -> bool:
        return bool(self.branches) and self.branches[-1].exhaustive


@dataclass(frozen=True)
class WrapperEntry:
    """Typed entry point forwarding to the generic attribute primitive."""
    name: str
    value_type: TypeName
    nullability: Nullability = Nullability.UNKNOWN


@dataclass(frozen=True)
class FactoryPair:
    """Plain and render-callback construction entry points for one class."""
    name: str
    widget: TypeName


@dataclass(frozen=True)
class RuntimeNames:
    """Types of the DSL runtime the generated code calls into."""
    root: TypeName
    runtime: TypeName
    dsl: TypeName
    nullable: TypeName
    non_null: TypeName

    @property
    def attribute_setter(self) -> TypeName:
        return self.runtime.nested("AttributeSetter")

    @property
    def renderable(self) -> TypeName:
        return self.runtime.nested("Renderable")

    @property
    def view_class_result(self) -> TypeName:
        return self.dsl.nested("ViewClassResult")


@dataclass(frozen=True)
class CompilationUnit:
    """The whole generated source file, ready to render."""
    package: str
    class_name: str
    runtime: RuntimeNames
    javadoc: tuple[str, ...] = ()
    superclass: TypeName | None = None
    cases: tuple[DispatchCase, ...] = ()
    factories: tuple[FactoryPair, ...] = ()
    wrappers: tuple[WrapperEntry, ...] = ()

    @property
    def type_name(self) -> TypeName:
        return TypeName(self.package, (self.class_name,))
