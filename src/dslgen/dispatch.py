"""Dispatch table builder.

Turns resolved attribute groups into one dispatch case per attribute name and
one typed wrapper per surviving (name, value type) pair.

Within a case, subtype-declared branches come first, each guarded by the
target's runtime type; root-declared branches follow without a target guard.
The last root-declared listener always returns, so its case gets no
fall-through terminator; earlier root listeners are guarded by the listener
type instead.
"""

from dataclasses import dataclass, field

from .document import (
    JAVA_IDENTIFIER,
    Branch,
    CodeBlock,
    CodeWriter,
    DispatchCase,
    Part,
    RuntimeNames,
    TypeName,
    WrapperEntry,
)
from .listeners import listener_branch
from .models import AttributeCandidate, AttributeGroup, ClassDescriptor, Nullability, Warning
from .nullability import NullabilityOracle, UnknownNullability
from .quirks import QuirksTable

JAVA_KEYWORDS = frozenset({
    "abstract", "assert", "boolean", "break", "byte", "case", "catch", "char",
    "class", "const", "continue", "default", "do", "double", "else", "enum",
    "extends", "final", "finally", "float", "for", "goto", "if", "implements",
    "import", "instanceof", "int", "interface", "long", "native", "new",
    "package", "private", "protected", "public", "return", "short", "static",
    "strictfp", "super", "switch", "synchronized", "this", "throw", "throws",
    "transient", "try", "void", "volatile", "while", "true", "false", "null",
    "var", "yield", "record",
})


def is_valid_identifier(name: str) -> bool:
    return JAVA_IDENTIFIER.fullmatch(name) is not None and name not in JAVA_KEYWORDS


@dataclass
class DispatchTable:
    cases: list[DispatchCase] = field(default_factory=list)
    wrappers: list[WrapperEntry] = field(default_factory=list)
    warnings: list[Warning] = field(default_factory=list)


class DispatchTableBuilder:
    """Builds dispatch cases and wrappers from attribute groups."""

    def __init__(
        self,
        root: ClassDescriptor,
        runtime: RuntimeNames,
        quirks: QuirksTable | None = None,
        oracle: NullabilityOracle | None = None,
    ):
        self.root = root
        self.runtime = runtime
        self.quirks = quirks or QuirksTable()
        self.oracle = oracle or UnknownNullability()

    def build(self, groups: list[AttributeGroup]) -> DispatchTable:
        table = DispatchTable()
        for group in sorted(groups, key=lambda g: g.name):
            if not group.candidates:
                continue
            table.cases.append(self.build_case(group))
            table.wrappers.extend(self.build_wrappers(group, table.warnings))
        return table

    def build_case(self, group: AttributeGroup) -> DispatchCase:
        subtype = [c for c in group.candidates if c.declaring_class is not self.root]
        on_root = [c for c in group.candidates if c.declaring_class is self.root]
        # An unconditional root listener has to be the last branch
        on_root.sort(key=lambda c: c.is_listener)

        ordered = subtype + on_root
        branches = [
            self.build_branch(c, last=index == len(ordered) - 1)
            for index, c in enumerate(ordered)
        ]
        return DispatchCase(name=group.name, branches=tuple(branches))

    def build_branch(self, candidate: AttributeCandidate, last: bool = True) -> Branch:
        replacement = self.quirks.replacement(candidate)
        if replacement is not None:
            return Branch(candidate=candidate, code=replacement, replaced=True)
        if candidate.is_listener:
            exhaustive = last and candidate.declaring_class is self.root
            return Branch(
                candidate=candidate,
                code=listener_branch(candidate, self.root, self.runtime, exhaustive=exhaustive),
                exhaustive=exhaustive,
            )
        return Branch(candidate=candidate, code=self.setter_code(candidate))

    def setter_code(self, candidate: AttributeCandidate) -> CodeBlock:
        method = candidate.method
        value = TypeName.get(candidate.value_type.name)
        value_test: tuple[Part, ...] = ("arg instanceof ", value.boxed())
        if candidate.is_nullable:
            value_test = ("arg == null || ",) + value_test

        w = CodeWriter()
        if candidate.declaring_class is self.root:
            w.begin("if (", *value_test, ")")
            w.statement(f"v.{method.name}((", value, ") arg)")
        else:
            target = TypeName.get(candidate.declaring_class.name)
            if candidate.is_nullable:
                value_test = ("(",) + value_test + (")",)
            w.begin("if (v instanceof ", target, " && ", *value_test, ")")
            w.statement("((", target, f") v).{method.name}((", value, ") arg)")
        w.statement("return true")
        w.end()
        return w.build()

    def build_wrappers(self, group: AttributeGroup, warnings: list[Warning]) -> list[WrapperEntry]:
        """One wrapper per distinct surviving value type, sorted by type name."""
        if not is_valid_identifier(group.name):
            warnings.append(Warning(
                code="RESERVED_IDENTIFIER",
                message=f"No wrapper for attribute {group.name!r}: not a valid Java identifier",
                class_name=group.candidates[0].declaring_class.canonical_name,
            ))
            return []

        wrappers = []
        for value_type in group.value_types():
            candidate = next(c for c in group.candidates if c.value_type.name == value_type.name)
            type_name = TypeName.get(value_type.name)
            nullability = Nullability.UNKNOWN
            if not type_name.is_primitive:
                nullability = self.oracle.wrapper_nullability(
                    candidate.declaring_class.name, candidate.method.name, value_type.name,
                )
            wrappers.append(WrapperEntry(name=group.name, value_type=type_name, nullability=nullability))
        return wrappers
