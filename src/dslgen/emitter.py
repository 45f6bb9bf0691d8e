"""Emitter: assemble the compilation unit and render it as Java source.

Rendering happens once, over the finished document. Top-level types are
imported unless they live in ``java.lang`` or the generated package; when two
referenced types share a simple name, both stay fully qualified.
"""

from typing import Iterable

from .document import (
    CodeBlock,
    CodeWriter,
    CompilationUnit,
    DispatchCase,
    FactoryPair,
    Line,
    RuntimeNames,
    TypeName,
    WrapperEntry,
)
from .config import GeneratorConfig
from .dispatch import DispatchTable
from .models import Nullability

INDENT = "  "

OBJECT = TypeName.get("java.lang.Object")
STRING = TypeName.get("java.lang.String")
VOID = TypeName.get("java.lang.Void")


class ImportTable:
    """Decides how each referenced type is spelled."""

    def __init__(self, package: str, class_name: str, types: Iterable[TypeName]):
        self.package = package
        by_simple: dict[str, set[TypeName]] = {}
        for type_name in types:
            if type_name.is_builtin:
                continue
            top = type_name.top_level
            by_simple.setdefault(top.names[0], set()).add(top)

        self._short: set[TypeName] = set()
        for simple, tops in by_simple.items():
            if simple == class_name or len(tops) != 1:
                continue
            top = next(iter(tops))
            # Types in the default package can only be named from it
            if top.package or not package:
                self._short.add(top)

    @property
    def imports(self) -> list[str]:
        return sorted(
            top.canonical for top in self._short
            if top.package not in ("java.lang", self.package)
        )

    def name(self, type_name: TypeName) -> str:
        if type_name.is_builtin or type_name.top_level in self._short:
            text = ".".join(type_name.names)
        else:
            text = TypeName(type_name.package, type_name.names).canonical
        return text + "[]" * type_name.array_depth


def runtime_for(config: GeneratorConfig) -> RuntimeNames:
    """Runtime types named by the configuration."""
    return RuntimeNames(
        root=TypeName.get(config.root),
        runtime=TypeName(config.runtime_package, (config.runtime_class,)),
        dsl=TypeName(config.runtime_package, (config.dsl_class,)),
        nullable=TypeName.get(config.nullable_annotation),
        non_null=TypeName.get(config.nonnull_annotation),
    )


def assemble(
    config: GeneratorConfig,
    table: DispatchTable,
    factories: Iterable[FactoryPair],
    tool_name: str = "dslgen",
) -> CompilationUnit:
    """Put dispatch cases, factories and wrappers into one unit."""
    return CompilationUnit(
        package=config.package,
        class_name=config.class_name,
        runtime=runtime_for(config),
        javadoc=(
            "DSL for creating views and setting their attributes.",
            f"This file has been generated by {{@code {tool_name}}}.",
            f"{config.description}.",
            "Please, don't edit it manually unless for debugging.",
        ),
        superclass=TypeName.get(config.superclass) if config.superclass else None,
        cases=tuple(table.cases),
        factories=tuple(factories),
        wrappers=tuple(table.wrappers),
    )


def render(unit: CompilationUnit) -> str:
    """Render the unit as Java source text."""
    body = _class_body(unit)
    imports = ImportTable(unit.package, unit.class_name, body.type_names())

    out: list[str] = []
    if unit.package:
        out.extend([f"package {unit.package};", ""])
    if imports.imports:
        out.extend(f"import {name};" for name in imports.imports)
        out.append("")
    if unit.javadoc:
        out.append("/**")
        out.extend(f" * {line}".rstrip() for line in unit.javadoc)
        out.append(" */")
    out.extend(_render_line(line, imports) for line in body.lines)
    return "\n".join(out) + "\n"


def _render_line(line: Line, imports: ImportTable) -> str:
    text = "".join(
        imports.name(part) if isinstance(part, TypeName) else part
        for part in line.parts
    )
    if not text.strip():
        return ""
    return INDENT * line.depth + text


def _class_body(unit: CompilationUnit) -> CodeBlock:
    rt = unit.runtime
    header: list = [f"public final class {unit.class_name}"]
    if unit.superclass is not None:
        header.extend([" extends ", unit.superclass])
    header.extend([" implements ", rt.attribute_setter])

    w = CodeWriter()
    w.begin(*header)
    w.begin("static")
    w.statement(rt.runtime, f".registerAttributeSetter(new {unit.class_name}())")
    w.end()

    for pair in unit.factories:
        w.line("")
        w.block(_factory_methods(pair, rt))
    for wrapper in unit.wrappers:
        w.line("")
        w.block(_wrapper_method(wrapper, rt))

    w.line("")
    w.block(_dispatch_method(unit.cases, rt))
    w.end()
    return w.build()


def _factory_methods(pair: FactoryPair, rt: RuntimeNames) -> CodeBlock:
    w = CodeWriter()
    w.begin("public static ", rt.view_class_result, f" {pair.name}()")
    w.statement("return ", rt.dsl, ".v(", pair.widget, ".class)")
    w.end()
    w.line("")
    w.begin("public static ", VOID, f" {pair.name}(", rt.renderable, " r)")
    w.statement("return ", rt.dsl, ".v(", pair.widget, ".class, r)")
    w.end()
    return w.build()


def _wrapper_method(wrapper: WrapperEntry, rt: RuntimeNames) -> CodeBlock:
    annotation: tuple = ()
    if wrapper.nullability == Nullability.NULLABLE:
        annotation = ("@", rt.nullable, " ")
    elif wrapper.nullability == Nullability.NON_NULLABLE:
        annotation = ("@", rt.non_null, " ")

    w = CodeWriter()
    w.begin("public static ", VOID, f" {wrapper.name}(", *annotation, wrapper.value_type, " arg)")
    w.statement("return ", rt.dsl, f'.attr("{wrapper.name}", arg)')
    w.end()
    return w.build()


def _dispatch_method(cases: Iterable[DispatchCase], rt: RuntimeNames) -> CodeBlock:
    w = CodeWriter()
    w.begin(
        "public boolean set(", rt.root, " v, ", STRING, " name, final ",
        OBJECT, " arg, final ", OBJECT, " old)",
    )
    w.begin("switch (name)")
    for case in cases:
        w.line(f'case "{case.name}":')
        w.indent()
        for branch in case.branches:
            w.block(branch.code)
        if not case.exhaustive:
            w.statement("break")
        w.unindent()
    w.end()
    w.statement("return false")
    w.end()
    return w.build()
