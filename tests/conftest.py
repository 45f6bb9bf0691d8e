"""Shared pytest fixtures for dslgen tests."""

import json
import zipfile
from pathlib import Path
from typing import Any

import pytest

from dslgen.archive import BUNDLE_FORMAT, ClassLoader, entry_name, open_archives
from dslgen.config import GeneratorConfig
from dslgen.document import CodeBlock
from dslgen.emitter import ImportTable, _render_line

PKG = "com.example.widget"
WIDGET = f"{PKG}.Widget"
NULLABLE = "androidx.annotation.Nullable"


def method(name: str, *parameters: Any, returns: str = "void", **extra: Any) -> dict[str, Any]:
    """Raw method descriptor; parameters are type names or ``{"type", "annotations"}``."""
    data: dict[str, Any] = {"name": name, "parameters": list(parameters), "returns": returns}
    data.update(extra)
    return data


def nullable(type_name: str) -> dict[str, Any]:
    return {"type": type_name, "annotations": [NULLABLE]}


def render_block(block: CodeBlock) -> str:
    """Render a code block with short names, as it would appear in the unit."""
    imports = ImportTable("com.example.dsl", "WidgetDSL", list(block.type_names()))
    return "\n".join(_render_line(line, imports) for line in block.lines)


class LibraryBuilder:
    """Builds descriptor bundles and zip archives for tests."""

    def __init__(self, directory: Path):
        self.directory = directory
        self.entries: dict[str, dict[str, Any]] = {}

    def add_class(
        self,
        name: str,
        superclass: str | None = None,
        methods: list[dict[str, Any]] | None = None,
        modifiers: list[str] | None = None,
        interfaces: list[str] | None = None,
    ) -> "LibraryBuilder":
        data: dict[str, Any] = {"name": name, "kind": "class", "methods": methods or []}
        if superclass is not None:
            data["superclass"] = superclass
        if modifiers is not None:
            data["modifiers"] = modifiers
        if interfaces:
            data["interfaces"] = interfaces
        self.entries[entry_name(name)] = data
        return self

    def add_interface(
        self,
        name: str,
        methods: list[dict[str, Any]] | None = None,
        interfaces: list[str] | None = None,
    ) -> "LibraryBuilder":
        data: dict[str, Any] = {
            "name": name,
            "kind": "interface",
            "superclass": None,
            "methods": methods or [],
        }
        if interfaces:
            data["interfaces"] = interfaces
        self.entries[entry_name(name)] = data
        return self

    def bundle(self) -> dict[str, Any]:
        return {"format": BUNDLE_FORMAT, "entries": self.entries}

    def write(self, filename: str = "widgets.json") -> Path:
        path = self.directory / filename
        path.write_text(json.dumps(self.bundle(), indent=2))
        return path

    def write_zip(self, filename: str = "widgets.jar") -> Path:
        path = self.directory / filename
        with zipfile.ZipFile(path, "w") as archive:
            for name, data in sorted(self.entries.items()):
                archive.writestr(name, json.dumps(data))
        return path

    def loader(self) -> ClassLoader:
        return open_archives([self.write()]).loader

    def config(self, **overrides: Any) -> GeneratorConfig:
        values: dict[str, Any] = {
            "root": WIDGET,
            "package": "com.example.dsl",
            "class_name": "WidgetDSL",
            "archives": [self.write()],
            "output_dir": self.directory / "out",
        }
        values.update(overrides)
        return GeneratorConfig(**values)


def abstract(name: str, *parameters: str, returns: str = "void") -> dict[str, Any]:
    return method(name, *parameters, returns=returns, modifiers=["public", "abstract"])


def add_standard_widgets(lib: LibraryBuilder) -> LibraryBuilder:
    """A small widget library exercising every classification rule."""
    lib.add_class(WIDGET, methods=[
        method("setEnabled", "boolean"),
        method("setAlpha", "float"),
        method("setTag", nullable("java.lang.Object")),
        method("setOnClickListener", f"{WIDGET}$OnClickListener"),
        method("setPadding", "int", "int", "int", "int"),
        method("getId", returns="int"),
        method("setLegacyMode", "int", deprecated=True),
        method("setHiddenState", "int", modifiers=["protected"]),
        method("setInternal", f"{PKG}.InternalState"),
        method("setDebug", "boolean", synthetic=True),
    ])
    lib.add_interface(f"{WIDGET}$OnClickListener", methods=[
        abstract("onClick", WIDGET),
    ])
    lib.add_class(f"{WIDGET}$LayoutParams")
    lib.add_class(f"{PKG}.InternalState", modifiers=[])

    lib.add_class(f"{PKG}.TextWidget", superclass=WIDGET, methods=[
        method("setText", "java.lang.CharSequence"),
        method("setTextColor", "int"),
        method("setEnabled", "boolean"),
        method("setOnEditorActionListener", f"{PKG}.TextWidget$OnEditorActionListener"),
    ])
    lib.add_interface(f"{PKG}.TextWidget$OnEditorActionListener", methods=[
        abstract("onEditorAction", f"{PKG}.TextWidget", "int", returns="boolean"),
    ])
    lib.add_class(f"{PKG}.RichText", superclass=f"{PKG}.TextWidget", methods=[
        method("setText", "java.lang.CharSequence"),
        method("setText", "java.lang.String"),
    ])
    lib.add_class(f"{PKG}.Button", superclass=f"{PKG}.TextWidget")

    lib.add_class(f"{PKG}.Slider", superclass=WIDGET, methods=[
        method("setValue", "float"),
        method("setOnChangeListener", f"{PKG}.Slider$OnChangeListener"),
    ])
    lib.add_interface(f"{PKG}.Slider$OnChangeListener", methods=[
        abstract("onValueChange", f"{PKG}.Slider", "float"),
    ])
    lib.add_class(f"{PKG}.Toggle", superclass=WIDGET, methods=[
        method("setChecked", "boolean"),
        method("setText", "java.lang.CharSequence"),
    ])
    lib.add_class(f"{PKG}.AbstractPanel", superclass=WIDGET, modifiers=["public", "abstract"], methods=[
        method("setGravity", "int"),
    ])

    lib.add_class(f"{PKG}.SecretWidget", superclass=WIDGET, modifiers=[])
    lib.add_class(f"{PKG}.Broken", superclass="com.missing.Base")
    lib.add_class("com.example.util.Helper", methods=[method("setName", "java.lang.String")])
    return lib


@pytest.fixture
def library(tmp_path: Path) -> LibraryBuilder:
    """Empty library builder writing into a temporary directory."""
    return LibraryBuilder(tmp_path)


@pytest.fixture
def widgets(tmp_path: Path) -> LibraryBuilder:
    """Library builder preloaded with the standard widget set."""
    return add_standard_widgets(LibraryBuilder(tmp_path))


@pytest.fixture
def label_library(tmp_path: Path) -> LibraryBuilder:
    """Widget with ``setLabel(Text)``, a ``RichText`` subtype and a ``Button``."""
    lib = LibraryBuilder(tmp_path)
    lib.add_class(WIDGET, methods=[method("setLabel", f"{PKG}.Text")])
    lib.add_class(f"{PKG}.Text")
    lib.add_class(f"{PKG}.RichText", superclass=f"{PKG}.Text")
    lib.add_class(f"{PKG}.Button", superclass=WIDGET)
    return lib
