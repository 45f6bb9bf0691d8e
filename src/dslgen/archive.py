"""Descriptor archives and the class loader that resolves them.

A descriptor archive is the build-time stand-in for a compiled widget library:
either a JSON bundle or a zip file whose ``*.class`` members each hold one JSON
class descriptor. Entry names follow the compiled layout
(``com/example/widget/Button.class``).

The loader resolves binary names against the scanned archives, then the
dependency archives, then a small built-in platform layer (primitives, arrays
and the common ``java.lang`` types).
"""

import json
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from .errors import ArchiveError, UnresolvableClassError
from .models import PRIMITIVE_TYPES, ClassDescriptor, MethodDescriptor, TypeKind

BUNDLE_FORMAT = "dslgen-descriptors/1"
CLASS_SUFFIX = ".class"
ZIP_SUFFIXES = {".zip", ".jar", ".aar"}

_OBJECT = "java.lang.Object"

# name -> (kind, superclass, interfaces)
_PLATFORM_TYPES: dict[str, tuple[TypeKind, str | None, tuple[str, ...]]] = {
    _OBJECT: (TypeKind.CLASS, None, ()),
    "java.lang.CharSequence": (TypeKind.INTERFACE, None, ()),
    "java.lang.Comparable": (TypeKind.INTERFACE, None, ()),
    "java.lang.Runnable": (TypeKind.INTERFACE, None, ()),
    "java.lang.String": (TypeKind.CLASS, _OBJECT, ("java.lang.CharSequence", "java.lang.Comparable")),
    "java.lang.Number": (TypeKind.CLASS, _OBJECT, ()),
    "java.lang.Boolean": (TypeKind.CLASS, _OBJECT, ("java.lang.Comparable",)),
    "java.lang.Character": (TypeKind.CLASS, _OBJECT, ("java.lang.Comparable",)),
    "java.lang.Byte": (TypeKind.CLASS, "java.lang.Number", ("java.lang.Comparable",)),
    "java.lang.Short": (TypeKind.CLASS, "java.lang.Number", ("java.lang.Comparable",)),
    "java.lang.Integer": (TypeKind.CLASS, "java.lang.Number", ("java.lang.Comparable",)),
    "java.lang.Long": (TypeKind.CLASS, "java.lang.Number", ("java.lang.Comparable",)),
    "java.lang.Float": (TypeKind.CLASS, "java.lang.Number", ("java.lang.Comparable",)),
    "java.lang.Double": (TypeKind.CLASS, "java.lang.Number", ("java.lang.Comparable",)),
    "java.lang.Void": (TypeKind.CLASS, _OBJECT, ()),
}

_METHOD_KEYS = {
    "name", "parameters", "returns", "modifiers", "annotations",
    "synthetic", "bridge", "deprecated",
}
_CLASS_KEYS = {"name", "kind", "modifiers", "superclass", "interfaces", "methods"}


def binary_name(entry_name: str) -> str | None:
    """Binary class name for an archive entry, or None for non-class entries."""
    if not entry_name.endswith(CLASS_SUFFIX):
        return None
    return entry_name[:-len(CLASS_SUFFIX)].replace("/", ".")


def entry_name(name: str) -> str:
    """Archive entry name for a binary class name."""
    return name.replace(".", "/") + CLASS_SUFFIX


@dataclass
class DescriptorArchive:
    """One archive's worth of raw class descriptors keyed by entry name."""
    path: str
    entries: dict[str, dict[str, Any]] = field(default_factory=dict)

    def class_entries(self) -> list[str]:
        return sorted(e for e in self.entries if e.endswith(CLASS_SUFFIX))


def read_archive(path: str | Path) -> DescriptorArchive:
    """Read a JSON bundle or zip archive of class descriptors.

    Raises:
        ArchiveError: if the file cannot be read or is malformed.
    """
    path = Path(path)
    if path.suffix.lower() in ZIP_SUFFIXES:
        raw_entries = _read_zip(path)
    else:
        raw_entries = _read_bundle(path)

    entries: dict[str, dict[str, Any]] = {}
    for name, data in raw_entries.items():
        entries[name] = _validate_class(data, name, str(path))
    return DescriptorArchive(path=str(path), entries=entries)


def _read_bundle(path: Path) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ArchiveError(f"cannot read archive: {e}", str(path)) from e
    except json.JSONDecodeError as e:
        raise ArchiveError(f"invalid JSON: {e}", str(path)) from e

    if not isinstance(data, dict) or data.get("format") != BUNDLE_FORMAT:
        raise ArchiveError(f"not a {BUNDLE_FORMAT} bundle", str(path))
    entries = data.get("entries")
    if not isinstance(entries, dict):
        raise ArchiveError("'entries' must be an object", str(path))
    return entries


def _read_zip(path: Path) -> dict[str, Any]:
    entries: dict[str, Any] = {}
    try:
        with zipfile.ZipFile(path) as archive:
            for info in archive.infolist():
                if info.is_dir() or not info.filename.endswith(CLASS_SUFFIX):
                    continue
                try:
                    entries[info.filename] = json.loads(archive.read(info).decode("utf-8"))
                except (UnicodeDecodeError, json.JSONDecodeError) as e:
                    raise ArchiveError(f"invalid descriptor {info.filename}: {e}", str(path)) from e
    except (OSError, zipfile.BadZipFile) as e:
        raise ArchiveError(f"cannot read archive: {e}", str(path)) from e
    return entries


def _validate_class(data: Any, entry: str, path: str) -> dict[str, Any]:
    """Check a raw class descriptor and fill in defaults."""
    if not isinstance(data, dict):
        raise ArchiveError(f"{entry}: descriptor must be an object", path)
    unknown = set(data) - _CLASS_KEYS
    if unknown:
        raise ArchiveError(f"{entry}: unknown keys {sorted(unknown)}", path)

    expected = binary_name(entry)
    name = data.get("name", expected)
    if expected is not None and name != expected:
        raise ArchiveError(f"{entry}: name {name!r} does not match entry", path)
    if not isinstance(name, str) or not name:
        raise ArchiveError(f"{entry}: missing class name", path)

    kind = data.get("kind", "class")
    if kind not in (TypeKind.CLASS.value, TypeKind.INTERFACE.value):
        raise ArchiveError(f"{entry}: invalid kind {kind!r}", path)

    superclass = data.get("superclass", _OBJECT if kind == "class" and name != _OBJECT else None)
    if superclass is not None and not isinstance(superclass, str):
        raise ArchiveError(f"{entry}: superclass must be a string", path)

    methods = data.get("methods", [])
    if not isinstance(methods, list):
        raise ArchiveError(f"{entry}: methods must be a list", path)

    return {
        "name": name,
        "kind": kind,
        "modifiers": _string_list(data.get("modifiers", ["public"]), f"{entry}: modifiers", path),
        "superclass": superclass,
        "interfaces": _string_list(data.get("interfaces", []), f"{entry}: interfaces", path),
        "methods": [_validate_method(m, entry, path) for m in methods],
    }


def _validate_method(data: Any, entry: str, path: str) -> dict[str, Any]:
    if not isinstance(data, dict) or not isinstance(data.get("name"), str):
        raise ArchiveError(f"{entry}: each method needs a name", path)
    where = f"{entry}: {data['name']}"
    unknown = set(data) - _METHOD_KEYS
    if unknown:
        raise ArchiveError(f"{where}: unknown keys {sorted(unknown)}", path)

    parameters = data.get("parameters", [])
    if not isinstance(parameters, list):
        raise ArchiveError(f"{where}: parameters must be a list", path)
    types: list[str] = []
    annotations: list[tuple[str, ...]] = []
    for param in parameters:
        if isinstance(param, str):
            types.append(param)
            annotations.append(())
        elif isinstance(param, dict) and isinstance(param.get("type"), str):
            types.append(param["type"])
            annotations.append(tuple(_string_list(param.get("annotations", []), where, path)))
        else:
            raise ArchiveError(f"{where}: invalid parameter {param!r}", path)

    returns = data.get("returns", "void")
    if not isinstance(returns, str):
        raise ArchiveError(f"{where}: returns must be a string", path)

    flags = {}
    for flag in ("synthetic", "bridge", "deprecated"):
        value = data.get(flag, False)
        if not isinstance(value, bool):
            raise ArchiveError(f"{where}: {flag} must be a boolean", path)
        flags[flag] = value

    return {
        "name": data["name"],
        "parameters": types,
        "parameter_annotations": annotations,
        "returns": returns,
        "modifiers": _string_list(data.get("modifiers", ["public"]), where, path),
        "annotations": _string_list(data.get("annotations", []), where, path),
        **flags,
    }


def _string_list(value: Any, where: str, path: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ArchiveError(f"{where}: expected a list of strings", path)
    return list(value)


class ClassLoader:
    """Resolves binary names to descriptors across a list of archives.

    Archives are searched in order, so the first archive defining a name wins.
    Resolution is cached, including failures.
    """

    def __init__(self, archives: Iterable[DescriptorArchive]):
        self._raw: dict[str, tuple[dict[str, Any], str]] = {}
        for archive in archives:
            for entry, data in archive.entries.items():
                self._raw.setdefault(data["name"], (data, archive.path))
        self._resolved: dict[str, ClassDescriptor] = {}
        self._failed: dict[str, str] = {}
        self._resolving: set[str] = set()

    def resolve(self, name: str) -> ClassDescriptor:
        """Resolve a type and its whole supertype closure.

        Raises:
            UnresolvableClassError: if the type or one of its supertypes is missing.
            ArchiveError: if the supertype graph has a cycle.
        """
        if name in self._resolved:
            return self._resolved[name]
        if name in self._failed:
            raise UnresolvableClassError(name, self._failed[name])
        if name in self._resolving:
            raise ArchiveError(f"cyclic supertype chain through {name}")

        self._resolving.add(name)
        try:
            descriptor = self._build(name)
        except UnresolvableClassError as e:
            self._failed[name] = e.missing
            raise UnresolvableClassError(name, e.missing) from None
        finally:
            self._resolving.discard(name)
        self._resolved[name] = descriptor
        return descriptor

    def link(self, cls: ClassDescriptor) -> None:
        """Resolve the parameter types of every method the class declares."""
        for method in cls.methods:
            for type_name in method.parameter_types:
                try:
                    self.resolve(type_name)
                except UnresolvableClassError as e:
                    raise UnresolvableClassError(cls.name, e.missing) from None

    def __contains__(self, name: str) -> bool:
        return name in self._raw

    def _build(self, name: str) -> ClassDescriptor:
        if name == "void":
            return ClassDescriptor(name=name, kind=TypeKind.VOID)
        if name in PRIMITIVE_TYPES:
            return ClassDescriptor(name=name, kind=TypeKind.PRIMITIVE)
        if name.endswith("[]"):
            component = self.resolve(name[:-2])
            return ClassDescriptor(
                name=name,
                kind=TypeKind.ARRAY,
                modifiers=component.modifiers & {"public"},
                supertype=self.resolve(_OBJECT),
                component=component,
            )
        if name in self._raw:
            data, origin = self._raw[name]
            return self._build_declared(data, origin)
        if name in _PLATFORM_TYPES:
            kind, superclass, interfaces = _PLATFORM_TYPES[name]
            return ClassDescriptor(
                name=name,
                kind=kind,
                supertype=self.resolve(superclass) if superclass else None,
                interfaces=tuple(self.resolve(i) for i in interfaces),
                origin="<platform>",
            )
        raise UnresolvableClassError(name)

    def _build_declared(self, data: dict[str, Any], origin: str) -> ClassDescriptor:
        superclass = data["superclass"]
        cls = ClassDescriptor(
            name=data["name"],
            kind=TypeKind(data["kind"]),
            modifiers=frozenset(data["modifiers"]),
            supertype=self.resolve(superclass) if superclass else None,
            interfaces=tuple(self.resolve(i) for i in data["interfaces"]),
            origin=origin,
        )
        cls.methods = tuple(
            MethodDescriptor(
                name=m["name"],
                declaring_class=cls,
                parameter_types=tuple(m["parameters"]),
                return_type=m["returns"],
                modifiers=frozenset(m["modifiers"]),
                annotations=tuple(m["annotations"]),
                parameter_annotations=tuple(m["parameter_annotations"]),
                deprecated=m["deprecated"],
                synthetic=m["synthetic"],
                bridge=m["bridge"],
            )
            for m in data["methods"]
        )
        return cls


@dataclass
class ArchiveSet:
    """Opened archives: the scanned entry list plus a loader over everything."""
    entries: list[str]
    loader: ClassLoader
    archives: list[DescriptorArchive] = field(default_factory=list)


def open_archives(
    archives: Iterable[str | Path],
    dependencies: Iterable[str | Path] = (),
) -> ArchiveSet:
    """Read scanned and dependency archives.

    Only scanned archives contribute catalog entries; dependencies are used
    for resolution only. Entries come back sorted by entry name.
    """
    scanned = [read_archive(p) for p in archives]
    deps = [read_archive(p) for p in dependencies]
    entries: set[str] = set()
    for archive in scanned:
        entries.update(archive.class_entries())
    return ArchiveSet(
        entries=sorted(entries),
        loader=ClassLoader(scanned + deps),
        archives=scanned,
    )
