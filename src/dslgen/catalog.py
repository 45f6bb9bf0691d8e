"""Class catalog: the ordered set of widget classes eligible for generation."""

from dataclasses import dataclass, field
from typing import Iterable

from .archive import ClassLoader, binary_name
from .errors import GenerationError, UnresolvableClassError
from .models import ClassDescriptor, TypeKind, Warning


@dataclass
class Catalog:
    """Eligible classes sorted by canonical name, plus what was skipped."""
    root: ClassDescriptor
    classes: list[ClassDescriptor] = field(default_factory=list)
    warnings: list[Warning] = field(default_factory=list)


def is_eligible(cls: ClassDescriptor, root: ClassDescriptor) -> bool:
    """Public, top-level class that is the root or a proper subtype of it."""
    if cls.kind != TypeKind.CLASS or not cls.is_public or cls.is_nested:
        return False
    return cls is root or cls.is_subtype_of(root)


def build_catalog(entries: Iterable[str], loader: ClassLoader, root_name: str) -> Catalog:
    """Filter archive entries down to the eligible widget classes.

    Classes that fail to resolve because of a missing dependency are skipped
    with an ``UNRESOLVABLE_CLASS`` warning.

    Raises:
        GenerationError: if the root type itself cannot be resolved.
    """
    try:
        root = loader.resolve(root_name)
    except UnresolvableClassError as e:
        raise GenerationError(f"Root type {root_name} cannot be resolved: {e}") from e
    if root.kind != TypeKind.CLASS:
        raise GenerationError(f"Root type {root_name} is not a class")

    catalog = Catalog(root=root)
    for entry in sorted(entries):
        name = binary_name(entry)
        # Nested classes never get factories or attributes of their own
        if name is None or "$" in name:
            continue
        try:
            cls = loader.resolve(name)
            if not is_eligible(cls, root):
                continue
            loader.link(cls)
        except UnresolvableClassError as e:
            catalog.warnings.append(Warning(
                code="UNRESOLVABLE_CLASS",
                message=f"Skipped: missing dependency {e.missing}",
                class_name=name,
            ))
            continue
        catalog.classes.append(cls)

    catalog.classes.sort(key=lambda c: c.canonical_name)
    return catalog
