"""View factory generator.

Every catalog class gets a pair of construction entry points named after the
class, e.g. ``FrameLayout`` -> ``frameLayout()`` and
``frameLayout(Renderable r)``. The quirks table can rename a class or leave it
out entirely.
"""

from .dispatch import is_valid_identifier
from .document import FactoryPair, TypeName
from .models import ClassDescriptor, Warning
from .quirks import QuirksTable


def lower_first(name: str) -> str:
    return name[:1].lower() + name[1:]


def factory_name(cls: ClassDescriptor, quirks: QuirksTable | None = None) -> str | None:
    """Factory identifier for a class, or None if quirks exclude it."""
    name = cls.simple_name
    if quirks is not None:
        alias = quirks.class_alias(cls.canonical_name)
        if alias is False:
            return None
        if isinstance(alias, str):
            name = alias
    return lower_first(name)


def build_factories(
    classes: list[ClassDescriptor],
    quirks: QuirksTable | None = None,
) -> tuple[list[FactoryPair], list[Warning]]:
    """Factory pairs in catalog order.

    A name that is a Java keyword or already taken by an earlier class is
    skipped with a warning; an alias in the quirks table resolves either.
    """
    pairs: list[FactoryPair] = []
    warnings: list[Warning] = []
    taken: dict[str, str] = {}
    for cls in classes:
        name = factory_name(cls, quirks)
        if name is None:
            continue
        if not is_valid_identifier(name):
            warnings.append(Warning(
                code="RESERVED_IDENTIFIER",
                message=f"No factory: {name!r} is not a valid Java identifier",
                class_name=cls.canonical_name,
            ))
            continue
        if name in taken:
            warnings.append(Warning(
                code="FACTORY_NAME_COLLISION",
                message=f"No factory: {name!r} is already used by {taken[name]}",
                class_name=cls.canonical_name,
            ))
            continue
        taken[name] = cls.canonical_name
        pairs.append(FactoryPair(name=name, widget=TypeName.get(cls.name)))
    return pairs, warnings
