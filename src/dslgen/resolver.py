"""Override resolver.

Within one attribute name, two candidates conflict when they share a value
type. The candidate declared on a strict supertype is shadowed by the one on
the subtype; candidates on unrelated classes both survive and are told apart
at runtime by a target-type test.
"""

from typing import Iterable

from .models import AttributeCandidate, AttributeGroup


def shadows(specific: AttributeCandidate, general: AttributeCandidate) -> bool:
    """Whether ``specific`` supersedes ``general`` for the same value type."""
    if specific.value_type.name != general.value_type.name:
        return False
    return specific.declaring_class.is_subtype_of(general.declaring_class)


def eliminate_overrides(
    candidates: list[AttributeCandidate],
) -> tuple[list[AttributeCandidate], list[AttributeCandidate]]:
    """Split candidates into survivors and eliminated ones.

    Input order is preserved. When one class yields two candidates with the
    same value type, the first one wins.
    """
    survivors: list[AttributeCandidate] = []
    eliminated: list[AttributeCandidate] = []
    for candidate in candidates:
        if any(shadows(other, candidate) for other in candidates if other is not candidate):
            eliminated.append(candidate)
        elif any(
            kept.value_type.name == candidate.value_type.name
            and kept.declaring_class.name == candidate.declaring_class.name
            for kept in survivors
        ):
            eliminated.append(candidate)
        else:
            survivors.append(candidate)
    return survivors, eliminated


def specificity_key(candidate: AttributeCandidate) -> tuple:
    """Sort key putting the most specific branch first.

    A narrower value type wins over a deeper declaring class: a target that
    inherits a setter for the narrower type must reach it before a wider
    setter declared further down.
    """
    return (
        -candidate.value_type.depth,
        -candidate.declaring_class.depth,
        candidate.value_type.name,
        candidate.declaring_class.name,
    )


def group_candidates(candidates: Iterable[AttributeCandidate]) -> list[AttributeGroup]:
    """Group candidates by attribute name and resolve overrides in each group.

    Groups come back sorted by name, survivors most specific first.
    """
    by_name: dict[str, list[AttributeCandidate]] = {}
    for candidate in candidates:
        by_name.setdefault(candidate.name, []).append(candidate)

    groups = []
    for name in sorted(by_name):
        survivors, eliminated = eliminate_overrides(by_name[name])
        groups.append(AttributeGroup(
            name=name,
            candidates=sorted(survivors, key=specificity_key),
            eliminated=eliminated,
        ))
    return groups
