"""Skill inheritance: stations require the skills of their assigned operations."""

from typing import Iterable, Set, Tuple

from capacity.catalog import Catalog
from capacity.entities import Station
from capacity.errors import ValidationError


def compute_inherited_skills(operation_ids: Iterable[str], catalog: Catalog) -> Set[str]:
    inherited: Set[str] = set()
    for operation in catalog.resolve_operations(operation_ids):
        inherited.update(operation.required_skills)
    return inherited


def compute_effective_skills(station: Station, catalog: Catalog) -> Set[str]:
    return set(station.station_specific_skills) | compute_inherited_skills(
        station.operation_ids, catalog
    )


def split_skills(station: Station, catalog: Catalog) -> Tuple[Set[str], Set[str]]:
    """Return ``(inherited, custom)`` where custom excludes anything inherited."""
    inherited = compute_inherited_skills(station.operation_ids, catalog)
    custom = set(station.station_specific_skills) - inherited
    return inherited, custom


def is_removable(station: Station, skill_id: str, catalog: Catalog) -> bool:
    """A skill can be dropped only while no assigned operation requires it."""
    return skill_id not in compute_inherited_skills(station.operation_ids, catalog)


def ensure_skill_edit_allowed(
    current: Station, proposed: Station, catalog: Catalog
) -> None:
    """
    Reject an edit that removes station skills still inherited from operations.

    Inheritance is evaluated against the proposed operation set, so a skill
    becomes removable in the same edit that unassigns the last operation
    requiring it.
    """
    removed = set(current.station_specific_skills) - set(proposed.station_specific_skills)
    if not removed:
        return

    blocked = removed & compute_inherited_skills(proposed.operation_ids, catalog)
    if blocked:
        names = ", ".join(sorted(catalog.skill_name(skill) for skill in blocked))
        raise ValidationError(
            f"Skills required by assigned operations cannot be removed: {names}"
        )
