"""Deterministic redraw policy.

Position changes only move a marker; icon regeneration is comparatively
expensive and happens only when a visually significant attribute changes.
"""

from __future__ import annotations

from takmap.models.entity import EntityRecord


def has_coords(record: EntityRecord) -> bool:
    """``(0, 0)`` is the "no fix" sentinel."""
    return not (record.lat == 0 and record.lon == 0)


def needs_redraw(old: EntityRecord, new: EntityRecord) -> bool:
    """Decide whether the icon of *old* must be regenerated to show *new*.

    True iff symbol code, status, speed, course, team or role differ, or
    the new symbol is airborne and the altitude changed.
    """
    if old.sidc != new.sidc or old.status != new.status:
        return True
    if old.speed != new.speed or old.course != new.course:
        return True
    if old.team != new.team or old.role != new.role:
        return True
    return new.is_airborne and old.hae != new.hae
