"""Reconciled, mutable view of one remote object."""

from __future__ import annotations

from dataclasses import dataclass

from takmap.models.entity import EntityRecord
from takmap.state.policy import has_coords, needs_redraw

# Schema fields an incoming record may overwrite.  ``raw`` is replaced
# wholesale and ``uid`` is immutable for the entity's lifetime.
_MERGE_FIELDS: frozenset[str] = frozenset(EntityRecord.model_fields) - {"raw", "uid"}


@dataclass(eq=False)
class Entity:
    """One entity in an :class:`~takmap.state.store.EntityStore`.

    The entity holds no rendering references; markers live in the
    renderer's ``uid -> handle`` side table.
    """

    record: EntityRecord
    needs_redraw: bool = True

    @property
    def uid(self) -> str:
        return self.record.uid

    @property
    def lat(self) -> float:
        return self.record.lat

    @property
    def lon(self) -> float:
        return self.record.lon

    @property
    def local(self) -> bool:
        return self.record.local

    @property
    def has_coords(self) -> bool:
        return has_coords(self.record)

    def merge(self, incoming: EntityRecord) -> bool:
        """Overwrite every field the incoming payload carries.

        Fields absent from the payload keep their current value.  Sets
        and returns ``needs_redraw`` for the merged result.
        """
        if incoming.uid != self.uid:
            raise ValueError(f"cannot merge {incoming.uid!r} into {self.uid!r}")
        update = {name: getattr(incoming, name) for name in incoming.model_fields_set & _MERGE_FIELDS}
        update["raw"] = incoming.raw
        merged = self.record.model_copy(update=update)
        self.needs_redraw = needs_redraw(self.record, merged)
        self.record = merged
        return self.needs_redraw

    def move_to(self, lat: float, lon: float) -> None:
        """Commit operator-dragged coordinates."""
        self.record = self.record.model_copy(update={"lat": lat, "lon": lon})
