"""Entity store: the only component allowed to merge incoming entity updates.

Full snapshots go through :meth:`EntityStore.reconcile`; single push
events go through :meth:`EntityStore.apply_event`.  Both end with a
rendering pass delivered to the registered observers.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Protocol

from takmap.models.entity import EntityCategory, EntityRecord
from takmap.models.events import ChatEvent, DeleteEvent, UnitEvent
from takmap.state.entity import Entity

_logger = logging.getLogger(__name__)


class StoreObserver(Protocol):
    """Receives the rendering pass and removals of an :class:`EntityStore`."""

    def entity_updated(self, entity: Entity) -> None: ...

    def entity_removed(self, entity: Entity) -> None: ...


@dataclass
class ReconcileResult:
    """Uids touched by one reconciliation."""

    added: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)


class EntityStore:
    """Keyed collection of entities.

    Not thread-safe: every mutation is expected to run on the event loop
    thread.
    """

    def __init__(self, observers: Iterable[StoreObserver] = ()) -> None:
        self._entities: dict[str, Entity] = {}
        self._observers: list[StoreObserver] = list(observers)

    def add_observer(self, observer: StoreObserver) -> None:
        self._observers.append(observer)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, uid: str) -> Entity | None:
        return self._entities.get(uid)

    def __contains__(self, uid: object) -> bool:
        return uid in self._entities

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[Entity]:
        return iter(list(self._entities.values()))

    def by_category(self, category: str) -> list[Entity]:
        """Entities of one category sorted by case-insensitive callsign."""
        matches = [e for e in self._entities.values() if e.record.category == category]
        matches.sort(key=lambda e: e.record.callsign.lower())
        return matches

    def count_by_category(self, category: str) -> int:
        return sum(1 for e in self._entities.values() if e.record.category == category)

    def contacts_online(self) -> tuple[int, int]:
        """``(online, total)`` contacts; contacts with no status are not counted."""
        online = 0
        total = 0
        for entity in self._entities.values():
            if entity.record.category != EntityCategory.CONTACT:
                continue
            if entity.record.status == "Online":
                online += 1
            if entity.record.status:
                total += 1
        return online, total

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def reconcile(self, records: Iterable[EntityRecord]) -> ReconcileResult:
        """Reconcile the store against a full snapshot.

        Every record is merged first; only then are non-local entities
        missing from the snapshot swept, so the sweep never sees a
        half-applied batch.
        """
        result = ReconcileResult()
        seen: set[str] = set()
        touched: list[Entity] = []

        for record in records:
            seen.add(record.uid)
            if record.category == EntityCategory.DELETE:
                if self._drop(record.uid):
                    result.removed.append(record.uid)
                continue
            entity, created = self._merge(record)
            (result.added if created else result.updated).append(entity.uid)
            touched.append(entity)

        for uid in [uid for uid, e in self._entities.items() if uid not in seen and not e.local]:
            self._drop(uid)
            result.removed.append(uid)

        for entity in touched:
            if entity.uid in self._entities:
                self._notify_updated(entity)

        _logger.debug(
            "Reconciled batch added=%d updated=%d removed=%d",
            len(result.added),
            len(result.updated),
            len(result.removed),
        )
        return result

    def apply_event(self, event: UnitEvent | DeleteEvent | ChatEvent) -> Entity | None:
        """Apply one push event.

        Returns the merged entity for unit events, ``None`` otherwise.
        Chat events carry no entity data and leave the store untouched.
        """
        if isinstance(event, DeleteEvent):
            self._drop(event.uid)
            return None
        if isinstance(event, ChatEvent):
            return None
        return self.upsert(event.unit)

    def upsert(self, record: EntityRecord) -> Entity | None:
        """Merge a single record and run its rendering pass."""
        if record.category == EntityCategory.DELETE:
            self._drop(record.uid)
            return None
        entity, _created = self._merge(record)
        self._notify_updated(entity)
        return entity

    def add_local(self, record: EntityRecord) -> Entity:
        """Insert an operator-created entity awaiting server confirmation."""
        if not record.local:
            record = record.model_copy(update={"local": True})
        entity = self.upsert(record)
        assert entity is not None  # noqa: S101
        return entity

    def remove(self, uid: str) -> bool:
        """Remove an entity and tear down its marker."""
        return self._drop(uid)

    def refresh(self, uid: str) -> None:
        """Re-run the rendering pass for one entity (after a local edit)."""
        entity = self._entities.get(uid)
        if entity is not None:
            self._notify_updated(entity)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _merge(self, record: EntityRecord) -> tuple[Entity, bool]:
        existing = self._entities.get(record.uid)
        if existing is None:
            entity = Entity(record=record, needs_redraw=True)
            self._entities[record.uid] = entity
            _logger.debug("New entity uid=%s category=%s", record.uid, record.category)
            return entity, True
        existing.merge(record)
        return existing, False

    def _drop(self, uid: str) -> bool:
        entity = self._entities.pop(uid, None)
        if entity is None:
            return False
        _logger.debug("Removed entity uid=%s", uid)
        for observer in self._observers:
            observer.entity_removed(entity)
        return True

    def _notify_updated(self, entity: Entity) -> None:
        for observer in self._observers:
            observer.entity_updated(entity)
