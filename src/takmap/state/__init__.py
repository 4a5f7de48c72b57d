"""Entity reconciliation state."""

from takmap.state.entity import Entity
from takmap.state.policy import has_coords, needs_redraw
from takmap.state.store import EntityStore, ReconcileResult, StoreObserver

__all__ = [
    "Entity",
    "EntityStore",
    "ReconcileResult",
    "StoreObserver",
    "has_coords",
    "needs_redraw",
]
