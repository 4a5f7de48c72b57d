"""Read-only symbol type taxonomy.

The server serves a tree of dash-segmented type codes (``G``,
``G-U``, ``G-U-C`` ...).  The tree drives the type picker of the edit
form and the translation from a type code to a symbol code.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from takmap.exceptions import TakMapTaxonomyError
from takmap.models.taxonomy import TaxonomyNode

_logger = logging.getLogger(__name__)

# Upper bound on descent steps; real trees are a handful of levels deep.
MAX_WALK_DEPTH = 32

SIDC_LENGTH = 10


def _is_prefix(prefix: str, code: str) -> bool:
    return code == prefix or code.startswith(prefix + "-")


def sidc_from_type(type_code: str) -> str:
    """Translate an ``a-<aff>-<dim>-...`` type code to a 10-char symbol code.

    ``a-h-G-U-C`` becomes ``SHGPUC----``.  Only single-character function
    segments are carried over; non-atom types have no symbol code.
    """
    if not type_code.startswith("a-"):
        return ""
    segments = type_code.split("-")
    sidc = "S" + segments[1]
    if len(segments) > 2:
        sidc += segments[2] + "P"
    else:
        sidc += "-P"
    for segment in segments[3:]:
        if len(segment) > 1:
            break
        sidc += segment
    return sidc.ljust(SIDC_LENGTH, "-").upper()


def type_from_parts(affiliation: str, subtype: str) -> str:
    """Build a unit type code from an affiliation letter and a taxonomy code."""
    return "-".join(("a", affiliation, subtype))


class SymbolTaxonomy:
    """Walks the type tree by longest matching code prefix."""

    def __init__(self, root: TaxonomyNode) -> None:
        self._root = root

    @classmethod
    def from_payload(cls, payload: Any) -> SymbolTaxonomy:
        if not isinstance(payload, dict):
            raise TakMapTaxonomyError(f"taxonomy root must be an object, got {type(payload).__name__}")
        try:
            return cls(TaxonomyNode.model_validate(payload))
        except ValidationError as exc:
            raise TakMapTaxonomyError(f"invalid taxonomy payload: {exc}") from exc

    @property
    def root(self) -> TaxonomyNode:
        return self._root

    def find(self, code: str) -> TaxonomyNode | None:
        """Node whose code is exactly *code*; the root for an empty code."""
        if not code:
            return self._root
        found = self._walk(code)
        return found[1] if found is not None else None

    def find_parent(self, code: str) -> TaxonomyNode | None:
        """Node that lists *code* among its children."""
        found = self._walk(code)
        return found[0] if found is not None else None

    def picker_root(self, code: str) -> tuple[TaxonomyNode, str]:
        """Picker state for *code*: the node to list and its first child code.

        Leaves (and unknown codes) fall back to the tree root.
        """
        node = self.find(code)
        if node is None or node.is_leaf:
            node = self._root
        first = node.next[0].code if node.next else ""
        return node, first

    def _walk(self, code: str) -> tuple[TaxonomyNode, TaxonomyNode] | None:
        current = self._root
        for _ in range(MAX_WALK_DEPTH):
            descend: TaxonomyNode | None = None
            for child in current.next:
                if child.code == code:
                    return current, child
                if descend is None and _is_prefix(child.code, code):
                    descend = child
            if descend is None:
                return None
            current = descend
        _logger.warning("Taxonomy walk for %s exceeded depth %d", code, MAX_WALK_DEPTH)
        return None
