"""Type taxonomy tree node."""

from __future__ import annotations

from pydantic import Field

from takmap.models._base import TakBaseModel


class TaxonomyNode(TakBaseModel):
    """One node of the type-code tree served by ``GET /types``."""

    code: str = ""
    name: str = ""
    next: list[TaxonomyNode] = Field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return not self.next
