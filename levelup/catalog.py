"""
Item catalog collaborator.

The engine consumes items as an opaque list per scope (e.g. a language
code). Loading and caching belong to the caller; StaticCatalog serves
items it was given up front.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Protocol

from levelup.core.models import Item


class ItemCatalog(Protocol):
    """Read-only source of items per scope."""

    def get_items_for_scope(self, scope_key: str) -> list[Item]:
        ...


class StaticCatalog:
    """In-memory catalog keyed by scope."""

    def __init__(self, scopes: Mapping[str, Iterable[Item]] | None = None):
        self._scopes: dict[str, list[Item]] = {
            key: list(items) for key, items in (scopes or {}).items()
        }

    def add_scope(self, scope_key: str, items: Iterable[Item]) -> None:
        self._scopes[scope_key] = list(items)

    def get_items_for_scope(self, scope_key: str) -> list[Item]:
        """Items for a scope (empty list for unknown scopes)."""
        return list(self._scopes.get(scope_key, []))

    @property
    def scopes(self) -> list[str]:
        return sorted(self._scopes)
