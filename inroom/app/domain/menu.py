"""Menu catalog value objects."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MenuItem:
    """A sellable item within one menu version.

    Orders copy ``name`` and ``price`` into their lines when an item is
    added, so a menu item is never consulted again for an existing line.
    """

    item_key: str
    name: str
    price: int
    category: str
    version: str
    description: str = ""
    image: str = ""
