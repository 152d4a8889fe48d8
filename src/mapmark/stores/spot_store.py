"""Store for named spots."""

from __future__ import annotations

from typing import ClassVar

from mapmark.geometry.transforms import round_half_up
from mapmark.stores.base import PositionedStore
from mapmark.stores.events import ChangeAction
from mapmark.stores.models import EntityKind, Spot
from mapmark.validation.identifiers import format_spot_name, spot_name_key
from mapmark.validation.rules import find_spots_by_partial_name


class SpotStore(PositionedStore[Spot]):
    """Named spots in canvas space.

    on_count_change reports the number of named spots; a spot that was
    just placed and not yet named is not counted.
    """

    kind: ClassVar[EntityKind] = EntityKind.SPOTS

    def add(self, x: float, y: float, name: str = "") -> Spot:
        spot = Spot(x=round_half_up(x), y=round_half_up(y), name=name)
        return self._append(spot)

    def update_name(self, index: int, value: str, *, skip_formatting: bool = False) -> None:
        """Set the name of the spot at index.

        Live typing (``skip_formatting=True``) stores the raw text. A commit
        width-folds, trims and truncates the name; a blank commit removes
        the spot.
        """
        spot = self.get(index)
        if spot is None:
            return
        if skip_formatting:
            spot.name = value
            self.on_change.emit(self.get_all())
            return

        formatted = format_spot_name(value)
        if not formatted:
            self.remove_at(index)
            return

        previous = spot.model_copy()
        spot.name = formatted
        self._notify()
        self._record(ChangeAction.UPDATED, index, spot, previous=previous)

    def count(self) -> int:
        return sum(1 for spot in self._items if spot.is_labeled)

    def names(self) -> list[str]:
        """Non-blank names in collection order."""
        return [spot.name for spot in self._items if spot.is_labeled]

    def find_by_name(self, name: str) -> Spot | None:
        """First spot whose name matches, ignoring width and case."""
        if not name or not name.strip():
            return None
        key = spot_name_key(name)
        for spot in self._items:
            if spot.is_labeled and spot_name_key(spot.name) == key:
                return spot
        return None

    def find_by_partial_name(self, text: str) -> list[Spot]:
        """Spots whose name contains text, case-insensitively."""
        matches = set(find_spots_by_partial_name(self.names(), text))
        return [spot for spot in self._items if spot.name in matches]
