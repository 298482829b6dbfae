from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any


@dataclass
class MapItem:
    key: str
    value: Any


@dataclass
class MapSlice:
    """Key/value sequence that keeps insertion order and does not deduplicate keys.

    Encoders render it as an object whose keys appear exactly in this order.
    """

    items: list[MapItem] = field(default_factory=list)

    def append(self, key: str, value: Any) -> None:
        self.items.append(MapItem(key, value))

    def keys(self) -> list[str]:
        return [item.key for item in self.items]

    def __iter__(self) -> Iterator[MapItem]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)
