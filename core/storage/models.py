from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Union


@dataclass(frozen=True)
class ObjectEntry:
    key: str
    public_url: str


@dataclass(frozen=True)
class ObjectListing:
    """One read of the store's contents.

    ``revision`` orders reads by the time they were issued and takes no part
    in equality; the fallback empty listing keeps revision -1.
    """

    entries: tuple[ObjectEntry, ...] = ()
    revision: int = field(default=-1, compare=False)

    def __iter__(self) -> Iterator[ObjectEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def keys(self) -> list[str]:
        return [entry.key for entry in self.entries]

    def urls(self) -> list[str]:
        return [entry.public_url for entry in self.entries]


@dataclass(frozen=True)
class ListFailure:
    reason: str
    error: BaseException | None = field(default=None, compare=False)


@dataclass(frozen=True)
class StoreFailure:
    reason: str
    key: str | None = None
    error: BaseException | None = field(default=None, compare=False)


ListResult = Union[ObjectListing, ListFailure]
StoreResult = Union[ObjectEntry, StoreFailure]


__all__ = [
    "ObjectEntry",
    "ObjectListing",
    "ListFailure",
    "StoreFailure",
    "ListResult",
    "StoreResult",
]
