"""Key-based joins between record sets fetched from the store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Iterable, Sequence, TypeVar

from .models import Category

BaseT = TypeVar("BaseT")
LookupT = TypeVar("LookupT")
KeyT = TypeVar("KeyT", bound=Hashable)


@dataclass(frozen=True, slots=True)
class JoinFallback(Generic[LookupT]):
    """Placeholder record substituted when a join key has no match."""

    record: LookupT


@dataclass(frozen=True, slots=True)
class Joined(Generic[BaseT, LookupT]):
    """A base record paired with its lookup record (or the fallback)."""

    base: BaseT
    match: LookupT
    matched: bool


def build_index(
    records: Iterable[LookupT], id_of: Callable[[LookupT], KeyT]
) -> dict[KeyT, LookupT]:
    """Map ``id_of(record)`` to the record. Later duplicates overwrite earlier ones."""

    index: dict[KeyT, LookupT] = {}
    for record in records:
        index[id_of(record)] = record
    return index


def enrich(
    base_records: Iterable[BaseT],
    lookup_records: Iterable[LookupT],
    *,
    key_of: Callable[[BaseT], KeyT],
    id_of: Callable[[LookupT], KeyT],
    fallback: JoinFallback[LookupT],
) -> list[Joined[BaseT, LookupT]]:
    """Pair every base record with the lookup record sharing its key.

    The output has exactly one entry per base record, in base order.
    """

    index = build_index(lookup_records, id_of)
    joined: list[Joined[BaseT, LookupT]] = []
    for record in base_records:
        match = index.get(key_of(record))
        if match is None:
            joined.append(Joined(base=record, match=fallback.record, matched=False))
        else:
            joined.append(Joined(base=record, match=match, matched=True))
    return joined


def category_fallback(name: str, icon: str) -> JoinFallback[Category]:
    """Return the placeholder category used for dangling ``category_id`` values."""

    return JoinFallback(Category(id="", name=name, icon=icon))


def order_categories(categories: Sequence[Category]) -> list[Category]:
    """Sort categories by ``display_order``; unordered categories go last.

    Equal orders keep the order the store returned them in.
    """

    return sorted(
        categories,
        key=lambda category: (
            category.display_order is None,
            category.display_order or 0,
        ),
    )
