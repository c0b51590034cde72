"""Snapshot diffing against the set of already-known symbols."""

from __future__ import annotations

from typing import AbstractSet, List, NamedTuple, Sequence, Set


class DiffResult(NamedTuple):
    new_items: List[str]
    known: Set[str]


def diff_snapshot(snapshot: Sequence[str], known: AbstractSet[str]) -> DiffResult:
    """Return the symbols in ``snapshot`` missing from ``known``, in snapshot order.

    The returned set is a copy of ``known`` plus every new symbol. Symbols
    absent from the snapshot are kept: a delisted pair that comes back must
    not be announced twice.
    """
    updated = set(known)
    new_items: List[str] = []
    for symbol in snapshot:
        if symbol in updated:
            continue
        updated.add(symbol)
        new_items.append(symbol)
    return DiffResult(new_items, updated)
