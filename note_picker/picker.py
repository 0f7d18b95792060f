"""
This module holds the note selection logic of the wallet.

A `NotePicker` is an immutable snapshot over the notes of one user and one
asset. It decides which notes a new transaction consumes and reports the
aggregate figures the wallet shows to the user:

- `pick` / `pick_one`: the cheapest selection covering a target value
- `get_sum`: the settled balance
- `get_spendable_sum`: everything that could be spent, eventually
- `get_max_spendable_value`: the most a single transaction can spend

A note created by a pending transaction may only be spent if it allows
chaining, and a single transaction may extend at most one pending
transaction (the chain limit).
"""

import logging
from dataclasses import dataclass
from itertools import chain, combinations
from typing import Iterable, Sequence, TypeAlias

logger = logging.getLogger(__name__)

Nullifier: TypeAlias = bytes

# Max number of chainable notes a single selection may contain.
CHAIN_LIMIT = 1

# Notes consumed by a transaction when none is specified.
DEFAULT_MAX_NOTES = 2


@dataclass(frozen=True)
class Note:
    value: int
    nullifier: Nullifier
    # created by a transaction that is not settled yet
    pending: bool = False
    # may be spent while `pending`, has no meaning once settled
    allow_chain: bool = False

    def __post_init__(self):
        assert isinstance(self.value, int), f"value is {type(self.value)}"
        assert 0 <= self.value, f"value is {self.value}"
        assert isinstance(self.nullifier, bytes), f"nullifier is {type(self.nullifier)}"

    @property
    def usable(self) -> bool:
        return not self.pending or self.allow_chain

    @property
    def chainable(self) -> bool:
        return self.pending and self.allow_chain


def total(notes: Iterable[Note]) -> int:
    return sum(n.value for n in notes)


def within_chain_limit(notes: Iterable[Note]) -> bool:
    return sum(n.chainable for n in notes) <= CHAIN_LIMIT


def cheapest_cover(candidates: Sequence[Note], target: int) -> tuple[Note, ...]:
    """
    Returns the cheapest selection of one or two `candidates` whose values add
    up to at least `target`, or an empty tuple if no such selection exists.

    `candidates` must be sorted by ascending value.

    Selections are ranked by:
    1. the sum of their values
    2. pairs before single notes, so that small notes get consumed
    3. the value of the largest note, keeping big notes around
    4. the value of the smallest note
    5. the position of the notes in `candidates`
    """
    singles = ((i,) for i, n in enumerate(candidates) if n.value >= target)
    pairs = (
        (i, j)
        for i, j in combinations(range(len(candidates)), 2)
        if candidates[i].value + candidates[j].value >= target
        and within_chain_limit((candidates[i], candidates[j]))
    )

    def rank(selection: tuple[int, ...]):
        values = [candidates[i].value for i in selection]
        return (sum(values), -len(selection), max(values), min(values), selection)

    best = min(chain(singles, pairs), key=rank, default=())
    return tuple(candidates[i] for i in best)


def largest_group(candidates: Sequence[Note], max_notes: int) -> tuple[Note, ...]:
    """
    Returns the group of at most `max_notes` candidates with the largest total
    value that still respects the chain limit.

    `candidates` must be sorted by descending value.
    """
    if max_notes <= 0:
        return ()

    others = [n for n in candidates if not n.chainable]
    chainable = [n for n in candidates if n.chainable]

    group = others[:max_notes]
    if chainable:
        # only the largest chainable note can ever improve the group
        chained = sorted(
            [chainable[0], *others[: max_notes - 1]],
            key=lambda n: n.value,
            reverse=True,
        )
        if total(chained) > total(group):
            group = chained
    return tuple(group)


class NotePicker:
    def __init__(self, notes: Iterable[Note]):
        self.notes = tuple(notes)
        # sorted() is stable, notes of equal value keep their insertion order
        self._ascending = tuple(sorted(self.notes, key=lambda n: n.value))

    @classmethod
    def snapshot(
        cls, notes: Iterable[Note], exclude_pending_notes: bool = False
    ) -> "NotePicker":
        """A picker over `notes`, leaving out every pending note if asked to"""
        if exclude_pending_notes:
            notes = [n for n in notes if not n.pending]
        return cls(notes)

    def candidates(self, exclude: Iterable[Nullifier] = ()) -> tuple[Note, ...]:
        """The usable notes not in `exclude`, by ascending value"""
        exclude = frozenset(exclude)
        return tuple(
            n for n in self._ascending if n.usable and n.nullifier not in exclude
        )

    def pick(self, target: int, exclude: Iterable[Nullifier] = ()) -> list[Note]:
        """
        Picks at most two notes whose values cover `target`.

        Returns an empty list if the notes are insufficient.
        """
        assert 0 <= target, f"target is {target}"
        picked = cheapest_cover(self.candidates(exclude), target)
        if not picked:
            logger.debug("no pair of notes covers %d", target)
        return list(picked)

    def pick_one(self, target: int, exclude: Iterable[Nullifier] = ()) -> Note | None:
        """The smallest note whose value covers `target`"""
        assert 0 <= target, f"target is {target}"
        note = next((n for n in self.candidates(exclude) if n.value >= target), None)
        if note is None:
            logger.debug("no single note covers %d", target)
        return note

    def get_sum(self, exclude: Iterable[Nullifier] = ()) -> int:
        exclude = frozenset(exclude)
        return total(
            n for n in self.notes if not n.pending and n.nullifier not in exclude
        )

    def get_spendable_sum(self, exclude: Iterable[Nullifier] = ()) -> int:
        """
        Total value of the usable notes.

        The chain limit is not applied: a single transaction may not be able to
        spend all of it.
        """
        return total(self.candidates(exclude))

    def get_max_spendable_value(
        self, exclude: Iterable[Nullifier] = (), max_notes: int = DEFAULT_MAX_NOTES
    ) -> int:
        descending = sorted(self.candidates(exclude), key=lambda n: n.value, reverse=True)
        return total(largest_group(descending, max_notes))
