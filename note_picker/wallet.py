"""
This module keeps the notes owned by the users of a wallet, grouped by asset.

The wallet itself is mutable: notes arrive, get settled and get spent. Every
query builds a fresh `NotePicker` snapshot from the current notes so the
selection logic never observes a note set changing under its feet.
"""

import logging
from dataclasses import replace
from typing import Iterable, TypeAlias

from note_picker.config import PickerConfig
from note_picker.picker import Note, NotePicker, Nullifier

logger = logging.getLogger(__name__)

UserId: TypeAlias = str
AssetId: TypeAlias = int


class Wallet:
    def __init__(self, config: PickerConfig | None = None):
        self.config = config or PickerConfig()
        self.config.validate()
        # user -> asset -> nullifier -> note, dicts keep the order notes arrived in
        self._notes: dict[UserId, dict[AssetId, dict[Nullifier, Note]]] = {}

    def add_note(self, user_id: UserId, asset_id: AssetId, note: Note):
        notes = self._notes.setdefault(user_id, {}).setdefault(asset_id, {})
        if note.nullifier in notes:
            logger.warning("dropping already known note")
            return
        notes[note.nullifier] = note

    def settle_note(self, user_id: UserId, asset_id: AssetId, nf: Nullifier) -> bool:
        """
        Marks the note as settled once the transaction that created it is
        confirmed. Returns False if the note is unknown.
        """
        notes = self._asset_notes(user_id, asset_id)
        if nf not in notes:
            return False
        notes[nf] = replace(notes[nf], pending=False)
        logger.debug("settled note %s", nf.hex())
        return True

    def remove_note(
        self, user_id: UserId, asset_id: AssetId, nf: Nullifier
    ) -> Note | None:
        notes = self._asset_notes(user_id, asset_id)
        note = notes.pop(nf, None)
        if note is None:
            return None
        logger.debug("removed spent note %s", nf.hex())
        if not notes:
            del self._notes[user_id][asset_id]
            if not self._notes[user_id]:
                del self._notes[user_id]
        return note

    def _asset_notes(self, user_id: UserId, asset_id: AssetId) -> dict[Nullifier, Note]:
        return self._notes.get(user_id, {}).get(asset_id, {})

    def notes(self, user_id: UserId, asset_id: AssetId) -> list[Note]:
        return list(self._asset_notes(user_id, asset_id).values())

    def assets(self, user_id: UserId) -> list[AssetId]:
        return list(self._notes.get(user_id, {}))

    def picker(
        self,
        user_id: UserId,
        asset_id: AssetId,
        exclude_pending_notes: bool | None = None,
    ) -> NotePicker:
        if exclude_pending_notes is None:
            exclude_pending_notes = self.config.exclude_pending_notes
        return NotePicker.snapshot(self.notes(user_id, asset_id), exclude_pending_notes)

    def get_balance(self, user_id: UserId, asset_id: AssetId) -> int:
        return self.picker(user_id, asset_id).get_sum()

    def get_balances(self, user_id: UserId) -> dict[AssetId, int]:
        balances = {
            asset_id: self.get_balance(user_id, asset_id)
            for asset_id in self.assets(user_id)
        }
        return {asset_id: value for asset_id, value in balances.items() if value}

    def get_spendable_sum(
        self,
        user_id: UserId,
        asset_id: AssetId,
        exclude_pending_notes: bool | None = None,
        exclude: Iterable[Nullifier] = (),
    ) -> int:
        picker = self.picker(user_id, asset_id, exclude_pending_notes)
        return picker.get_spendable_sum(exclude)

    def get_spendable_sums(
        self, user_id: UserId, exclude_pending_notes: bool | None = None
    ) -> dict[AssetId, int]:
        sums = {
            asset_id: self.get_spendable_sum(user_id, asset_id, exclude_pending_notes)
            for asset_id in self.assets(user_id)
        }
        return {asset_id: value for asset_id, value in sums.items() if value}

    def get_max_spendable_value(
        self,
        user_id: UserId,
        asset_id: AssetId,
        num_notes: int | None = None,
        exclude_pending_notes: bool | None = None,
        exclude: Iterable[Nullifier] = (),
    ) -> int:
        if num_notes is None:
            num_notes = self.config.max_notes
        picker = self.picker(user_id, asset_id, exclude_pending_notes)
        return picker.get_max_spendable_value(exclude, num_notes)

    def pick_notes(
        self,
        user_id: UserId,
        asset_id: AssetId,
        value: int,
        exclude_pending_notes: bool | None = None,
        exclude: Iterable[Nullifier] = (),
    ) -> list[Note]:
        picker = self.picker(user_id, asset_id, exclude_pending_notes)
        return picker.pick(value, exclude)

    def pick_note(
        self,
        user_id: UserId,
        asset_id: AssetId,
        value: int,
        exclude_pending_notes: bool | None = None,
        exclude: Iterable[Nullifier] = (),
    ) -> Note | None:
        picker = self.picker(user_id, asset_id, exclude_pending_notes)
        return picker.pick_one(value, exclude)
