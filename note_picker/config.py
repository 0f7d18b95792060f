from __future__ import annotations

from dataclasses import dataclass, field

import dacite
import yaml

from note_picker.picker import DEFAULT_MAX_NOTES, Note, Nullifier


@dataclass
class PickerConfig:
    # Max number of notes a single transaction consumes
    max_notes: int = DEFAULT_MAX_NOTES
    # Ignore every pending note, chainable or not
    exclude_pending_notes: bool = False

    @classmethod
    def load(cls, yaml_path: str) -> PickerConfig:
        config = dacite.from_dict(
            data_class=PickerConfig,
            data=_load_yaml(yaml_path),
            config=DACITE_CONFIG,
        )
        config.validate()
        return config

    def validate(self):
        assert self.max_notes > 0


@dataclass
class Snapshot:
    """The notes of one user for one asset, as stored in a YAML file"""

    notes: list[Note] = field(default_factory=list)

    @classmethod
    def load(cls, yaml_path: str) -> Snapshot:
        return dacite.from_dict(
            data_class=Snapshot,
            data=_load_yaml(yaml_path),
            config=DACITE_CONFIG,
        )


def hex_to_nullifier(data: str | bytes) -> Nullifier:
    if isinstance(data, bytes):
        return data
    data = str(data)
    if data.startswith("0x"):
        data = data[2:]
    return bytes.fromhex(data)


DACITE_CONFIG = dacite.Config(type_hooks={Nullifier: hex_to_nullifier}, strict=True)


def _load_yaml(yaml_path: str) -> dict:
    with open(yaml_path, "r") as f:
        return yaml.safe_load(f) or {}
