import argparse
import logging
import sys

import dacite
import yaml

from note_picker.config import PickerConfig, Snapshot, hex_to_nullifier
from note_picker.picker import Note, NotePicker


def non_negative_int(data: str) -> int:
    value = int(data)
    if value < 0:
        raise argparse.ArgumentTypeError(f"{value} is negative")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Select the notes a transaction spends",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--notes", type=str, required=True, help="Note snapshot file path"
    )
    parser.add_argument("--config", type=str, help="Configuration file path")
    parser.add_argument(
        "--exclude",
        type=hex_to_nullifier,
        action="append",
        default=[],
        help="Hex nullifier of a note to leave out, may be repeated",
    )
    parser.add_argument(
        "--exclude-pending-notes",
        action="store_true",
        default=None,
        help="Ignore notes of unsettled transactions",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    )

    commands = parser.add_subparsers(dest="command", required=True)
    pick = commands.add_parser("pick", help="Pick at most two notes covering TARGET")
    pick.add_argument("target", type=non_negative_int)
    pick_one = commands.add_parser("pick-one", help="Pick one note covering TARGET")
    pick_one.add_argument("target", type=non_negative_int)
    commands.add_parser("sum", help="Settled balance")
    commands.add_parser("spendable-sum", help="Value of every usable note")
    max_spendable = commands.add_parser(
        "max-spendable", help="Most a single transaction can spend"
    )
    max_spendable.add_argument("--max-notes", type=int)
    return parser


def format_note(note: Note) -> str:
    line = f"{note.value} {note.nullifier.hex()}"
    if note.pending:
        line += " pending"
    if note.allow_chain:
        line += " chain"
    return line


def run(args: argparse.Namespace) -> tuple[list[str], int]:
    """Runs the command in `args`, returns the output lines and exit code"""
    config = PickerConfig.load(args.config) if args.config else PickerConfig()
    if args.exclude_pending_notes is not None:
        config.exclude_pending_notes = args.exclude_pending_notes

    notes = Snapshot.load(args.notes).notes
    picker = NotePicker.snapshot(notes, config.exclude_pending_notes)

    match args.command:
        case "pick":
            picked = picker.pick(args.target, args.exclude)
            return [format_note(n) for n in picked], 0 if picked else 1
        case "pick-one":
            note = picker.pick_one(args.target, args.exclude)
            return ([format_note(note)], 0) if note is not None else ([], 1)
        case "sum":
            return [str(picker.get_sum(args.exclude))], 0
        case "spendable-sum":
            return [str(picker.get_spendable_sum(args.exclude))], 0
        case "max-spendable":
            max_notes = config.max_notes if args.max_notes is None else args.max_notes
            return [str(picker.get_max_spendable_value(args.exclude, max_notes))], 0
    raise ValueError(f"unknown command {args.command}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level)

    try:
        lines, code = run(args)
    except (OSError, ValueError, yaml.YAMLError, dacite.DaciteError) as e:
        parser.error(str(e))
    for line in lines:
        print(line)
    return code


if __name__ == "__main__":
    sys.exit(main())
