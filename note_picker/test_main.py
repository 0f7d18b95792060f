import contextlib
import io
import os
import tempfile
from unittest import TestCase

from note_picker.main import main

SNAPSHOT = """
notes:
  - {value: 10, nullifier: '0a'}
  - {value: 1, nullifier: '01'}
  - {value: 0, nullifier: '00'}
  - {value: 7, nullifier: '07'}
  - {value: 3, nullifier: '03'}
  - {value: 2, nullifier: '02'}
  - {value: 4, nullifier: '04', pending: true, allow_chain: true}
  - {value: 5, nullifier: '05', pending: true}
"""


class TestMain(TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.notes = os.path.join(self.tmp.name, "notes.yaml")
        with open(self.notes, "w") as f:
            f.write(SNAPSHOT)

    def tearDown(self):
        self.tmp.cleanup()

    def run_main(self, *argv: str) -> tuple[int, list[str]]:
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            code = main(["--notes", self.notes, *argv])
        return code, out.getvalue().splitlines()

    def test_pick(self):
        self.assertEqual(self.run_main("pick", "11"), (0, ["4 04 pending chain", "7 07"]))
        self.assertEqual(self.run_main("pick", "18"), (1, []))
        self.assertEqual(
            self.run_main("--exclude", "07", "--exclude", "0x0a", "pick", "5"),
            (0, ["2 02", "3 03"]),
        )

    def test_pick_one(self):
        self.assertEqual(self.run_main("pick-one", "5"), (0, ["7 07"]))
        self.assertEqual(self.run_main("pick-one", "11"), (1, []))

    def test_sums(self):
        self.assertEqual(self.run_main("sum"), (0, ["23"]))
        self.assertEqual(self.run_main("spendable-sum"), (0, ["27"]))
        self.assertEqual(
            self.run_main("--exclude-pending-notes", "spendable-sum"), (0, ["23"])
        )
        self.assertEqual(self.run_main("max-spendable"), (0, ["17"]))
        self.assertEqual(
            self.run_main("max-spendable", "--max-notes", "3"), (0, ["21"])
        )

    def test_config_file(self):
        config = os.path.join(self.tmp.name, "config.yaml")
        with open(config, "w") as f:
            f.write("max_notes: 1\nexclude_pending_notes: true\n")
        self.assertEqual(
            self.run_main("--config", config, "max-spendable"), (0, ["10"])
        )
        self.assertEqual(self.run_main("--config", config, "pick", "11"), (0, ["1 01", "10 0a"]))

    def test_invalid_arguments(self):
        for argv in (
            ["pick", "--", "-5"],
            ["pick-one", "--", "-1"],
            ["--log-level", "LOUD", "sum"],
        ):
            with self.subTest(argv):
                with contextlib.redirect_stderr(io.StringIO()):
                    with self.assertRaises(SystemExit) as cm:
                        self.run_main(*argv)
                self.assertEqual(cm.exception.code, 2)

    def test_log_level_is_case_insensitive(self):
        self.assertEqual(self.run_main("--log-level", "debug", "sum"), (0, ["23"]))

    def test_missing_snapshot(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                main(["--notes", os.path.join(self.tmp.name, "nope.yaml"), "sum"])
