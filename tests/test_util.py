from __future__ import annotations

import io
import json
import unittest

from rowbound import LogicalType, util


class JsonizeTests(unittest.TestCase):
    def test_collections(self) -> None:
        exported = json.loads(util.to_json({"tags": frozenset({"a"}), "pair": ("id", "1")}))
        self.assertEqual(exported, {"tags": ["a"], "pair": ["id", "1"]})

    def test_enums_and_bytes(self) -> None:
        self.assertEqual(util.to_json([LogicalType.Bit, b"\x00\xff"]), '["BIT", "00ff"]')

    def test_none(self) -> None:
        self.assertIsNone(util.to_json(None))


class LoggerTests(unittest.TestCase):
    def test_prefix(self) -> None:
        log_file = io.StringIO()
        log = util.make_logger(True, file=log_file, prefix=lambda: "[now]")
        log("Insert:", {"id": "1"})
        self.assertEqual(log_file.getvalue(), "[now] Insert: {'id': '1'}\n")

    def test_disabled_logger(self) -> None:
        log_file = io.StringIO()
        log = util.make_logger(False, file=log_file, prefix="ignored")
        log("Insert:", "nothing")
        self.assertEqual(log_file.getvalue(), "")


if __name__ == "__main__":
    unittest.main()
