from __future__ import annotations

import datetime
import struct
import unittest

from rowbound import LogicalType
from rowbound.decoding import CellDecodeError, decode_bytes, decode_text


class TextDecodingTests(unittest.TestCase):
    def test_null_becomes_empty_string(self) -> None:
        self.assertEqual(decode_text(None), "")

    def test_native_values(self) -> None:
        self.assertEqual(decode_text(42), "42")
        self.assertEqual(decode_text("Ann"), "Ann")
        self.assertEqual(decode_text(True), "1")
        self.assertEqual(decode_text(False), "0")
        self.assertEqual(decode_text(1.5), "1.5")
        self.assertEqual(decode_text(b"abc"), "abc")

    def test_dates(self) -> None:
        self.assertEqual(decode_text(datetime.date(2024, 1, 31)), "2024-01-31")
        self.assertEqual(decode_text(datetime.datetime(2024, 1, 31, 12, 30)), "2024-01-31 12:30:00")


class ByteDecodingTests(unittest.TestCase):
    def test_blob_passthrough(self) -> None:
        self.assertEqual(decode_bytes(LogicalType.Blob, b"\x00\xff"), b"\x00\xff")
        self.assertEqual(decode_bytes(LogicalType.Blob, bytearray(b"ab")), b"ab")

    def test_text_columns_use_utf16_code_units(self) -> None:
        self.assertEqual(decode_bytes(LogicalType.String, "Ann"), b"A\x00n\x00n\x00")
        self.assertEqual(decode_bytes(LogicalType.Enum, "red"), "red".encode("utf-16-le"))
        self.assertEqual(decode_bytes(LogicalType.Date, datetime.date(2024, 1, 31)), "2024-01-31".encode("utf-16-le"))

    def test_null_in_text_column(self) -> None:
        self.assertEqual(decode_bytes(LogicalType.String, None), b"")

    def test_numbers(self) -> None:
        self.assertEqual(decode_bytes(LogicalType.Int, 1), b"\x01\x00\x00\x00")
        self.assertEqual(decode_bytes(LogicalType.Int, -1), b"\xff\xff\xff\xff")
        self.assertEqual(decode_bytes(LogicalType.Double, 1.5), struct.pack("<d", 1.5))
        self.assertEqual(decode_bytes(LogicalType.Float, 1.5), struct.pack("<f", 1.5))

    def test_bits(self) -> None:
        self.assertEqual(decode_bytes(LogicalType.Bit, 1), b"\x01")
        self.assertEqual(decode_bytes(LogicalType.Bit, False), b"\x00")
        self.assertEqual(decode_bytes(LogicalType.Bit, b"\x01"), b"\x01")

    def test_mismatches(self) -> None:
        mismatches = [
            (LogicalType.Int, None),
            (LogicalType.Int, "1"),
            (LogicalType.Int, 2**40),
            (LogicalType.Double, 1),
            (LogicalType.Bit, 2),
            (LogicalType.Blob, "abc"),
            (LogicalType.Null, "abc"),
        ]
        for logical_type, value in mismatches:
            with self.subTest("Mismatch", logical_type=logical_type, value=value):
                with self.assertRaises(CellDecodeError):
                    decode_bytes(logical_type, value)


if __name__ == "__main__":
    unittest.main()
