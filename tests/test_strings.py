import os
import unittest
from pathlib import Path

from safevips.exceptions import StringConversionError, VipsError
from safevips.utils import c_string


class TestCString(unittest.TestCase):
    def test_str_is_utf8_encoded(self) -> None:
        self.assertEqual(c_string("icc-profile-data"), b"icc-profile-data")
        self.assertEqual(c_string("café.jpg"), "café.jpg".encode("utf-8"))

    def test_bytes_pass_through(self) -> None:
        self.assertEqual(c_string(b"exif-data"), b"exif-data")

    def test_path_like_is_accepted(self) -> None:
        path = Path("data") / "example.jpg"
        self.assertEqual(c_string(path), os.fsencode(path))

    def test_embedded_nul_is_rejected(self) -> None:
        for value in ("bad\x00name", b"bad\x00name", "\x00"):
            with self.assertRaises(StringConversionError):
                c_string(value)

    def test_conversion_error_is_a_value_error_and_vips_error(self) -> None:
        with self.assertRaises(ValueError):
            c_string("a\x00b")
        with self.assertRaises(VipsError):
            c_string("a\x00b")

    def test_unsupported_type_is_rejected(self) -> None:
        with self.assertRaises(StringConversionError):
            c_string(42)

    def test_lone_surrogate_is_rejected(self) -> None:
        with self.assertRaises(StringConversionError):
            c_string("\udcff")


if __name__ == "__main__":
    unittest.main()
