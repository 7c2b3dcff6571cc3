import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

import yaml
from fake_engine import FakeEngine

from safevips.__main__ import build_options, main, parse_arguments
from safevips.config import ConfigManager
from safevips.enums import Access
from safevips.image import FromFileOptions, FromSvgOptions


class TestArguments(unittest.TestCase):
    def test_defaults(self) -> None:
        args = parse_arguments(["photo.jpg"])

        self.assertEqual(args.filename, "photo.jpg")
        self.assertFalse(args.svg)
        self.assertEqual(args.blob, [])
        self.assertIsNone(args.config)

    def test_file_options_take_command_line_overrides(self) -> None:
        args = parse_arguments(["photo.jpg", "--access", "sequential", "--memory"])

        options = build_options(args, ConfigManager({}))

        self.assertEqual(options, FromFileOptions(memory=True, access=Access.SEQUENTIAL))

    def test_svg_options_take_dpi_and_scale(self) -> None:
        args = parse_arguments(["logo.svg", "--svg", "--dpi", "300", "--scale", "2"])
        config = ConfigManager({"svg": {"revalidate": True}})

        options = build_options(args, config)

        self.assertIsInstance(options, FromSvgOptions)
        self.assertEqual((options.dpi, options.scale), (300.0, 2.0))
        self.assertTrue(options.revalidate)

    def test_out_of_range_dpi_is_rejected(self) -> None:
        args = parse_arguments(["logo.svg", "--svg", "--dpi", "0"])

        with self.assertRaises(ValueError):
            build_options(args, ConfigManager({}))


class TestMain(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = FakeEngine()
        self.engine.add_file(
            "example.jpg",
            width=640,
            height=480,
            blobs={"icc-profile-data": b"\x00" * 3144},
        )
        self.engine.add_file("logo.svg", width=72, height=36, bands=4, alpha=True)

        tmp = TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.config_path = Path(tmp.name) / "config.yaml"
        self.config_path.write_text(yaml.safe_dump({"logging": {"level": "WARNING"}}))

        for target in ("safevips.__main__.get_engine", "safevips.image.handle.get_engine"):
            patcher = patch(target, return_value=self.engine)
            patcher.start()
            self.addCleanup(patcher.stop)

        patcher = patch("safevips.__main__.setup_logging")
        patcher.start()
        self.addCleanup(patcher.stop)

    def run_main(self, *argv):
        stdout, stderr = io.StringIO(), io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            code = main([*argv, "--config", str(self.config_path)])
        return code, stdout.getvalue(), stderr.getvalue()

    def test_describes_image_and_releases_it(self) -> None:
        code, out, _ = self.run_main(
            "example.jpg", "--blob", "icc-profile-data", "--property", "exif-data"
        )

        self.assertEqual(code, 0)
        self.assertIn("Loader:       fakeload", out)
        self.assertIn("Dimensions:   640 x 480", out)
        self.assertIn("Bands:        3", out)
        self.assertIn("Transparent:  no", out)
        self.assertIn("Property exif-data: absent", out)
        self.assertIn("Blob icc-profile-data: 3144 bytes", out)
        self.assertEqual(len(self.engine.freed), 1)

    def test_svg_is_rasterized_at_requested_dpi(self) -> None:
        code, out, _ = self.run_main("logo.svg", "--svg", "--dpi", "300")

        self.assertEqual(code, 0)
        self.assertIn("Dimensions:   300 x 150", out)
        self.assertIn("Transparent:  yes", out)

    def test_load_failure_exit_code(self) -> None:
        code, _, err = self.run_main("missing.jpg")

        self.assertEqual(code, 3)
        self.assertIn("missing.jpg", err)

    def test_missing_blob_exit_code_still_releases(self) -> None:
        code, _, err = self.run_main("logo.svg", "--svg", "--blob", "icc-profile-data")

        self.assertEqual(code, 3)
        self.assertIn("icc-profile-data", err)
        self.assertEqual(len(self.engine.freed), 1)

    def test_config_error_exit_code(self) -> None:
        self.config_path.write_text(yaml.safe_dump({"load": {"access": "backwards"}}))

        code, _, err = self.run_main("example.jpg")

        self.assertEqual(code, 2)
        self.assertIn("load.access", err)


if __name__ == "__main__":
    unittest.main()
