import numpy as np
import pytest

from rasterlab.buffer import PixelBuffer
from rasterlab.cli import _convert_args_to_steps, build_parser, main
from rasterlab.io_utils import load_image, save_image
from rasterlab.processors import create_processing_config


class TestCLILogic:
    def test_create_processing_config(self):
        # Nothing enabled
        assert create_processing_config() == []

        steps = create_processing_config(
            binarize=True,
            binarize_method="percent_black",
            binarize_percent=20.0,
            median=True,
            median_kernel_size=5,
            grayscale=True,
            contrast=False,
        )

        # Canonical order, not keyword order
        assert [s["type"] for s in steps] == ["grayscale", "median", "binarize"]
        assert steps[1]["params"] == {"kernel_size": 5}
        assert steps[2]["params"] == {"method": "percent_black", "percent": 20.0}

    def test_convert_args_to_steps(self):
        args = build_parser().parse_args(
            ["in.png", "--threshold-method", "entropy", "--sobel", "--gaussian", "1.5"]
        )
        steps = _convert_args_to_steps(args)

        assert [s["type"] for s in steps] == ["gaussian", "sobel", "binarize"]
        assert steps[0]["params"]["sigma"] == 1.5
        assert steps[2]["params"]["method"] == "entropy"

    def test_brightness_becomes_point_step(self):
        args = build_parser().parse_args(["in.png", "--brightness", "-20"])
        steps = _convert_args_to_steps(args)

        assert steps == [
            {"type": "point", "params": {"operation": "brightness", "value": -20}}
        ]

    def test_preset_steps(self):
        args = build_parser().parse_args(["in.png", "--preset", "edges"])
        steps = _convert_args_to_steps(args)

        assert [s["type"] for s in steps] == ["grayscale", "gaussian", "sobel"]

    @pytest.mark.parametrize("flag", ["--threshold", "--percent"])
    def test_threshold_value_requires_method(self, tmp_path, flag):
        with pytest.raises(SystemExit) as exc:
            main([str(tmp_path / "in.png"), "--median", "3", flag, "40"])

        assert exc.value.code == 2

    def test_preset_conflicts_with_flags(self, tmp_path):
        with pytest.raises(SystemExit):
            main([str(tmp_path / "in.png"), "--preset", "document", "--sobel"])


class TestCLIRun:
    def setup_method(self):
        rng = np.random.default_rng(12)
        self.buffer = PixelBuffer.from_array(rng.integers(0, 256, (10, 12, 3), dtype=np.uint8))

    def test_process_and_save(self, tmp_path):
        source = save_image(self.buffer, tmp_path / "in.png")
        target = tmp_path / "out.png"

        main([str(source), "--median", "3", "--threshold-method", "entropy", "-o", str(target)])

        output = load_image(target)
        assert (output.width, output.height) == (12, 10)
        assert set(output.data) <= {0, 255}

    def test_png_roundtrip_is_lossless(self, tmp_path):
        path = save_image(self.buffer, tmp_path / "copy.png")
        assert load_image(path).data == self.buffer.data

    def test_missing_input(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            main([str(tmp_path / "missing.png"), "--sharpen"])

        assert exc.value.code == 1
        assert "not found" in capsys.readouterr().err

    def test_engine_error_exits_nonzero(self, tmp_path, capsys):
        source = save_image(self.buffer, tmp_path / "in.png")

        with pytest.raises(SystemExit) as exc:
            main([str(source), "--kernel", "1 2; 3 4", "-o", str(tmp_path / "out.png")])

        assert exc.value.code == 1
        assert "Error processing image" in capsys.readouterr().err

    def test_list_thresholds(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--list-thresholds"])

        assert exc.value.code == 0
        assert "fuzzy_minimum_error" in capsys.readouterr().out

    def test_histogram_report(self, tmp_path, capsys):
        source = save_image(self.buffer, tmp_path / "in.png")

        with pytest.raises(SystemExit) as exc:
            main([str(source), "--histogram", "0"])

        assert exc.value.code == 0
        assert "count: 120" in capsys.readouterr().out
