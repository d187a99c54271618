import numpy as np
import pytest

from rasterlab import point_transforms
from rasterlab.buffer import PixelBuffer
from rasterlab.errors import PreconditionError


def _buffer(samples, width=1):
    samples = bytes(samples)
    return PixelBuffer(width, len(samples) // (3 * width), samples)


class TestArithmetic:
    def setup_method(self):
        rng = np.random.default_rng(7)
        self.image = rng.integers(0, 256, (12, 9, 3), dtype=np.uint8)
        self.buffer = PixelBuffer.from_array(self.image)

    def test_add_clamps(self):
        result = point_transforms.add(_buffer([250, 5, 100]), 10)
        assert list(result.data) == [255, 15, 110]

    def test_subtract_clamps(self):
        result = point_transforms.subtract(_buffer([250, 5, 100]), 10)
        assert list(result.data) == [240, 0, 90]

    def test_add_subtract_roundtrip_inside_range(self):
        value = 40
        image = np.clip(self.image, value, 255 - value).astype(np.uint8)
        buffer = PixelBuffer.from_array(image)

        restored = point_transforms.subtract(point_transforms.add(buffer, value), value)
        assert restored.data == buffer.data

    def test_input_not_mutated(self):
        before = self.buffer.data
        point_transforms.add(self.buffer, 50)
        assert self.buffer.data == before

    def test_multiply_truncates(self):
        result = point_transforms.multiply(_buffer([3, 100, 7]), 1.5)
        assert list(result.data) == [4, 150, 10]

        result = point_transforms.multiply(_buffer([3, 100, 7]), 2.6)
        assert list(result.data) == [7, 255, 18]

    def test_divide_truncates(self):
        result = point_transforms.divide(_buffer([7, 255, 1]), 2)
        assert list(result.data) == [3, 127, 0]

    def test_divide_negative_clamps_to_zero(self):
        result = point_transforms.divide(_buffer([7, 255, 1]), -2.0)
        assert list(result.data) == [0, 0, 0]

    def test_divide_by_near_zero_rejected(self):
        with pytest.raises(PreconditionError):
            point_transforms.divide(self.buffer, 0.0005)

        with pytest.raises(PreconditionError):
            point_transforms.divide(self.buffer, 0)

    def test_brightness_matches_add(self):
        assert (
            point_transforms.brightness(self.buffer, -30).data
            == point_transforms.add(self.buffer, -30).data
        )

    def test_huge_offsets_saturate(self):
        assert set(point_transforms.add(self.buffer, 10**10).data) == {255}
        assert set(point_transforms.subtract(self.buffer, 10**10).data) == {0}
        assert set(point_transforms.brightness(self.buffer, -(10**12)).data) == {0}

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_factor_rejected(self, value):
        with pytest.raises(PreconditionError):
            point_transforms.multiply(self.buffer, value)

        with pytest.raises(PreconditionError):
            point_transforms.divide(self.buffer, value)

    def test_non_integer_offset_rejected(self):
        with pytest.raises(PreconditionError):
            point_transforms.add(self.buffer, 1.5)

    def test_output_length_preserved(self):
        for operation, value in [
            (point_transforms.add, 300),
            (point_transforms.subtract, 300),
            (point_transforms.multiply, 3.3),
            (point_transforms.divide, 0.25),
        ]:
            result = operation(self.buffer, value)
            assert len(result.data) == len(self.buffer.data)


class TestGrayscale:
    def setup_method(self):
        self.buffer = _buffer(
            [255, 0, 0, 0, 255, 0, 0, 0, 255, 255, 255, 255], width=2
        )

    def test_average_scenario(self):
        result = point_transforms.grayscale_average(self.buffer)
        gray = [result.pixel_at(x, y) for y in range(2) for x in range(2)]

        assert gray == [(85, 85, 85), (85, 85, 85), (85, 85, 85), (255, 255, 255)]

    def test_luminosity_weights(self):
        result = point_transforms.grayscale_luminosity(self.buffer)

        assert result.pixel_at(0, 0) == (76, 76, 76)
        assert result.pixel_at(1, 0) == (150, 150, 150)
        assert result.pixel_at(0, 1) == (29, 29, 29)
        assert result.pixel_at(1, 1) == (255, 255, 255)

    def test_idempotent(self):
        rng = np.random.default_rng(3)
        buffer = PixelBuffer.from_array(rng.integers(0, 256, (8, 8, 3), dtype=np.uint8))

        for conversion in (
            point_transforms.grayscale_average,
            point_transforms.grayscale_luminosity,
        ):
            once = conversion(buffer)
            assert conversion(once).data == once.data
