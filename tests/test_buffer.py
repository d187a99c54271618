import numpy as np
import pytest

from rasterlab.buffer import PixelBuffer, ensure_buffer
from rasterlab.errors import PreconditionError


class TestPixelBuffer:
    def setup_method(self):
        self.image = np.arange(2 * 3 * 3, dtype=np.uint8).reshape(2, 3, 3)
        self.buffer = PixelBuffer.from_array(self.image)

    def test_geometry(self):
        assert self.buffer.width == 3
        assert self.buffer.height == 2
        assert self.buffer.pixel_count == 6
        assert len(self.buffer.data) == 18

    def test_length_mismatch_rejected(self):
        with pytest.raises(PreconditionError):
            PixelBuffer(2, 2, bytes(11))

        # Precondition errors are also ValueErrors
        with pytest.raises(ValueError):
            PixelBuffer(2, 2, bytes(13))

    def test_missing_data_rejected(self):
        with pytest.raises(PreconditionError):
            PixelBuffer(1, 1, None)

        with pytest.raises(PreconditionError):
            ensure_buffer(None)

    def test_non_positive_dimensions_rejected(self):
        with pytest.raises(PreconditionError):
            PixelBuffer(0, 1, b"")

    def test_bytearray_is_frozen_to_bytes(self):
        source = bytearray([1, 2, 3])
        buffer = PixelBuffer(1, 1, source)
        source[0] = 99

        assert isinstance(buffer.data, bytes)
        assert buffer.data == b"\x01\x02\x03"

    def test_array_roundtrip(self):
        np.testing.assert_array_equal(self.buffer.to_array(), self.image)
        assert not self.buffer.to_array().flags.writeable

    def test_from_array_validation(self):
        with pytest.raises(PreconditionError):
            PixelBuffer.from_array(np.zeros((4, 4), dtype=np.uint8))

        with pytest.raises(PreconditionError):
            PixelBuffer.from_array(np.zeros((4, 4, 3), dtype=np.float32))

    def test_pixel_at(self):
        assert self.buffer.pixel_at(0, 0) == (0, 1, 2)
        assert self.buffer.pixel_at(2, 1) == (15, 16, 17)
        assert self.buffer.pixel_at(3, 0) is None
        assert self.buffer.pixel_at(0, -1) is None

    def test_with_data(self):
        replaced = self.buffer.with_data(bytes(18))
        assert replaced.width == 3 and replaced.height == 2
        assert replaced.data == bytes(18)

        # Original untouched
        assert self.buffer.pixel_at(2, 1) == (15, 16, 17)

        with pytest.raises(PreconditionError):
            self.buffer.with_data(bytes(17))
