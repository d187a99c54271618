"""
PixelBuffer - the data contract shared by every rasterlab operation.

A buffer is a width, a height and a byte string of length width*height*3,
row-major from the top-left pixel, with samples ordered [R, G, B]. Buffers are
immutable: operations read one buffer and return a new one.
"""

from dataclasses import dataclass

import numpy as np

from .constants import CHANNELS
from .errors import PreconditionError


@dataclass(frozen=True)
class PixelBuffer:
    """Immutable interleaved RGB pixel buffer."""

    width: int
    height: int
    data: bytes

    def __post_init__(self):
        if self.data is None:
            raise PreconditionError("No image loaded")

        if not isinstance(self.data, bytes):
            if not isinstance(self.data, (bytearray, memoryview)):
                raise PreconditionError(
                    f"Pixel data must be bytes-like, got {type(self.data).__name__}"
                )
            object.__setattr__(self, "data", bytes(self.data))

        if self.width <= 0 or self.height <= 0:
            raise PreconditionError(
                f"Image dimensions must be positive, got {self.width}x{self.height}"
            )

        expected = self.width * self.height * CHANNELS
        if len(self.data) != expected:
            raise PreconditionError(
                f"Buffer length {len(self.data)} does not match "
                f"{self.width}x{self.height}x{CHANNELS} = {expected}"
            )

    def __repr__(self):
        return f"PixelBuffer({self.width}x{self.height})"

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @classmethod
    def from_array(cls, image: np.ndarray) -> "PixelBuffer":
        """Build a buffer from an (H, W, 3) uint8 array."""
        if image is None:
            raise PreconditionError("Image cannot be None")

        if image.ndim != 3 or image.shape[2] != CHANNELS:
            raise PreconditionError("Image must be RGB with 3 channels")

        if image.dtype != np.uint8:
            raise PreconditionError("Image must be uint8 format")

        height, width = image.shape[:2]
        return cls(width, height, np.ascontiguousarray(image).tobytes())

    def to_array(self) -> np.ndarray:
        """
        View the pixels as an (H, W, 3) uint8 array.

        The returned array is read-only and shares memory with the buffer.
        """
        return np.frombuffer(self.data, dtype=np.uint8).reshape(
            self.height, self.width, CHANNELS
        )

    def with_data(self, data) -> "PixelBuffer":
        """Return a buffer with the same geometry holding new pixel data."""
        if data is None or len(data) != len(self.data):
            raise PreconditionError(
                "New data must have the same length as current image data"
            )
        return PixelBuffer(self.width, self.height, data)

    def with_array(self, image: np.ndarray) -> "PixelBuffer":
        """Return a buffer of the same geometry from a processed array."""
        if image.shape != (self.height, self.width, CHANNELS):
            raise PreconditionError(
                f"Processed array shape {image.shape} does not match "
                f"{(self.height, self.width, CHANNELS)}"
            )
        return PixelBuffer.from_array(image)

    def pixel_at(self, x: int, y: int) -> tuple[int, int, int] | None:
        """Return the (r, g, b) sample at (x, y), or None when out of range."""
        if x < 0 or x >= self.width or y < 0 or y >= self.height:
            return None

        index = (y * self.width + x) * CHANNELS
        return self.data[index], self.data[index + 1], self.data[index + 2]


def ensure_buffer(buffer) -> PixelBuffer:
    """Validate that an operation received a loaded PixelBuffer."""
    if buffer is None:
        raise PreconditionError("No image loaded")

    if not isinstance(buffer, PixelBuffer):
        raise PreconditionError(
            f"Expected a PixelBuffer, got {type(buffer).__name__}"
        )

    return buffer


def clamp_to_uint8(values: np.ndarray) -> np.ndarray:
    """Clamp any numeric array into the valid uint8 range."""
    return np.clip(values, 0, 255).astype(np.uint8)
