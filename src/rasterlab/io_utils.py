"""
Image file loading and saving.

Decoding and encoding are not part of the engine: these helpers turn image
files into PixelBuffers and back using Pillow.
"""

import logging
from pathlib import Path

import numpy as np
from PIL import Image

from .buffer import PixelBuffer, ensure_buffer

logger = logging.getLogger(__name__)


def load_image(file_path) -> PixelBuffer:
    """
    Load an image file as an RGB PixelBuffer.

    Raises:
        FileNotFoundError: If the file does not exist
        OSError: If Pillow cannot decode the file
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {file_path}")

    with Image.open(path) as img:
        width, height = img.size
        logger.info(f"Loading {path.name}: {width}x{height} ({img.mode})")

        if img.mode != "RGB":
            img = img.convert("RGB")

        return PixelBuffer.from_array(np.asarray(img, dtype=np.uint8))


def save_image(buffer: PixelBuffer, file_path, quality: int = 95) -> Path:
    """Encode ``buffer`` to ``file_path``; the format follows the suffix."""
    ensure_buffer(buffer)
    path = Path(file_path)

    image = Image.fromarray(np.array(buffer.to_array()))

    if path.suffix.lower() in (".jpg", ".jpeg"):
        image.save(path, quality=quality)
    else:
        image.save(path)

    logger.info(f"Saved {buffer!r} to {path}")
    return path
