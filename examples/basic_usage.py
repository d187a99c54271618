"""
Basic usage examples for rasterlab.

Demonstrates the main operations and typical workflows on a synthetic
scanned-document image.
"""

import numpy as np

from rasterlab import (
    PixelBuffer,
    ProcessingPipeline,
    binarize,
    create_processing_config,
    gaussian_blur,
    list_threshold_methods,
    median,
    select_threshold,
    sobel,
    stretch,
)
from rasterlab.histogram import histogram, histogram_statistics
from rasterlab.io_utils import save_image


def create_test_image():
    """Create a synthetic page: dark strokes on uneven paper with speckle noise."""
    rng = np.random.default_rng(0)
    image = np.zeros((200, 200, 3), dtype=np.uint8)

    # Paper, slightly darker towards the bottom
    shade = np.linspace(215, 185, 200).astype(np.uint8)
    image[:, :] = shade[:, np.newaxis, np.newaxis]

    # "Ink" strokes
    image[40:50, 30:170] = [40, 35, 30]
    image[90:100, 30:140] = [45, 40, 35]
    image[140:150, 30:160] = [35, 30, 30]

    # Salt and pepper noise
    mask = rng.random((200, 200)) < 0.02
    image[mask] = rng.choice([0, 255], size=(int(mask.sum()), 1))

    buffer = PixelBuffer.from_array(image)
    save_image(buffer, "synthetic_page.png")
    print("Created synthetic test image: synthetic_page.png")

    return buffer


def example_threshold_comparison(buffer):
    """Compare the thresholds chosen by every method."""
    print("=== Threshold Comparison ===")

    cleaned = median(buffer, 3)
    for method in list_threshold_methods():
        threshold = select_threshold(cleaned, method)
        save_image(binarize(cleaned, method), f"example_threshold_{method}.png")
        print(f"{method:<20} t={threshold}")


def example_filters(buffer):
    """Denoise, blur and detect edges."""
    print("=== Filters ===")

    blurred = gaussian_blur(median(buffer, 3), sigma=1.5)
    edges = sobel(blurred)

    save_image(edges, "example_edges.png")
    print("Saved: example_edges.png")


def example_histogram(buffer):
    """Inspect the gray histogram before and after stretching."""
    print("=== Histogram ===")

    before = histogram_statistics(histogram(buffer))
    after = histogram_statistics(histogram(stretch(buffer)))

    print(f"Before stretch: {before['min_level']}-{before['max_level']}, mean {before['mean']:.1f}")
    print(f"After stretch:  {after['min_level']}-{after['max_level']}, mean {after['mean']:.1f}")


def example_pipeline(buffer):
    """Build a pipeline from flat settings and inspect each step."""
    print("=== Pipeline ===")

    steps = create_processing_config(
        grayscale=True,
        median=True,
        contrast=True,
        contrast_method="equalize",
        binarize=True,
        binarize_method="minimum_error",
    )

    output, results = ProcessingPipeline().process(buffer, steps)
    for result in results:
        print(f"  {result.processor_type}: {result.parameters}")

    save_image(output, "example_pipeline.png")
    print("Saved: example_pipeline.png")


if __name__ == "__main__":
    print("rasterlab - Usage Examples")
    print("=" * 40)

    page = create_test_image()
    example_threshold_comparison(page)
    example_filters(page)
    example_histogram(page)
    example_pipeline(page)

    print("\n" + "=" * 40)
    print("All examples completed!")
    print("Check the generated image files to see the results.")
