"""
Command line interface for rasterlab.

Loads an image, applies the requested processing steps in canonical order
and saves the result.
"""

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .errors import RasterlabError
from .histogram import histogram, histogram_statistics
from .io_utils import load_image, save_image
from .processors import (
    PRESETS,
    ProcessingPipeline,
    create_processing_config,
)
from .thresholding import ThresholdMethod

logger = logging.getLogger(__name__)


def _convert_args_to_steps(args: argparse.Namespace) -> list:
    """Translate parsed CLI flags into pipeline steps."""
    if args.preset:
        return create_processing_config(**PRESETS[args.preset])

    settings = {
        "grayscale": args.grayscale is not None,
        "grayscale_method": args.grayscale,
        "median": args.median is not None,
        "median_kernel_size": args.median,
        "smoothing": args.smooth is not None,
        "smoothing_kernel_size": args.smooth,
        "gaussian": args.gaussian is not None,
        "gaussian_sigma": args.gaussian,
        "convolution": args.kernel is not None,
        "convolution_kernel_text": args.kernel,
        "sharpen": args.sharpen,
        "sobel": args.sobel,
        "contrast": args.contrast is not None,
        "contrast_method": args.contrast,
        "binarize": args.threshold_method is not None,
        "binarize_method": args.threshold_method,
    }

    if args.brightness is not None:
        settings.update(point=True, point_operation="brightness", point_value=args.brightness)

    if args.threshold is not None:
        settings["binarize_threshold"] = args.threshold
    if args.percent is not None:
        settings["binarize_percent"] = args.percent

    return create_processing_config(**settings)


def _print_histogram(buffer, channel: int):
    stats = histogram_statistics(histogram(buffer, channel))
    print(f"Histogram (channel {channel}):")
    for key, value in stats.items():
        print(f"  {key}: {value}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="rasterlab - pixel processing and automatic thresholding",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Denoise and binarize with Kapur's entropy threshold
  rasterlab scan.png --median 3 --threshold-method entropy

  # Gaussian blur then Sobel edges
  rasterlab photo.jpg --gaussian 1.5 --sobel -o edges.png

  # Custom kernel
  rasterlab photo.jpg --kernel "0 -1 0; -1 5 -1; 0 -1 0"

  # Use a preset
  rasterlab scan.png --preset document
        """,
    )

    parser.add_argument("input", nargs="?", help="Input image file")
    parser.add_argument("-o", "--output", help="Output file path (default: auto-generated)")
    parser.add_argument("--preset", choices=sorted(PRESETS), help="Processing preset")

    parser.add_argument(
        "--list-processors", action="store_true", help="List available processors and exit"
    )
    parser.add_argument(
        "--list-thresholds", action="store_true", help="List threshold methods and exit"
    )
    parser.add_argument(
        "--histogram",
        type=int,
        choices=[-1, 0, 1, 2],
        help="Print histogram statistics for a channel (-1 = gray average) and exit",
    )
    parser.add_argument("--version", action="version", version=f"rasterlab {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    steps = parser.add_argument_group("Processing steps (applied in canonical order)")
    steps.add_argument("--grayscale", choices=["average", "luminosity"], help="Grayscale conversion")
    steps.add_argument("--brightness", type=int, help="Brightness change (-255 to 255)")
    steps.add_argument("--median", type=int, metavar="SIZE", help="Median filter kernel size")
    steps.add_argument("--smooth", type=int, metavar="SIZE", help="Box blur kernel size")
    steps.add_argument("--gaussian", type=float, metavar="SIGMA", help="Gaussian blur sigma")
    steps.add_argument("--kernel", metavar="TEXT", help="Custom kernel, rows separated by ';'")
    steps.add_argument("--sharpen", action="store_true", help="Sharpening filter")
    steps.add_argument("--sobel", action="store_true", help="Sobel edge detection")
    steps.add_argument("--contrast", choices=["stretch", "equalize"], help="Contrast enhancement")

    binarize = parser.add_argument_group("Binarization")
    binarize.add_argument(
        "--threshold-method",
        choices=[m.value for m in ThresholdMethod],
        help="Threshold selection method",
    )
    binarize.add_argument("--threshold", type=int, help="Threshold for the manual method")
    binarize.add_argument("--percent", type=float, help="Black percentage for percent_black")

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    if args.list_processors:
        print("Available processors:")
        for name, info in ProcessingPipeline().get_all_processors_info().items():
            print(f"  {name:<12} - {info['description']}")
        sys.exit(0)

    if args.list_thresholds:
        print("Available threshold methods:")
        for method in ThresholdMethod:
            print(f"  {method.value}")
        sys.exit(0)

    if not args.input:
        parser.error("Input image file is required")

    step_flags = (
        args.grayscale,
        args.brightness,
        args.median,
        args.smooth,
        args.gaussian,
        args.kernel,
        args.contrast,
        args.threshold_method,
        args.threshold,
        args.percent,
    )
    if args.preset and (
        args.sharpen or args.sobel or any(flag is not None for flag in step_flags)
    ):
        parser.error("--preset cannot be used with individual processing flags")

    if args.threshold_method is None and (args.threshold is not None or args.percent is not None):
        parser.error("--threshold and --percent require --threshold-method")

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Input file '{input_path}' not found", file=sys.stderr)
        sys.exit(1)

    try:
        buffer = load_image(input_path)

        if args.histogram is not None:
            _print_histogram(buffer, args.histogram)
            sys.exit(0)

        steps = _convert_args_to_steps(args)
        if not steps:
            parser.error("No processing steps requested")

        output_path = Path(args.output or f"{input_path.stem}_processed{input_path.suffix or '.png'}")

        output, results = ProcessingPipeline().process(buffer, steps)
        save_image(output, output_path)

        if args.verbose:
            for result in results:
                print(f"  - {result.processor_type}: {result.parameters}")

        print(f"Successfully processed '{input_path}' -> '{output_path}'")

    except (RasterlabError, OSError) as e:
        print(f"Error processing image: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
