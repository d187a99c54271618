#!/usr/bin/env python3
"""
rasterlab Processors
====================

Processor objects wrapping the engine operations behind one interface, so
they can be chained into pipelines, listed by the CLI and configured from
flat keyword settings.

Architecture:
- Engine: pure buffer-in/buffer-out functions (point_transforms, filters,
  contrast, thresholding)
- Processors: one per operation family, returning a ProcessingResult with
  parameters and statistics
- Pipeline: applies an ordered list of processor steps
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

import numpy as np

from . import contrast, filters, point_transforms, thresholding
from .buffer import PixelBuffer, ensure_buffer
from .constants import DEFAULT_KERNEL_SIZE, DEFAULT_SIGMA, DEFAULT_THRESHOLD
from .convolution import convolve
from .errors import PreconditionError
from .histogram import histogram, histogram_statistics, luminosity_histogram

logger = logging.getLogger(__name__)


class ProcessorType(Enum):
    """Types of processors available."""

    POINT = "point"
    GRAYSCALE = "grayscale"
    SMOOTHING = "smoothing"
    MEDIAN = "median"
    GAUSSIAN = "gaussian"
    SHARPEN = "sharpen"
    SOBEL = "sobel"
    CONVOLUTION = "convolution"
    CONTRAST = "contrast"
    BINARIZE = "binarize"


class ProcessingResult:
    """Result object for processing operations."""

    def __init__(
        self,
        buffer: PixelBuffer,
        processor_type: str,
        parameters: dict[str, Any],
        statistics: dict | None = None,
    ):
        self.buffer = buffer
        self.processor_type = processor_type
        self.parameters = parameters
        self.statistics = statistics or {}

    def __repr__(self):
        return f"ProcessingResult({self.processor_type}, {self.buffer.width}x{self.buffer.height})"


class BaseProcessor(ABC):
    """Abstract base class for all buffer processors."""

    def __init__(self, name: str):
        self.name = name
        self._last_result = None

    def get_last_result(self) -> ProcessingResult | None:
        """Get the result of the last processing operation."""
        return self._last_result

    def process(self, buffer: PixelBuffer, **kwargs) -> ProcessingResult:
        """Validate the input, run the operation and record the result."""
        ensure_buffer(buffer)

        logger.info(f"Applying {self.name} to {buffer!r} with {kwargs}")
        output, parameters = self._apply(buffer, **kwargs)

        result = ProcessingResult(
            buffer=output,
            processor_type=self.name,
            parameters=parameters,
            statistics=self._statistics(buffer, output, parameters),
        )
        self._last_result = result
        return result

    @abstractmethod
    def _apply(self, buffer: PixelBuffer, **kwargs) -> tuple[PixelBuffer, dict[str, Any]]:
        """Return the processed buffer and the parameters actually used."""

    def _statistics(
        self, original: PixelBuffer, output: PixelBuffer, parameters: dict[str, Any]
    ) -> dict[str, Any]:
        before = np.frombuffer(original.data, dtype=np.uint8).astype(np.float64)
        after = np.frombuffer(output.data, dtype=np.uint8).astype(np.float64)

        return {
            "mean_change": float(np.mean(np.abs(after - before))),
            "output_range": (int(after.min()), int(after.max())),
        }


class PointTransformProcessor(BaseProcessor):
    """
    Per-sample arithmetic: add, subtract, multiply, divide, brightness.
    """

    _operations = {
        "add": point_transforms.add,
        "subtract": point_transforms.subtract,
        "multiply": point_transforms.multiply,
        "divide": point_transforms.divide,
        "brightness": point_transforms.brightness,
    }

    def __init__(self):
        super().__init__("Point Transform")

    def _apply(self, buffer, **kwargs):
        operation = kwargs.get("operation", "brightness")
        value = kwargs.get("value", 0)

        if operation not in self._operations:
            raise PreconditionError(f"Unknown point operation: {operation}")

        output = self._operations[operation](buffer, value)
        return output, {"operation": operation, "value": value}


class GrayscaleProcessor(BaseProcessor):
    """Grayscale conversion by channel average or BT.601 luminosity."""

    def __init__(self):
        super().__init__("Grayscale")

    def _apply(self, buffer, **kwargs):
        method = kwargs.get("method", "luminosity")

        if method == "average":
            output = point_transforms.grayscale_average(buffer)
        elif method == "luminosity":
            output = point_transforms.grayscale_luminosity(buffer)
        else:
            raise PreconditionError(f"Unknown grayscale method: {method}")

        return output, {"method": method}


class SmoothingProcessor(BaseProcessor):
    """Box blur with a border-shrinking window."""

    def __init__(self):
        super().__init__("Smoothing")

    def _apply(self, buffer, **kwargs):
        kernel_size = kwargs.get("kernel_size", DEFAULT_KERNEL_SIZE)
        return filters.smooth(buffer, kernel_size), {"kernel_size": kernel_size}


class MedianProcessor(BaseProcessor):
    """Median filter for impulse noise."""

    def __init__(self):
        super().__init__("Median")

    def _apply(self, buffer, **kwargs):
        kernel_size = kwargs.get("kernel_size", DEFAULT_KERNEL_SIZE)
        return filters.median(buffer, kernel_size), {"kernel_size": kernel_size}


class GaussianProcessor(BaseProcessor):
    """Gaussian blur with a sigma-sized kernel."""

    def __init__(self):
        super().__init__("Gaussian Blur")

    def _apply(self, buffer, **kwargs):
        sigma = kwargs.get("sigma", DEFAULT_SIGMA)
        return filters.gaussian_blur(buffer, sigma), {"sigma": sigma}


class SharpenProcessor(BaseProcessor):
    """High-pass sharpening."""

    def __init__(self):
        super().__init__("Sharpen")

    def _apply(self, buffer, **kwargs):
        return filters.sharpen(buffer), {}


class SobelProcessor(BaseProcessor):
    """Sobel edge detection."""

    def __init__(self):
        super().__init__("Sobel")

    def _apply(self, buffer, **kwargs):
        return filters.sobel(buffer), {}

    def _statistics(self, original, output, parameters):
        stats = super()._statistics(original, output, parameters)
        edges = np.frombuffer(output.data, dtype=np.uint8)
        stats["edge_fraction"] = float(np.count_nonzero(edges) / edges.size)
        return stats


class ConvolutionProcessor(BaseProcessor):
    """Custom kernel given either as a grid or as text."""

    def __init__(self):
        super().__init__("Convolution")

    def _apply(self, buffer, **kwargs):
        kernel = kwargs.get("kernel")
        kernel_text = kwargs.get("kernel_text")

        if kernel_text is not None:
            return filters.custom_kernel(buffer, kernel_text), {"kernel_text": kernel_text}

        if kernel is None:
            raise PreconditionError("Convolution requires 'kernel' or 'kernel_text'")

        return convolve(buffer, kernel), {"kernel": np.asarray(kernel).tolist()}


class ContrastProcessor(BaseProcessor):
    """Histogram stretching or equalization."""

    def __init__(self):
        super().__init__("Contrast")

    def _apply(self, buffer, **kwargs):
        method = kwargs.get("method", "stretch")

        if method == "stretch":
            output = contrast.stretch(buffer)
        elif method == "equalize":
            output = contrast.equalize(buffer)
        else:
            raise PreconditionError(f"Unknown contrast method: {method}")

        return output, {"method": method}

    def _statistics(self, original, output, parameters):
        stats = super()._statistics(original, output, parameters)
        stats["channels"] = {}

        for channel in range(3):
            before = histogram_statistics(histogram(original, channel))
            after = histogram_statistics(histogram(output, channel))
            stats["channels"][f"channel_{channel}"] = {
                "original_range": (before["min_level"], before["max_level"]),
                "enhanced_range": (after["min_level"], after["max_level"]),
            }

        return stats


class BinarizeProcessor(BaseProcessor):
    """Binarization with any of the threshold selection methods."""

    def __init__(self):
        super().__init__("Binarize")

    def _apply(self, buffer, **kwargs):
        params = dict(kwargs)
        method = params.pop("method", "manual")

        if method == "manual":
            params.setdefault("threshold", DEFAULT_THRESHOLD)

        threshold = thresholding.select_threshold(buffer, method, **params)
        output = thresholding.binarize_manual(buffer, threshold)

        return output, {"method": method, "threshold": threshold, **params}

    def _statistics(self, original, output, parameters):
        gray = histogram_statistics(luminosity_histogram(original))
        white = np.frombuffer(output.data, dtype=np.uint8)[::3]

        return {
            "threshold": parameters["threshold"],
            "gray_mean": gray["mean"],
            "white_fraction": float(np.count_nonzero(white) / white.size),
        }


class ProcessorFactory:
    """Factory class for creating processor instances."""

    _processors = {
        ProcessorType.POINT: PointTransformProcessor,
        ProcessorType.GRAYSCALE: GrayscaleProcessor,
        ProcessorType.SMOOTHING: SmoothingProcessor,
        ProcessorType.MEDIAN: MedianProcessor,
        ProcessorType.GAUSSIAN: GaussianProcessor,
        ProcessorType.SHARPEN: SharpenProcessor,
        ProcessorType.SOBEL: SobelProcessor,
        ProcessorType.CONVOLUTION: ConvolutionProcessor,
        ProcessorType.CONTRAST: ContrastProcessor,
        ProcessorType.BINARIZE: BinarizeProcessor,
    }

    @classmethod
    def create_processor(cls, processor_type: ProcessorType) -> BaseProcessor:
        """Create a processor instance by type."""
        if processor_type not in cls._processors:
            raise PreconditionError(f"Unknown processor type: {processor_type}")

        return cls._processors[processor_type]()

    @classmethod
    def get_available_processors(cls) -> list[ProcessorType]:
        """Get list of available processor types."""
        return list(cls._processors.keys())

    @classmethod
    def create_all_processors(cls) -> dict[ProcessorType, BaseProcessor]:
        """Create instances of all available processors."""
        return {
            processor_type: cls.create_processor(processor_type)
            for processor_type in cls._processors.keys()
        }


def _resolve_type(name) -> ProcessorType:
    if isinstance(name, ProcessorType):
        return name

    try:
        return ProcessorType(name)
    except ValueError as e:
        available = [t.value for t in ProcessorType]
        raise PreconditionError(f"Unknown processor type: {name!r}. Available: {available}") from e


class ProcessingPipeline:
    """
    Applies a sequence of processing steps, feeding each output to the next.

    Steps are dictionaries ``{"type": <processor type>, "params": {...}}``.
    A failing step aborts the run; no partial result is returned.
    """

    def __init__(self):
        self.processors = ProcessorFactory.create_all_processors()
        self.processing_history = []

    def process(
        self, buffer: PixelBuffer, steps: list[dict[str, Any]]
    ) -> tuple[PixelBuffer, list[ProcessingResult]]:
        """
        Apply ``steps`` to ``buffer`` in order.

        Returns:
            Tuple of (final_buffer, processing_results)
        """
        ensure_buffer(buffer)

        current = buffer
        results = []

        logger.info(f"Starting processing pipeline with {len(steps)} steps")

        for step in steps:
            processor_type = _resolve_type(step.get("type"))
            params = dict(step.get("params", {}))

            try:
                result = self.processors[processor_type].process(current, **params)
            except Exception as e:
                logger.error(f"Error applying {processor_type.value}: {str(e)}")
                raise

            current = result.buffer
            results.append(result)

        self.processing_history.append(
            {
                "steps": steps,
                "results": results,
                "final_size": (current.width, current.height),
            }
        )

        logger.info(f"Processing pipeline completed with {len(results)} steps applied")

        return current, results

    def get_processor_info(self, processor_type: ProcessorType) -> dict[str, Any]:
        """Get information about a specific processor."""
        if processor_type not in self.processors:
            raise PreconditionError(f"Unknown processor type: {processor_type}")

        processor = self.processors[processor_type]

        return {
            "name": processor.name,
            "type": processor_type.value,
            "description": (processor.__doc__ or "No description available").strip(),
        }

    def get_all_processors_info(self) -> dict[str, dict[str, Any]]:
        """Get information about all available processors."""
        return {
            processor_type.value: self.get_processor_info(processor_type)
            for processor_type in self.processors.keys()
        }

    def clear_history(self):
        """Clear processing history."""
        self.processing_history.clear()
        logger.info("Processing history cleared")


# Canonical order used when building steps from flat settings.
PROCESSING_ORDER = [
    ProcessorType.GRAYSCALE,
    ProcessorType.POINT,
    ProcessorType.MEDIAN,
    ProcessorType.SMOOTHING,
    ProcessorType.GAUSSIAN,
    ProcessorType.CONVOLUTION,
    ProcessorType.SHARPEN,
    ProcessorType.SOBEL,
    ProcessorType.CONTRAST,
    ProcessorType.BINARIZE,
]


def create_processing_config(**kwargs) -> list[dict[str, Any]]:
    """
    Build an ordered list of pipeline steps from flat keyword settings.

    Args:
        **kwargs: ``<processor>=True`` enables a processor; its parameters are
            given as ``<processor>_<param>``, e.g. ``median=True,
            median_kernel_size=5``

    Returns:
        Steps in canonical processing order, disabled processors omitted
    """
    config = {}

    if kwargs.get("grayscale", False):
        config[ProcessorType.GRAYSCALE] = {
            "method": kwargs.get("grayscale_method", "luminosity"),
        }

    if kwargs.get("point", False):
        config[ProcessorType.POINT] = {
            "operation": kwargs.get("point_operation", "brightness"),
            "value": kwargs.get("point_value", 0),
        }

    if kwargs.get("median", False):
        config[ProcessorType.MEDIAN] = {
            "kernel_size": kwargs.get("median_kernel_size", DEFAULT_KERNEL_SIZE),
        }

    if kwargs.get("smoothing", False):
        config[ProcessorType.SMOOTHING] = {
            "kernel_size": kwargs.get("smoothing_kernel_size", DEFAULT_KERNEL_SIZE),
        }

    if kwargs.get("gaussian", False):
        config[ProcessorType.GAUSSIAN] = {
            "sigma": kwargs.get("gaussian_sigma", DEFAULT_SIGMA),
        }

    if kwargs.get("convolution", False):
        config[ProcessorType.CONVOLUTION] = {
            "kernel_text": kwargs.get("convolution_kernel_text"),
        }

    if kwargs.get("sharpen", False):
        config[ProcessorType.SHARPEN] = {}

    if kwargs.get("sobel", False):
        config[ProcessorType.SOBEL] = {}

    if kwargs.get("contrast", False):
        config[ProcessorType.CONTRAST] = {
            "method": kwargs.get("contrast_method", "stretch"),
        }

    if kwargs.get("binarize", False):
        binarize_params = {"method": kwargs.get("binarize_method", "manual")}
        if "binarize_threshold" in kwargs:
            binarize_params["threshold"] = kwargs["binarize_threshold"]
        if "binarize_percent" in kwargs:
            binarize_params["percent"] = kwargs["binarize_percent"]
        config[ProcessorType.BINARIZE] = binarize_params

    return [
        {"type": processor_type.value, "params": config[processor_type]}
        for processor_type in PROCESSING_ORDER
        if processor_type in config
    ]


PRESETS = {
    "document": dict(
        grayscale=True, median=True, contrast=True, binarize=True, binarize_method="entropy"
    ),
    "denoise": dict(median=True, gaussian=True, gaussian_sigma=0.8),
    "edges": dict(grayscale=True, gaussian=True, sobel=True),
    "contrast": dict(contrast=True, contrast_method="equalize"),
}


def quick_enhance(buffer: PixelBuffer, preset: str = "document") -> PixelBuffer:
    """
    Apply a named preset.

    Args:
        buffer: Input pixels
        preset: 'document', 'denoise', 'edges' or 'contrast'

    Returns:
        Processed buffer
    """
    if preset not in PRESETS:
        raise PreconditionError(f"Unknown preset: {preset}. Available: {sorted(PRESETS)}")

    pipeline = ProcessingPipeline()
    output, _ = pipeline.process(buffer, create_processing_config(**PRESETS[preset]))
    return output


# Export main classes and functions
__all__ = [
    "BaseProcessor",
    "PointTransformProcessor",
    "GrayscaleProcessor",
    "SmoothingProcessor",
    "MedianProcessor",
    "GaussianProcessor",
    "SharpenProcessor",
    "SobelProcessor",
    "ConvolutionProcessor",
    "ContrastProcessor",
    "BinarizeProcessor",
    "ProcessorFactory",
    "ProcessingPipeline",
    "ProcessorType",
    "ProcessingResult",
    "PROCESSING_ORDER",
    "PRESETS",
    "create_processing_config",
    "quick_enhance",
]
