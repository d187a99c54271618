"""
rasterlab - pixel processing and automatic thresholding for RGB rasters

The engine works on PixelBuffer values (width, height, interleaved RGB bytes)
and every operation returns a new buffer:

- point transforms: add, subtract, multiply, divide, brightness, grayscale
- convolution with odd kernels and clamp-to-edge borders
- filters: smoothing, median, Sobel, sharpening, Gaussian blur, custom kernel
- histograms, histogram stretching and equalization
- six threshold selection methods with shared binarization
"""

__version__ = "0.1.0"

from .buffer import PixelBuffer as PixelBuffer
from .errors import PreconditionError as PreconditionError
from .errors import RasterlabError as RasterlabError

# Point transforms
from .point_transforms import add as add
from .point_transforms import brightness as brightness
from .point_transforms import divide as divide
from .point_transforms import grayscale_average as grayscale_average
from .point_transforms import grayscale_luminosity as grayscale_luminosity
from .point_transforms import multiply as multiply
from .point_transforms import subtract as subtract

# Convolution and filters
from .convolution import convolve as convolve
from .convolution import gaussian_kernel as gaussian_kernel
from .convolution import parse_kernel as parse_kernel
from .filters import custom_kernel as custom_kernel
from .filters import gaussian_blur as gaussian_blur
from .filters import median as median
from .filters import sharpen as sharpen
from .filters import smooth as smooth
from .filters import sobel as sobel

# Histograms and contrast
from .contrast import equalize as equalize
from .contrast import stretch as stretch
from .histogram import histogram as histogram

# Thresholding
from .thresholding import ThresholdMethod as ThresholdMethod
from .thresholding import binarize as binarize
from .thresholding import binarize_manual as binarize_manual
from .thresholding import select_threshold as select_threshold

# Processors
from .processors import ProcessingPipeline as ProcessingPipeline
from .processors import ProcessingResult as ProcessingResult
from .processors import ProcessorFactory as ProcessorFactory
from .processors import ProcessorType as ProcessorType
from .processors import create_processing_config as create_processing_config
from .processors import quick_enhance as quick_enhance

from .background import TaskRunner as TaskRunner


def list_threshold_methods():
    """Returns the names of the available threshold methods."""
    return [method.value for method in ThresholdMethod]


def get_available_processors():
    """Get dictionary of available processors and their descriptions."""
    pipeline = ProcessingPipeline()
    info = pipeline.get_all_processors_info()
    return {v["name"]: v["description"] for k, v in info.items()}


__all__ = [
    "PixelBuffer",
    "PreconditionError",
    "RasterlabError",
    "add",
    "subtract",
    "multiply",
    "divide",
    "brightness",
    "grayscale_average",
    "grayscale_luminosity",
    "convolve",
    "gaussian_kernel",
    "parse_kernel",
    "smooth",
    "median",
    "sobel",
    "sharpen",
    "gaussian_blur",
    "custom_kernel",
    "histogram",
    "stretch",
    "equalize",
    "ThresholdMethod",
    "binarize",
    "binarize_manual",
    "select_threshold",
    "ProcessingPipeline",
    "ProcessingResult",
    "ProcessorFactory",
    "ProcessorType",
    "create_processing_config",
    "quick_enhance",
    "TaskRunner",
    "list_threshold_methods",
    "get_available_processors",
]
