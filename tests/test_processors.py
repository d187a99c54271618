import numpy as np
import pytest

from rasterlab.buffer import PixelBuffer
from rasterlab.errors import PreconditionError
from rasterlab.processors import (
    BinarizeProcessor,
    ContrastProcessor,
    ConvolutionProcessor,
    GrayscaleProcessor,
    MedianProcessor,
    PointTransformProcessor,
    ProcessingPipeline,
    ProcessorFactory,
    ProcessorType,
    SobelProcessor,
    quick_enhance,
)


class TestProcessors:
    def setup_method(self):
        # Gradient image: red varies by row, green by column
        image = np.zeros((40, 40, 3), dtype=np.uint8)
        for i in range(40):
            image[i, :, 0] = i * 6
            image[:, i, 1] = i * 6
            image[i, i, 2] = 128
        self.image = image
        self.buffer = PixelBuffer.from_array(image)

    def test_point_transform_processor(self):
        processor = PointTransformProcessor()
        result = processor.process(self.buffer, operation="add", value=20)

        assert result.processor_type == "Point Transform"
        assert result.parameters == {"operation": "add", "value": 20}

        expected = np.clip(self.image.astype(int) + 20, 0, 255)
        np.testing.assert_array_equal(result.buffer.to_array(), expected)
        assert processor.get_last_result() is result

    def test_point_transform_unknown_operation(self):
        with pytest.raises(PreconditionError):
            PointTransformProcessor().process(self.buffer, operation="power", value=2)

    def test_grayscale_processor(self):
        result = GrayscaleProcessor().process(self.buffer, method="average")
        image = result.buffer.to_array()

        np.testing.assert_array_equal(image[:, :, 0], image[:, :, 2])
        assert result.parameters["method"] == "average"

        with pytest.raises(PreconditionError):
            GrayscaleProcessor().process(self.buffer, method="desaturate")

    def test_median_processor_defaults(self):
        result = MedianProcessor().process(self.buffer)

        assert result.parameters["kernel_size"] == 3
        assert result.buffer.width == 40
        assert "mean_change" in result.statistics

    def test_sobel_processor_statistics(self):
        result = SobelProcessor().process(self.buffer)

        assert result.processor_type == "Sobel"
        assert 0.0 < result.statistics["edge_fraction"] <= 1.0

    def test_convolution_processor(self):
        processor = ConvolutionProcessor()

        from_text = processor.process(self.buffer, kernel_text="0 0 0; 0 1 0; 0 0 0")
        assert from_text.buffer.data == self.buffer.data

        from_grid = processor.process(self.buffer, kernel=[[1.0]])
        assert from_grid.parameters["kernel"] == [[1.0]]

        with pytest.raises(PreconditionError):
            processor.process(self.buffer)

    def test_contrast_processor_expands_range(self):
        low_contrast = PixelBuffer.from_array((self.image // 4 + 100).astype(np.uint8))
        result = ContrastProcessor().process(low_contrast, method="stretch")

        channels = result.statistics["channels"]
        assert channels["channel_0"]["enhanced_range"] == (0, 255)
        assert channels["channel_0"]["original_range"][0] == 100

    def test_binarize_processor(self):
        result = BinarizeProcessor().process(self.buffer, method="entropy")

        assert result.processor_type == "Binarize"
        assert result.parameters["method"] == "entropy"
        assert 0 <= result.statistics["threshold"] <= 255
        assert set(result.buffer.data) <= {0, 255}

    def test_binarize_processor_manual_default(self):
        result = BinarizeProcessor().process(self.buffer)
        assert result.statistics["threshold"] == 128


class TestFactory:
    def test_all_types_available(self):
        processors = ProcessorFactory.create_all_processors()
        assert set(processors) == set(ProcessorType)

    def test_processor_names(self):
        processor = ProcessorFactory.create_processor(ProcessorType.GAUSSIAN)
        assert processor.name == "Gaussian Blur"


class TestPipeline:
    def setup_method(self):
        rng = np.random.default_rng(2)
        self.buffer = PixelBuffer.from_array(rng.integers(0, 256, (20, 24, 3), dtype=np.uint8))
        self.pipeline = ProcessingPipeline()

    def test_steps_applied_in_order(self):
        steps = [
            {"type": "grayscale", "params": {"method": "luminosity"}},
            {"type": "median", "params": {"kernel_size": 3}},
            {"type": "binarize", "params": {"method": "mean_iterative"}},
        ]

        output, results = self.pipeline.process(self.buffer, steps)

        assert [r.processor_type for r in results] == ["Grayscale", "Median", "Binarize"]
        assert output is results[-1].buffer
        assert set(output.data) <= {0, 255}
        assert len(self.pipeline.processing_history) == 1

    def test_failing_step_raises(self):
        steps = [
            {"type": "grayscale", "params": {}},
            {"type": "smoothing", "params": {"kernel_size": 4}},
        ]

        with pytest.raises(PreconditionError):
            self.pipeline.process(self.buffer, steps)

        assert self.pipeline.processing_history == []

    def test_unknown_step_type(self):
        with pytest.raises(PreconditionError):
            self.pipeline.process(self.buffer, [{"type": "emboss"}])

    def test_processor_info(self):
        info = self.pipeline.get_all_processors_info()

        assert info["sobel"]["name"] == "Sobel"
        assert info["binarize"]["description"]

    def test_clear_history(self):
        self.pipeline.process(self.buffer, [{"type": "sharpen"}])
        self.pipeline.clear_history()
        assert self.pipeline.processing_history == []


class TestQuickEnhance:
    def setup_method(self):
        rng = np.random.default_rng(8)
        self.buffer = PixelBuffer.from_array(rng.integers(0, 256, (16, 16, 3), dtype=np.uint8))

    def test_document_preset_binarizes(self):
        output = quick_enhance(self.buffer, "document")
        assert set(output.data) <= {0, 255}

    @pytest.mark.parametrize("preset", ["denoise", "edges", "contrast"])
    def test_other_presets_keep_size(self, preset):
        output = quick_enhance(self.buffer, preset)
        assert (output.width, output.height) == (16, 16)

    def test_unknown_preset(self):
        with pytest.raises(PreconditionError):
            quick_enhance(self.buffer, "vivid")
