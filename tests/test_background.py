import threading

import numpy as np

from rasterlab.background import TaskRunner
from rasterlab.buffer import PixelBuffer
from rasterlab.errors import PreconditionError
from rasterlab.filters import median


class TestTaskRunner:
    def setup_method(self):
        self.runner = TaskRunner()
        rng = np.random.default_rng(1)
        self.buffer = PixelBuffer.from_array(rng.integers(0, 256, (12, 12, 3), dtype=np.uint8))

    def test_callback_receives_result(self):
        received = []
        task = self.runner.execute_async(median, self.buffer, 3, callback=received.append)

        assert task.wait(10)
        assert task.done
        assert received == [task.result]
        assert task.result.data == median(self.buffer, 3).data

    def test_error_callback(self):
        errors = []
        task = self.runner.execute_async(
            median, self.buffer, kernel_size=2, error_callback=errors.append
        )

        assert task.wait(10)
        assert task.result is None
        assert isinstance(task.error, PreconditionError)
        assert errors == [task.error]

    def test_cancelled_result_is_discarded(self):
        release = threading.Event()
        received = []

        def blocked():
            release.wait(10)
            return "finished"

        task = self.runner.execute_async(blocked, callback=received.append, name="blocked")
        task.cancel()
        release.set()

        assert task.wait(10)
        assert task.cancelled
        assert task.result is None
        assert received == []

    def test_wait_for_all(self):
        tasks = [self.runner.execute_async(median, self.buffer, 3) for _ in range(3)]
        self.runner.wait_for_all(10)

        assert all(task.done for task in tasks)
