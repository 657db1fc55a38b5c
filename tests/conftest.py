import threading
import time

import pytest
from PIL import Image

from models.base_engine import BaseDiffusionEngine, Progress


class StubEngine(BaseDiffusionEngine):
    """Scripted engine: emits one Progress per step and returns fixed slots."""

    name = "stub"

    def __init__(self, images=None, delay=0.0, error=None, threaded=False, after_step=None):
        self.images = images if images is not None else [Image.new("RGB", (8, 8), "red")]
        self.delay = delay
        self.error = error
        self.threaded = threaded
        self.after_step = after_step
        self.calls = []
        self.handler_results = []

    def _run_steps(self, prompt, step_count, progress_handler):
        for step in range(step_count):
            progress = Progress(prompt=prompt, step=step, step_count=step_count, timestep=1000 - step)
            if progress_handler is not None:
                self.handler_results.append(progress_handler(progress))
            if self.after_step is not None:
                self.after_step(step)

    def generate_images(
        self,
        prompt,
        negative_prompt="",
        image_count=1,
        step_count=50,
        seed=0,
        guidance_scale=7.5,
        disable_safety=False,
        scheduler=None,
        progress_handler=None,
    ):
        self.calls.append(
            dict(
                prompt=prompt,
                negative_prompt=negative_prompt,
                image_count=image_count,
                step_count=step_count,
                seed=seed,
                guidance_scale=guidance_scale,
                disable_safety=disable_safety,
                scheduler=scheduler,
            )
        )
        if self.threaded:
            worker = threading.Thread(target=self._run_steps, args=(prompt, step_count, progress_handler))
            worker.start()
            worker.join()
        else:
            self._run_steps(prompt, step_count, progress_handler)

        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.images)


@pytest.fixture
def stub_engine():
    return StubEngine()


@pytest.fixture
def make_engine():
    return StubEngine
