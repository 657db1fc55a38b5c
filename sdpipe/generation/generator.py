import time
from typing import Any, Optional

from models.base_engine import BaseDiffusionEngine, Progress
from sdpipe.generation.errors import EmptyResult, EngineFailure
from sdpipe.generation.progress import ProgressChannel
from sdpipe.generation.types import GenerationRequest, GenerationResult
from sdpipe.utils.seed import MAX_SEED, random_seed


class ImageGenerator:
    """
    Runs one generation request at a time against a diffusion engine and
    republishes the engine's per-step progress on `progress_channel`.

    `generate` blocks until the engine returns. Callers that need to stay
    responsive should run it on a worker thread and watch `progress_channel`
    from their own thread. Overlapping calls on one instance are not supported.
    """

    def __init__(self, engine: BaseDiffusionEngine, max_seed: int = MAX_SEED):
        if max_seed < 0:
            raise ValueError(f"max_seed must be non-negative, got {max_seed}")
        self.engine = engine
        self._max_seed = max_seed
        self.progress_channel = ProgressChannel()

    @property
    def max_seed(self) -> int:
        return self._max_seed

    @property
    def progress(self) -> Optional[Any]:
        """Latest snapshot published by the engine, or None."""
        return self.progress_channel.current()

    def generate(self, request: GenerationRequest) -> GenerationResult:
        """
        Generate a single image for `request`.

        The progress channel is not reset between calls; it keeps the last
        snapshot of this run, including when the run fails.

        Raises:
            EngineFailure: the engine raised (original exception in `.cause`).
            EmptyResult: the engine returned no usable image.
        """
        seed = request.seed if request.seed is not None else random_seed(self._max_seed)
        begin = time.perf_counter()
        print(f"[ImageGenerator] Generating... (seed={seed}, steps={request.step_count})")

        try:
            images = self.engine.generate_images(
                prompt=request.prompt,
                negative_prompt=request.negative_prompt,
                image_count=1,
                step_count=request.step_count,
                seed=seed,
                guidance_scale=request.guidance_scale,
                disable_safety=request.disable_safety,
                scheduler=request.scheduler,
                progress_handler=self.handle_progress,
            )
        except Exception as e:
            print(f"[ImageGenerator] Engine failed after {time.perf_counter() - begin:.2f}s: {e}")
            raise EngineFailure(e) from e

        interval = time.perf_counter() - begin
        produced = [img for img in images if img is not None]
        print(f"[ImageGenerator] Got {len(produced)} image(s) in {interval:.2f}s")

        # Exactly one image was requested
        if not produced:
            raise EmptyResult(seed=seed, slot_count=len(images))
        return GenerationResult(image=produced[0], last_seed=seed, interval=interval)

    def handle_progress(self, progress: Progress) -> bool:
        self.progress_channel.update(progress)
        return True
