from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from PIL import Image


@dataclass
class Progress:
    """
    State of an inference run after one denoising step.

    `step` is the 0-based index of the step that just finished.
    """
    prompt: str
    step: int
    step_count: int
    timestep: int
    latents: Any = None
    is_safety_enabled: bool = False

    @property
    def fraction(self) -> float:
        if self.step_count <= 0:
            return 1.0
        return min(1.0, (self.step + 1) / self.step_count)


# Return False to ask the engine to stop early.
ProgressHandler = Callable[[Progress], bool]


class BaseDiffusionEngine(ABC):
    name: str

    @abstractmethod
    def generate_images(
        self,
        prompt: str,
        negative_prompt: str = "",
        image_count: int = 1,
        step_count: int = 50,
        seed: int = 0,
        guidance_scale: float = 7.5,
        disable_safety: bool = False,
        scheduler: Optional[str] = None,
        progress_handler: Optional[ProgressHandler] = None,
    ) -> List[Optional[Image.Image]]:
        """
        Run one blocking inference call.

        Returns one slot per requested image, in order. A slot is None when
        the image was withheld (safety filter) or the run was cancelled.
        """
        ...
