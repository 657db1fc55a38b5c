from dataclasses import dataclass
from typing import Optional

from PIL import Image


@dataclass
class GenerationRequest:
    prompt: str
    negative_prompt: str = ""
    scheduler: Optional[str] = None      # None keeps the engine's default
    step_count: int = 50
    seed: Optional[int] = None           # None draws one from [0, max_seed]
    guidance_scale: float = 7.5
    disable_safety: bool = False


@dataclass
class GenerationResult:
    image: Optional[Image.Image]
    last_seed: int
    interval: float                      # seconds, wall clock
