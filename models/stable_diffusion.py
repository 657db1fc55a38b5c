import torch
from diffusers import (
    DDIMScheduler,
    DPMSolverMultistepScheduler,
    EulerAncestralDiscreteScheduler,
    EulerDiscreteScheduler,
    PNDMScheduler,
    StableDiffusionPipeline,
)
from typing import Any, Dict, List, Optional
from PIL import Image

from models.base_engine import BaseDiffusionEngine, Progress, ProgressHandler


SCHEDULERS = {
    "pndm": PNDMScheduler,
    "ddim": DDIMScheduler,
    "dpmpp": DPMSolverMultistepScheduler,
    "euler": EulerDiscreteScheduler,
    "euler_a": EulerAncestralDiscreteScheduler,
}


class StableDiffusionEngine(BaseDiffusionEngine):
    """
    Wrapper around Stable Diffusion v1.5 using HuggingFace diffusers.
    Exposes the blocking call the generator drives:
        engine.generate_images(prompt, ..., progress_handler=...)

    Each denoising step is reported through `progress_handler`; returning
    False from it interrupts the pipeline.
    """

    name = "sd15"
    pipeline_cls = StableDiffusionPipeline
    default_model_id = "stable-diffusion-v1-5/stable-diffusion-v1-5"

    def __init__(self, device: str = "cuda", model_id: Optional[str] = None, pipe: Any = None):
        self.device = device

        if pipe is None:
            model_id = model_id or self.default_model_id
            print(f"[{type(self).__name__}] Loading {model_id}...")
            pipe = self.pipeline_cls.from_pretrained(
                model_id,
                torch_dtype=torch.float16 if "cuda" in device else torch.float32,
            )
            pipe = pipe.to(device)

        self.pipe = pipe
        # Named schedulers are built from this one's config
        self.default_scheduler = pipe.scheduler

    def set_scheduler(self, scheduler: Optional[str]) -> None:
        if scheduler is None:
            self.pipe.scheduler = self.default_scheduler
            return
        if scheduler not in SCHEDULERS:
            raise ValueError(
                f"Unknown scheduler {scheduler!r}; expected one of {sorted(SCHEDULERS)}"
            )
        self.pipe.scheduler = SCHEDULERS[scheduler].from_config(self.default_scheduler.config)

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
        self.set_scheduler(scheduler)
        generator = torch.Generator(device=self.device).manual_seed(seed)

        safety_checker = getattr(self.pipe, "safety_checker", None)
        detach_safety = disable_safety and safety_checker is not None
        safety_enabled = safety_checker is not None and not disable_safety
        cancelled = False

        def on_step_end(pipe, step_index: int, timestep, callback_kwargs: Dict[str, Any]):
            nonlocal cancelled
            if progress_handler is not None:
                progress = Progress(
                    prompt=prompt,
                    step=step_index,
                    step_count=step_count,
                    timestep=int(timestep),
                    latents=callback_kwargs.get("latents"),
                    is_safety_enabled=safety_enabled,
                )
                if not progress_handler(progress):
                    cancelled = True
                    pipe._interrupt = True
            return callback_kwargs

        if detach_safety:
            self.pipe.safety_checker = None
        try:
            out = self.pipe(
                prompt=prompt,
                negative_prompt=negative_prompt,
                num_images_per_prompt=image_count,
                num_inference_steps=step_count,
                guidance_scale=guidance_scale,
                generator=generator,
                callback_on_step_end=on_step_end,
                callback_on_step_end_tensor_inputs=["latents"],
            )
        finally:
            if detach_safety:
                self.pipe.safety_checker = safety_checker

        if cancelled:
            print(f"[{type(self).__name__}] Generation cancelled")
            return [None] * image_count

        # Safety-filtered images come back blacked out; report them as missing
        flagged = getattr(out, "nsfw_content_detected", None) or [False] * len(out.images)
        return [None if nsfw else img for img, nsfw in zip(out.images, flagged)]
