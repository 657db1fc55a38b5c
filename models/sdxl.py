# models/sdxl.py

from diffusers import StableDiffusionXLPipeline

from models.stable_diffusion import StableDiffusionEngine


class SDXLEngine(StableDiffusionEngine):
    """
    Wrapper around Stable Diffusion XL using HuggingFace diffusers.

    SDXL ships without a safety checker, so `disable_safety` has no effect
    and progress always reports `is_safety_enabled=False`.
    """

    name = "sdxl"
    pipeline_cls = StableDiffusionXLPipeline
    default_model_id = "stabilityai/stable-diffusion-xl-base-1.0"
