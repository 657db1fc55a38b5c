# sdpipe/utils/io.py

from __future__ import annotations
from pathlib import Path
from typing import Any, Dict
import json
import re

from sdpipe.generation.types import GenerationRequest, GenerationResult


def _slugify(text: str, max_len: int = 50) -> str:
    """
    Turn a prompt into a short, filesystem-safe filename fragment.
    """
    text = re.sub(r"\s+", "_", text.lower())
    return re.sub(r"[^a-z0-9_]+", "", text)[:max_len]


def result_metadata(
    request: GenerationRequest,
    result: GenerationResult,
    model: str,
) -> Dict[str, Any]:
    return {
        "model": model,
        "prompt": request.prompt,
        "negative_prompt": request.negative_prompt,
        "seed": result.last_seed,
        "steps": request.step_count,
        "guidance_scale": request.guidance_scale,
        "scheduler": request.scheduler,
        "disable_safety": request.disable_safety,
        "interval": round(result.interval, 3),
    }


def save_result(
    request: GenerationRequest,
    result: GenerationResult,
    out_dir: str | Path,
    model: str,
) -> Path:
    """
    Save the generated image as PNG with a JSON metadata file next to it.

    Files are named {model}_{prompt_slug}_seed{seed}.png / .json; a numeric
    suffix is appended instead of overwriting an existing file.

    Returns:
        Path to the saved image.
    """
    if result.image is None:
        raise ValueError("Result has no image to save")

    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    parts = [model, _slugify(request.prompt), f"seed{result.last_seed}"]
    base_stem = "_".join(p for p in parts if p)

    stem = base_stem
    counter = 1
    while (out_dir / f"{stem}.png").exists():
        stem = f"{base_stem}_{counter}"
        counter += 1

    img_path = out_dir / f"{stem}.png"
    result.image.save(img_path)

    with open(out_dir / f"{stem}.json", "w") as f:
        json.dump(result_metadata(request, result, model), f, indent=2)

    return img_path
