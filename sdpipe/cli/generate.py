#!/usr/bin/env python
import argparse
import queue
from concurrent.futures import ThreadPoolExecutor

from tqdm import tqdm

from models.stable_diffusion import SCHEDULERS, StableDiffusionEngine
from models.sdxl import SDXLEngine
from sdpipe.generation.errors import GenerationError
from sdpipe.generation.generator import ImageGenerator
from sdpipe.generation.types import GenerationRequest
from sdpipe.utils.io import save_result
from sdpipe.utils.seed import MAX_SEED


MODEL_REGISTRY = {
    "sd15": StableDiffusionEngine,
    "sdxl": SDXLEngine,
}


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate one image from a text prompt with live step progress"
    )

    parser.add_argument("--prompt", type=str, required=True, help="Text prompt.")
    parser.add_argument(
        "--negative_prompt",
        type=str,
        default="",
        help="What the image should not contain.",
    )
    parser.add_argument(
        "--model",
        type=str,
        default="sd15",
        choices=list(MODEL_REGISTRY.keys()),
        help="Which diffusion model to use (sd15 or sdxl).",
    )
    parser.add_argument(
        "--model_id",
        type=str,
        default=None,
        help="Override the HuggingFace model id to load.",
    )
    parser.add_argument(
        "--device",
        type=str,
        default="cuda",
        help="Device for the model (e.g., 'cuda', 'mps' or 'cpu').",
    )
    parser.add_argument("--steps", type=int, default=50, help="Number of denoising steps.")
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Fixed seed. A random one in [0, max_seed] is drawn when omitted.",
    )
    parser.add_argument("--guidance_scale", type=float, default=7.5)
    parser.add_argument(
        "--scheduler",
        type=str,
        default=None,
        choices=sorted(SCHEDULERS),
        help="Scheduler to use instead of the model's default.",
    )
    parser.add_argument(
        "--disable_safety",
        action="store_true",
        help="Skip the safety checker for this run.",
    )
    parser.add_argument("--max_seed", type=int, default=MAX_SEED)
    parser.add_argument(
        "--out_dir",
        type=str,
        default="outputs",
        help="Directory to store the image and its metadata.",
    )

    return parser.parse_args(argv)


def run_with_progress(generator: ImageGenerator, request: GenerationRequest):
    """
    Run the blocking generate() on a worker thread and draw its progress here.
    """
    updates: "queue.Queue" = queue.Queue()
    unsubscribe = generator.progress_channel.subscribe(updates.put)

    try:
        with ThreadPoolExecutor(max_workers=1) as pool:
            future = pool.submit(generator.generate, request)
            with tqdm(total=request.step_count, desc="Denoising", unit="step") as bar:
                while not (future.done() and updates.empty()):
                    try:
                        progress = updates.get(timeout=0.1)
                    except queue.Empty:
                        continue
                    bar.total = progress.step_count
                    bar.n = round(progress.fraction * progress.step_count)
                    bar.refresh()
            return future.result()
    finally:
        unsubscribe()


def main(argv=None):
    args = parse_args(argv)

    EngineCls = MODEL_REGISTRY[args.model]
    engine = EngineCls(device=args.device, model_id=args.model_id)
    generator = ImageGenerator(engine, max_seed=args.max_seed)

    request = GenerationRequest(
        prompt=args.prompt,
        negative_prompt=args.negative_prompt,
        scheduler=args.scheduler,
        step_count=args.steps,
        seed=args.seed,
        guidance_scale=args.guidance_scale,
        disable_safety=args.disable_safety,
    )

    try:
        result = run_with_progress(generator, request)
    except GenerationError as e:
        print(f"\nGeneration failed: {e}")
        raise SystemExit(1)

    path = save_result(request, result, args.out_dir, model=engine.name)
    print(f"Saved {path} (seed {result.last_seed}, {result.interval:.2f}s)")


if __name__ == "__main__":
    main()
