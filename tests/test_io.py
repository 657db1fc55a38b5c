import json

import pytest
from PIL import Image

from sdpipe.generation.types import GenerationRequest, GenerationResult
from sdpipe.utils.io import save_result


def test_save_writes_image_and_metadata(tmp_path):
    request = GenerationRequest(prompt="A Red  Apple, on a table!", step_count=20)
    result = GenerationResult(image=Image.new("RGB", (8, 8), "red"), last_seed=42, interval=1.23456)

    path = save_result(request, result, tmp_path / "out", model="sd15")

    assert path.name == "sd15_a_red_apple_on_a_table_seed42.png"
    assert path.exists()
    meta = json.loads(path.with_suffix(".json").read_text())
    assert meta["seed"] == 42
    assert meta["steps"] == 20
    assert meta["prompt"] == "A Red  Apple, on a table!"
    assert meta["interval"] == 1.235
    assert meta["model"] == "sd15"


def test_save_does_not_overwrite(tmp_path):
    request = GenerationRequest(prompt="apple")
    result = GenerationResult(image=Image.new("RGB", (8, 8)), last_seed=1, interval=0.1)

    first = save_result(request, result, tmp_path, model="sd15")
    second = save_result(request, result, tmp_path, model="sd15")

    assert first != second
    assert second.name == "sd15_apple_seed1_1.png"


def test_save_without_image_rejected(tmp_path):
    with pytest.raises(ValueError):
        save_result(
            GenerationRequest(prompt="apple"),
            GenerationResult(image=None, last_seed=1, interval=0.1),
            tmp_path,
            model="sd15",
        )
