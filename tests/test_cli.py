import pytest

from sdpipe.cli import generate as cli
from sdpipe.generation.generator import ImageGenerator
from sdpipe.generation.types import GenerationRequest


def test_parse_args_defaults():
    args = cli.parse_args(["--prompt", "apple"])
    assert args.model == "sd15"
    assert args.steps == 50
    assert args.guidance_scale == 7.5
    assert args.seed is None
    assert args.scheduler is None
    assert args.disable_safety is False


def test_run_with_progress_returns_result(make_engine):
    engine = make_engine(threaded=True)
    generator = ImageGenerator(engine)

    result = cli.run_with_progress(generator, GenerationRequest(prompt="apple", step_count=5, seed=9))

    assert result.last_seed == 9
    assert generator.progress.step == 4


def test_main_saves_image(tmp_path, make_engine, monkeypatch):
    built = {}

    def factory(device, model_id):
        built["device"] = device
        return make_engine()

    monkeypatch.setitem(cli.MODEL_REGISTRY, "sd15", factory)
    cli.main(["--prompt", "apple", "--steps", "3", "--seed", "5", "--device", "cpu", "--out_dir", str(tmp_path)])

    assert built["device"] == "cpu"
    assert (tmp_path / "stub_apple_seed5.png").exists()
    assert (tmp_path / "stub_apple_seed5.json").exists()


def test_main_exits_on_failure(tmp_path, make_engine, monkeypatch):
    monkeypatch.setitem(cli.MODEL_REGISTRY, "sd15", lambda device, model_id: make_engine(images=[None]))

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--prompt", "apple", "--steps", "2", "--out_dir", str(tmp_path)])

    assert excinfo.value.code == 1
    assert list(tmp_path.iterdir()) == []
