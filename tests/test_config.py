from pathlib import Path

import pytest

from facerelay.config import DEFAULT_ENDPOINT, RelayConfig, load_config
from facerelay.io_utils import dump_yaml

REPO_ROOT = Path(__file__).resolve().parents[1]


def test_defaults_match_documented_contract():
    config = RelayConfig()
    assert config.min_confidence_threshold == 0.5
    assert config.throttle_interval_ms == 2000
    assert (config.frame_width, config.frame_height) == (640, 480)
    assert config.recognition_endpoint == DEFAULT_ENDPOINT
    assert config.recognition_endpoint.endswith("/recognize-batch")
    assert config.request_timeout_s is None


def test_load_config_reads_yaml(tmp_path: Path):
    path = tmp_path / "relay.yaml"
    dump_yaml(path, {"throttle_interval_ms": 500, "recognition_endpoint": "http://x/recognize-batch"})
    config = load_config(path)
    assert config.throttle_interval_ms == 500
    assert config.recognition_endpoint == "http://x/recognize-batch"
    assert config.frame_width == 640


def test_unknown_keys_are_ignored(tmp_path: Path, caplog):
    path = tmp_path / "relay.yaml"
    dump_yaml(path, {"throttle_interval_ms": 750, "legacy_option": True})
    with caplog.at_level("WARNING", logger="facerelay.config"):
        config = load_config(path)
    assert config.throttle_interval_ms == 750
    assert "legacy_option" in caplog.text


def test_missing_file_falls_back_to_defaults(tmp_path: Path):
    assert load_config(tmp_path / "absent.yaml") == RelayConfig()
    assert load_config(None) == RelayConfig()


def test_bundled_config_matches_defaults():
    assert load_config(REPO_ROOT / "configs" / "relay.yaml") == RelayConfig()


@pytest.mark.parametrize(
    "overrides",
    [
        {"throttle_interval_ms": -1},
        {"throttle_interval_ms": 0},
        {"image_format": "gif"},
        {"frame_width": 0},
        {"dispatch_workers": 0},
        {"model_selection": 2},
        {"request_timeout_s": 0},
        {"recognition_endpoint": ""},
    ],
)
def test_invalid_values_raise(overrides):
    with pytest.raises(ValueError):
        RelayConfig(**overrides)


def test_with_overrides_skips_none():
    config = RelayConfig().with_overrides(throttle_interval_ms=100, camera_index=None)
    assert config.throttle_interval_ms == 100
    assert config.camera_index == 0


def test_with_overrides_validates():
    with pytest.raises(ValueError):
        RelayConfig().with_overrides(image_format="bmp")
