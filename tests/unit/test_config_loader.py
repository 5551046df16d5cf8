"""Unit tests for codec configuration loading."""

from grid_tree_codec.core.config_loader import DEFAULT_CONFIG_PATH, load_codec_config
from grid_tree_codec.models.config_models import CodecConfig


def test_packaged_config_matches_model_defaults():
    assert DEFAULT_CONFIG_PATH.exists()
    assert load_codec_config() == CodecConfig()


def test_partial_override(tmp_path):
    config_file = tmp_path / "thresholds.yaml"
    config_file.write_text(
        "layout_thresholds:\n  per_index:\n    max_slots: 4\ngrid_limits:\n  max_columns: 100\n"
    )
    config = load_codec_config(config_file)

    assert config.layout_thresholds.per_index.max_slots == 4
    assert config.layout_thresholds.per_index.similarity_margin == 0.2
    assert config.layout_thresholds.required_ratio == 0.8
    assert config.grid_limits.max_columns == 100
    assert config.grid_limits.max_rows == 1048576


def test_missing_file_falls_back_to_defaults(tmp_path, caplog):
    config = load_codec_config(tmp_path / "missing.yaml")
    assert config == CodecConfig()
    assert "Failed to load codec config" in caplog.text


def test_invalid_content_falls_back_to_defaults(tmp_path):
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("layout_thresholds: [1, 2]\n")
    assert load_codec_config(config_file) == CodecConfig()

    config_file.write_text("layout_thresholds: {required_ratio: [unclosed\n")
    assert load_codec_config(config_file) == CodecConfig()
