import logging
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import ValidationError

from grid_tree_codec.models.config_models import CodecConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "layout_thresholds.yaml"


def load_codec_config(config_path: Optional[Union[str, Path]] = None) -> CodecConfig:
    """Load layout thresholds and grid limits from YAML.

    Args:
        config_path: Path to a YAML file. Defaults to the packaged
            config/layout_thresholds.yaml.

    Returns:
        CodecConfig; model defaults when the file is missing or invalid
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH

    try:
        with open(path, "r") as file:
            data = yaml.safe_load(file) or {}
        config = CodecConfig.model_validate(data)
        logger.info(f"Loaded codec config from {path}")
        return config
    except (OSError, yaml.YAMLError, ValidationError) as e:
        logger.error(f"Failed to load codec config from {path}: {e}")
        return CodecConfig()
