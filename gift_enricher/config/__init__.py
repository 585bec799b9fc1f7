"""Configuration module."""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml


def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses the bundled settings.yaml

    Returns:
        Configuration dictionary
    """
    if config_path is None:
        config_dir = Path(__file__).parent
        config_path = config_dir / "settings.yaml"

    with open(config_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    for section in ("catalog", "fetcher", "enricher", "marketplace", "logging"):
        # An empty section in YAML ("marketplace:") loads as None
        if config.get(section) is None:
            config[section] = {}

    # Override with environment variables if present
    if "CATALOG_PATH" in os.environ:
        config["catalog"]["path"] = os.environ["CATALOG_PATH"]

    if "LOG_LEVEL" in os.environ:
        config["logging"]["level"] = os.environ["LOG_LEVEL"]

    if "REQUEST_DELAY" in os.environ:
        config["enricher"]["request_delay"] = float(os.environ["REQUEST_DELAY"])

    return config
