# motionverse/config/registry.py

import os
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import List, Mapping, Optional

import yaml
from pydantic import ValidationError

from motionverse.config.action_config import ActionConfig
from motionverse.pipeline.errors import ConfigurationError, UnsupportedActionError
from motionverse.utils.logger import log, warn

ACTIONS_DIR = Path(__file__).parent / "actions"


def config_dir() -> Path:
    override = os.environ.get("MOTIONVERSE_CONFIG_DIR")
    return Path(override) if override else ACTIONS_DIR


def load_action_config(path) -> ActionConfig:
    path = Path(path)
    try:
        with open(path, "r") as f:
            raw = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read {path.name}: {e}", stage="config") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"{path.name}: expected a mapping at top level", stage="config")

    try:
        return ActionConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"{path.name}: {e}", stage="config") from e


@lru_cache(maxsize=8)
def _load_registry(directory: str) -> Mapping[str, ActionConfig]:
    """
    Read every *.yaml in the directory once. The returned mapping is
    read-only and shared by all runs.
    """
    configs = {}
    for path in sorted(Path(directory).glob("*.yaml")):
        cfg = load_action_config(path)
        if cfg.action_id in configs:
            raise ConfigurationError(f"Duplicate action_id {cfg.action_id!r} in {path.name}", stage="config")
        configs[cfg.action_id] = cfg

    if not configs:
        warn(f"[Config] No action configurations found in {directory}")
    else:
        log(f"[Config] Loaded {len(configs)} action configuration(s)")
    return MappingProxyType(configs)


def get_action_config(action_id: str, directory: Optional[Path] = None) -> ActionConfig:
    registry = _load_registry(str(directory or config_dir()))
    cfg = registry.get(action_id)
    if cfg is None:
        raise UnsupportedActionError(action_id)
    return cfg


def list_actions(directory: Optional[Path] = None) -> List[ActionConfig]:
    return list(_load_registry(str(directory or config_dir())).values())
