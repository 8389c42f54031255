from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import TypeAdapter

from mea_form.constants import LEVEL_CONFIGS
from mea_form.errors import UnknownLevelError
from mea_form.schemas import LevelConfig

logger = logging.getLogger(__name__)

_LEVELS_ADAPTER = TypeAdapter(List[LevelConfig])

_active: Optional[Dict[str, LevelConfig]] = None


def load_level_configs(path: Optional[Union[str, Path]] = None) -> Dict[str, LevelConfig]:
    """
    Load level configurations.

    Without a path the built-in configuration is used. A JSON file must hold a
    list of LevelConfig objects (camelCase or snake_case keys); its levels
    replace built-in levels with the same id and add new ones.
    """
    configs: Dict[str, LevelConfig] = dict(LEVEL_CONFIGS)
    if not path:
        return configs
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    for level in _LEVELS_ADAPTER.validate_python(raw):
        configs[level.id] = level
    logger.info("Loaded level configuration from %s (%d levels)", path, len(configs))
    return configs


def configure_levels(path: Optional[Union[str, Path]] = None) -> Dict[str, LevelConfig]:
    global _active
    _active = load_level_configs(path)
    return _active


def level_configs() -> Dict[str, LevelConfig]:
    global _active
    if _active is None:
        _active = load_level_configs()
    return _active


def get_level_config(level: Union[str, LevelConfig, Any]) -> LevelConfig:
    if isinstance(level, LevelConfig):
        return level
    key = str(getattr(level, "value", level) or "").strip()
    config = level_configs().get(key)
    if config is None:
        raise UnknownLevelError(f"Unknown level: {key!r}")
    return config
