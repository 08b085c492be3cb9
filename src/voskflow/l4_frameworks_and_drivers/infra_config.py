"""Default configuration values — lives in L4, not domain."""

from __future__ import annotations

import copy

from voskflow.l1_entities.audio_constants import DEFAULT_CHUNK_SIZE, SAMPLE_RATE
from voskflow.l1_entities.config import AppConfig
from voskflow.l3_interface_adapters.gateways.yaml_config_loader import deep_merge

APP_CONFIG_DEFAULTS: dict = {
    'model': {
        'directory': None,
        'log_level': -1,
    },
    'recognizer': {
        'sample_rate': SAMPLE_RATE,
        'grammar': None,
        'alternatives': 0,
        'concurrent_feeding': True,
        'words': False,
    },
    'streaming': {
        'chunk_size': DEFAULT_CHUNK_SIZE,
        'timeout': None,
    },
}


def build_app_config(raw: dict) -> AppConfig:
    """Merge *raw* user overrides on top of defaults, then validate."""
    merged = copy.deepcopy(APP_CONFIG_DEFAULTS)
    deep_merge(merged, raw)
    return AppConfig.model_validate(merged)
