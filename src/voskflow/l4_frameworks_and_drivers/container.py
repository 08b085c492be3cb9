"""Dependency container — composition root for wiring all layers together."""

from __future__ import annotations

from voskflow.l1_entities.config import AppConfig
from voskflow.l2_use_cases.ports.config_loader import ConfigLoader
from voskflow.l2_use_cases.ports.speech_engine import SpeechEngine
from voskflow.l3_interface_adapters.controllers.transcription_controller import TranscriptionController
from voskflow.l3_interface_adapters.gateways.yaml_config_loader import YamlConfigLoader


class DependencyContainer:
    """Creates and wires all concrete instances. Easy to override for testing."""

    def __init__(self, config: AppConfig, engine: SpeechEngine | None = None) -> None:
        self.config = config
        self.engine: SpeechEngine = engine or self._build_engine()
        self.controller = TranscriptionController(self.engine, chunk_size=config.streaming.chunk_size)

    @staticmethod
    def _build_engine() -> SpeechEngine:
        from voskflow.l3_interface_adapters.gateways.vosk_engine import (  # noqa: PLC0415 -- deferred: native library loaded only when wiring
            VoskEngine,
        )

        return VoskEngine()

    @staticmethod
    def config_loader() -> ConfigLoader:
        return YamlConfigLoader()
