"""Configuration handling."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional
import yaml

from .ai_client import DEFAULT_MODEL
from .views import DEFAULT_NARROW_BREAKPOINT


@dataclass
class AudioConfig:
    sample_rate_hz: int = 16000
    channels: int = 1


@dataclass
class AIConfig:
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    timeout_seconds: float = 120.0
    feedback_language: str = "Korean"

    def resolved_api_key(self) -> Optional[str]:
        return self.api_key or os.environ.get("GEMINI_API_KEY")


@dataclass
class ViewConfig:
    narrow_breakpoint_px: int = DEFAULT_NARROW_BREAKPOINT


@dataclass
class Config:
    device_name: Optional[str] = None
    log_dir: str = "logs"
    debug_logging: bool = False
    audio: AudioConfig = field(default_factory=AudioConfig)
    ai: AIConfig = field(default_factory=AIConfig)
    view: ViewConfig = field(default_factory=ViewConfig)


def load_config(path: str) -> Config:
    with open(path, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    audio = AudioConfig(**data.get("audio", {}))
    ai = AIConfig(**data.get("ai", {}))
    view = ViewConfig(**data.get("view", {}))

    return Config(
        device_name=data.get("device_name"),
        log_dir=data.get("log_dir", "logs"),
        debug_logging=bool(data.get("debug_logging", False)),
        audio=audio,
        ai=ai,
        view=view,
    )


def save_config(path: str, config: Config) -> None:
    data = {
        "device_name": config.device_name,
        "log_dir": config.log_dir,
        "debug_logging": config.debug_logging,
        "audio": {
            "sample_rate_hz": config.audio.sample_rate_hz,
            "channels": config.audio.channels,
        },
        "ai": {
            "api_key": config.ai.api_key,
            "model": config.ai.model,
            "timeout_seconds": config.ai.timeout_seconds,
            "feedback_language": config.ai.feedback_language,
        },
        "view": {
            "narrow_breakpoint_px": config.view.narrow_breakpoint_px,
        },
    }
    with open(path, "w", encoding="utf-8") as handle:
        yaml.safe_dump(data, handle, sort_keys=False)
