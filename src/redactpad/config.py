"""Configuration loader for Redactpad session and pipeline settings."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

IMAGE_FORMATS = ("png", "jpeg")


@dataclass
class SessionConfig:
    """Drawing session configuration."""
    min_rect_size: float = 0.01  # Smallest committed width/height, page fraction


@dataclass
class InterpreterConfig:
    """Pointer interpreter configuration."""
    clamp_to_page: bool = True


@dataclass
class PipelineConfig:
    """Redaction pipeline configuration."""
    render_scale: float = 2.0  # Pixels per PDF point
    fill_color: tuple[int, int, int] = (0, 0, 0)  # RGB, 0-255
    image_format: str = "png"  # png (lossless) or jpeg
    jpeg_quality: int = 95


@dataclass
class ServerConfig:
    """REST server configuration.

    Sessions live in process memory, so the server always runs as a single
    worker process; `apply_workers` sizes its rasterization thread pool.
    """
    host: str = "127.0.0.1"  # Local only; documents never leave the machine
    port: int = 8000
    apply_workers: int = 2


@dataclass
class RedactpadConfig:
    """Root configuration object."""
    session: SessionConfig = field(default_factory=SessionConfig)
    interpreter: InterpreterConfig = field(default_factory=InterpreterConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "redactpad.yaml"


def load_config(config_path: Optional[Path | str] = None) -> RedactpadConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses default config/redactpad.yaml

    Returns:
        RedactpadConfig object with all settings
    """
    if config_path is None:
        if DEFAULT_CONFIG_PATH.exists():
            config_path = DEFAULT_CONFIG_PATH
        else:
            return RedactpadConfig()

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    return _parse_config(data)


def _parse_config(data: dict) -> RedactpadConfig:
    """Parse configuration from dict."""
    config = RedactpadConfig()

    if "session" in data:
        s = data["session"] or {}
        config.session.min_rect_size = float(s.get("min_rect_size", 0.01))

    if "interpreter" in data:
        i = data["interpreter"] or {}
        config.interpreter.clamp_to_page = bool(i.get("clamp_to_page", True))

    if "pipeline" in data:
        p = data["pipeline"] or {}
        config.pipeline.render_scale = float(p.get("render_scale", 2.0))
        config.pipeline.fill_color = tuple(p.get("fill_color", (0, 0, 0)))
        config.pipeline.image_format = str(p.get("image_format", "png")).lower()
        config.pipeline.jpeg_quality = int(p.get("jpeg_quality", 95))

    if "server" in data:
        sv = data["server"] or {}
        config.server.host = str(sv.get("host", "127.0.0.1"))
        config.server.port = int(sv.get("port", 8000))
        config.server.apply_workers = int(sv.get("apply_workers", 2))

    validate_config(config)
    return config


def validate_config(config: RedactpadConfig) -> None:
    """Raise ValueError if any setting is out of range."""
    if not 0 <= config.session.min_rect_size < 1:
        raise ValueError(
            f"session.min_rect_size must be in [0, 1), got {config.session.min_rect_size}"
        )

    p = config.pipeline
    if p.render_scale <= 0:
        raise ValueError(f"pipeline.render_scale must be positive, got {p.render_scale}")
    if p.image_format not in IMAGE_FORMATS:
        raise ValueError(f"Unknown image format: {p.image_format}")
    if len(p.fill_color) != 3 or any(not 0 <= c <= 255 for c in p.fill_color):
        raise ValueError(f"pipeline.fill_color must be three values in 0-255, got {p.fill_color}")
    if not 1 <= p.jpeg_quality <= 100:
        raise ValueError(f"pipeline.jpeg_quality must be in 1-100, got {p.jpeg_quality}")

    sv = config.server
    if not 1 <= sv.port <= 65535:
        raise ValueError(f"server.port must be in 1-65535, got {sv.port}")
    if sv.apply_workers < 1:
        raise ValueError(f"server.apply_workers must be at least 1, got {sv.apply_workers}")


# Global config instance (lazy loaded)
_config: Optional[RedactpadConfig] = None


def get_config(config_path: Optional[Path | str] = None) -> RedactpadConfig:
    """
    Get the global configuration instance.

    Args:
        config_path: If provided, reload config from this path

    Returns:
        RedactpadConfig instance
    """
    global _config
    if _config is None or config_path is not None:
        _config = load_config(config_path)
    return _config
