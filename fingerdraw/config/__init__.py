from .settings import (
    Config,
    GestureThresholds,
    PipelineConfig,
    OverlayConfig,
    ServerConfig,
    CameraConfig,
    DetectorConfig,
    default_config,
)

__all__ = [
    "Config",
    "GestureThresholds",
    "PipelineConfig",
    "OverlayConfig",
    "ServerConfig",
    "CameraConfig",
    "DetectorConfig",
    "default_config",
]
