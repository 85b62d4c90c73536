"""
Configuration Management System
===============================

Provides dataclass-based configuration with YAML file loading support.
All settings have sensible defaults; a missing config file is not an error.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Any, Dict
import yaml
import logging

from funnelsort.utils.logging_config import LoggingConfig
from funnelsort.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class FunnelConfig:
    """Orchestrator settings.

    Attributes:
        concurrency: Maximum number of files processed at once.
        stats_emit_interval: Publish funnel statistics every N completions.
        ignored_filenames: Platform sentinel files that are never sorted.
    """
    concurrency: int = 5
    stats_emit_interval: int = 5
    ignored_filenames: List[str] = field(default_factory=lambda: [
        "desktop.ini", "Thumbs.db", ".DS_Store"
    ])

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FunnelConfig":
        """Create FunnelConfig from dictionary."""
        if not data:
            return cls()
        return cls(
            concurrency=max(1, int(data.get("concurrency", cls.concurrency))),
            stats_emit_interval=max(1, int(data.get("stats_emit_interval", cls.stats_emit_interval))),
            ignored_filenames=list(data.get("ignored_filenames", cls().ignored_filenames)),
        )


@dataclass
class MetadataConfig:
    """Stage 2 size thresholds.

    Attributes:
        icon_max_kb: Images below this size are treated as icons.
        marketing_min_kb: Images above this size are treated as marketing assets.
        photo_min_kb: Images above this size (and below marketing) are photos.
        raw_media_min_mb: Any file above this size is treated as raw media.
    """
    icon_max_kb: float = 50
    marketing_min_kb: float = 2048
    photo_min_kb: float = 500
    raw_media_min_mb: float = 100

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MetadataConfig":
        """Create MetadataConfig from dictionary."""
        if not data:
            return cls()
        return cls(
            icon_max_kb=float(data.get("icon_max_kb", cls.icon_max_kb)),
            marketing_min_kb=float(data.get("marketing_min_kb", cls.marketing_min_kb)),
            photo_min_kb=float(data.get("photo_min_kb", cls.photo_min_kb)),
            raw_media_min_mb=float(data.get("raw_media_min_mb", cls.raw_media_min_mb)),
        )


@dataclass
class InferenceConfig:
    """Inference engine (Ollama) settings.

    Attributes:
        enabled: Whether Stage 3 and folder summaries may call the engine.
        host: Base URL of the engine.
        text_model: Model used for text classification and summaries.
        vision_model: Model used for image classification.
        keep_alive_seconds: Keep-alive hint sent when loading the model.
        auto_unload_seconds: Idle time before the model is unloaded.
        request_timeout: Timeout for generate requests in seconds.
        load_timeout: Timeout for model load requests in seconds.
        temperature: Sampling temperature.
        num_predict: Maximum tokens generated per request.
        snippet_bytes: Bytes of file content embedded in text prompts.
    """
    enabled: bool = True
    host: str = "http://localhost:11434"
    text_model: str = "phi3"
    vision_model: str = "llava"
    keep_alive_seconds: int = 300
    auto_unload_seconds: float = 60
    request_timeout: float = 60
    load_timeout: float = 120
    temperature: float = 0.1
    num_predict: int = 128
    snippet_bytes: int = 1000

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InferenceConfig":
        """Create InferenceConfig from dictionary."""
        if not data:
            return cls()
        return cls(
            enabled=bool(data.get("enabled", cls.enabled)),
            host=str(data.get("host", cls.host)),
            text_model=str(data.get("text_model", cls.text_model)),
            vision_model=str(data.get("vision_model", cls.vision_model)),
            keep_alive_seconds=int(data.get("keep_alive_seconds", cls.keep_alive_seconds)),
            auto_unload_seconds=float(data.get("auto_unload_seconds", cls.auto_unload_seconds)),
            request_timeout=float(data.get("request_timeout", cls.request_timeout)),
            load_timeout=float(data.get("load_timeout", cls.load_timeout)),
            temperature=float(data.get("temperature", cls.temperature)),
            num_predict=int(data.get("num_predict", cls.num_predict)),
            snippet_bytes=int(data.get("snippet_bytes", cls.snippet_bytes)),
        )


@dataclass
class SummaryConfig:
    """Folder summary settings.

    Attributes:
        enabled: Whether to write folder summaries after a run.
        max_entries: Number of folder entries shown to the model.
        sidecar_name: File name of the summary written into each folder.
    """
    enabled: bool = True
    max_entries: int = 20
    sidecar_name: str = ".funnelsort"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SummaryConfig":
        """Create SummaryConfig from dictionary."""
        if not data:
            return cls()
        return cls(
            enabled=bool(data.get("enabled", cls.enabled)),
            max_entries=int(data.get("max_entries", cls.max_entries)),
            sidecar_name=str(data.get("sidecar_name", cls.sidecar_name)),
        )


@dataclass
class Config:
    """Main configuration container.

    Aggregates all configuration sections and provides loading from YAML.
    """
    funnel: FunnelConfig = field(default_factory=FunnelConfig)
    metadata: MetadataConfig = field(default_factory=MetadataConfig)
    inference: InferenceConfig = field(default_factory=InferenceConfig)
    summary: SummaryConfig = field(default_factory=SummaryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load configuration from YAML file.

        Args:
            config_path: Path to the configuration file. If None, looks for
                        funnelsort.yaml in the current directory.

        Returns:
            Config instance with loaded settings.

        Raises:
            yaml.YAMLError: If config file is not valid YAML.
            ConfigurationError: If a section or value has the wrong type.
        """
        if config_path is None:
            config_path = Path("funnelsort.yaml")
        config_path = Path(config_path)

        if not config_path.exists():
            logger.warning(f"Config file not found at {config_path}, using defaults")
            return cls()

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}

            if not isinstance(data, dict):
                raise ConfigurationError(
                    "Config file must contain a mapping",
                    expected_type="mapping",
                    details={"path": str(config_path)},
                )

            logger.info(f"Loaded configuration from {config_path}")
            return cls._from_dict(data)

        except yaml.YAMLError as e:
            logger.error(f"Failed to parse config file: {e}")
            raise
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigurationError(
                f"Invalid configuration value: {e}",
                details={"path": str(config_path)},
                cause=e,
            )

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        return cls(
            funnel=FunnelConfig.from_dict(data.get("funnel", {})),
            metadata=MetadataConfig.from_dict(data.get("metadata", {})),
            inference=InferenceConfig.from_dict(data.get("inference", {})),
            summary=SummaryConfig.from_dict(data.get("summary", {})),
            logging=LoggingConfig.from_dict(data.get("logging", {})),
        )

    def save(self, config_path: Path) -> None:
        """Save configuration to YAML file.

        Args:
            config_path: Path where to save the configuration.
        """
        data = {
            "funnel": {
                "concurrency": self.funnel.concurrency,
                "stats_emit_interval": self.funnel.stats_emit_interval,
                "ignored_filenames": self.funnel.ignored_filenames,
            },
            "metadata": {
                "icon_max_kb": self.metadata.icon_max_kb,
                "marketing_min_kb": self.metadata.marketing_min_kb,
                "photo_min_kb": self.metadata.photo_min_kb,
                "raw_media_min_mb": self.metadata.raw_media_min_mb,
            },
            "inference": {
                "enabled": self.inference.enabled,
                "host": self.inference.host,
                "text_model": self.inference.text_model,
                "vision_model": self.inference.vision_model,
                "keep_alive_seconds": self.inference.keep_alive_seconds,
                "auto_unload_seconds": self.inference.auto_unload_seconds,
                "request_timeout": self.inference.request_timeout,
                "load_timeout": self.inference.load_timeout,
                "temperature": self.inference.temperature,
                "num_predict": self.inference.num_predict,
                "snippet_bytes": self.inference.snippet_bytes,
            },
            "summary": {
                "enabled": self.summary.enabled,
                "max_entries": self.summary.max_entries,
                "sidecar_name": self.summary.sidecar_name,
            },
            "logging": {
                "level": self.logging.level,
                "log_dir": str(self.logging.log_dir),
                "console_output": self.logging.console_output,
                "file_output": self.logging.file_output,
                "json_format": self.logging.json_format,
            },
        }

        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

        logger.info(f"Saved configuration to {config_path}")
