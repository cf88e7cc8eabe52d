from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List, Dict, Any
from pathlib import Path


class Settings(BaseSettings):
    # Chunk composition
    GROUPING_MODE: str = "grouped"  # grouped|atomic (legacy: bunsetsu|word)
    MAX_CHUNK_LENGTH: int = 4  # Character budget per grouped chunk
    PROTECTED_TERMS: List[str] = ["カムパネルラ"]  # Never split across chunks
    SEGMENTER: str = "regex"  # regex|tinysegmenter|whitespace

    # Playback
    RATE: float = 300.0  # Chunks per minute
    MIN_RATE: float = 1.0  # Floor used when clamping invalid rates
    RATE_CHANGE_POLICY: str = "preserve"  # preserve|restart
    FRAME_RATE: int = 60  # Scheduler steps per second when driven by FrameDriver

    # Observability & UI
    LOG_FORMAT: str = "auto"  # json|plain|auto
    EVENTS_PATH: Optional[str] = None  # NDJSON playback events, off when unset
    NO_COLOR: bool = False  # Disable colored output

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @classmethod
    def load_config(cls, config_file: Optional[str] = None) -> "Settings":
        """Load settings with config file -> env -> CLI precedence."""
        config_data: Dict[str, Any] = {}

        # Find config file
        config_path: Optional[Path]
        if config_file:
            config_path = Path(config_file)
        else:
            # Auto-discover .sokudoku.{yaml,yml,toml}
            for ext in ["yaml", "yml", "toml"]:
                config_path = Path(f".sokudoku.{ext}")
                if config_path.exists():
                    break
            else:
                config_path = None

        # Load config file if found
        if config_path and config_path.exists():
            if config_path.suffix in [".yaml", ".yml"]:
                import yaml  # type: ignore[import-untyped]

                with open(config_path, encoding="utf-8") as f:
                    config_data = yaml.safe_load(f) or {}
            elif config_path.suffix == ".toml":
                import tomllib

                with open(config_path, "rb") as f:
                    config_data = tomllib.load(f)

        # Config file keys are case-insensitive
        config_data = {str(k).upper(): v for k, v in config_data.items()}

        # Environment variables override config file values
        env_overrides = cls().model_dump(exclude_unset=True)
        return cls(**{**config_data, **env_overrides})


# Default settings - will be replaced by load_config() during CLI startup
SETTINGS = Settings()
