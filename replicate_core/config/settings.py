"""配置管理模块。

支持从 .env、config.yaml 以及环境变量加载配置。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("REPLICATE_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class Settings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- Replicate 相关配置 ----
    replicate_api_key: Optional[str] = Field(default=None, description="Replicate API Token")
    replicate_base_url: str = Field(
        default="https://api.replicate.com/v1",
        description="Replicate API 基础URL",
    )
    default_model: str = Field(
        default="meta/llama-2-7b-chat",
        description="默认模型，格式为 owner/name",
    )
    default_version: Optional[str] = Field(
        default=None,
        description="默认模型版本 ID；Replicate 的预测接口按版本而不是模型名调用",
    )
    http_timeout: float = Field(default=30.0, ge=1.0, description="单次 HTTP 往返超时时间（秒）")

    # ---- 轮询策略 ----
    poll_interval: float = Field(default=0.5, gt=0, description="首次轮询间隔（秒）")
    poll_max_interval: float = Field(default=5.0, gt=0, description="轮询间隔上限（秒）")
    poll_backoff: float = Field(default=1.5, ge=1.0, description="每次轮询后间隔的放大倍数")
    poll_deadline: float = Field(default=600.0, gt=0, description="整个轮询过程的时间预算（秒）")

    # ---- 日志 ----
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("replicate_api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v and len(v) < 10:
            raise ValueError("API key seems too short")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )


settings = Settings()
