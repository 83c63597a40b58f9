"""单次调用的 Replicate 配置对象。

ChatReplicateConfig 是一个不可变的值对象：调用方构造一次、在构造时完成校验，
之后在整个调用过程中只读。校验失败统一转换为 ConfigurationError，
其 message 为人类可读的字段错误汇总。
"""

from typing import Any, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from replicate_core.domain.exceptions import ConfigurationError
from replicate_core.providers.registry import REPLICATE_CONFIG

DEFAULT_ENDPOINT = REPLICATE_CONFIG.base_url + "/"
DEFAULT_MODEL = "meta/llama-2-7b-chat"
# 单次网络往返的超时；整个轮询过程的时间预算见 poll_deadline
DEFAULT_RECEIVE_TIMEOUT = 30.0
STREAM_UNSUPPORTED = "streaming is currently unsupported for Replicate"


def format_validation_error(error: ValidationError) -> str:
    """把 pydantic 校验错误整理成 "field: message" 形式的单行文本。"""

    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item.get("loc", ())) or "config"
        msg = item.get("msg", "invalid value")
        # model_validator 抛出的 ValueError 会带上固定前缀
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        parts.append(f"{loc}: {msg}")
    return "; ".join(parts)


class ChatReplicateConfig(BaseModel):
    """Replicate 聊天模型调用配置。

    - version: 必填。Replicate 的模型都有具体版本，预测接口按版本调用。
    - temperature: 大于 1 更随机，0 为确定性输出，0.75 是不错的起点。
    - top_p / top_k: 解码时只从概率最高的部分 token 中采样。
    - receive_timeout: 提交与每次轮询请求各自的超时（秒）。
    - stream: 只能为 False；Replicate 的流式输出需要回调 URL，本项目不支持。
    - poll_*: 轮询退避与整体时间预算。
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    endpoint: str = DEFAULT_ENDPOINT
    model: str = DEFAULT_MODEL
    version: str
    temperature: float = Field(default=1.0, ge=0, le=2)
    top_p: float = Field(default=0.9, ge=0, le=1)
    top_k: int = Field(default=50, ge=1, le=1000)
    receive_timeout: float = Field(default=DEFAULT_RECEIVE_TIMEOUT, ge=0)
    stream: Any = False

    poll_interval: float = Field(default=0.5, gt=0)
    poll_max_interval: float = Field(default=5.0, gt=0)
    poll_backoff: float = Field(default=1.5, ge=1.0)
    poll_deadline: float = Field(default=600.0, gt=0)
    poll_max_attempts: Optional[int] = Field(default=None, ge=1)

    @field_validator("endpoint", "model", "version")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("can't be blank")
        return v.strip()

    @field_validator("stream")
    @classmethod
    def validate_stream(cls, v: Any) -> bool:
        if v is not False:
            raise ValueError(STREAM_UNSUPPORTED)
        return v

    @model_validator(mode="after")
    def validate_poll_window(self) -> "ChatReplicateConfig":
        if self.poll_max_interval < self.poll_interval:
            raise ValueError("poll_max_interval must be >= poll_interval")
        return self

    @property
    def base_url(self) -> str:
        return self.endpoint.rstrip("/")

    @classmethod
    def new(cls, attrs: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> "ChatReplicateConfig":
        """构造配置，校验失败时抛出 ConfigurationError。"""

        data = dict(attrs or {})
        data.update(kwargs)
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(code="INVALID_CONFIG", message=format_validation_error(e)) from e

    @classmethod
    def try_new(
        cls, attrs: Optional[Mapping[str, Any]] = None, **kwargs: Any
    ) -> Tuple[Optional["ChatReplicateConfig"], Optional[ConfigurationError]]:
        """与 new 相同，但以 (config, error) 的形式返回，便于调用方提前检查。"""

        try:
            return cls.new(attrs, **kwargs), None
        except ConfigurationError as e:
            return None, e

    @classmethod
    def from_settings(cls, cfg, **overrides: Any) -> "ChatReplicateConfig":
        """用进程级配置填充默认值，overrides 优先。"""

        data: dict = {
            "endpoint": cfg.replicate_base_url,
            "model": cfg.default_model,
            "receive_timeout": cfg.http_timeout,
            "poll_interval": cfg.poll_interval,
            "poll_max_interval": cfg.poll_max_interval,
            "poll_backoff": cfg.poll_backoff,
            "poll_deadline": cfg.poll_deadline,
        }
        if getattr(cfg, "default_version", None):
            data["version"] = cfg.default_version
        data.update(overrides)
        return cls.new(data)
