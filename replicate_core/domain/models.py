"""统一的消息与调用结果数据模型。

本模块定义了 Replicate 适配层与上层编排之间共享的标准数据结构：

- ChatMessage: 一条对话消息（system/user/assistant）。
- CallResult: 一次调用的归一化结果，要么是助手消息，要么是结构化错误。
- PredictionStatus: 远端预测（Job）的状态取值。

上层多轮会话管理只依赖这些模型，不感知 Replicate 的 JSON 结构。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Literal, Optional, get_args

from replicate_core.domain.exceptions import BusinessError, MessageValidationError


# 消息角色是一个封闭集合，渲染时按角色分派
Role = Literal["system", "user", "assistant"]
MessageStatus = Literal["complete", "cancelled", "length"]

ROLES: FrozenSet[str] = frozenset(get_args(Role))
MESSAGE_STATUSES: FrozenSet[str] = frozenset(get_args(MessageStatus))

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."


@dataclass
class ChatMessage:
    """一条对话消息，既可用于请求，也可用于响应。

    - role: 消息角色，system/user/assistant 之一。
    - content: 纯文本内容。
    - status: 助手消息的完成状态，Replicate 非流式调用总是 "complete"。
    - meta: 附加元数据，不发给 Provider，仅用于日志与上层展示。
    """

    role: Role
    content: str
    status: MessageStatus = "complete"
    meta: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def new(cls, role: str, content: Any, status: str = "complete") -> "ChatMessage":
        """构造并校验消息，不合法时抛出 MessageValidationError。"""

        errors = []
        if role not in ROLES:
            errors.append(f"role: unsupported value {role!r}")
        if not isinstance(content, str):
            errors.append(f"content: expected a string, got {type(content).__name__}")
        if status not in MESSAGE_STATUSES:
            errors.append(f"status: unsupported value {status!r}")
        if errors:
            raise MessageValidationError(code="INVALID_MESSAGE", message="; ".join(errors))
        return cls(role=role, content=content, status=status)

    @classmethod
    def system(cls, content: str = DEFAULT_SYSTEM_PROMPT) -> "ChatMessage":
        return cls.new("system", content)

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls.new("user", content)

    @classmethod
    def assistant(cls, content: str, status: str = "complete") -> "ChatMessage":
        return cls.new("assistant", content, status)


@dataclass(frozen=True)
class CallResult:
    """一次调用的归一化结果。

    message 与 error 有且只有一个非空：
    - 成功：message 为 role="assistant" 的 ChatMessage。
    - 失败：error 为 BusinessError，message 文本即 Provider 给出的原因。
    """

    message: Optional[ChatMessage] = None
    error: Optional[BusinessError] = None

    def __post_init__(self) -> None:
        if (self.message is None) == (self.error is None):
            raise ValueError("CallResult needs exactly one of message or error")

    @classmethod
    def success(cls, message: ChatMessage) -> "CallResult":
        return cls(message=message)

    @classmethod
    def failure(cls, error: BusinessError) -> "CallResult":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_message(self) -> Optional[str]:
        return self.error.message if self.error is not None else None

    def unwrap(self) -> ChatMessage:
        """返回助手消息；失败结果会把其中的错误重新抛出。"""

        if self.error is not None:
            raise self.error
        return self.message


class PredictionStatus:
    """Replicate 预测状态取值。"""

    STARTING = "starting"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


ACTIVE_STATUSES: FrozenSet[str] = frozenset({PredictionStatus.STARTING, PredictionStatus.PROCESSING})
TERMINAL_STATUSES: FrozenSet[str] = frozenset(
    {PredictionStatus.SUCCEEDED, PredictionStatus.FAILED, PredictionStatus.CANCELED}
)

CANCELED_MESSAGE = "Prediction canceled"
