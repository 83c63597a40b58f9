"""消息渲染：把有序的 ChatMessage 列表转换为 Replicate 期望的 prompt 文本。

- user: 原文。
- assistant: 包裹在 "[INST] ... [/INST]" 中。
- system: 不进入 prompt，而是单独作为 system_prompt 字段发送。

只使用第一条 system 消息，其余 system 消息被丢弃（保留原有行为）。
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Tuple

from replicate_core.domain.exceptions import MessageValidationError
from replicate_core.domain.models import ChatMessage
from replicate_core.infrastructure.logging.logger import logger


@dataclass(frozen=True)
class RenderedPrompt:
    system_prompt: str
    prompt: str


def _render_system(message: ChatMessage) -> str:
    return message.content


def _render_user(message: ChatMessage) -> str:
    return message.content


def _render_assistant(message: ChatMessage) -> str:
    return f"[INST] {message.content} [/INST]"


_RENDERERS: Dict[str, Callable[[ChatMessage], str]] = {
    "system": _render_system,
    "user": _render_user,
    "assistant": _render_assistant,
}


def render_message(message: ChatMessage) -> str:
    """按角色渲染单条消息，未知角色直接报错而不是渲染为空。"""

    renderer = _RENDERERS.get(message.role)
    if renderer is None:
        raise MessageValidationError(
            code="INVALID_MESSAGE",
            message=f"Unsupported message role for Replicate: {message.role!r}",
        )
    return renderer(message)


def split_messages(messages: Iterable[ChatMessage]) -> Tuple[List[ChatMessage], List[ChatMessage]]:
    """稳定地拆分为 (system 消息, 对话消息) 两组。"""

    system: List[ChatMessage] = []
    chat: List[ChatMessage] = []
    for msg in messages:
        (system if msg.role == "system" else chat).append(msg)
    return system, chat


def render_prompt(messages: Iterable[ChatMessage]) -> RenderedPrompt:
    system, chat = split_messages(messages)
    # TODO: 多条 system 消息目前静默丢弃，待确认是否应改为合并或直接报错
    if len(system) > 1:
        logger.debug(
            "Dropping extra system messages",
            extra={"extra": {"dropped": len(system) - 1}},
        )
    system_prompt = render_message(system[0]) if system else ""
    prompt = "\n".join(render_message(m) for m in chat)
    return RenderedPrompt(system_prompt=system_prompt, prompt=prompt)
