"""对外 API 服务模块。

提供简化的函数接口供上层应用调用，客户端配置从进程 settings 读取。
"""

from typing import Any, Dict, List, Optional

from replicate_core.config.settings import settings
from replicate_core.domain.models import ChatMessage
from replicate_core.infrastructure.logging.logger import logger
from replicate_core.providers.dispatcher import Observer
from replicate_core.providers.replicate_client import ReplicateClient
from replicate_core.providers.replicate_config import ChatReplicateConfig


_client: Optional[ReplicateClient] = None


def get_default_client() -> ReplicateClient:
    """获取默认的 ReplicateClient 实例（单例）。"""
    global _client
    if _client is None:
        _client = ReplicateClient(ChatReplicateConfig.from_settings(settings), settings)
    return _client


def reset_default_client() -> None:
    global _client
    _client = None


def run_chat(
    user_input: str,
    system_prompt: Optional[str] = None,
    history: Optional[List[ChatMessage]] = None,
    callback: Optional[Observer] = None,
) -> Dict[str, Any]:
    """运行一次 Replicate 聊天调用。

    Args:
        user_input: 用户输入内容
        system_prompt: 系统提示词（可选）
        history: 之前的对话消息（可选），按时间顺序排列
        callback: 结果回调（可选）

    Returns:
        包含 ok、content、status、error、error_code 的字典

    Raises:
        ConfigurationError: 配置缺失或不合法（例如没有设置版本）
    """
    messages: List[ChatMessage] = []
    if system_prompt:
        messages.append(ChatMessage.system(system_prompt))
    messages.extend(history or [])
    messages.append(ChatMessage.user(user_input))

    result = get_default_client().call(messages, callback=callback)
    if not result.ok:
        logger.error(f"Chat failed: {result.error_message}", extra={"extra": {
            "error_code": result.error.code,
        }})
        return {
            "ok": False,
            "content": None,
            "status": None,
            "error": result.error_message,
            "error_code": result.error.code,
        }
    return {
        "ok": True,
        "content": result.message.content,
        "status": result.message.status,
        "error": None,
        "error_code": None,
    }
