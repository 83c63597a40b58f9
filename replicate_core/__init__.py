"""Replicate Core 顶层包。

该包把 Replicate 的异步预测接口封装成一次同步的聊天调用：
配置校验、消息渲染、预测提交与轮询、结果归一化以及回调分发。
"""

from replicate_core.domain.models import CallResult, ChatMessage
from replicate_core.providers.replicate_client import ReplicateClient
from replicate_core.providers.replicate_config import ChatReplicateConfig

__all__ = ["CallResult", "ChatMessage", "ChatReplicateConfig", "ReplicateClient"]
