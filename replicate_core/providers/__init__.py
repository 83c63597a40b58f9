"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护 Replicate 聊天模型登记表 (registry) 与调用配置 (replicate_config)。
- 消息渲染 (renderer)、HTTP 接口 (replicate_api)、轮询 (poller)、
  结果归一化 (normalizer)、回调分发 (dispatcher)、执行后端 (backends)。
- 对外的客户端实现 (replicate_client)。
"""

from typing import Optional

from replicate_core.config.settings import settings
from replicate_core.providers.base import ProviderClient
from replicate_core.providers.replicate_client import ReplicateClient
from replicate_core.providers.replicate_config import ChatReplicateConfig


def create_provider(config: Optional[ChatReplicateConfig] = None) -> ProviderClient:
    """根据配置创建 Provider 实例，未传入时从进程配置构造。"""

    if config is None:
        config = ChatReplicateConfig.from_settings(settings)
    return ReplicateClient(config, settings)
