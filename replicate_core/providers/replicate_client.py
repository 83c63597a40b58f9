"""Replicate Provider 适配器。

本模块负责：

1. 接收统一的 ChatMessage 列表（或一段纯文本 prompt）。
2. 渲染为 Replicate 的 prompt / system_prompt，并拼装预测请求体。
3. 交给 PredictionBackend 执行：创建预测、轮询到终态、归一化结果。
4. 把结果（成功或失败）交给可选的回调，再返回给调用方。

限制：
- Replicate 的流式输出只能推送到单独的回调 URL，这里不支持，
  ChatReplicateConfig 在 stream 不为 False 时直接构造失败。
- Replicate 托管的 LLM 不支持函数调用，传入任何工具都会在发请求之前报错。
"""

import threading
from typing import Any, Dict, List, Optional, Sequence, Union

from replicate_core.config.settings import settings
from replicate_core.domain.exceptions import MessageValidationError, UnsupportedFeatureError
from replicate_core.domain.models import CallResult, ChatMessage
from replicate_core.infrastructure.logging.logger import logger
from replicate_core.providers.backends import HttpPredictionBackend, PredictionBackend
from replicate_core.providers.dispatcher import Observer, dispatch
from replicate_core.providers.poller import PollPolicy
from replicate_core.providers.registry import is_supported_model
from replicate_core.providers.renderer import render_prompt
from replicate_core.providers.replicate_api import ReplicateApi
from replicate_core.providers.replicate_config import ChatReplicateConfig
from replicate_core.tools.definitions import ToolDef

FUNCTIONS_UNSUPPORTED = "Function calls are not currently supported for Replicate-hosted models"


class ReplicateClient:
    """Replicate 提供方客户端实现。

    - name: Provider 名称（供日志/调试使用）。
    - call: 对外统一调用入口，返回 CallResult。
    """

    name = "replicate"

    def __init__(
        self,
        config: ChatReplicateConfig,
        cfg=settings,
        backend: Optional[PredictionBackend] = None,
    ):
        self.config = config
        self._api = ReplicateApi(config.base_url, timeout=config.receive_timeout, cfg=cfg)
        self._backend = backend or HttpPredictionBackend(self._api, PollPolicy.from_config(config))
        if not is_supported_model(config.model):
            logger.warning(
                "Model is not in the Replicate chat registry",
                extra={"extra": {"model": config.model}},
            )

    def for_api(self, messages: Sequence[ChatMessage]) -> Dict[str, Any]:
        """将消息列表转成 Replicate 创建预测所需的请求 JSON。"""

        rendered = render_prompt(messages)
        return {
            "version": self.config.version,
            "input": {
                "temperature": self.config.temperature,
                "top_p": self.config.top_p,
                "top_k": self.config.top_k,
                "system_prompt": rendered.system_prompt,
                "prompt": rendered.prompt,
            },
        }

    def call(
        self,
        messages: Union[str, Sequence[ChatMessage]],
        tools: Optional[List[ToolDef]] = None,
        callback: Optional[Observer] = None,
        cancel: Optional[threading.Event] = None,
    ) -> CallResult:
        """执行一次阻塞调用，直到远端预测进入终态。

        步骤：
        1. 拒绝工具调用（在任何网络请求之前）。
        2. 纯文本 prompt 包装为 [默认 system 消息, user 消息]。
        3. 渲染并交给后端执行，得到 CallResult。
        4. 回调（若有）被调用且仅被调用一次，然后返回同一个结果。

        ConfigurationError / UnsupportedFeatureError 以异常形式抛出，
        其余错误都以失败的 CallResult 返回。
        """

        if tools:
            raise UnsupportedFeatureError(code="UNSUPPORTED_FEATURE", message=FUNCTIONS_UNSUPPORTED)

        if isinstance(messages, str):
            messages = [ChatMessage.system(), ChatMessage.user(messages)]

        try:
            payload = self.for_api(messages)
        except MessageValidationError as e:
            result = CallResult.failure(e)
        else:
            result = self._backend.complete(payload, cancel=cancel)
        dispatch(result, callback)
        return result

    def latest_version(self, model_id: Optional[str] = None) -> str:
        """查询模型最新版本 ID（不在调用热路径上）。"""

        return self._api.latest_version(model_id or self.config.model)
