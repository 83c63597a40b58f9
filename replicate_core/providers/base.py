"""Provider 抽象接口。

上层会话编排不直接依赖 Replicate 的 HTTP 细节，而是依赖此协议：

- 实现者负责：将 ChatMessage 列表转成具体 API 请求，并把终态响应归一化为 CallResult。
- 回调只用于观察结果，返回值以 call() 的返回为准。
"""

import threading
from typing import List, Optional, Protocol, Sequence, Union

from replicate_core.domain.models import CallResult, ChatMessage
from replicate_core.providers.dispatcher import Observer
from replicate_core.tools.definitions import ToolDef


class ProviderClient(Protocol):
    """LLM Provider 客户端协议。

    实现者需要提供：
    - name: Provider 名称，用于日志/统计。
    - call(messages): 执行一次阻塞调用，返回统一的 CallResult。
    """

    name: str

    def call(
        self,
        messages: Union[str, Sequence[ChatMessage]],
        tools: Optional[List[ToolDef]] = None,
        callback: Optional[Observer] = None,
        cancel: Optional[threading.Event] = None,
    ) -> CallResult:
        ...
