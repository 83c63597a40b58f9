"""工具数据结构定义。

Replicate 托管的模型不支持工具/函数调用。这里保留与其他 Provider 一致的
ToolDef / ToolParam 描述，客户端只检查调用方是否传入了工具，传入即拒绝。
"""

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class ToolParam:
    """单个工具参数的定义。"""

    name: str
    description: str
    required: bool
    schema: Dict[str, Any]


@dataclass
class ToolDef:
    """一个可供 LLM 调用的工具定义。"""

    name: str
    description: str
    params: Dict[str, ToolParam] = field(default_factory=dict)
