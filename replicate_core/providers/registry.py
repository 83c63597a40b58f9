"""Provider 与模型配置。

Replicate 托管了各种类型的模型（不仅是 LLM），并非都能用聊天方式调用。
这里集中登记已验证可用的聊天模型及其 prompt 约定，便于后续扩展。"""

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass
class ModelConfig:
    """单个 Replicate 聊天模型的配置。"""

    model_id: str


@dataclass
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    name: str
    base_url: str
    models: Dict[str, ModelConfig]


REPLICATE_CONFIG = ProviderConfig(
    name="replicate",
    base_url="https://api.replicate.com/v1",
    models={
        "meta/llama-2-7b-chat": ModelConfig(
            model_id="meta/llama-2-7b-chat",
        ),
        "meta/llama-2-13b-chat": ModelConfig(
            model_id="meta/llama-2-13b-chat",
        ),
        "meta/llama-2-70b-chat": ModelConfig(
            model_id="meta/llama-2-70b-chat",
        ),
    },
)


def get_model_config(model_id: str) -> Optional[ModelConfig]:
    """根据模型 ID 查找配置，名称不区分大小写；未登记返回 None。"""

    key = model_id.lower()
    for k, cfg in REPLICATE_CONFIG.models.items():
        if k.lower() == key:
            return cfg
    return None


def is_supported_model(model_id: str) -> bool:
    return get_model_config(model_id) is not None
