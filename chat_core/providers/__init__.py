"""LLM Provider 集成层。

该包下的模块负责：
- 定义模型客户端抽象接口 (base)。
- 维护 Provider 与主/备模型配置 (registry)。
- 提供各厂商的具体实现 (gemini_client)。
"""

from typing import Callable, Dict, Optional

from chat_core.config.settings import settings
from chat_core.providers.base import ModelClient
from chat_core.providers.gemini_client import GeminiClient
from chat_core.providers.registry import get_provider_config

CLIENT_CLASSES: Dict[str, Callable[..., ModelClient]] = {
    "gemini": GeminiClient,
}


def create_client(name: Optional[str] = None) -> ModelClient:
    """根据名称创建模型客户端实例，默认取配置中的 provider。

    名称先经 registry 解析，未登记的 Provider 抛出 KeyError。
    """

    provider_name = name or getattr(settings, "default_provider", "gemini")
    provider_cfg = get_provider_config(provider_name, settings)
    return CLIENT_CLASSES[provider_cfg.name](settings)
