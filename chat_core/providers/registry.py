"""Provider 与模型层级配置。

本模块将“逻辑层级”与“具体厂商模型名”解耦：

- 逻辑层级（tier）：primary（能力更强，优先调用）与 fallback（备用）。
- provider_model：厂商实际提供的模型 ID，例如 "gemini-2.0-flash"。

Responder 只关心主/备两个层级，具体用哪个底层模型由配置决定，
升级或切换模型时无需改动流程代码。"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Literal, Mapping

Tier = Literal["primary", "fallback"]


@dataclass
class ModelConfig:
    """单个模型层级的配置。"""

    tier: Tier
    provider_model: str
    max_output_tokens: int
    default_temperature: float


@dataclass
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    name: str
    base_url: str
    models: Dict[Tier, ModelConfig]

    def model_for(self, provider_model: str) -> ModelConfig:
        """按厂商模型 ID 查找层级配置；未登记的模型使用主模型参数。"""

        for cfg in self.models.values():
            if cfg.provider_model == provider_model:
                return cfg
        return self.models["primary"]


GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


def gemini_config(cfg) -> ProviderConfig:
    """根据 settings 构造 Gemini 的主/备模型配置。"""

    base_url = getattr(cfg, "gemini_base_url", None) or GEMINI_BASE_URL
    max_tokens = int(getattr(cfg, "max_output_tokens", 2048))
    temperature = float(getattr(cfg, "temperature", 0.7))
    return ProviderConfig(
        name="gemini",
        base_url=base_url.rstrip("/"),
        models={
            "primary": ModelConfig(
                tier="primary",
                provider_model=cfg.primary_model_id,
                max_output_tokens=max_tokens,
                default_temperature=temperature,
            ),
            "fallback": ModelConfig(
                tier="fallback",
                provider_model=cfg.fallback_model_id,
                max_output_tokens=max_tokens,
                default_temperature=temperature,
            ),
        },
    )


PROVIDER_FACTORIES: Mapping[str, Callable[[Any], ProviderConfig]] = {
    "gemini": gemini_config,
}


def get_provider_config(name: str, cfg) -> ProviderConfig:
    """根据名称获取 ProviderConfig，名称不区分大小写。"""

    key = name.lower()
    for k, factory in PROVIDER_FACTORIES.items():
        if k.lower() == key:
            return factory(cfg)
    raise KeyError(f"Unknown provider: {name!r}")
