"""Chat Core 顶层包。

该包提供带主/备模型切换的聊天回答生成能力，
包括配置加载、领域模型、Prompt 构建、Provider 适配、
基于 LangGraph 的回退流程以及面向 UI 的会话接口。
"""

from chat_core.domain.conversation import ChatTurn, ConversationHistory
from chat_core.domain.models import GenerationRequest, GenerationResult
from chat_core.flows import FallbackResponder, generate

__all__ = [
    "ChatTurn",
    "ConversationHistory",
    "FallbackResponder",
    "GenerationRequest",
    "GenerationResult",
    "generate",
]
