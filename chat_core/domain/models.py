"""统一的请求、提示词与结果数据模型。

本模块定义了 Prompt Builder、Responder 与 Provider 之间共享的标准数据结构：

- GenerationRequest: 一次用户操作产生的生成请求（消息 + 历史 + 可选图片）。
- Prompt / PromptTurn / ImagePart: 交给模型客户端的提示词形式。
- GenerationOutcome: 模型客户端一次成功调用的返回值。
- GenerationResult: Responder 返回给调用方的统一结果（成功或终态失败）。

所有 Provider 适配器（如 GeminiClient）都只依赖这些模型，
并负责在各自的 API JSON 和这些模型之间做转换。
"""

from dataclasses import dataclass, field
from typing import Literal, Optional, Tuple

from chat_core.domain.conversation import ConversationHistory
from chat_core.domain.exceptions import TotalGenerationFailure


# 两次尝试都失败时展示给用户的固定文案，不包含任何后端错误细节
FAILURE_MESSAGE = "Failed to get response from AI. Please try again."

Role = Literal["user", "assistant"]
PromptStyle = Literal["chat", "text"]


@dataclass(frozen=True)
class GenerationRequest:
    """一次生成请求。构造后不再修改，用完即丢弃。

    message 与 image 不能同时为空；构造时不校验，
    由 Responder 在发起任何调用之前检查并抛出 InvalidRequestError。
    """

    message: str
    history: ConversationHistory = field(default_factory=ConversationHistory)
    image: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.history, ConversationHistory):
            object.__setattr__(self, "history", ConversationHistory(self.history or ()))

    def is_empty(self) -> bool:
        return not (self.message or "").strip() and not self.image


@dataclass(frozen=True)
class ImagePart:
    """内联图片：mime 类型 + 不带 data URL 头的 base64 数据。"""

    mime_type: str
    data: str


@dataclass(frozen=True)
class PromptTurn:
    """提示词中的一轮消息。"""

    role: Role
    text: str
    images: Tuple[ImagePart, ...] = ()


@dataclass(frozen=True)
class Prompt:
    """交给模型客户端的完整提示词。

    - system: 系统指令。
    - turns: 多轮消息；style="text" 时只有一条扁平化的 user 消息。
    - style: 构造方式，仅用于日志与调试。
    """

    system: str
    turns: Tuple[PromptTurn, ...]
    style: PromptStyle = "chat"


@dataclass
class GenerationUsage:
    """Provider 返回的 token 统计信息（统一格式）。"""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class GenerationOutcome:
    """模型客户端一次成功调用的结果。失败一律以异常表示。"""

    text: str
    model: str
    usage: Optional[GenerationUsage] = None
    raw: Optional[dict] = None


@dataclass
class GenerationResult:
    """Responder 对一次请求给出的唯一结果。

    - response_text: 回答文本；失败时为 FAILURE_MESSAGE。
    - model: 实际给出回答的厂商模型 ID，失败时为 None。
    - fallback_used: 回答是否来自备用模型。
    - failed: 是否为终态失败（两次尝试都失败或请求被取消）。
    - error_code: 失败时最后一次错误的错误码。
    """

    response_text: str
    model: Optional[str] = None
    fallback_used: bool = False
    failed: bool = False
    error_code: Optional[str] = None
    usage: Optional[GenerationUsage] = None

    @classmethod
    def failure(cls, error_code: str) -> "GenerationResult":
        return cls(response_text=FAILURE_MESSAGE, failed=True, error_code=error_code)

    def raise_for_failure(self) -> "GenerationResult":
        if self.failed:
            raise TotalGenerationFailure(
                code=self.error_code or "TOTAL_FAILURE",
                message=self.response_text,
                http_status=502,
            )
        return self
