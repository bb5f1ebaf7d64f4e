"""对外 API 服务模块。

提供简化的函数接口供展示层调用：

- run_chat: 一问一答，返回可直接序列化的字典。
- ChatSession: 由调用方持有的会话状态（消息气泡列表 + loading 标记），
  send_message 负责追加用户气泡、调用 Responder、追加回答或错误气泡。

会话只存在于内存中，不做任何持久化。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from chat_core.domain.conversation import ChatTurn, ConversationHistory
from chat_core.domain.exceptions import InvalidRequestError, ValidationError
from chat_core.domain.models import FAILURE_MESSAGE, GenerationRequest
from chat_core.flows.runner import FallbackResponder, get_default_responder
from chat_core.infrastructure.logging.logger import logger
from chat_core.prompts.builder import parse_image_ref


def run_chat(
    message: str,
    history: Optional[Iterable[ChatTurn]] = None,
    image: Optional[str] = None,
    responder: Optional[FallbackResponder] = None,
) -> Dict[str, Any]:
    """运行一次对话。

    Args:
        message: 用户输入内容
        history: 之前的对话（可选，最早的在前）
        image: 图片 data URL（可选）
        responder: 自定义 Responder（可选，默认使用 settings 构建的单例）

    Returns:
        包含 response、model、fallback_used、error 的字典

    Raises:
        InvalidRequestError: 消息和图片都为空
    """
    request = GenerationRequest(message=message, history=ConversationHistory(history or ()), image=image)
    result = (responder or get_default_responder()).generate(request)
    return {
        "response": result.response_text,
        "model": result.model,
        "fallback_used": result.fallback_used,
        "error": result.failed,
        "error_code": result.error_code,
    }


@dataclass(frozen=True)
class ChatMessageView:
    """聊天界面中的一个气泡。"""

    id: str
    text: str
    is_user: bool
    image: Optional[str] = None
    is_error: bool = False


@dataclass
class ChatSession:
    """调用方持有的会话状态。

    同一个会话同一时间只允许一个请求在途；重复发送会抛出 ValidationError。
    """

    responder: Optional[FallbackResponder] = None
    messages: List[ChatMessageView] = field(default_factory=list)
    is_loading: bool = False

    def history(self) -> ConversationHistory:
        """把界面上的非错误气泡转换为对话历史。"""
        return ConversationHistory(
            ChatTurn(text=m.text, is_from_user=m.is_user, image_ref=m.image)
            for m in self.messages
            if not m.is_error
        )

    def send_message(self, text: str, image: Optional[str] = None) -> Optional[ChatMessageView]:
        """发送一条消息并返回 AI（或错误）气泡；空输入直接忽略并返回 None。

        无效请求（如无法解析的图片）只追加错误气泡，不留下用户气泡。
        """
        if not (text or "").strip() and not image:
            return None
        if self.is_loading:
            raise ValidationError(code="REQUEST_IN_FLIGHT", message="a request is already in flight for this session")

        try:
            if image:
                parse_image_ref(image)
        except InvalidRequestError as e:
            return self._reject(e)

        request = GenerationRequest(message=text, history=self.history(), image=image)
        user_bubble = ChatMessageView(id=f"m-{uuid4().hex}", text=text, is_user=True, image=image)
        self.messages.append(user_bubble)
        self.is_loading = True
        try:
            result = (self.responder or get_default_responder()).generate(request)
        except InvalidRequestError as e:
            self.messages.remove(user_bubble)
            return self._reject(e)
        finally:
            self.is_loading = False

        if result.failed:
            reply = self._error_bubble()
        else:
            reply = ChatMessageView(id=f"m-{uuid4().hex}", text=result.response_text, is_user=False)
        self.messages.append(reply)
        return reply

    def _reject(self, error: InvalidRequestError) -> ChatMessageView:
        logger.warning(f"Invalid chat request: {error}", extra={"extra": {"error_code": error.code}})
        reply = self._error_bubble()
        self.messages.append(reply)
        return reply

    @staticmethod
    def _error_bubble() -> ChatMessageView:
        return ChatMessageView(
            id=f"m-{uuid4().hex}",
            text=f"Error: {FAILURE_MESSAGE}",
            is_user=False,
            is_error=True,
        )
