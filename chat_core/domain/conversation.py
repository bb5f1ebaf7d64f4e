from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class ChatTurn:
    """对话中的一条消息（用户或 AI）。追加到历史后不可修改。

    - text: 文本内容；只发送图片时可以为空字符串。
    - is_from_user: True 表示用户消息，False 表示 AI 回复。
    - image_ref: 可选的图片引用，通常是 base64 data URL。
    """

    text: str
    is_from_user: bool
    image_ref: Optional[str] = None

    @property
    def role(self) -> str:
        return "user" if self.is_from_user else "assistant"


class ConversationHistory(tuple):
    """按时间顺序（最早在前）排列的对话历史。

    由调用方持有，核心流程只读取、不保存。基于 tuple 实现，
    append 返回新的历史对象，原对象保持不变。
    """

    def __new__(cls, turns: Iterable[ChatTurn] = ()):
        return super().__new__(cls, tuple(turns))

    def append(self, turn: ChatTurn) -> "ConversationHistory":
        return ConversationHistory(tuple(self) + (turn,))

    def __repr__(self) -> str:
        return f"ConversationHistory({list(self)!r})"
