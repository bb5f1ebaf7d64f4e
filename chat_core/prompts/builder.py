"""Prompt Builder：把 GenerationRequest 序列化为模型客户端需要的 Prompt。

两种形式：
- chat: 多轮消息，历史中的每条 ChatTurn 对应一条 PromptTurn，当前消息放在最后。
- text: 单条 user 消息，文本为带角色标签（"User: ..." / "AI: ..."）的扁平提示词，
  图片按出现顺序作为附件，文本中只保留 "[image N]" 占位。

纯函数，无副作用：相同的请求总是得到完全相同的输出。
"""

from typing import List, Optional, Tuple

from chat_core.domain.conversation import ChatTurn
from chat_core.domain.exceptions import InvalidRequestError
from chat_core.domain.models import (
    GenerationRequest,
    ImagePart,
    Prompt,
    PromptStyle,
    PromptTurn,
)
from chat_core.prompts import load_system_prompt


HISTORY_HEADER = "Chat History:"
IMAGE_INSTRUCTION = "Please describe the image."
DEFAULT_IMAGE_MIME = "image/jpeg"


def parse_image_ref(ref: str) -> ImagePart:
    """解析图片引用。

    data:<mime>;base64,<payload> 使用其中的 mime 类型；
    其他字符串视为裸 base64，按 image/jpeg 处理。
    """

    ref = (ref or "").strip()
    if ref.startswith("data:") and "," in ref:
        header, data = ref.split(",", 1)
        meta = header[len("data:"):].split(";")
        if "base64" not in meta[1:]:
            raise InvalidRequestError("image data URL must be base64 encoded")
        mime_type = meta[0] or DEFAULT_IMAGE_MIME
    else:
        mime_type, data = DEFAULT_IMAGE_MIME, ref
    if not data:
        raise InvalidRequestError("image reference is empty")
    return ImagePart(mime_type=mime_type, data=data)


def _history_image(turn: ChatTurn) -> Optional[ImagePart]:
    if not turn.image_ref:
        return None
    try:
        return parse_image_ref(turn.image_ref)
    except InvalidRequestError:
        # 历史里解析不了的图片直接跳过，不影响后续请求
        return None


def _history_entries(request: GenerationRequest) -> List[Tuple[ChatTurn, Optional[ImagePart]]]:
    entries = []
    for turn in request.history:
        image = _history_image(turn)
        # 既无文本又无可用图片的历史消息对模型没有意义
        if turn.text or image is not None:
            entries.append((turn, image))
    return entries


def _has_message(request: GenerationRequest) -> bool:
    return bool((request.message or "").strip())


def render_text_prompt(request: GenerationRequest) -> str:
    """生成单条扁平提示词；历史为空时不输出 "Chat History:" 段落。"""

    lines: List[str] = []
    image_no = 0

    history = _history_entries(request)
    if history:
        lines.append(HISTORY_HEADER)
        for turn, image in history:
            label = "User" if turn.is_from_user else "AI"
            lines.append(f"{label}: {turn.text}")
            if image is not None:
                image_no += 1
                lines.append(f"{label} Image: [image {image_no}]")
        lines.append("")

    if _has_message(request):
        lines.append(f"Message: {request.message}")
    if request.image:
        image_no += 1
        lines.append(f"User Image: [image {image_no}]")
        lines.append(IMAGE_INSTRUCTION)
    return "\n".join(lines)


def collect_images(request: GenerationRequest) -> Tuple[ImagePart, ...]:
    """按 render_text_prompt 中占位符的顺序收集所有图片。"""

    images = [image for _, image in _history_entries(request) if image is not None]
    if request.image:
        images.append(parse_image_ref(request.image))
    return tuple(images)


def build_turns(request: GenerationRequest) -> Tuple[PromptTurn, ...]:
    """生成多轮消息形式的提示词。"""

    turns: List[PromptTurn] = []
    for turn, image in _history_entries(request):
        images = (image,) if image is not None else ()
        turns.append(PromptTurn(role="user" if turn.is_from_user else "assistant", text=turn.text, images=images))

    text = request.message if _has_message(request) else IMAGE_INSTRUCTION
    images = (parse_image_ref(request.image),) if request.image else ()
    turns.append(PromptTurn(role="user", text=text, images=images))
    return tuple(turns)


def build_prompt(
    request: GenerationRequest,
    style: PromptStyle = "chat",
    system_prompt: Optional[str] = None,
) -> Prompt:
    """Responder 使用的唯一入口。

    Raises:
        InvalidRequestError: 消息和图片都为空，或图片引用无法解析。
    """

    if request.is_empty():
        raise InvalidRequestError()
    system = load_system_prompt() if system_prompt is None else system_prompt
    if style == "text":
        turn = PromptTurn(role="user", text=render_text_prompt(request), images=collect_images(request))
        return Prompt(system=system, turns=(turn,), style="text")
    return Prompt(system=system, turns=build_turns(request), style="chat")
