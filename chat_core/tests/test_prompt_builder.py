import pytest

from chat_core.domain.conversation import ChatTurn, ConversationHistory
from chat_core.domain.exceptions import InvalidRequestError
from chat_core.domain.models import GenerationRequest, ImagePart
from chat_core.prompts import load_system_prompt
from chat_core.prompts.builder import (
    HISTORY_HEADER,
    IMAGE_INSTRUCTION,
    build_prompt,
    build_turns,
    parse_image_ref,
    render_text_prompt,
)

PNG = "data:image/png;base64,iVBORw0KGgo="


def _history():
    return ConversationHistory([
        ChatTurn(text="hi", is_from_user=True),
        ChatTurn(text="hello, how can I help?", is_from_user=False),
        ChatTurn(text="what is this?", is_from_user=True, image_ref=PNG),
        ChatTurn(text="a cat", is_from_user=False),
    ])


def test_same_request_builds_identical_prompt():
    a = GenerationRequest(message="and now?", history=_history(), image=PNG)
    b = GenerationRequest(message="and now?", history=list(_history()), image=PNG)
    assert a == b
    assert render_text_prompt(a) == render_text_prompt(b)
    assert build_prompt(a, style="text") == build_prompt(b, style="text")
    assert build_prompt(a, style="chat") == build_prompt(b, style="chat")


def test_empty_history_omits_history_section():
    req = GenerationRequest(message="Hello")
    text = render_text_prompt(req)
    assert HISTORY_HEADER not in text
    assert "User:" not in text
    assert text == "Message: Hello"


def test_text_prompt_layout_with_history_and_image():
    req = GenerationRequest(message="and this one?", history=_history(), image="abc123")
    assert render_text_prompt(req) == "\n".join([
        "Chat History:",
        "User: hi",
        "AI: hello, how can I help?",
        "User: what is this?",
        "User Image: [image 1]",
        "AI: a cat",
        "",
        "Message: and this one?",
        "User Image: [image 2]",
        "Please describe the image.",
    ])


def test_image_only_request_still_builds_prompt():
    req = GenerationRequest(message="", image=PNG)
    text = render_text_prompt(req)
    assert text
    assert IMAGE_INSTRUCTION in text
    assert "Message:" not in text

    turns = build_turns(req)
    assert len(turns) == 1
    assert turns[0].text == IMAGE_INSTRUCTION
    assert turns[0].images == (ImagePart(mime_type="image/png", data="iVBORw0KGgo="),)


def test_build_turns_maps_roles_and_drops_empty_turns():
    history = _history().append(ChatTurn(text="", is_from_user=False))
    req = GenerationRequest(message="thanks", history=history)
    turns = build_turns(req)
    assert [t.role for t in turns] == ["user", "assistant", "user", "assistant", "user"]
    assert turns[2].images[0].mime_type == "image/png"
    assert turns[-1].text == "thanks"
    assert turns[-1].images == ()


def test_text_style_attaches_images_in_placeholder_order():
    req = GenerationRequest(message="compare", history=_history(), image="rawbase64")
    prompt = build_prompt(req, style="text", system_prompt="sys")
    assert prompt.style == "text"
    assert prompt.system == "sys"
    assert len(prompt.turns) == 1
    images = prompt.turns[0].images
    assert [i.data for i in images] == ["iVBORw0KGgo=", "rawbase64"]
    assert images[1].mime_type == "image/jpeg"


def test_build_prompt_uses_packaged_system_prompt():
    prompt = build_prompt(GenerationRequest(message="hi"))
    assert prompt.system == load_system_prompt()
    assert "helpful AI assistant" in prompt.system


def test_build_prompt_rejects_empty_request():
    with pytest.raises(InvalidRequestError):
        build_prompt(GenerationRequest(message="   "))


def test_parse_image_ref_variants():
    assert parse_image_ref("data:image/webp;base64,AAAA") == ImagePart("image/webp", "AAAA")
    assert parse_image_ref("AAAA") == ImagePart("image/jpeg", "AAAA")
    with pytest.raises(InvalidRequestError):
        parse_image_ref("data:image/png,not-base64")
    with pytest.raises(InvalidRequestError):
        parse_image_ref("data:image/png;base64,")


def test_history_append_does_not_mutate():
    history = ConversationHistory()
    longer = history.append(ChatTurn(text="hi", is_from_user=True))
    assert len(history) == 0
    assert len(longer) == 1


def test_unparseable_history_images_are_skipped():
    history = ConversationHistory([
        ChatTurn(text="broken", is_from_user=True, image_ref="data:image/png,notbase64"),
        ChatTurn(text="", is_from_user=True, image_ref="data:image/png,notbase64"),
        ChatTurn(text="ok", is_from_user=False),
    ])
    req = GenerationRequest(message="next", history=history, image="CCCC")

    turns = build_turns(req)
    assert [t.text for t in turns] == ["broken", "ok", "next"]
    assert turns[0].images == ()

    text = render_text_prompt(req)
    assert text == "\n".join([
        "Chat History:",
        "User: broken",
        "AI: ok",
        "",
        "Message: next",
        "User Image: [image 1]",
        "Please describe the image.",
    ])
    prompt = build_prompt(req, style="text", system_prompt="sys")
    assert [i.data for i in prompt.turns[0].images] == ["CCCC"]
