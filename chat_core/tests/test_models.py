from chat_core.domain.conversation import ChatTurn, ConversationHistory
from chat_core.domain.models import GenerationRequest, GenerationResult, FAILURE_MESSAGE


def test_request_emptiness():
    assert GenerationRequest(message="").is_empty()
    assert GenerationRequest(message=" \n").is_empty()
    assert not GenerationRequest(message="", image="AAAA").is_empty()
    assert not GenerationRequest(message="hi").is_empty()


def test_request_normalizes_history():
    req = GenerationRequest(message="hi", history=[ChatTurn(text="a", is_from_user=True)])
    assert isinstance(req.history, ConversationHistory)
    assert req.history[0].role == "user"
    assert hash(req) == hash(GenerationRequest(message="hi", history=(ChatTurn(text="a", is_from_user=True),)))


def test_failure_result():
    r = GenerationResult.failure("API_ERROR")
    assert r.failed
    assert r.response_text == FAILURE_MESSAGE
    assert r.error_code == "API_ERROR"
    ok = GenerationResult(response_text="fine", model="m")
    assert ok.raise_for_failure() is ok
