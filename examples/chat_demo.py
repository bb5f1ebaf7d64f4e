"""Minimal demonstration of the fallback-aware chat session."""

from chat_core.api.service import ChatSession

if __name__ == "__main__":
    session = ChatSession()
    for question in ["Hello", "What did I just say?"]:
        reply = session.send_message(question)
        print("User:", question)
        print("AI:", reply.text if reply else "")
