from fastapi import Request
from promptgen.agents.chat import ChatInput
from promptgen.services.generator import Generator

def get_chat_generator(request: Request) -> Generator[ChatInput, str]:
    return request.app.state.chat_generator
