"""
builds the chat generator used by the HTTP surface from prompts/chat.txt
"""
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from promptgen.services.generator import Generator


class ChatInput(BaseModel):
    message: str
    context: Optional[str] = None


def load_chat_template() -> str:
    p = Path(__file__).resolve().parents[1] / "prompts" / "chat.txt"
    return p.read_text(encoding="utf-8").strip()


def build_chat_generator() -> Generator[ChatInput, str]:
    return Generator.create(load_chat_template(), str, ChatInput)
