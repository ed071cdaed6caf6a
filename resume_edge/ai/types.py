from typing import Protocol


class AIClient(Protocol):
    provider: str
    model: str

    def generate_text(self, prompt: str) -> str: ...
