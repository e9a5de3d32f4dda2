"""CodeNotifier protocol — services depend on this, not the concrete implementation."""

from typing import Protocol


class CodeNotifier(Protocol):
    async def send(self, email: str, purpose: str, code: str) -> None: ...
