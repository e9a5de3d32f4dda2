"""Log-only implementation of CodeNotifier.

Codes are written to the application log instead of being emailed. This is
the current delivery mechanism, not a placeholder to be replaced silently.
"""

from shared.logging import get_logger

log = get_logger(__name__)


class LogCodeNotifier:
    async def send(self, email: str, purpose: str, code: str) -> None:
        log.info("one_time_code_issued", email=email, purpose=purpose, code=code)
