"""
Best-effort progress narration for batch operations.

The reporter forwards text to a presentation sink (a chat message being
edited, a console, ...). Sink failures are logged and swallowed: they never
abort the operation being narrated.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Sequence

from pluginkit.logging import get_logger

logger = get_logger("progress")

# A sink receives the full text to display and may return False to signal
# that the update did not land.
ProgressSink = Callable[[str], "Awaitable[bool | None] | bool | None"]

DEFAULT_MAX_MESSAGE_LENGTH = 4000

# Room left in each chunk for the "continued i/n" header.
_CONTINUATION_RESERVE = 40


def progress_bar(percentage: int, length: int = 20) -> str:
    """Render ``[██████░░░░] 60%``."""
    percentage = max(0, min(100, percentage))
    filled = round(percentage / 100 * length)
    return f"[{'█' * filled}{'░' * (length - filled)}] {percentage}%"


def percent(done: int, total: int) -> int:
    if total <= 0:
        return 100
    return round(done / total * 100)


def should_report(index: int, total: int) -> bool:
    """Throttle: report the first item, the last item and every other item."""
    return index == 0 or index == total - 1 or index % 2 == 0


def format_capped_list(
    items: Sequence[object],
    limit: int,
    more_label: str = "more",
    bullet: str = "• ",
) -> str:
    """One bullet per item, at most *limit* of them, then ``... and N more``."""
    shown = [f"{bullet}{item}" for item in items[:limit]]
    remaining = len(items) - limit
    if remaining > 0:
        shown.append(f"{bullet}... and {remaining} {more_label}")
    return "\n".join(shown)


def split_long_text(text: str, max_length: int = DEFAULT_MAX_MESSAGE_LENGTH) -> list[str]:
    """
    Split *text* into chunks of at most *max_length* characters.

    Splits happen on line boundaries; a single line longer than the limit
    is cut into fixed-size pieces.
    """
    if len(text) <= max_length:
        return [text]

    chunks: list[str] = []
    current = ""
    for line in text.split("\n"):
        if len(line) > max_length:
            if current:
                chunks.append(current)
                current = ""
            for start in range(0, len(line), max_length):
                chunks.append(line[start : start + max_length])
            continue

        if current and len(current) + len(line) + 1 > max_length:
            chunks.append(current)
            current = line
        else:
            current = f"{current}\n{line}" if current else line

    if current:
        chunks.append(current)
    return chunks


class ProgressReporter:
    """
    Wraps a :data:`ProgressSink` with failure isolation.

    Once an intermediate update fails, further intermediate updates are
    skipped (the message being edited is probably gone); final reports are
    still attempted.
    """

    def __init__(
        self,
        sink: ProgressSink | None = None,
        max_message_length: int = DEFAULT_MAX_MESSAGE_LENGTH,
    ) -> None:
        self.sink = sink
        self.max_message_length = max_message_length
        self.available = sink is not None
        self.sent: int = 0

    async def update(self, text: str) -> bool:
        """Send an intermediate update. Returns whether it was delivered."""
        if not self.available:
            return False
        ok = await self._deliver(text)
        if not ok:
            self.available = False
        return ok

    async def final(self, text: str) -> bool:
        """Send a final report, split into several messages if it is long."""
        if self.sink is None:
            return False
        chunks = split_long_text(text, self.max_message_length)
        if len(chunks) > 1:
            limit = max(1, self.max_message_length - _CONTINUATION_RESERVE)
            chunks = split_long_text(text, limit)
        delivered = True
        for index, chunk in enumerate(chunks):
            if index > 0:
                chunk = f"📋 (continued {index}/{len(chunks) - 1})\n\n{chunk}"
            delivered = await self._deliver(chunk) and delivered
        return delivered

    async def _deliver(self, text: str) -> bool:
        try:
            result = self.sink(text)  # type: ignore[misc]
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            logger.warning("Progress update failed, continuing: %s", exc)
            return False
        if result is False:
            logger.debug("Progress sink rejected update")
            return False
        self.sent += 1
        return True
