"""Chat session state for ossim, independent of any UI toolkit."""

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from ossim.config import MonitorConfig
from ossim.responder import QueryResponder
from ossim.simulator import MetricsSimulator, RandomSource

log = logging.getLogger(__name__)


def format_time(moment: datetime) -> str:
    """Chat timestamp, e.g. '09:05 PM'."""
    return moment.strftime("%I:%M %p")


@dataclass(slots=True, frozen=True)
class ChatMessage:
    """A line in the chat log."""

    content: str
    is_user: bool
    timestamp: str

    @property
    def author(self) -> str:
        return "You" if self.is_user else "AI"


@dataclass(slots=True)
class PendingReply:
    """A submitted query waiting for its typing delay to elapse."""

    seq: int
    query: str
    delay: float  # Seconds
    user_message: ChatMessage
    reply: ChatMessage | None = None


@dataclass
class ChatSession:
    """
    Turns user text into delayed replies.

    The UI calls submit() when the user sends a message, waits `delay`
    seconds, then calls complete(seq). The reply text is produced at
    completion time so it reports the metrics current at that moment.
    Replies are released strictly in request order: a reply that finishes
    early is held back until every earlier request has been answered.
    """

    simulator: MetricsSimulator
    responder: QueryResponder = field(default_factory=QueryResponder)
    config: MonitorConfig | None = None
    rng: RandomSource = field(default_factory=random.Random)
    now: Callable[[], datetime] = datetime.now
    history: list[ChatMessage] = field(default_factory=list)
    _pending: dict[int, PendingReply] = field(default_factory=dict, init=False, repr=False)
    _next_seq: int = field(default=0, init=False, repr=False)
    _next_release: int = field(default=0, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.config is None:
            self.config = self.simulator.config

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def typing_delay(self) -> float:
        """Seconds of artificial 'thinking' before a reply is shown."""
        low = self.config.typing_delay_min_ms
        high = self.config.typing_delay_max_ms
        return self.rng.uniform(low, high) / 1000

    def submit(self, text: str) -> PendingReply | None:
        """
        Record a user message and schedule a reply.

        Returns None for blank input. Text longer than the configured maximum
        is truncated.
        """
        text = text.strip()
        if not text:
            return None
        text = text[: self.config.max_message_length]

        user_message = ChatMessage(text, is_user=True, timestamp=format_time(self.now()))
        self.history.append(user_message)

        pending = PendingReply(
            seq=self._next_seq,
            query=text,
            delay=self.typing_delay(),
            user_message=user_message,
        )
        self._pending[pending.seq] = pending
        self._next_seq += 1
        log.debug(
            "query received",
            extra={"event": "chat.query", "extra_fields": {
                "seq": pending.seq,
                "length": len(text),
                "delay_s": round(pending.delay, 3),
            }},
        )
        return pending

    def complete(self, seq: int) -> list[ChatMessage]:
        """
        Produce the reply for `seq` and return every reply now releasable.

        Raises:
            KeyError: `seq` was never submitted or was already completed.
        """
        pending = self._pending[seq]
        if pending.reply is not None:
            raise KeyError(seq)

        content = self.responder.respond(pending.query, self.simulator.get_snapshot())
        pending.reply = ChatMessage(content, is_user=False, timestamp=format_time(self.now()))

        released: list[ChatMessage] = []
        while self._next_release in self._pending:
            head = self._pending[self._next_release]
            if head.reply is None:
                break
            released.append(head.reply)
            del self._pending[self._next_release]
            self._next_release += 1

        self.history.extend(released)
        log.debug(
            "reply ready",
            extra={"event": "chat.reply", "extra_fields": {
                "seq": seq,
                "released": len(released),
                "waiting": len(self._pending),
            }},
        )
        return released

    def clear(self) -> None:
        """Forget the displayed history. Pending replies still arrive."""
        self.history.clear()
