"""Client-side chat widget: transcript, submit cycle and reply parsing.

The widget is driven from a single asyncio event loop. A submission moves
the widget into ``SENDING`` before the first await, so a second submission
made while a request is in flight is always ignored.

Typical usage
-------------
async with ChatApiClient("http://127.0.0.1:8000") as api:
    widget = ChatWidget(api)
    widget.subscribe(view.scroll_to_latest)
    await widget.submit("What is Suraj's experience?")
"""
from __future__ import annotations

import asyncio
import enum
import itertools
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Protocol, Tuple

import httpx

from .extraction import DISPLAY_RULES, first_match

logger = logging.getLogger(__name__)

CHAT_PATH = "/api/chat"
DEFAULT_TIMEOUT = 30.0

NO_CONTENT_TEXT = "I could not process your request. Please try again."
FAILURE_TEXT = "Sorry, I encountered an error. Please try again."

SUGGESTED_QUESTIONS: Tuple[str, ...] = (
    "What is Suraj's experience?",
    "What technical skills does Suraj have?",
    "What is Suraj's education background?",
    "Tell me about Suraj's recent projects",
)


# -----------------------------
# Types
# -----------------------------
class Role(str, enum.Enum):
    USER = "user"
    BOT = "bot"


class ChatState(str, enum.Enum):
    EMPTY = "empty"
    COMPOSING = "composing"
    SENDING = "sending"
    IDLE = "idle"


class InvalidTransition(RuntimeError):
    pass


_seq = itertools.count()


def _new_id() -> str:
    return f"{time.time_ns()}-{next(_seq)}"


@dataclass(frozen=True)
class Message:
    role: Role
    content: str
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ChatTransport(Protocol):
    async def send(self, message: str) -> Any: ...


Listener = Callable[[Message], None]


# -----------------------------
# Proxy transport
# -----------------------------
class ChatRequestFailed(Exception):
    def __init__(self, status_code: int, body: str = "") -> None:
        super().__init__(f"chat proxy returned {status_code}")
        self.status_code = status_code
        self.body = body


class ChatApiClient:
    """POST messages to the same-origin proxy at ``/api/chat``."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def send(self, message: str) -> Any:
        r = await self._client.post(CHAT_PATH, json={"message": message})
        if not r.is_success:
            raise ChatRequestFailed(r.status_code, r.text)
        return r.json()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ChatApiClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()


def display_text(envelope: Any) -> str:
    """Turn a proxy envelope into the text of a bot bubble."""
    return first_match(envelope, DISPLAY_RULES) or NO_CONTENT_TEXT


# -----------------------------
# Widget
# -----------------------------
class ChatWidget:
    """In-memory conversation with guarded state transitions."""

    def __init__(
        self,
        transport: ChatTransport,
        *,
        suggestions: Tuple[str, ...] = SUGGESTED_QUESTIONS,
    ) -> None:
        self._transport = transport
        self._suggestions = tuple(suggestions)
        self._messages: List[Message] = []
        self._listeners: List[Listener] = []
        self._inflight: Optional[asyncio.Future] = None
        self._closed = False
        self.state = ChatState.EMPTY
        self.input_text = ""

    # --------- views ----------
    @property
    def transcript(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def is_typing(self) -> bool:
        return self.state is ChatState.SENDING

    @property
    def suggestions(self) -> Tuple[str, ...]:
        """Prompts offered before the first message, empty afterwards."""
        return () if self._messages else self._suggestions

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with the newest message on every append."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --------- input ----------
    def set_input(self, text: str) -> None:
        self.input_text = text
        if self.state is ChatState.SENDING:
            return
        self.state = self._resting_state()

    async def submit(self, text: Optional[str] = None) -> bool:
        """Send ``text`` (or the input buffer). Returns False when ignored."""
        if text is None:
            text = self.input_text
        if self._closed or self.state is ChatState.SENDING or not text.strip():
            return False

        self._append(Message(Role.USER, text))
        self.input_text = ""
        self.state = ChatState.SENDING

        self._inflight = asyncio.ensure_future(self._transport.send(text))
        try:
            envelope = await self._inflight
        except asyncio.CancelledError:
            if not self._closed:
                # The caller went away mid-flight; leave the widget usable.
                self.state = self._resting_state()
                raise
            logger.debug("request cancelled by close()")
            return True
        except Exception as e:
            if self._closed:
                logger.debug("discarding failure after close: %s", e)
                return True
            logger.warning("chat request failed: %s", e)
            self.response_failed(e)
            return True
        finally:
            self._inflight = None

        if self._closed:
            logger.debug("discarding late response after close")
            return True
        self.response_received(envelope)
        return True

    async def choose_suggestion(self, question: str) -> bool:
        if question not in self.suggestions:
            return False
        self.set_input(question)
        return await self.submit()

    # --------- transitions ----------
    def response_received(self, envelope: Any) -> Message:
        self._require_sending()
        return self._settle(Message(Role.BOT, display_text(envelope)))

    def response_failed(self, error: BaseException) -> Message:
        self._require_sending()
        return self._settle(Message(Role.BOT, FAILURE_TEXT))

    def close(self) -> None:
        """Stop listening; an in-flight reply is cancelled or discarded."""
        self._closed = True
        self._listeners.clear()
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()

    # --------- internals ----------
    def _require_sending(self) -> None:
        if self.state is not ChatState.SENDING:
            raise InvalidTransition(f"no request in flight (state={self.state.value})")

    def _resting_state(self) -> ChatState:
        if self.input_text.strip():
            return ChatState.COMPOSING
        return ChatState.IDLE if self._messages else ChatState.EMPTY

    def _settle(self, message: Message) -> Message:
        self._messages.append(message)
        self.state = self._resting_state()
        self._notify(message)
        return message

    def _append(self, message: Message) -> None:
        self._messages.append(message)
        self._notify(message)

    def _notify(self, message: Message) -> None:
        for listener in list(self._listeners):
            try:
                listener(message)
            except Exception:
                logger.exception("chat listener failed on message %s", message.id)
