"""Assistant glue — prompts, the chat transcript, and in-flight requests.

Every AI request is tagged with an ``ExchangeToken``.  Streamed chunks are
appended to the reply bound to their token, in arrival order; once a
token is cancelled, anything that still arrives for it is discarded.
Starting a new request never cancels an older one.
"""

from __future__ import annotations

import enum
import itertools
import logging
from dataclasses import dataclass

from webide.contracts import ChatMessage, EditorTab

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

CHAT_SYSTEM_INSTRUCTION = (
    "You are an expert AI programmer acting as a helpful assistant in a code editor. "
    "Your responses must be concise, direct, and use natural language. When explaining "
    "code, be brief and clear. Avoid conversational filler or any unnecessary text."
)

COMMIT_MESSAGE_INSTRUCTION = (
    "Based on the following diff, generate a concise, conventional commit message."
)

GENERATING_COMMIT_MESSAGE = "Generating commit message..."
COMMIT_MESSAGE_ERROR = "Error generating message."
NO_STAGED_CHANGES = "No staged changes to create a commit message from."
SELECT_CODE_FIRST = "Please select some code to run the AI command on."


class CodeCommand(str, enum.Enum):
    """Code transformations the command palette can run over a selection."""

    EXPLAIN = "explain"
    REFACTOR = "refactor"
    ADD_COMMENTS = "add-comments"


_CODE_PROMPTS: dict[CodeCommand, str] = {
    CodeCommand.EXPLAIN: (
        "Explain the following code in a single, concise paragraph. The explanation "
        "will be used in a tooltip. Do not include any titles, markdown formatting, or "
        "conversational filler. Output only the explanation text itself.\n\nCode:\n{code}"
    ),
    CodeCommand.REFACTOR: (
        "Refactor the following code to improve its clarity, efficiency, and adherence "
        "to best practices. Only output the refactored code, without any explanations "
        "or markdown formatting.\n\n```\n{code}\n```"
    ),
    CodeCommand.ADD_COMMENTS: (
        "Add clear and concise comments to the following code. Only output the "
        "commented code, without any explanations or markdown formatting.\n\n```\n{code}\n```"
    ),
}


def build_code_prompt(command: CodeCommand, selected_text: str) -> str:
    return _CODE_PROMPTS[command].format(code=selected_text)


def build_chat_prompt(message: str, tab: EditorTab | None) -> str:
    """The user's message, followed by the active file when one is open."""
    if tab is None:
        return message
    return f"{message}\n\n--- Current File: {tab.name} ---\n\n{tab.content}"


def build_commit_prompt(diff: str) -> str:
    return f"{COMMIT_MESSAGE_INSTRUCTION}\n\n{diff}"


# ---------------------------------------------------------------------------
# In-flight requests
# ---------------------------------------------------------------------------

_exchange_ids = itertools.count(1)


@dataclass
class ExchangeToken:
    """Identity and liveness of one outstanding AI request."""

    id: str
    kind: str
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def live(self) -> bool:
        return not self.cancelled


class RequestTracker:
    """Outstanding requests; the loading indicator is on while any exist."""

    def __init__(self) -> None:
        self._pending: dict[str, ExchangeToken] = {}

    @property
    def is_loading(self) -> bool:
        return bool(self._pending)

    @property
    def pending(self) -> tuple[ExchangeToken, ...]:
        return tuple(self._pending.values())

    def begin(self, kind: str) -> ExchangeToken:
        token = ExchangeToken(id=f"{kind}-{next(_exchange_ids)}", kind=kind)
        self._pending[token.id] = token
        return token

    def end(self, token: ExchangeToken) -> None:
        self._pending.pop(token.id, None)

    def cancel_all(self) -> int:
        """Invalidate every outstanding token and drop the loading state."""
        tokens = list(self._pending.values())
        for token in tokens:
            token.cancel()
        self._pending.clear()
        if tokens:
            logger.info("Cancelled %d pending AI request(s)", len(tokens))
        return len(tokens)


# ---------------------------------------------------------------------------
# Transcript
# ---------------------------------------------------------------------------


class ChatTranscript:
    """Chat history; each model reply is bound to the exchange that produced it."""

    def __init__(self) -> None:
        self._messages: tuple[ChatMessage, ...] = ()

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return self._messages

    def add_user(self, text: str, exchange_id: str) -> None:
        self._append(ChatMessage(role="user", text=text, exchange_id=exchange_id))

    def open_reply(self, exchange_id: str) -> None:
        self._append(ChatMessage(role="model", is_loading=True, exchange_id=exchange_id))

    def append_chunk(self, exchange_id: str, chunk: str) -> None:
        reply = self._reply(exchange_id)
        if reply is None:
            self.open_reply(exchange_id)
            reply = self._reply(exchange_id)
        assert reply is not None
        self._update(exchange_id, text=reply.text + chunk)

    def finish(self, exchange_id: str) -> None:
        if self._reply(exchange_id) is not None:
            self._update(exchange_id, is_loading=False)

    def fail(self, exchange_id: str, reason: str) -> None:
        """Turn the exchange's reply (or a new one) into an error message."""
        if self._reply(exchange_id) is None:
            self.open_reply(exchange_id)
        self._update(exchange_id, text=f"Error: {reason}", is_loading=False)

    def clear(self) -> None:
        self._messages = ()

    def _append(self, message: ChatMessage) -> None:
        self._messages = self._messages + (message,)

    def _reply(self, exchange_id: str) -> ChatMessage | None:
        for message in self._messages:
            if message.role == "model" and message.exchange_id == exchange_id:
                return message
        return None

    def _update(self, exchange_id: str, **changes) -> None:
        self._messages = tuple(
            message.model_copy(update=changes)
            if message.role == "model" and message.exchange_id == exchange_id
            else message
            for message in self._messages
        )
