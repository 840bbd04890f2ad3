"""
Conversation accumulator and per-session state.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, List, Optional

from insightstream.core.models import Dataset, DatasetSummary, StructuredDirective


@dataclass
class ConversationMessage:
    id: str
    role: str  # user, assistant
    content: str
    directive: Optional[StructuredDirective] = None
    timestamp: datetime = field(default_factory=datetime.now)


class Conversation:
    """Append-only message list; an assistant turn is updated in place by id."""

    def __init__(self):
        self._messages: List[ConversationMessage] = []

    def __len__(self) -> int:
        return len(self._messages)

    @staticmethod
    def new_message_id() -> str:
        return str(uuid.uuid4())

    def _find(self, message_id: str) -> Optional[ConversationMessage]:
        for message in self._messages:
            if message.id == message_id:
                return message
        return None

    def add_user(self, content: str) -> ConversationMessage:
        message = ConversationMessage(id=self.new_message_id(), role="user", content=content)
        self._messages.append(message)
        return replace(message)

    def apply_delta(self, message_id: str, delta: str) -> ConversationMessage:
        """Append a delta to the assistant message, creating it on the first delta."""
        message = self._find(message_id)
        if message is None:
            message = ConversationMessage(id=message_id, role="assistant", content="")
            self._messages.append(message)
        message.content += delta
        return replace(message)

    def attach_directive(self, message_id: str, directive: StructuredDirective) -> None:
        message = self._find(message_id)
        if message is not None:
            message.directive = directive

    def discard(self, message_id: str) -> None:
        self._messages = [m for m in self._messages if m.id != message_id]

    def get(self, message_id: str) -> Optional[ConversationMessage]:
        message = self._find(message_id)
        return replace(message) if message else None

    def snapshot(self) -> List[ConversationMessage]:
        """Copies of every message; callers cannot mutate the conversation through them."""
        return [replace(m) for m in self._messages]

    def history(self) -> List[Dict[str, str]]:
        return [{"role": m.role, "content": m.content} for m in self._messages]

    def assistant_text(self) -> str:
        return "\n\n".join(m.content for m in self._messages if m.role == "assistant")

    def clear(self) -> None:
        self._messages.clear()


@dataclass
class SessionState:
    """The current upload and the conversation about it."""
    dataset: Dataset = field(default_factory=Dataset.empty)
    summary: Optional[DatasetSummary] = None
    source_name: str = ""
    conversation: Conversation = field(default_factory=Conversation)
    query_result: Optional[Dataset] = None

    def replace_dataset(self, dataset: Dataset, summary: DatasetSummary, source_name: str = "") -> None:
        """A fresh upload replaces the previous one wholesale."""
        self.dataset = dataset
        self.summary = summary
        self.source_name = source_name
