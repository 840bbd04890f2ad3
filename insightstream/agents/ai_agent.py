"""
AI Agent: one assistant turn over the streaming transport.
"""

from typing import Dict, Any, Iterator, Optional
from datetime import datetime
from insightstream.agents.base_agent import BaseAgent, AgentResult
from insightstream.backend.directive import extract_directive
from insightstream.backend.stream_decoder import iter_deltas
from insightstream.core.llm_interface import AssistantTransport, build_data_context
from insightstream.core.models import Dataset
from insightstream.core.state import ConversationMessage

class AIAgent(BaseAgent):
    """Streams assistant replies into the session conversation."""

    def __init__(self, session=None, transport: Optional[AssistantTransport] = None):
        super().__init__("AIAgent", session)
        self.transport = transport or AssistantTransport()

    def stream_reply(self, content: str, schema: str = "") -> Iterator[ConversationMessage]:
        """Send a user message and yield the assistant message as it grows.

        Closing the generator early cancels the turn: content received so far
        stays in the conversation, the buffered partial frame is dropped. A
        transport failure removes the partial assistant message and re-raises.
        """
        conversation = self.session.conversation
        history = conversation.history()
        conversation.add_user(content)
        message_id = conversation.new_message_id()

        chunks = self.transport.stream_chat(
            [*history, {"role": "user", "content": content}],
            data_context=build_data_context(self.session.dataset),
            schema=schema,
        )
        deltas = iter_deltas(chunks)

        try:
            for delta in deltas:
                yield conversation.apply_delta(message_id, delta)
        except Exception:
            conversation.discard(message_id)
            raise
        finally:
            deltas.close()
            close = getattr(chunks, "close", None)
            if close:
                close()

        message = conversation.get(message_id)
        if message is None:
            self.log_step("Assistant returned no content")
            return

        directive = extract_directive(message.content)
        if directive:
            conversation.attach_directive(message_id, directive)
            self.log_step("Assistant reply carries a query directive")
        yield conversation.get(message_id)

    def execute(self, task: Dict[str, Any]) -> AgentResult:
        """Run one full turn; optionally execute the suggested query."""
        start = datetime.now()

        try:
            question = task.get("question", "")
            if not question:
                raise ValueError("No question provided")

            self.log_step(f"Asking assistant ({len(question)} characters)")

            message = None
            for message in self.stream_reply(question, schema=task.get("schema", "")):
                pass

            result = {
                "message_id": message.id if message else None,
                "content": message.content if message else "",
                "query": None,
                "explanation": None,
            }

            if message and message.directive:
                result["query"] = message.directive.query
                result["explanation"] = message.directive.explanation

                if task.get("execute_query"):
                    records = self.transport.execute_query(message.directive.query)
                    query_result = Dataset.from_records(records)
                    self.session.query_result = query_result
                    result["query_rows"] = query_result.row_count
                    self.log_step(f"Query returned {query_result.row_count} rows")

            duration = (datetime.now() - start).total_seconds()

            return AgentResult(
                agent_name=self.name,
                success=True,
                data=result,
                duration_seconds=duration
            )

        except Exception as e:
            return self.failure(e)
