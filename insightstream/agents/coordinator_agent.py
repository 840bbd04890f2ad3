"""
Coordinator Agent: Orchestrates upload, assistant turns and report export.
"""

from typing import Dict, Any, List, Optional
from datetime import datetime
from insightstream.agents.base_agent import BaseAgent, AgentResult
from insightstream.agents.backend_agent import BackendAgent
from insightstream.agents.ai_agent import AIAgent
from insightstream.agents.visualization_agent import VisualizationAgent
from insightstream.core.llm_interface import AssistantTransport
from insightstream.core.state import SessionState

class CoordinatorAgent(BaseAgent):
    """High-level controller sharing one session between the agents."""

    def __init__(self, session: Optional[SessionState] = None, transport: Optional[AssistantTransport] = None):
        super().__init__("CoordinatorAgent", session)
        self.agents = {
            "backend": BackendAgent(self.session),
            "ai": AIAgent(self.session, transport=transport),
            "visualization": VisualizationAgent(self.session),
        }

    def execute(self, task: Dict[str, Any]) -> AgentResult:
        """Ingest -> questions -> report."""
        start = datetime.now()
        task_id = task.get("task_id", "default")

        try:
            self.log_step(f"Starting orchestration for task: {task_id}")
            self._apply_llm_settings(task)

            # Phase 1: Ingest upload
            ingest_result = self._execute_agent("backend", task)
            if not ingest_result.success:
                raise RuntimeError(f"Ingestion failed: {ingest_result.error}")

            # Phase 2: Assistant turns; a failed turn is reported, not fatal
            turns: List[Dict[str, Any]] = []
            for question in task.get("questions", []):
                turn = self._execute_agent("ai", {**task, "question": question})
                turns.append({"question": question, "success": turn.success, "error": turn.error, **turn.data})

            # Phase 3: Report export
            report_result = None
            if task.get("include_report", True):
                report_result = self._execute_agent("visualization", task)

            result = {
                "task_id": task_id,
                "status": "completed",
                "ingest": ingest_result.data,
                "turns": turns,
                "report": report_result.data if report_result else {},
                "report_error": report_result.error if report_result else None,
            }

            duration = (datetime.now() - start).total_seconds()

            return AgentResult(
                agent_name=self.name,
                success=report_result.success if report_result else True,
                data=result,
                error=report_result.error if report_result else None,
                duration_seconds=duration
            )

        except Exception as e:
            return self.failure(e)

    def _execute_agent(self, agent_key: str, task: Dict[str, Any]) -> AgentResult:
        """Execute single agent with error handling."""
        if agent_key not in self.agents:
            return AgentResult(
                agent_name=agent_key,
                success=False,
                data={},
                error=f"Agent not found: {agent_key}"
            )

        try:
            agent = self.agents[agent_key]
            result = agent.execute(task)
            return result
        except Exception as e:
            self.log_error(f"{agent_key} execution failed: {str(e)}")
            return AgentResult(
                agent_name=agent_key,
                success=False,
                data={},
                error=str(e)
            )

    def _apply_llm_settings(self, task: Dict[str, Any]) -> None:
        """Apply runtime gateway settings before the assistant phase."""
        llm_settings = task.get("llm_settings", {})
        if not llm_settings:
            return

        self.agents["ai"].transport.apply_runtime_settings(llm_settings)
        self.log_step("Applied runtime LLM settings")
