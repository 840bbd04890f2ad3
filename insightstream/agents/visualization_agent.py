"""
Visualization Agent: chart rendering and paginated PDF report export.
"""

from typing import Dict, Any
from datetime import datetime
from insightstream.agents.base_agent import BaseAgent, AgentResult
from insightstream.backend.report_compositor import build_report, export_report
from insightstream.backend.summarizer import summarize
from insightstream.config import CONFIG
from insightstream.core.errors import RenderFailure

class VisualizationAgent(BaseAgent):
    """Composes charts, metrics and assistant text into a downloadable PDF."""

    def __init__(self, session=None):
        super().__init__("VisualizationAgent", session)

    def execute(self, task: Dict[str, Any]) -> AgentResult:
        """Build the report from the session and write it to the output directory."""
        start = datetime.now()

        try:
            dataset = self.session.dataset
            summary = self.session.summary or summarize(dataset, top_n=CONFIG.report.top_n)
            assistant_text = task.get("assistant_text")
            if assistant_text is None:
                assistant_text = self.session.conversation.assistant_text()

            self.log_step(f"Composing report for {dataset.row_count} rows")

            try:
                document = build_report(dataset, summary, assistant_text, generated_at=start)
            except Exception as e:
                raise RenderFailure(f"Report composition failed: {str(e)}") from e

            output_path = export_report(document, task.get("output_dir", CONFIG.output_dir))

            result = {
                "output_path": str(output_path),
                "page_count": document.page_count,
                "branding_applied": CONFIG.branding.company_name
            }

            duration = (datetime.now() - start).total_seconds()

            return AgentResult(
                agent_name=self.name,
                success=True,
                data=result,
                duration_seconds=duration
            )

        except Exception as e:
            return self.failure(e)
