"""
Backend Agent: upload parsing, summarization, raw-data re-export.
"""

from typing import Dict, Any
from datetime import datetime
from pathlib import Path
from insightstream.agents.base_agent import BaseAgent, AgentResult
from insightstream.backend.file_parser import TabularParser, export_csv, export_filename
from insightstream.backend.summarizer import summarize
from insightstream.config import CONFIG

class BackendAgent(BaseAgent):
    """Turns an uploaded CSV into the session's typed dataset and summary."""

    def __init__(self, session=None):
        super().__init__("BackendAgent", session)
        self.parser = TabularParser()

    def execute(self, task: Dict[str, Any]) -> AgentResult:
        """Parse the upload (file path or raw text) and summarize it."""
        start = datetime.now()

        try:
            file_path = task.get("file_path")
            if "text" in task:
                self.log_step("Parsing uploaded text")
                dataset = self.parser.parse_text(task["text"])
                source_name = task.get("file_name", "upload.csv")
            else:
                if not file_path or not Path(file_path).exists():
                    raise FileNotFoundError(f"File not found: {file_path}")
                self.log_step(f"Parsing file: {file_path}")
                dataset = self.parser.parse(file_path)
                source_name = Path(file_path).name

            if dataset.is_empty:
                self.log_step(f"No data found in {source_name}")

            summary = summarize(dataset, top_n=CONFIG.report.top_n)
            self.session.replace_dataset(dataset, summary, source_name)

            result = {
                "file_name": source_name,
                "rows": dataset.row_count,
                "columns": list(dataset.columns),
                "numeric_columns": list(summary.numeric),
                "categorical_columns": list(summary.categorical),
            }

            if task.get("export_csv"):
                result["csv_export"] = str(self.export_raw_data(task.get("output_dir", CONFIG.output_dir)))

            duration = (datetime.now() - start).total_seconds()

            return AgentResult(
                agent_name=self.name,
                success=True,
                data=result,
                duration_seconds=duration
            )

        except Exception as e:
            return self.failure(e)

    def export_raw_data(self, output_dir: str) -> Path:
        """Write the current dataset back out as CSV."""
        output_path = Path(output_dir) / export_filename()
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(export_csv(self.session.dataset), encoding="utf-8")
        self.log_step(f"Exported raw data: {output_path}")
        return output_path
