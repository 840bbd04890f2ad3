"""
Automated test suite - pytest based.
"""

import json
import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

SALES_CSV = """region,product,units,revenue
North,Widget,12,1200.50
South,Gadget,7,830.00
North,Gadget,3,310.25
East,Widget,9,940.00"""


def frame(content):
    payload = {"choices": [{"delta": {"content": content}}]}
    return f"data: {json.dumps(payload)}\n".encode("utf-8")


class ScriptedTransport:
    """Replies with the same scripted stream on every turn."""

    def __init__(self, reply, records=None):
        self.reply = reply
        self.records = records or []
        self.settings = {}

    def stream_chat(self, messages, data_context="", schema=""):
        yield frame(self.reply)
        yield b"data: [DONE]\n"

    def execute_query(self, query):
        return self.records

    def apply_runtime_settings(self, settings):
        self.settings.update(settings)


class TestConfiguration:
    """Test configuration loading."""

    def test_config_loading(self):
        from insightstream.config import CONFIG
        assert CONFIG is not None
        assert CONFIG.llm is not None
        assert CONFIG.branding.chart_palette

    def test_llm_config_from_env(self, monkeypatch):
        from insightstream.config import LLMConfig

        monkeypatch.setenv("LLM_MODEL", "llama3")
        monkeypatch.setenv("LLM_TIMEOUT", "15")
        llm = LLMConfig.from_env()
        assert llm.model_name == "llama3"
        assert llm.timeout == 15

    def test_report_geometry(self):
        from insightstream.config import ReportConfig

        report = ReportConfig()
        assert report.content_width == pytest.approx(report.page_width - 80)
        assert report.printable_bottom == pytest.approx(report.page_height - 70)


class TestAgents:
    """Test agent initialization."""

    def test_backend_agent(self):
        from insightstream.agents.backend_agent import BackendAgent
        agent = BackendAgent()
        assert agent.name == "BackendAgent"

    def test_ai_agent(self):
        from insightstream.agents.ai_agent import AIAgent
        agent = AIAgent()
        assert agent.name == "AIAgent"

    def test_visualization_agent(self):
        from insightstream.agents.visualization_agent import VisualizationAgent
        agent = VisualizationAgent()
        assert agent.name == "VisualizationAgent"

    def test_coordinator_agent(self):
        from insightstream.agents.coordinator_agent import CoordinatorAgent
        coordinator = CoordinatorAgent()
        assert coordinator.name == "CoordinatorAgent"
        assert "backend" in coordinator.agents
        assert coordinator.agents["ai"].session is coordinator.session


class TestBackendAgent:
    """Test upload ingestion."""

    def test_ingest_text(self):
        from insightstream.agents.backend_agent import BackendAgent

        agent = BackendAgent()
        result = agent.execute({"text": SALES_CSV, "file_name": "sales.csv"})
        assert result.success
        assert result.data["rows"] == 4
        assert result.data["numeric_columns"] == ["units", "revenue"]
        assert agent.session.source_name == "sales.csv"
        assert agent.session.summary.numeric["units"].sum == 31

    def test_missing_file_fails(self, tmp_path):
        from insightstream.agents.backend_agent import BackendAgent

        result = BackendAgent().execute({"file_path": str(tmp_path / "nope.csv")})
        assert not result.success
        assert "File not found" in result.error

    def test_csv_export(self, tmp_path):
        from insightstream.agents.backend_agent import BackendAgent

        result = BackendAgent().execute({"text": SALES_CSV, "export_csv": True, "output_dir": str(tmp_path)})
        exported = Path(result.data["csv_export"])
        assert exported.read_text(encoding="utf-8").splitlines()[0] == "region,product,units,revenue"


class TestVisualizationAgent:
    """Test report export from the session."""

    def test_report_uses_conversation_text(self, tmp_path):
        from insightstream.agents.backend_agent import BackendAgent
        from insightstream.agents.visualization_agent import VisualizationAgent

        backend = BackendAgent()
        backend.execute({"text": SALES_CSV})
        backend.session.conversation.apply_delta("m1", "North leads on revenue.")

        result = VisualizationAgent(backend.session).execute({"output_dir": str(tmp_path)})
        assert result.success
        output = Path(result.data["output_path"])
        assert output.read_bytes().startswith(b"%PDF")
        assert result.data["page_count"] >= 1

    def test_empty_session_still_exports(self, tmp_path):
        from insightstream.agents.visualization_agent import VisualizationAgent

        result = VisualizationAgent().execute({"output_dir": str(tmp_path)})
        assert result.success
        assert result.data["page_count"] == 1


class TestCoordinator:
    """Test the full ingest -> assistant -> report run."""

    def test_end_to_end(self, tmp_path):
        from insightstream.agents.coordinator_agent import CoordinatorAgent

        csv_path = tmp_path / "sales.csv"
        csv_path.write_text(SALES_CSV, encoding="utf-8")
        reply = 'Revenue is highest in North.\n```json\n{"query": "SELECT region FROM sales", "explanation": "by region"}\n```'
        transport = ScriptedTransport(reply, records=[{"region": "North"}, {"region": None}])

        coordinator = CoordinatorAgent(transport=transport)
        result = coordinator.execute({
            "task_id": "t1",
            "file_path": str(csv_path),
            "output_dir": str(tmp_path / "out"),
            "questions": ["Which region sells most?"],
            "execute_query": True,
            "llm_settings": {"model_name": "llama3"},
        })

        assert result.success
        assert result.data["ingest"]["rows"] == 4
        turn = result.data["turns"][0]
        assert turn["success"]
        assert turn["query"] == "SELECT region FROM sales"
        assert turn["query_rows"] == 2
        assert Path(result.data["report"]["output_path"]).exists()
        assert transport.settings == {"model_name": "llama3"}
        assert len(coordinator.session.conversation) == 2

    def test_failed_ingest_stops_run(self, tmp_path):
        from insightstream.agents.coordinator_agent import CoordinatorAgent

        coordinator = CoordinatorAgent(transport=ScriptedTransport("unused"))
        result = coordinator.execute({"file_path": str(tmp_path / "missing.csv")})
        assert not result.success
        assert "Ingestion failed" in result.error

    def test_unknown_agent(self):
        from insightstream.agents.coordinator_agent import CoordinatorAgent

        result = CoordinatorAgent()._execute_agent("planner", {})
        assert not result.success
        assert result.error == "Agent not found: planner"


class TestCommandLine:
    """Test the argparse entry point."""

    def test_parser_defaults(self):
        from main import build_parser

        args = build_parser().parse_args(["--file", "data.csv", "-q", "one", "-q", "two"])
        assert args.file == "data.csv"
        assert args.question == ["one", "two"]
        assert not args.no_report

    def test_missing_file_returns_false(self, tmp_path, monkeypatch):
        from main import main

        monkeypatch.chdir(tmp_path)
        assert main(["--file", str(tmp_path / "missing.csv")]) is False

    def test_ingest_only_run(self, tmp_path, monkeypatch):
        from main import main

        monkeypatch.chdir(tmp_path)
        csv_path = tmp_path / "sales.csv"
        csv_path.write_text(SALES_CSV, encoding="utf-8")
        assert main(["--file", str(csv_path), "--no-report", "--export-csv", "-o", str(tmp_path / "out")])
        assert list((tmp_path / "out").glob("data-export-*.csv"))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
