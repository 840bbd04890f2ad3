"""
Assistant gateway transport: streaming chat completions and one-shot query execution.
"""

import json
import logging
import re
from typing import Any, Dict, Iterator, List, Optional

import requests

from insightstream.backend.summarizer import numeric_columns, numeric_summary
from insightstream.config import CONFIG, LLMConfig
from insightstream.core.errors import QueryRejected, TransportFailure
from insightstream.core.models import Dataset

logger = logging.getLogger(__name__)

FORBIDDEN_KEYWORDS = ["insert", "update", "delete", "drop", "alter", "create", "truncate", "grant", "revoke"]

SYSTEM_PROMPT = """You are a Data Insights Assistant designed to analyze data and provide clear, accurate insights with visual reports.

Your capabilities:
1. Analyze uploaded CSV data directly and answer questions about it
2. Read SQL table schema and generate optimized SELECT queries
3. Produce human-friendly explanations and insights
4. Create detailed reports with trends, patterns, and anomalies
5. Suggest and describe appropriate visualizations
{data_context}
DATABASE SCHEMA:
{schema}

CRITICAL RULES:
- NEVER generate INSERT, UPDATE, DELETE, DROP, ALTER, or any data modification queries
- ONLY generate SELECT queries for reading SQL data
- When CSV data is provided, answer questions directly from the data
- Always explain your reasoning in simple language
- When suggesting SQL, wrap it in a JSON code block like: ```json{{"sql": "SELECT ...", "explanation": "..."}}```

REPORT FORMAT (when asked to create a report):
1. **Data Overview**: Summary of the data (rows, columns, data types)
2. **Key Metrics**: Important numbers (totals, averages, min/max)
3. **Insights & Patterns**: Notable trends, patterns, or anomalies
4. **Recommendations**: Actionable suggestions based on findings
5. **Visualization**: Suggest chart type with rationale (line, bar, pie, area, scatter)"""


def build_data_context(dataset: Dataset, sample_rows: int = 10) -> str:
    """Describe the uploaded data for the system prompt."""
    if dataset.is_empty:
        return ""

    stats: Dict[str, Dict[str, Any]] = {}
    for col in numeric_columns(dataset):
        summary = numeric_summary(dataset, col)
        if summary is None:
            continue
        stats[col] = {
            "min": summary.min,
            "max": summary.max,
            "avg": f"{summary.mean:.2f}",
            "sum": summary.sum,
        }

    return f"""
UPLOADED CSV DATA:
- Total Rows: {dataset.row_count}
- Columns: {", ".join(dataset.columns)}
- Sample Data (first {sample_rows} rows): {json.dumps(dataset.to_records()[:sample_rows], indent=2)}
- Numeric Column Statistics: {json.dumps(stats, indent=2)}

You have access to this CSV data. Answer questions about it directly.
"""


def build_system_prompt(data_context: str = "", schema: str = "") -> str:
    return SYSTEM_PROMPT.format(data_context=data_context, schema=schema or "(no database schema available)")


def ensure_read_only(query: str) -> str:
    """Only plain SELECT statements may reach the query transport."""
    normalized = (query or "").strip().lower()
    if not normalized.startswith("select"):
        raise QueryRejected("Only SELECT queries are allowed for security reasons.")
    for keyword in FORBIDDEN_KEYWORDS:
        if re.search(rf"\b{keyword}\b", normalized):
            raise QueryRejected(f"Query contains forbidden keyword: {keyword}")
    return query.strip()


class AssistantTransport:
    """Requests-based client for an OpenAI-compatible chat completions gateway."""

    def __init__(self, config: Optional[LLMConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or CONFIG.llm
        self.base_url = self.config.base_url.rstrip("/")
        self.model_name = self.config.model_name
        self.api_key = self.config.api_key
        self.query_endpoint = self.config.query_endpoint
        self.temperature = self.config.temperature
        self.timeout = self.config.timeout
        self.session = session or requests.Session()

    def apply_runtime_settings(self, settings: Optional[Dict[str, Any]]) -> None:
        """Override gateway settings at runtime (CLI flags)."""
        if not settings:
            return
        if settings.get("base_url"):
            self.base_url = str(settings["base_url"]).rstrip("/")
        if settings.get("model_name"):
            self.model_name = settings["model_name"]
        if settings.get("api_key"):
            self.api_key = settings["api_key"]
        if settings.get("query_endpoint"):
            self.query_endpoint = settings["query_endpoint"]
        if "temperature" in settings:
            self.temperature = float(settings["temperature"])
        if "timeout" in settings:
            self.timeout = int(settings["timeout"])

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    @staticmethod
    def _error_message(response: requests.Response, default: str) -> str:
        if response.status_code == 429:
            return "Rate limit exceeded. Please try again later."
        if response.status_code == 402:
            return "Payment required. Please add credits."
        try:
            body = response.json()
        except ValueError:
            return f"{default} (HTTP {response.status_code})"
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict):
                error = error.get("message")
            if error:
                return str(error)
        return f"{default} (HTTP {response.status_code})"

    def stream_chat(
        self,
        messages: List[Dict[str, str]],
        data_context: str = "",
        schema: str = "",
    ) -> Iterator[bytes]:
        """POST a streaming chat request and yield raw body chunks as they arrive."""
        payload = {
            "model": self.model_name,
            "messages": [{"role": "system", "content": build_system_prompt(data_context, schema)}, *messages],
            "temperature": self.temperature,
            "stream": True,
        }
        url = f"{self.base_url}/chat/completions"

        try:
            response = self.session.post(
                url,
                json=payload,
                headers=self._headers(),
                stream=True,
                timeout=(10, self.timeout),
            )
        except requests.RequestException as e:
            raise TransportFailure(f"Assistant request failed: {str(e)}") from e

        with response:
            if not response.ok:
                message = self._error_message(response, "Failed to get response")
                logger.error(f"Assistant gateway error: {response.status_code} {message}")
                raise TransportFailure(message, status_code=response.status_code)

            try:
                for chunk in response.iter_content(chunk_size=None):
                    if chunk:
                        yield chunk
            except requests.RequestException as e:
                raise TransportFailure(f"Assistant stream interrupted: {str(e)}") from e

    def execute_query(self, query: str) -> List[Dict[str, Any]]:
        """Run a generated read-only query and return its rows."""
        query = ensure_read_only(query)
        if not self.query_endpoint:
            raise TransportFailure("Query endpoint is not configured")

        logger.info(f"Executing query: {query}")
        try:
            response = self.session.post(
                self.query_endpoint,
                json={"query": query},
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportFailure(f"Query request failed: {str(e)}") from e

        if not response.ok:
            raise TransportFailure(
                self._error_message(response, "Query execution failed"),
                status_code=response.status_code,
            )

        try:
            result = response.json()
        except ValueError as e:
            raise TransportFailure("Query response was not valid JSON") from e

        data = result.get("data") if isinstance(result, dict) else None
        return data if isinstance(data, list) else []
