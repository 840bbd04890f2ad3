"""
System configuration: assistant gateway, branding, report layout.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass
class LLMConfig:
    """Assistant gateway configuration (OpenAI-compatible chat completions)."""
    base_url: str = "http://localhost:11434/v1"
    model_name: str = "mistral:latest"
    api_key: str = ""
    query_endpoint: str = ""
    temperature: float = 0.7
    timeout: int = 60

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        return cls(
            base_url=os.getenv("LLM_BASE_URL", "http://localhost:11434/v1"),
            model_name=os.getenv("LLM_MODEL", "mistral:latest"),
            api_key=os.getenv("LLM_API_KEY", ""),
            query_endpoint=os.getenv("QUERY_ENDPOINT", ""),
            temperature=float(os.getenv("LLM_TEMPERATURE", "0.7")),
            timeout=int(os.getenv("LLM_TIMEOUT", "60")),
        )


@dataclass
class BrandingConfig:
    """PDF branding configuration."""
    company_name: str = "Data Insights"
    primary_color: str = "#4f46e5"
    accent_color: str = "#0ea5e9"
    text_color: str = "#1f2937"
    muted_color: str = "#6b7280"
    panel_color: str = "#f3f4f6"
    chart_palette: tuple = ("#4f46e5", "#10b981", "#f59e0b", "#ef4444", "#0ea5e9", "#8b5cf6")
    font_name: str = "Helvetica"
    bold_font_name: str = "Helvetica-Bold"
    footer_text: str = "Generated by InsightStream"


@dataclass
class ReportConfig:
    """Report layout configuration (PDF points, origin top-left)."""
    page_width: float = 595.28
    page_height: float = 841.89
    margin: float = 40.0
    footer_height: float = 30.0
    body_font_size: float = 10.0
    heading_font_size: float = 13.0
    line_height: float = 14.0
    chart_height: float = 210.0
    top_n: int = 5
    histogram_buckets: int = 5
    line_chart_max_points: int = 60
    heading_keywords: list = field(
        default_factory=lambda: [
            "data overview",
            "key metrics",
            "insights",
            "patterns",
            "recommendations",
            "visualization",
            "summary",
        ]
    )

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.margin

    @property
    def printable_bottom(self) -> float:
        return self.page_height - self.margin - self.footer_height


@dataclass
class SystemConfig:
    """Master system configuration."""
    llm: LLMConfig = field(default_factory=LLMConfig.from_env)
    branding: BrandingConfig = field(default_factory=BrandingConfig)
    report: ReportConfig = field(default_factory=ReportConfig)

    # Paths
    output_dir: str = "outputs"
    log_dir: str = "logs"

    # Runtime
    debug_mode: bool = bool(os.getenv("DEBUG", "False").lower() == "true")

    @classmethod
    def from_env(cls, env_file: Optional[str] = None):
        """Load complete config from environment."""
        if env_file:
            load_dotenv(env_file, override=True)
        return cls(
            llm=LLMConfig.from_env(),
            branding=BrandingConfig(
                company_name=os.getenv("COMPANY_NAME", "Data Insights"),
                primary_color=os.getenv("PRIMARY_COLOR", "#4f46e5"),
                accent_color=os.getenv("ACCENT_COLOR", "#0ea5e9"),
            ),
            output_dir=os.getenv("OUTPUT_DIR", "outputs"),
            log_dir=os.getenv("LOG_DIR", "logs"),
            debug_mode=os.getenv("DEBUG", "False").lower() == "true",
        )


# Global config instance
CONFIG = SystemConfig.from_env()
