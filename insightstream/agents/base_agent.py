"""
Base agent class for all specialized agents.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
from dataclasses import dataclass
import logging
from insightstream.core.state import SessionState

@dataclass
class AgentResult:
    """Result from agent execution."""
    agent_name: str
    success: bool
    data: Dict[str, Any]
    error: Optional[str] = None
    duration_seconds: float = 0

class BaseAgent(ABC):
    """Base class for all agents."""

    def __init__(self, name: str, session: Optional[SessionState] = None):
        self.name = name
        self.logger = logging.getLogger(name)
        self.session = session if session is not None else SessionState()

    @abstractmethod
    def execute(self, task: Dict[str, Any]) -> AgentResult:
        """Execute the agent's primary task."""
        pass

    def log_step(self, message: str):
        """Log execution step."""
        self.logger.info(f"[{self.name}] {message}")

    def log_error(self, message: str):
        """Log error."""
        self.logger.error(f"[{self.name}] {message}")

    def failure(self, error: Exception) -> AgentResult:
        """Log and wrap an exception caught at the agent boundary."""
        self.log_error(str(error))
        return AgentResult(
            agent_name=self.name,
            success=False,
            data={},
            error=str(error)
        )
