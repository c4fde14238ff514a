"""Shared fixtures for the registry and agent tests."""

from typing import Any, Dict, List, Tuple

import pytest

from snmpreg.core.config import AgentConfig
from snmpreg.core.registry import ValueRegistry


PEN = 12345
PREFIX = "1.3.6.1.4.1.12345"


class RecordingSink:
    """Audit sink that keeps every event for inspection."""

    def __init__(self):
        self.events: List[Tuple[int, str, Dict[str, Any]]] = []

    def __call__(self, level: int, message: str, **fields: Any) -> None:
        self.events.append((level, message, fields))

    def levels(self) -> List[int]:
        return [level for level, _, _ in self.events]

    def messages(self) -> List[str]:
        return [message for _, message, _ in self.events]


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def registry(sink: RecordingSink) -> ValueRegistry:
    """Fresh registry for PEN 12345 reporting to the recording sink."""
    return ValueRegistry(PEN, audit=sink)


@pytest.fixture
def agent_config() -> AgentConfig:
    return AgentConfig(pen=PEN, listen_addr="127.0.0.1:0", log_level="DEBUG")

