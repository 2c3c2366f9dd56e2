from __future__ import annotations

from typing import Any, Optional, Sequence

import pytest

from spinnaker_mcp.app import SpinnakerApp
from spinnaker_mcp.gate import GateClientError


class FakeGate:
    """In-memory stand-in for GateClient that records every call."""

    def __init__(self, body: bytes = b"[]", error: Optional[GateClientError] = None) -> None:
        self.body = body
        self.error = error
        self.calls: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []

    def _answer(self, op: str, *args: Any, **kwargs: Any) -> bytes:
        self.calls.append((op, args, kwargs))
        if self.error is not None:
            raise self.error
        return self.body

    def get_all_applications(self) -> bytes:
        return self._answer("get_all_applications")

    def get_pipelines(self, application: str) -> bytes:
        return self._answer("get_pipelines", application)

    def get_latest_executions_by_config_ids(
        self, pipeline_config_ids: Sequence[str], *, limit: Optional[int] = None
    ) -> bytes:
        return self._answer("get_latest_executions_by_config_ids", list(pipeline_config_ids), limit=limit)


@pytest.fixture
def fake_gate() -> FakeGate:
    return FakeGate(body=b'[{"name":"demo"}]')


@pytest.fixture
def app(fake_gate: FakeGate) -> SpinnakerApp:
    return SpinnakerApp(fake_gate)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
