"""
Mock inference endpoint for tests.

Provides realistic response envelopes and scripted failures without any
network access; plugs into ``httpx.MockTransport``.
"""

import json
from typing import Any, Dict, List, Optional, Union

import httpx

MODEL = "claude-sonnet-4"

Outcome = Union[str, int]


def answer_payload(text: str, model: str = MODEL, tokens: int = 120) -> Dict[str, Any]:
    """Successful response envelope as the endpoint returns it."""
    return {
        "result": {
            "answer": {model: text},
        },
        "tokens_used": tokens,
    }


class MockOpenArena:
    """
    Callable handler for ``httpx.MockTransport``.

    Answers by workflow id, records every request body, and can be
    scripted to fail the next N calls of a workflow with:
    ``"timeout"``, ``"connect"``, ``"empty"``, ``"invalid_json"`` or an HTTP
    status code.
    """

    def __init__(self, answers: Optional[Dict[str, str]] = None, default: str = "Mock answer"):
        self.answers = dict(answers or {})
        self.default = default
        self.requests: List[Dict[str, Any]] = []
        self.headers: List[httpx.Headers] = []
        self._failures: Dict[str, List[Outcome]] = {}

    def fail(self, workflow_id: str, *outcomes: Outcome) -> "MockOpenArena":
        self._failures.setdefault(workflow_id, []).extend(outcomes)
        return self

    def calls_for(self, workflow_id: str) -> int:
        return sum(1 for body in self.requests if body["workflow_id"] == workflow_id)

    def queries_for(self, workflow_id: str) -> List[str]:
        return [body["query"] for body in self.requests if body["workflow_id"] == workflow_id]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        self.headers.append(request.headers)
        workflow_id = body["workflow_id"]

        queue = self._failures.get(workflow_id)
        if queue:
            outcome = queue.pop(0)
            if outcome == "timeout":
                raise httpx.ReadTimeout("timed out", request=request)
            if outcome == "connect":
                raise httpx.ConnectError("connection refused", request=request)
            if outcome == "empty":
                return httpx.Response(200, json={"result": {"answer": {MODEL: "   "}}})
            if outcome == "invalid_json":
                return httpx.Response(200, text="<html>not json</html>")
            if isinstance(outcome, int):
                return httpx.Response(outcome, text=f"upstream failure {outcome}")

        text = self.answers.get(workflow_id, self.default)
        return httpx.Response(200, json=answer_payload(text))
