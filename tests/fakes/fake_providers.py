"""In-memory text-generation providers for gateway and API tests."""

import json
from typing import Any

from survey_brain.core.errors import ProviderError


class FakeProvider:
    """Returns canned responses in order; raises any response that is an exception."""

    def __init__(self, name: str, responses: list[Any]):
        self.name = name
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    def generate(self, system_prompt: str, user_content: str, temperature: float) -> str:
        self.calls.append(
            {"system_prompt": system_prompt, "user_content": user_content, "temperature": temperature}
        )
        if not self.responses:
            raise ProviderError(self.name, "no canned response left")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, dict):
            return json.dumps(response)
        return response

    @property
    def last_payload(self) -> dict[str, Any]:
        return json.loads(self.calls[-1]["user_content"])


def failing_provider(name: str, message: str = "HTTP 500", transient: bool = False) -> FakeProvider:
    return FakeProvider(name, [ProviderError(name, message, transient=transient)])
