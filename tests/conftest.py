import os
from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

_KEY_ENV = ("GROQ_API_KEY", "GROK_API_KEY")


@pytest.fixture(autouse=True)
def _clear_careerbuddy_env(monkeypatch) -> None:
    # A developer .env must not leak live credentials or tuning into tests.
    for key in list(os.environ):
        if key.startswith("CAREERBUDDY_"):
            monkeypatch.delenv(key, raising=False)
    for key in _KEY_ENV:
        monkeypatch.delenv(key, raising=False)


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def completion(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def completion_payload():
    return completion
