"""Global test configuration for sokudoku tests."""

import pytest
import structlog

from sokudoku.chunking.segmenters import CallableSegmenter
from sokudoku.core.models import Token


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def char_segmenter():
    """One token per character; lets tests control grouping precisely."""
    return CallableSegmenter(list, name="chars")


@pytest.fixture
def make_tokens():
    def _make(surfaces):
        tokens = []
        pos = 0
        for s in surfaces:
            tokens.append(Token(s, pos, pos + len(s)))
            pos += len(s)
        return tokens

    return _make


@pytest.fixture(autouse=True)
def reset_structlog():
    """CLI tests reconfigure structlog against captured streams; restore defaults after each test."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def cli_runner():
    from typer.testing import CliRunner

    return CliRunner()
