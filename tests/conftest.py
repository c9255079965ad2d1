"""Shared fixtures: isolated environment and a parsing helper."""
import pytest

from deadloop.analyzer.parser import LanguageParser
from deadloop.analyzer.reference_tracker import ReferenceTracker
from deadloop.config import reset_config

ENV_VARS = ('DEADLOOP_LOG_LEVEL', 'DEADLOOP_EXHAUSTED_IS_UNUSED', 'DEADLOOP_EXCLUDE_DIRS')


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Every test starts without deadloop settings and with a fresh config singleton."""
    for name in ENV_VARS:
        # setenv first so monkeypatch restores the original state afterwards
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def track():
    """Parse TSX source and return its ReferenceTracker."""
    parser = LanguageParser('tsx')

    def _track(code: str) -> ReferenceTracker:
        return ReferenceTracker(parser.parse_source(code), 'test.tsx')

    return _track
