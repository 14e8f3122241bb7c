"""Shared test fixtures.

Provides:
- ``set_test_config``: autouse fixture that blanks provider credentials so
  no test can reach a real LLM service by accident
"""

import pytest


# ---------------------------------------------------------------------------
# Environment patching
# ---------------------------------------------------------------------------

_SETTINGS_PATCHES: dict[str, object] = {
    "webide.config.settings.ANTHROPIC_API_KEY": "",
    "webide.config.settings.OPENAI_API_KEY": "",
    "webide.config.settings.LLM_PROVIDER": "",
    "webide.config.settings.LLM_MODEL": "",
    "webide.config.settings.MAX_NOTICES": 20,
}


@pytest.fixture(autouse=True)
def set_test_config(monkeypatch):
    """Patch workspace settings for a deterministic, offline test run."""
    for target, value in _SETTINGS_PATCHES.items():
        monkeypatch.setattr(target, value)
