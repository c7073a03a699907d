"""Tests for configuration loading."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from learnpath.settings import Settings


def test_defaults():
	loaded = Settings(_env_file=None)
	assert loaded.level_up_policy == "single"
	assert loaded.completion_policy == "latest"
	assert loaded.encryption_mode == "legacy"


@pytest.mark.parametrize("name, value", [
	("LEVEL_UP_POLICY", "sometimes"),
	("COMPLETION_POLICY", "forever"),
	("ENCRYPTION_MODE", "rot13"),
	("LOG_FORMAT", "xml"),
])
def test_unknown_choice_rejected_at_load(monkeypatch, name, value):
	monkeypatch.setenv(name, value)
	with pytest.raises(ValidationError):
		Settings(_env_file=None)


def test_known_choice_from_environment(monkeypatch):
	monkeypatch.setenv("LEVEL_UP_POLICY", "cascade")
	assert Settings(_env_file=None).level_up_policy == "cascade"
