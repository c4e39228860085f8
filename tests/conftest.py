"""Shared fixtures: deterministic settings and an isolated environment."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.config import AppSettings

_CREDENTIAL_VARS = (
    "GODADDY_API_KEY",
    "GODADDY_API_SECRET",
    "NAMECHEAP_API_KEY",
    "NAMECHEAP_USERNAME",
    "DYNADOT_API_TOKEN",
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep real credentials and user config out of every test."""

    for name in _CREDENTIAL_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))


@pytest.fixture()
def settings(tmp_path: Path) -> AppSettings:
    return AppSettings(
        registrar_max_retries=2,
        registrar_backoff_seconds=0.0,
        http_timeout_seconds=5.0,
        namecheap_client_ip="203.0.113.7",
        storage_path=tmp_path / "storage.json",
    )
