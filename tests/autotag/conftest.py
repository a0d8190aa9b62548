"""Shared fixtures for autotag tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

from autotag.settings import TaggerConfig


@pytest.fixture
def vault(tmp_path: Path) -> Path:
    root = tmp_path / "vault"
    root.mkdir()
    return root


@pytest.fixture
def write_note(vault: Path) -> Callable[[str, str], Path]:
    """Return a helper that writes a note under the vault (parents created)."""

    def _write(rel: str, content: str) -> Path:
        path = vault / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def config(vault: Path, tmp_path: Path) -> TaggerConfig:
    return TaggerConfig(
        vault_dir=vault,
        config_dir=tmp_path / "config",
        settle_delay=0.05,
        quiet_delay=0.05,
        scan_on_start=False,
    )
