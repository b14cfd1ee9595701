from __future__ import annotations

import os
from pathlib import Path

from web2builder.env import env_flag, env_float, env_int, env_str, load_env_chain


def test_load_env_chain_overrides_empty_existing_var(tmp_path: Path, monkeypatch) -> None:  # type: ignore[no-untyped-def]
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / ".env").write_text("WEB2BUILDER_THRESHOLD=0.7\n", encoding="utf-8")

    cwd = tmp_path / "cwd"
    cwd.mkdir()
    (cwd / ".env").write_text("WEB2BUILDER_THRESHOLD=0.6\n", encoding="utf-8")

    monkeypatch.chdir(cwd)
    monkeypatch.setenv("WEB2BUILDER_THRESHOLD", "")

    load_env_chain(repo)
    assert os.environ["WEB2BUILDER_THRESHOLD"] == "0.6"


def test_load_env_chain_keeps_existing_values(tmp_path: Path, monkeypatch) -> None:  # type: ignore[no-untyped-def]
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / ".env").write_text("WEB2BUILDER_LOG_LEVEL=debug\nWEB2BUILDER_PORT=8080\n", encoding="utf-8")

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("WEB2BUILDER_LOG_LEVEL", "warning")
    monkeypatch.delenv("WEB2BUILDER_PORT", raising=False)

    load_env_chain(repo)
    assert os.environ["WEB2BUILDER_LOG_LEVEL"] == "warning"
    assert os.environ["WEB2BUILDER_PORT"] == "8080"


def test_load_env_chain_ignores_foreign_keys(tmp_path: Path, monkeypatch) -> None:  # type: ignore[no-untyped-def]
    (tmp_path / ".env").write_text("OPENAI_API_KEY=sk-test\nWEB2BUILDER_HOST=0.0.0.0\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("WEB2BUILDER_HOST", raising=False)

    loaded = load_env_chain(tmp_path)
    assert loaded == [(tmp_path / ".env").resolve()]
    assert "OPENAI_API_KEY" not in os.environ
    assert os.environ["WEB2BUILDER_HOST"] == "0.0.0.0"


def test_typed_readers_fall_back_on_garbage(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setenv("WEB2BUILDER_PORT", "eighty")
    monkeypatch.setenv("WEB2BUILDER_THRESHOLD", "0.5")
    monkeypatch.setenv("WEB2BUILDER_VISUAL_PROXY", "Off")
    monkeypatch.delenv("WEB2BUILDER_FETCH_STYLESHEETS", raising=False)

    assert env_int("PORT", 5000) == 5000
    assert env_float("THRESHOLD", 0.45) == 0.5
    assert env_flag("VISUAL_PROXY", True) is False
    assert env_flag("FETCH_STYLESHEETS", True) is True
    assert env_str("LOG_LEVEL_UNSET", "info") == "info"
