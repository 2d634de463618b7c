"""Foundational tests: configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from github_subissues_mcp.config import DEFAULT_API_BASE_URL, load_config_from_env
from github_subissues_mcp.errors import SafeError

_ENV_VARS = (
    "GITHUB_PERSONAL_ACCESS_TOKEN",
    "GITHUB_API_URL",
    "GITHUB_SUBISSUES_MCP_ALLOWED_REPOS",
    "GITHUB_SUBISSUES_MCP_READ_ONLY",
    "GITHUB_SUBISSUES_MCP_AUDIT_LOG_PATH",
    "GITHUB_SUBISSUES_MCP_TIMEOUT_S",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_load_config_requires_token() -> None:
    with pytest.raises(SafeError) as exc:
        _ = load_config_from_env()

    assert exc.value.code == "Config"
    assert "GITHUB_PERSONAL_ACCESS_TOKEN" in exc.value.message


def test_load_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITHUB_PERSONAL_ACCESS_TOKEN", "tok")

    cfg = load_config_from_env()

    assert cfg.token == "tok"
    assert cfg.api_base_url == DEFAULT_API_BASE_URL
    assert cfg.policy.allowed_repos == frozenset()
    assert cfg.policy.read_only is False
    assert cfg.audit_log_path is None
    assert cfg.limits.total_timeout_s > 0


def test_config_repr_hides_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITHUB_PERSONAL_ACCESS_TOKEN", "super-secret-value")

    cfg = load_config_from_env()

    assert "super-secret-value" not in repr(cfg)


def test_load_config_parses_policy_env_vars(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("GITHUB_PERSONAL_ACCESS_TOKEN", "tok")
    monkeypatch.setenv("GITHUB_API_URL", "https://ghe.example.com/api/v3/")
    monkeypatch.setenv("GITHUB_SUBISSUES_MCP_ALLOWED_REPOS", "Octo/Repo1, octo/repo2,")
    monkeypatch.setenv("GITHUB_SUBISSUES_MCP_READ_ONLY", "yes")
    monkeypatch.setenv("GITHUB_SUBISSUES_MCP_AUDIT_LOG_PATH", str(tmp_path / "audit.jsonl"))
    monkeypatch.setenv("GITHUB_SUBISSUES_MCP_TIMEOUT_S", "12.5")

    cfg = load_config_from_env()

    assert cfg.api_base_url == "https://ghe.example.com/api/v3"
    assert cfg.policy.allowed_repos == frozenset({"octo/repo1", "octo/repo2"})
    assert cfg.policy.read_only is True
    assert cfg.audit_log_path == tmp_path / "audit.jsonl"
    assert cfg.limits.total_timeout_s == 12.5


@pytest.mark.parametrize(
    ("name", "value", "fragment"),
    [
        ("GITHUB_API_URL", "http://api.github.com", "GITHUB_API_URL"),
        ("GITHUB_SUBISSUES_MCP_ALLOWED_REPOS", "not-a-repo", "GITHUB_SUBISSUES_MCP_ALLOWED_REPOS"),
        ("GITHUB_SUBISSUES_MCP_AUDIT_LOG_PATH", "relative/audit.jsonl", "absolute path"),
        ("GITHUB_SUBISSUES_MCP_TIMEOUT_S", "soon", "must be a number"),
        ("GITHUB_SUBISSUES_MCP_TIMEOUT_S", "-1", "must be positive"),
    ],
)
def test_load_config_rejects_invalid_values(monkeypatch: pytest.MonkeyPatch, name: str, value: str, fragment: str) -> None:
    monkeypatch.setenv("GITHUB_PERSONAL_ACCESS_TOKEN", "tok")
    monkeypatch.setenv(name, value)

    with pytest.raises(SafeError) as exc:
        _ = load_config_from_env()

    assert exc.value.code == "Config"
    assert fragment in exc.value.message
