"""Tests for the command line interface."""

from datetime import datetime, timezone
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import AsyncMock, MagicMock, patch

from typer.testing import CliRunner

from focus_feed.cli import app
from focus_feed.core import FeedItem, SourceType

runner = CliRunner()

SOURCES_YAML = """
sources:
  - id: hn-top
    name: HN
    type: hn
    url: https://news.ycombinator.com
  - id: reddit-ml
    name: Reddit
    type: reddit
    url: https://reddit.com/r/MachineLearning
    enabled: false
"""


def _write_config(root: Path) -> Path:
    config_dir = root / "config"
    (config_dir / "profiles").mkdir(parents=True)
    (config_dir / "sources.yaml").write_text(SOURCES_YAML, encoding="utf-8")
    (config_dir / "profiles" / "ai.yaml").write_text("id: ai\nname: AI\n", encoding="utf-8")

    settings_file = root / "config.yaml"
    settings_file.write_text(
        f"paths:\n  config_dir: {config_dir}\n  seen_store: null\nai:\n  enabled: false\n",
        encoding="utf-8",
    )
    return settings_file


def test_status_prints_summary() -> None:
    with TemporaryDirectory() as tmpdir:
        settings_file = _write_config(Path(tmpdir))

        result = runner.invoke(app, ["status", "--config", str(settings_file)])

    assert result.exit_code == 0
    assert "sources: 1/2 enabled" in result.output
    assert "profiles: 1/1 active" in result.output


def test_test_source_unknown_id() -> None:
    with TemporaryDirectory() as tmpdir:
        settings_file = _write_config(Path(tmpdir))

        result = runner.invoke(app, ["test-source", "nope", "--config", str(settings_file)])

    assert result.exit_code == 1
    assert "Source not found: nope" in result.output


def test_test_source_unsupported_type() -> None:
    with TemporaryDirectory() as tmpdir:
        settings_file = _write_config(Path(tmpdir))

        result = runner.invoke(app, ["test-source", "reddit-ml", "--config", str(settings_file)])

    assert result.exit_code == 1
    assert "Source type reddit not implemented yet" in result.output


def test_missing_sources_file_fails_cleanly() -> None:
    with TemporaryDirectory() as tmpdir:
        settings_file = Path(tmpdir) / "config.yaml"
        settings_file.write_text(f"paths:\n  config_dir: {tmpdir}/none\n", encoding="utf-8")

        result = runner.invoke(app, ["status", "--config", str(settings_file)])

    assert result.exit_code == 1
    assert "Configuration file not found" in result.output


def _hn_adapter(items=None, error=None) -> MagicMock:
    adapter = MagicMock()
    adapter.fetch_items = AsyncMock(return_value=items or [], side_effect=error)
    return adapter


def test_run_single_profile_prints_items() -> None:
    story = FeedItem(
        id="hn-1",
        title="Shipping an agent framework to production",
        content="A long post about evaluation, tracing and rollout of agent tooling in production. " * 2,
        url="https://example.com/agents",
        author="pg",
        published_at=datetime.now(timezone.utc),
        source=SourceType.HN,
        source_url="https://news.ycombinator.com/item?id=1",
    )
    registry = {SourceType.HN: _hn_adapter([story])}

    with TemporaryDirectory() as tmpdir:
        settings_file = _write_config(Path(tmpdir))

        with patch("focus_feed.cli.build_source_registry", return_value=registry):
            result = runner.invoke(app, ["run", "--profile", "ai", "--config", str(settings_file)])

    assert result.exit_code == 0
    assert "[ai] AI" in result.output
    assert "sources ok: 1/1" in result.output
    assert "Shipping an agent framework to production" in result.output


def test_run_reports_adapter_crash_as_source_error() -> None:
    registry = {SourceType.HN: _hn_adapter(error=RuntimeError("boom"))}

    with TemporaryDirectory() as tmpdir:
        settings_file = _write_config(Path(tmpdir))

        with patch("focus_feed.cli.build_source_registry", return_value=registry):
            result = runner.invoke(app, ["run", "--profile", "ai", "--config", str(settings_file)])

    assert result.exit_code == 0
    assert "sources ok: 0/1" in result.output
    assert "! hn-top: Unexpected error: boom" in result.output


def test_run_unknown_profile() -> None:
    with TemporaryDirectory() as tmpdir:
        settings_file = _write_config(Path(tmpdir))

        with patch("focus_feed.cli.build_source_registry", return_value={}):
            result = runner.invoke(app, ["run", "--profile", "nope", "--config", str(settings_file)])

    assert result.exit_code == 1
    assert "Profile not found: nope" in result.output
