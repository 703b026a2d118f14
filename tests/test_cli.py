"""Tests for the click CLI and output formatters."""

import json

import pytest
from click.testing import CliRunner
from rich.console import Console

from conftest import FakeClassifier, FakeSearch, FakeStrategy, make_candidate
from pressaudit.audit import AuditOrchestrator, AuditService
from pressaudit.cli import cli
from pressaudit.core import Audit, AuditResult, AuditStatus, AuditStrategy, ConfigurationError, RateLimitError
from pressaudit.storage import InMemoryAuditRepository
from pressaudit.utils import JSONFormatter, RichFormatter


def fake_service_factory(search=None, captured=None):
    def factory(config):
        if captured is not None:
            captured.append(config)
        repository = InMemoryAuditRepository()
        orchestrator = AuditOrchestrator(
            search or FakeSearch({"apnews.com": [make_candidate(title="Acme", link="https://apnews.com/acme")]}),
            FakeClassifier(),
            FakeStrategy(),
            repository,
            batch_size=config.audit.batch_size,
            batch_delay=0.0,
        )
        return AuditService(repository, orchestrator)

    return factory


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def patched_config(mocker, app_config):
    return mocker.patch("pressaudit.cli.load_app_config", return_value=app_config)


class TestConfigCommands:
    def test_validate_config(self, runner, patched_config):
        result = runner.invoke(cli, ["validate-config"])
        assert result.exit_code == 0
        assert "Configuration validated successfully" in result.output

    def test_validate_config_failure(self, runner, mocker):
        mocker.patch(
            "pressaudit.cli.load_app_config",
            side_effect=ConfigurationError("Missing required configuration value: SERPER_API_KEY"),
        )
        result = runner.invoke(cli, ["validate-config"])
        assert result.exit_code == 1
        assert "Configuration error" in result.output

    def test_info_hides_secrets(self, runner, patched_config):
        result = runner.invoke(cli, ["info"])
        assert result.exit_code == 0
        assert "gemini-2.5-flash-lite" in result.output
        assert "serper-test-key" not in result.output

    def test_publications(self, runner):
        result = runner.invoke(cli, ["publications"])
        assert result.exit_code == 0
        assert "finance.yahoo.com" in result.output
        assert "koin.com" in result.output


class TestAuditCommand:
    def test_json_output(self, runner, patched_config, mocker):
        captured = []
        mocker.patch("pressaudit.cli.build_audit_service", side_effect=fake_service_factory(captured=captured))

        result = runner.invoke(cli, ["--log-level", "CRITICAL", "audit", "Acme", "https://acme.example", "--format", "json", "--batch-size", "10"])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["status"] == "completed"
        assert payload["mentionsFound"] == 1
        assert payload["topSource"] == "AP News"
        assert captured[0].audit.batch_size == 10

    def test_rich_output(self, runner, patched_config, mocker):
        mocker.patch("pressaudit.cli.build_audit_service", side_effect=fake_service_factory())

        result = runner.invoke(cli, ["audit", "Acme", "https://acme.example"])

        assert result.exit_code == 0, result.output
        assert "Audit Overview" in result.output
        assert "apnews.com" in result.output

    def test_failed_audit_exit_code(self, runner, patched_config, mocker):
        search = FakeSearch({"apnews.com": RateLimitError("429")})
        mocker.patch("pressaudit.cli.build_audit_service", side_effect=fake_service_factory(search=search))

        result = runner.invoke(cli, ["--log-level", "CRITICAL", "audit", "Acme", "https://acme.example", "--format", "json"])

        assert result.exit_code == 1
        assert json.loads(result.stdout)["error"] == "rate_limited"

    def test_invalid_url(self, runner, patched_config, mocker):
        mocker.patch("pressaudit.cli.build_audit_service", side_effect=fake_service_factory())

        result = runner.invoke(cli, ["audit", "Acme", "not-a-url"])

        assert result.exit_code == 2
        assert "valid website URL" in result.output


class TestFormatters:
    def _audit(self):
        return Audit(
            id="abc123",
            brand_name="Acme",
            website_url="https://acme.example",
            status=AuditStatus.COMPLETED,
            results=[
                AuditResult(domain="apnews.com", brand_mentioned=True, title="Acme story", url="https://apnews.com/1"),
                AuditResult.unmentioned("ktla.com"),
            ],
            mentions_found=1,
            coverage_rate=50,
            total_publications=2,
            top_source="AP News",
            strategy=AuditStrategy(insights=["Wire coverage"], priority_targets=["KTLA"], actions=["Pitch"]),
            shareable_link="http://localhost:5000/share/abc123",
        )

    def test_json_formatter(self):
        payload = json.loads(JSONFormatter.format_audit(self._audit()))
        assert payload["id"] == "abc123"
        assert payload["results"][0]["brandMentioned"] is True
        summary = json.loads(JSONFormatter.format_summary(self._audit()))
        assert summary["coverageRate"] == 50

    def test_rich_formatter(self):
        console = Console(record=True, width=160)
        RichFormatter(console).display_audit(self._audit())
        text = console.export_text()
        assert "Audit Overview" in text
        assert "PR Strategy" in text
        assert "Wire coverage" in text
        assert "http://localhost:5000/share/abc123" in text
