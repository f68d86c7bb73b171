from __future__ import annotations

from datetime import date

import pytest

from casetrack.config import MissingConfigurationError
from casetrack.domain.digest import DigestResult
from casetrack.domain.reconciliation import ReconciliationResult
from casetrack.ui import cli


def test_sync_command_passes_options(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_sync(**kwargs: object) -> ReconciliationResult:
        captured.update(kwargs)
        return ReconciliationResult()

    monkeypatch.setattr(cli, "sync_process_report", fake_sync)

    cli.main(["sync", "--report-id", "12", "--batch-size", "50"])

    assert captured == {"report_id": 12, "batch_size": 50}


def test_sync_command_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_sync(**kwargs: object) -> ReconciliationResult:
        captured.update(kwargs)
        return ReconciliationResult()

    monkeypatch.setattr(cli, "sync_process_report", fake_sync)

    cli.main(["sync"])

    assert captured == {"report_id": None, "batch_size": None}


def test_digest_command_parses_date(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_digest(**kwargs: object) -> DigestResult:
        captured.update(kwargs)
        return DigestResult(period_label="2024-03-13")

    monkeypatch.setattr(cli, "send_daily_digest", fake_digest)

    cli.main(["digest", "--date", "2024-03-14"])

    assert captured == {"date": date(2024, 3, 14)}


def test_invalid_date_exits_with_usage_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_digest(**_: object) -> DigestResult:
        raise AssertionError("digest should not run")

    monkeypatch.setattr(cli, "send_daily_digest", fake_digest)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["digest", "--date", "14/03/2024"])

    assert excinfo.value.code == 2


def test_non_positive_batch_size_is_rejected() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["sync", "--batch-size", "0"])

    assert excinfo.value.code == 2


def test_missing_configuration_exits_with_code_2(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_sync(**_: object) -> ReconciliationResult:
        raise MissingConfigurationError("Missing configuration for: REDELEX_API_KEY")

    monkeypatch.setattr(cli, "sync_process_report", fake_sync)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["sync"])

    assert excinfo.value.code == 2


def test_runtime_failure_exits_with_code_1(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_sync(**_: object) -> ReconciliationResult:
        raise RuntimeError("provider down")

    monkeypatch.setattr(cli, "sync_process_report", fake_sync)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["sync"])

    assert excinfo.value.code == 1
