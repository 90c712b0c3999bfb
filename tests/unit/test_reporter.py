from __future__ import annotations

from rich.console import Console

from write_bench.domain.models import SubmitResult
from write_bench.orchestrator import BenchmarkRunner
from write_bench.reporter import build_error_table, print_report


def _report(settings, store):
    return BenchmarkRunner(settings, store_factory=lambda: store).run()


def test_print_report_shows_headline_and_errors(make_settings, make_recording_store):
    store = make_recording_store(
        failure_hook=lambda n, pk, records: (
            SubmitResult(success=False, status_code="429") if n == 1 else None
        )
    )
    report = _report(make_settings(), store)
    console = Console(record=True, width=120)

    print_report(report, console=console)
    text = console.export_text()

    assert "Overall TPS" in text
    assert "Average TPS" in text
    assert "Errors" in text
    assert "429" in text


def test_error_table_absent_when_no_failures(make_settings, recording_store):
    report = _report(make_settings(), recording_store)

    assert build_error_table(report) is None


def test_average_tps_is_nonzero_for_fast_in_memory_batches(make_settings, recording_store):
    report = _report(make_settings(), recording_store)
    console = Console(record=True, width=120)

    print_report(report, console=console)

    assert report.metrics.avg_tps > 0
    assert "(n=5)" in console.export_text()
