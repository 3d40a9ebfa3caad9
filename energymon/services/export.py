"""
CSV and Markdown rendering of readings and aggregate snapshots.

All functions here are pure: they take rows or an AggregateSnapshot and
return text. Rounding to two decimals happens here, at the reporting
boundary.

CHANGELOG:
- 2026-10-15: Initial creation

TODO:
- None
"""

from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime

from energymon.services.aggregation import AggregateSnapshot, round2
from energymon.services.ingestion import as_utc, isoformat_utc

NO_DATA_SUMMARY = "No energy data available for the reporting period."
REPORT_TITLE = "# Microgrid Energy Monitoring Report"
REPORT_FOOTER = "*Report generated by Microgrid Energy Monitoring System*"
READING_HEADERS = ("timestamp", "consumption")
METRIC_HEADERS = ("metric", "value")


def escape_csv_field(value: object) -> str:
    """Render one CSV field, quoting it if it contains a comma or quote.

    Inner double quotes are doubled. None renders as an empty field and
    datetimes as ISO-8601 UTC.
    """
    if value is None:
        return ""
    if isinstance(value, datetime):
        text = isoformat_utc(value)
    else:
        text = str(value)
    if "," in text or '"' in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def render_csv(records: Iterable[Mapping[str, object]], headers: Sequence[str]) -> str:
    """Render mappings as CSV text: header line plus one line per record."""
    lines = [",".join(escape_csv_field(h) for h in headers)]
    for record in records:
        lines.append(",".join(escape_csv_field(record.get(h)) for h in headers))
    return "\n".join(lines)


def readings_to_csv(rows: Iterable[Mapping[str, object]]) -> str:
    """Render readings as ``timestamp,consumption`` CSV.

    Rows are written in the order given; callers pass them ascending by
    timestamp.
    """
    return render_csv(rows, READING_HEADERS)


def _format_peak(snapshot: AggregateSnapshot, fmt: str | None = None, missing: str = "N/A") -> str:
    if snapshot.peak_timestamp is None:
        return missing
    if fmt is None:
        return isoformat_utc(snapshot.peak_timestamp)
    return as_utc(snapshot.peak_timestamp).strftime(fmt)


def metrics_to_csv(snapshot: AggregateSnapshot) -> str:
    """Render a snapshot as ``metric,value`` CSV."""
    records = [
        {"metric": "Total Consumption (kWh)", "value": round2(snapshot.total_consumption)},
        {"metric": "Average Consumption (kWh)", "value": round2(snapshot.avg_consumption)},
        {"metric": "Peak Consumption (kWh)", "value": round2(snapshot.peak_consumption)},
        {"metric": "Minimum Consumption (kWh)", "value": round2(snapshot.min_consumption)},
        {"metric": "Consumption Std Dev (kWh)", "value": round2(snapshot.consumption_stddev)},
        {"metric": "Peak Timestamp", "value": _format_peak(snapshot)},
        {"metric": "Days of Data", "value": snapshot.days_of_data},
        {"metric": "Total Data Points", "value": snapshot.count_points},
    ]
    return render_csv(records, METRIC_HEADERS)


def _format_bound(value: datetime | None) -> str:
    if value is None:
        return "N/A"
    return as_utc(value).strftime("%Y-%m-%d %H:%M")


def summary_sentence(snapshot: AggregateSnapshot) -> str:
    """One-paragraph narrative for the report, or the no-data fallback."""
    if snapshot.is_empty:
        return NO_DATA_SUMMARY
    peak_at = _format_peak(snapshot, "%Y-%m-%d %H:%M", missing="unknown time")
    return (
        f"The system recorded {snapshot.count_points} data points over "
        f"{snapshot.days_of_data} day(s). Average consumption was "
        f"{round2(snapshot.avg_consumption)} kWh, with a peak of "
        f"{round2(snapshot.peak_consumption)} kWh at {peak_at}. "
        f"Total energy consumed: {round2(snapshot.total_consumption)} kWh."
    )


def render_report(snapshot: AggregateSnapshot, generated_at: datetime | None = None) -> str:
    """Render the Markdown monitoring report.

    Args:
        snapshot: Statistics to report.
        generated_at: Report time, defaults to now (UTC).

    Returns:
        str: Markdown document.
    """
    generated = as_utc(generated_at or datetime.now(UTC))
    peak_at = _format_peak(snapshot, "%Y-%m-%d %H:%M:%S")
    lines = [
        REPORT_TITLE,
        "",
        f"**Generated:** {generated.strftime('%Y-%m-%d %H:%M:%S')} UTC  ",
        f"**Data Period:** {_format_bound(snapshot.earliest_timestamp)} to "
        f"{_format_bound(snapshot.latest_timestamp)}",
        "",
        "## Key Performance Indicators",
        "",
        "| Metric | Value |",
        "|--------|-------|",
        f"| **Total Consumption** | {round2(snapshot.total_consumption)} kWh |",
        f"| **Average Consumption** | {round2(snapshot.avg_consumption)} kWh |",
        f"| **Peak Consumption** | {round2(snapshot.peak_consumption)} kWh |",
        f"| **Minimum Consumption** | {round2(snapshot.min_consumption)} kWh |",
        f"| **Consumption Std Dev** | {round2(snapshot.consumption_stddev)} kWh |",
        f"| **Peak Occurred At** | {peak_at} |",
        f"| **Days of Data** | {snapshot.days_of_data} |",
        f"| **Total Data Points** | {snapshot.count_points} |",
        "",
        "## Summary",
        "",
        summary_sentence(snapshot),
        "",
        "---",
        REPORT_FOOTER,
        "",
    ]
    return "\n".join(lines)


def export_filename(prefix: str, ext: str, now: datetime | None = None) -> str:
    """Build an attachment filename such as ``energy_data_20250101_1200.csv``."""
    stamp = as_utc(now or datetime.now(UTC)).strftime("%Y%m%d_%H%M")
    return f"{prefix}_{stamp}.{ext}"
