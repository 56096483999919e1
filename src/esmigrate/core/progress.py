"""Progress projection for paginated extraction."""

from esmigrate.core.models import ProgressReport


def _rate(count: int, elapsed: float) -> float | None:
    """Return count per second, or None when no time has elapsed."""
    if elapsed <= 0:
        return None
    return count / elapsed


def compute_progress(
    retrieved: int,
    total: int,
    started_at: float,
    page_started_at: float,
    now: float,
    batch_size: int,
) -> ProgressReport:
    """Project completion after a page has been processed.

    Args:
        retrieved: Records retrieved so far, including this page.
        total: Total record count reported by the source.
        started_at: Time the first page was requested (seconds).
        page_started_at: Time the current page was requested (seconds).
        now: Current time (seconds).
        batch_size: Number of records in the current page.

    Returns:
        ProgressReport with rates in records per second. Rates and ETA are
        None when they cannot be computed from a zero elapsed time. ``eta``
        is a reading of the same clock as ``now``, not wall-clock time.
    """
    if total <= 0:
        percent = 100.0
    else:
        percent = min(100.0, max(0.0, retrieved * 100 / total))

    rate = _rate(batch_size, now - page_started_at)
    average_rate = _rate(retrieved, now - started_at)

    remaining = max(0, total - retrieved)
    if remaining == 0:
        eta_seconds: float | None = 0.0
    elif average_rate:
        eta_seconds = remaining / average_rate
    else:
        eta_seconds = None

    return ProgressReport(
        retrieved=retrieved,
        total=total,
        percent=percent,
        rate=rate,
        average_rate=average_rate,
        eta_seconds=eta_seconds,
        eta=None if eta_seconds is None else now + eta_seconds,
    )


def _format_rate(rate: float | None) -> str:
    return "?" if rate is None else f"{rate:.1f}"


def format_progress(name: str, report: ProgressReport, failed: int = 0) -> str:
    """Render a one-line progress summary for logging."""
    eta = "?" if report.eta_seconds is None else f"{report.eta_seconds:.0f}s"
    line = (
        f"{name}: {report.percent:.0f}% ({report.retrieved}/{report.total}) "
        f"rate={_format_rate(report.rate)}/s avg={_format_rate(report.average_rate)}/s "
        f"eta={eta}"
    )
    if failed:
        line += f" failed={failed}"
    return line
