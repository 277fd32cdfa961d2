"""Wall clock and business-day bucketing."""

from __future__ import annotations

from datetime import date, datetime, timedelta


def now() -> datetime:
    """Return the current local time, timezone aware."""
    return datetime.now().astimezone()


def business_date_for(moment: datetime, cutover_hour: int = 0) -> date:
    """
    Return the business day a moment belongs to.

    Sales made before ``cutover_hour`` count towards the previous day, so a
    counter that closes at 2 AM with ``cutover_hour=3`` keeps late orders on
    the evening they started.
    """
    if not (0 <= cutover_hour <= 23):
        raise ValueError("cutover_hour must be between 0 and 23")
    return (moment - timedelta(hours=cutover_hour)).date()
