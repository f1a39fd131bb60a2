"""Labeled records reshaped from raw Core Reporting rows.

The API returns every cell as a string, in the order of the requested
dimensions followed by the requested metrics.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

logger = logging.getLogger(__name__)

PERIOD_FORMATS = {
    "date": "%Y%m%d",
    "yearMonth": "%Y%m",
}


@dataclass
class VisitorsAndPageViews:
    period: date
    visitors: int
    page_views: int


@dataclass
class PageViews:
    url: str
    page_views: int


def parse_period(value: str, group_by: str) -> date:
    """Parse a period cell: 8-digit for 'date', 6-digit (first of month) for 'yearMonth'."""
    return datetime.strptime(value, PERIOD_FORMATS[group_by]).date()


def to_visitors_and_page_views(rows: Optional[list[list[str]]], group_by: str) -> list[VisitorsAndPageViews]:
    if not rows:
        return []
    return [
        VisitorsAndPageViews(
            period=parse_period(row[0], group_by),
            visitors=int(row[1]),
            page_views=int(row[2]),
        )
        for row in rows
    ]


def to_page_views(rows: Optional[list[list[str]]], max_results: int) -> list[PageViews]:
    if not rows:
        return []
    max_results = max(max_results, 0)
    if len(rows) > max_results:
        logger.warning("Response carried %d rows, truncating to %d", len(rows), max_results)
    return [PageViews(url=row[0], page_views=int(row[1])) for row in rows[:max_results]]
