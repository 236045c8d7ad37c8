"""
Date handling shared by template filters and content items.
"""
from __future__ import annotations

import typing as t
from datetime import date, datetime, timezone

from dateutil import parser as date_parser


HTML_DATE_FORMAT = '%Y-%m-%d'

DateLike = t.Union[datetime, date, str]


def to_utc(value: DateLike) -> datetime:
    """
    Interpret @value as an aware UTC datetime. Naive datetimes are taken to
    already be in UTC, plain dates become midnight UTC, and strings are parsed
    as ISO 8601.
    """
    if isinstance(value, str):
        value = date_parser.isoparse(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    raise TypeError(f'Cannot interpret {value!r} as a date!')


def html_date_string(value: DateLike) -> str:
    """
    Render a date in UTC as `yyyy-mm-dd`, suitable for `<time datetime>`
    attributes and feeds.
    """
    return to_utc(value).strftime(HTML_DATE_FORMAT)
