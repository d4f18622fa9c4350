#------------------------------------------------------------
#                          utils.py
#     Shared timestamp and rounding helpers.

import math
from datetime import datetime, timezone
from typing import Optional
from dateutil import parser as date_parser
from dateutil import relativedelta

# This function does parse an ISO-8601 timestamp from the API.
# It returns an aware UTC datetime, or None for blank input.
def parse_timestamp(value) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = date_parser.isoparse(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def days_between(earlier: datetime, later: datetime) -> int:
    return (later - earlier).days

def whole_years_between(earlier: datetime, later: datetime) -> int:
    return relativedelta.relativedelta(later, earlier).years

# Rounds .5 away from zero for non-negative values.
def round_half_up(value: float, ndigits: int = 0):
    if ndigits <= 0:
        return int(math.floor(value + 0.5))
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor
