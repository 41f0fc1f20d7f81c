import random
import re
import uuid
from datetime import datetime, timezone
from typing import Optional

def _two(num: int) -> str:
    return str(num).zfill(2)

def _random_time() -> str:
    return f"T{_two(random.randrange(24))}-{_two(random.randrange(60))}-{_two(random.randrange(60))}"

def valid_date(input_date: Optional[str] = None) -> datetime:
    """
    Parse ``YYYY-MM-DD[THH-MM-SS]`` (``-`` or ``:`` between time parts) as UTC.
    Without input, return the current UTC time.
    """
    if not input_date:
        return datetime.now(timezone.utc)

    date_part, _, time_part = input_date.partition("T")
    year, month, day = (int(p) for p in date_part.split("-")[:3])
    time_part = time_part.rstrip("Z")
    if time_part:
        pieces = re.split(r"[-:]", time_part)
        hours, minutes, seconds = (int(p) for p in (pieces + ["0", "0", "0"])[:3])
    else:
        hours = minutes = seconds = 0
    return datetime(year, month, day, hours, minutes, seconds, tzinfo=timezone.utc)

def generate_date(input_date: Optional[str] = None) -> str:
    """
    Render a key-safe UTC timestamp ``YYYY-MM-DDTHH-MM-SSZ``.

    A date-only input gets a random time of day so ids created for the same
    calendar day still spread out.
    """
    if input_date and "T" not in input_date:
        input_date += _random_time()
    return valid_date(input_date).strftime("%Y-%m-%dT%H-%M-%SZ")

def generate_suffix(length: int = 12) -> str:
    """Random lowercase hex suffix used to keep ids unique within one second."""
    return uuid.uuid4().hex[:length]

def generate_request_id() -> str:
    """Non-deterministic 16-hex id for log correlation."""
    return uuid.uuid4().hex[:16]
