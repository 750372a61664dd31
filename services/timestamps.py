from __future__ import annotations

from datetime import datetime, timezone

_SLASH_FORMATS = ("%Y/%m/%d %H:%M", "%Y/%m/%d %H:%M:%S", "%Y/%m/%d")


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse ISO-8601 or ``YYYY/MM/DD HH:MM`` text into an aware UTC datetime.

    Naive values are taken to be UTC so that every instant compares cleanly.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        candidate = value.strip()
        if not candidate:
            raise ValueError("Timestamp is empty.")

        if "/" in candidate:
            parsed = _parse_slash_format(candidate)
        else:
            if candidate.endswith("Z"):
                candidate = candidate[:-1] + "+00:00"
            try:
                parsed = datetime.fromisoformat(candidate)
            except ValueError as exc:
                raise ValueError(f"Invalid timestamp format: {value!r}") from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed.astimezone(timezone.utc)


def _parse_slash_format(candidate: str) -> datetime:
    for fmt in _SLASH_FORMATS:
        try:
            return datetime.strptime(candidate, fmt)
        except ValueError:
            continue
    raise ValueError(f"Invalid timestamp format: {candidate!r}")
