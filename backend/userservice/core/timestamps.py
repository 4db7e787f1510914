"""Timestamp Derivation — truncation and monotonic succession for record versions.

Invariants:
    - truncate() never rounds up: the result is <= the input
    - next_updated_at() is strictly greater than the prior value it is given
    - Both are PURE: the clock is read by the caller, not here

Design Decisions:
    - Truncate in the writer, before the value reaches the store: a caller that
      receives a more precise timestamp than the one persisted could never
      present it back successfully on update
"""

from datetime import datetime, timedelta, timezone


def truncate(moment: datetime, resolution: timedelta) -> datetime:
    """Drop precision finer than `resolution`. Naive inputs are taken as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    epoch = datetime(1970, 1, 1, tzinfo=timezone.utc)
    return moment - ((moment - epoch) % resolution)


def next_updated_at(
    now: datetime, prior: datetime, resolution: timedelta,
) -> datetime:
    """Version stamp for an update: `now` truncated, bumped past `prior` if needed."""
    candidate = truncate(now, resolution)
    floor = truncate(prior, resolution) + resolution
    return max(candidate, floor)
