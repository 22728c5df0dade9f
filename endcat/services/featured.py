import math
from collections.abc import Callable, Iterable

from endcat.core.enums import Rarity
from endcat.schemas.gacha import PoolMetadataEntry, PullRecord

# Timestamps below this are in seconds
MILLISECONDS_THRESHOLD = 10**12


def normalize_timestamp_ms(value: float | None) -> int | None:
    """Convert a second or millisecond timestamp to milliseconds."""
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return round(number * 1000) if number < MILLISECONDS_THRESHOLD else round(number)


def _in_window(entry: PoolMetadataEntry, pulled_at_ms: int) -> bool:
    start = normalize_timestamp_ms(entry.start_time)
    end = normalize_timestamp_ms(entry.end_time)
    after_start = start is None or start <= 0 or pulled_at_ms >= start
    before_end = end is None or end <= 0 or pulled_at_ms <= end
    return after_start and before_end


def build_featured_checker(
    entries: Iterable[PoolMetadataEntry],
) -> Callable[[PullRecord], bool]:
    """Build a predicate telling whether a 6-star pull was a rate-up item."""
    by_pool: dict[str, list[PoolMetadataEntry]] = {}
    for entry in entries:
        if not entry.pool_id or not entry.up:
            continue
        by_pool.setdefault(entry.pool_id, []).append(entry)

    for pool_entries in by_pool.values():
        pool_entries.sort(key=lambda e: normalize_timestamp_ms(e.start_time) or 0)

    def is_featured(record: PullRecord) -> bool:
        if record.rarity != Rarity.SIX_STAR or not record.pool_id or not record.item_id:
            return False
        pulled_at = normalize_timestamp_ms(record.pulled_at)
        if pulled_at is None:
            return False

        # Pools hold a handful of windows, a scan is enough
        return any(
            record.item_id in entry.up and _in_window(entry, pulled_at)
            for entry in by_pool.get(record.pool_id, ())
        )

    return is_featured
