"""Assign pull records to logical banners.

Records carry an authoritative pool type tag. Rows saved before the tag was recorded
(or holding an unexpected value) are placed by matching keywords in the tag and then
in the pool name. Anything left over is treated as a limited (special) banner.
"""

from collections.abc import Callable, Iterable

from endcat.core.enums import BucketKind, PoolType
from endcat.schemas.gacha import PullRecord

type BucketKey = str
type Strategy = Callable[[PullRecord], BucketKey | None]

WEAPON_NAME_KEYWORDS = ("武器",)
STANDARD_NAME_KEYWORDS = ("常规", "标准")
BEGINNER_NAME_KEYWORDS = ("启程",)

_TAGGED_BUCKETS = {
    PoolType.SPECIAL: BucketKind.SPECIAL,
    PoolType.STANDARD: BucketKind.STANDARD,
    PoolType.BEGINNER: BucketKind.BEGINNER,
}


def weapon_bucket(pool_id: str) -> BucketKey:
    return f"{BucketKind.WEAPON}:{pool_id}"


def is_weapon_bucket(key: BucketKey) -> bool:
    return key.startswith(f"{BucketKind.WEAPON}:")


def is_weapon(record: PullRecord) -> bool:
    """Whether the record's item should be looked up as a weapon."""
    return "Weapon" in record.pool_type or _contains_any(record.pool_name, WEAPON_NAME_KEYWORDS)


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def classify_by_tag(record: PullRecord) -> BucketKey | None:
    if record.pool_type == PoolType.WEAPON:
        return weapon_bucket(record.pool_id or "other")
    kind = _TAGGED_BUCKETS.get(record.pool_type)  # pyright: ignore[reportArgumentType]
    return kind.value if kind else None


def classify_by_text(record: PullRecord) -> BucketKey:
    tag, name = record.pool_type, record.pool_name

    if "Special" in tag:
        return BucketKind.SPECIAL.value
    if "Standard" in tag:
        return BucketKind.STANDARD.value
    if "Beginner" in tag:
        return BucketKind.BEGINNER.value
    if "Weapon" in tag or _contains_any(name, WEAPON_NAME_KEYWORDS):
        return weapon_bucket(record.pool_id or "legacy-weapon")
    if _contains_any(name, STANDARD_NAME_KEYWORDS):
        return BucketKind.STANDARD.value
    if _contains_any(name, BEGINNER_NAME_KEYWORDS):
        return BucketKind.BEGINNER.value
    return BucketKind.SPECIAL.value


STRATEGIES: tuple[Strategy, ...] = (classify_by_tag, classify_by_text)


def classify(record: PullRecord) -> BucketKey:
    for strategy in STRATEGIES:
        key = strategy(record)
        if key is not None:
            return key
    return BucketKind.SPECIAL.value


def group_by_bucket(records: Iterable[PullRecord]) -> dict[BucketKey, list[PullRecord]]:
    """Group records by bucket, keeping their input order within each bucket."""
    buckets: dict[BucketKey, list[PullRecord]] = {}
    for record in records:
        buckets.setdefault(classify(record), []).append(record)
    return buckets
