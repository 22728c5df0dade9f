from collections.abc import Iterable

from endcat.core.enums import BucketKind
from endcat.schemas.gacha import BannerSummary, PullRecord
from endcat.services.classifier import group_by_bucket, is_weapon_bucket
from endcat.services.stats import (
    FeaturedChecker,
    IconGetter,
    compute_stats,
    format_date_range,
    sort_newest_first,
    top_history,
)

CHARACTER_BANNERS = (
    (BucketKind.BEGINNER, "char-beginner", "启程寻访"),
    (BucketKind.SPECIAL, "char-special", "特许寻访"),
    (BucketKind.STANDARD, "char-standard", "基础寻访"),
)
UNKNOWN_WEAPON_POOL = "未知武器池"


def _summarize(
    banner_id: str,
    title: str,
    pulls: list[PullRecord],
    history_limit: int,
    icon_getter: IconGetter | None,
    featured_checker: FeaturedChecker | None,
) -> BannerSummary:
    return BannerSummary(
        id=banner_id,
        title=title,
        date_range=format_date_range(pulls),
        stats=compute_stats(pulls),
        total=len(pulls),
        top=top_history(pulls, history_limit, icon_getter, featured_checker),
    )


def build_banners(
    records: Iterable[PullRecord],
    *,
    history_limit: int = 50,
    icon_getter: IconGetter | None = None,
    featured_checker: FeaturedChecker | None = None,
) -> list[BannerSummary]:
    """Group records into banners and summarize each non-empty one.

    Character banners come first, followed by one banner per weapon pool.
    """
    buckets = {
        key: sort_newest_first(pulls) for key, pulls in group_by_bucket(records).items()
    }
    banners: list[BannerSummary] = []

    for kind, banner_id, title in CHARACTER_BANNERS:
        pulls = buckets.get(kind.value)
        if pulls:
            banners.append(
                _summarize(banner_id, title, pulls, history_limit, icon_getter, featured_checker)
            )

    for key, pulls in buckets.items():
        if not is_weapon_bucket(key) or not pulls:
            continue
        pool_id = key.split(":", 1)[1]
        pool_name = pulls[0].pool_name or UNKNOWN_WEAPON_POOL
        banners.append(
            _summarize(
                f"weapon-{pool_id}",
                f"武器寻访 · {pool_name}",
                pulls,
                history_limit,
                icon_getter,
                featured_checker,
            )
        )

    return banners
