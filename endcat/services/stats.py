from collections.abc import Callable, Iterable, Sequence

from endcat.core.enums import Rarity
from endcat.schemas.gacha import BannerStats, PullRecord, TopHistoryItem
from endcat.services.featured import normalize_timestamp_ms
from endcat.utils.misc import format_server_date

type IconGetter = Callable[[PullRecord], str | None]
type FeaturedChecker = Callable[[PullRecord], bool]


def seq_sort_key(seq_id: str) -> tuple[int, str]:
    """Order key for sequence IDs, which are not zero-padded."""
    return len(seq_id), seq_id


def sort_newest_first(records: Iterable[PullRecord]) -> list[PullRecord]:
    return sorted(records, key=lambda r: seq_sort_key(r.seq_id), reverse=True)


def _round_half_up(numerator: int, denominator: int) -> int:
    return (2 * numerator + denominator) // (2 * denominator)


def compute_stats(pulls: Sequence[PullRecord]) -> BannerStats:
    """Compute banner statistics from pulls ordered newest to oldest.

    ``guarantee`` counts the pulls made since the most recent 6-star. ``min6`` and
    ``max6`` cover the cost of every 6-star, the oldest one included, and stay 0
    unless at least two 6-stars were pulled.

    With a single 6-star there is no completed cycle, so the range is left at 0
    rather than reporting that pull's position. Whether players expect the
    position instead is still an open product question.
    """
    s6 = s5 = s4 = 0
    pulls_since_top = 0
    guarantee = 0
    found_first = False
    min6: int | None = None
    max6 = 0

    for pull in pulls:
        pulls_since_top += 1
        if pull.rarity == Rarity.SIX_STAR:
            s6 += 1
            if not found_first:
                guarantee = pulls_since_top - 1
                found_first = True
            else:
                min6 = pulls_since_top if min6 is None else min(min6, pulls_since_top)
                max6 = max(max6, pulls_since_top)
            pulls_since_top = 0
        elif pull.rarity == Rarity.FIVE_STAR:
            s5 += 1
        elif pull.rarity == Rarity.FOUR_STAR:
            s4 += 1

    if not found_first:
        guarantee = pulls_since_top
    elif s6 >= 2:
        # Cost of the oldest 6-star, counted from the start of the ledger
        closing_cost = pulls_since_top + 1
        min6 = closing_cost if min6 is None else min(min6, closing_cost)
        max6 = max(max6, closing_cost)

    return BannerStats(
        s6=s6,
        s5=s5,
        s4=s4,
        guarantee=guarantee,
        avg6=_round_half_up(len(pulls), s6) if s6 else 0,
        min6=min6 or 0,
        max6=max6,
    )


def top_history(
    pulls: Sequence[PullRecord],
    limit: int = 50,
    icon_getter: IconGetter | None = None,
    featured_checker: FeaturedChecker | None = None,
) -> list[TopHistoryItem]:
    """List 6-star pulls newest first, each with the number of pulls it took."""
    history: list[TopHistoryItem] = []
    pity = 0
    for pull in reversed(pulls):
        pity += 1
        if pull.rarity == Rarity.SIX_STAR:
            history.append(
                TopHistoryItem(
                    name=pull.name,
                    count=pity,
                    icon=icon_getter(pull) if icon_getter else None,
                    featured=featured_checker(pull) if featured_checker else False,
                )
            )
            pity = 0
    history.reverse()
    return history[:limit]


def format_date_range(pulls: Iterable[PullRecord]) -> str:
    times = sorted(
        ts for pull in pulls if (ts := normalize_timestamp_ms(pull.pulled_at)) is not None and ts > 0
    )
    if not times:
        return ""
    if len(times) == 1:
        return format_server_date(times[0])
    return f"{format_server_date(times[0])} - {format_server_date(times[-1])}"
