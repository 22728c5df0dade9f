from enum import IntEnum, StrEnum


class PoolType(StrEnum):
    """Pool type tags issued by the record API."""

    SPECIAL = "E_CharacterGachaPoolType_Special"
    STANDARD = "E_CharacterGachaPoolType_Standard"
    BEGINNER = "E_CharacterGachaPoolType_Beginner"
    WEAPON = "E_CharacterGachaPoolType_Weapon"


CHARACTER_POOL_TYPES = (PoolType.SPECIAL, PoolType.STANDARD, PoolType.BEGINNER)


class BucketKind(StrEnum):
    BEGINNER = "beginner"
    SPECIAL = "special"
    STANDARD = "standard"
    WEAPON = "weapon"


class ItemCategory(StrEnum):
    CHARACTER = "character"
    WEAPON = "weapon"


class SyncMode(StrEnum):
    INCREMENTAL = "incremental"
    FULL = "full"


class Provider(StrEnum):
    HYPERGRYPH = "hypergryph"
    GRYPHLINE = "gryphline"


class Rarity(IntEnum):
    TWO_STAR = 2
    THREE_STAR = 3
    FOUR_STAR = 4
    FIVE_STAR = 5
    SIX_STAR = 6


class OutcomeStatus(StrEnum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
