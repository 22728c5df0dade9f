import sqlmodel

from ._base import BaseModel


class Account(BaseModel, table=True):
    __tablename__: str = "accounts"

    uid: str = sqlmodel.Field(primary_key=True, index=True)
    """Hypergryph account UID"""
    role_id: str | None = sqlmodel.Field(default=None, nullable=True)
    """In-game role ID, shown instead of the UID when known"""
    nick_name: str | None = sqlmodel.Field(default=None, nullable=True)
    server_id: str = sqlmodel.Field(default="1")
    channel_id: int | None = sqlmodel.Field(default=None, nullable=True)

    user_token: str = ""
    oauth_token: str = ""
    u8_token: str = ""
    """Game token accepted by the record API"""
