from pydantic import BaseModel, ConfigDict, Field


class AccountRead(BaseModel):
    """Account without its tokens."""

    model_config = ConfigDict(from_attributes=True)

    uid: str
    role_id: str | None = None
    nick_name: str | None = None
    server_id: str | None = None
    channel_id: int | None = None


class AccountTokens(AccountRead):
    user_token: str = ""
    oauth_token: str = ""
    u8_token: str = ""


class AccountUpsert(BaseModel):
    """Fields to write for an account.

    ``None`` keeps the stored value; empty tokens never overwrite stored ones.
    """

    uid: str = Field(min_length=1)
    role_id: str | None = None
    nick_name: str | None = None
    server_id: str | None = None
    channel_id: int | None = None
    user_token: str | None = None
    oauth_token: str | None = None
    u8_token: str | None = None


class AccountOption(BaseModel):
    label: str
    value: str


class SwitchAccountRequest(BaseModel):
    uid: str


class AccountList(BaseModel):
    current: str
    nick_name: str
    options: list[AccountOption]
