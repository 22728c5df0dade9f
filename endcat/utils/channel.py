CN_OFFICIAL_CHANNEL = 1
CN_BILIBILI_CHANNEL = 2
GLOBAL_CHANNEL = 6

_GLOBAL_SERVERS = {"2": "亚服", "3": "美欧服"}


def channel_label(channel_id: int | None, server_id: str | None) -> str | None:
    """Human readable name of an account's channel and server, if known."""
    if channel_id == CN_OFFICIAL_CHANNEL:
        return "官服"
    if channel_id == CN_BILIBILI_CHANNEL:
        return "B服"
    if channel_id == GLOBAL_CHANNEL and server_id:
        return _GLOBAL_SERVERS.get(server_id)
    return None
