from datetime import datetime
from zoneinfo import ZoneInfo


class TimeUtils:
    """
    一个用于处理时间相关操作的工具类。
    """

    @staticmethod
    def now_utc() -> datetime:
        """当前时间，带 UTC 时区信息。"""
        return datetime.now(ZoneInfo("UTC"))

    @staticmethod
    def format_discord_timestamp(moment: datetime, style: str = "R") -> str:
        """
        生成 Discord 的时间戳标记，例如 `<t:1700000000:R>` 会显示为“5分钟后”。
        朴素的 datetime 视为 UTC。
        """
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=ZoneInfo("UTC"))
        return f"<t:{int(moment.timestamp())}:{style}>"
