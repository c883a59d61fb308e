import logging
import os


class LoggingConfigurator:
    """
    一个用于集中配置项目日志记录器的类。
    """

    def __init__(self, rootLogLevel: str = "INFO"):
        """
        初始化配置器。
        :param rootLogLevel: 从 .env 文件读取的根日志级别字符串。
        """
        self.logLevel = getattr(logging, rootLogLevel.upper(), logging.INFO)
        self.formatter = logging.Formatter("%(asctime)s:%(levelname)s:%(name)s: %(message)s")
        self.streamHandler = logging.StreamHandler()
        self.streamHandler.setFormatter(self.formatter)

    def configure(self):
        """
        应用所有日志配置。
        """
        self._configurePackageLogger()
        self._configureDiscordLogger()
        logging.getLogger(__name__).info("日志记录器配置完成。")

    def _configurePackageLogger(self):
        """配置本项目包级别的日志记录器，各模块通过 __name__ 继承它。"""
        logger = logging.getLogger("MoveTogether")
        logger.setLevel(self.logLevel)
        if not logger.handlers:
            logger.addHandler(self.streamHandler)
        logger.propagate = False

    def _configureDiscordLogger(self):
        """配置 discord.py 的日志记录器，以便捕获其内部错误。"""
        # 从环境变量获取 discord.py 的日志级别，默认为 INFO
        log_level_str = os.getenv("DISCORD_LOG_LEVEL", "INFO").upper()
        log_level = getattr(logging, log_level_str, logging.INFO)

        discord_logger = logging.getLogger("discord")
        discord_logger.setLevel(log_level)
        if not discord_logger.handlers:
            discord_logger.addHandler(self.streamHandler)
        discord_logger.propagate = False
