# loopgen/loopgenlog.py
import logging


class LoopgenLogger:
    """
    Centralized logger for loopgen.
    Use:
        from loopgen.loopgenlog import LOG
        LOG.info("Message")
    """

    @staticmethod
    def get_logger(name="loopgen", level=logging.INFO, suppress_urllib3=True):
        logger = logging.getLogger(name)
        logger.setLevel(level)

        # Avoid duplicate handlers
        if not logger.handlers:
            ch = logging.StreamHandler()
            ch.setLevel(level)
            formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
            ch.setFormatter(formatter)
            logger.addHandler(ch)

        logger.propagate = False  # prevent double logging

        # requests logs every connection through urllib3; one poll per second is noisy
        if suppress_urllib3:
            ulog = logging.getLogger("urllib3")
            ulog.setLevel(logging.WARNING)

        return logger

    @staticmethod
    def set_level(level):
        """Change the level of the shared logger and its handlers."""
        LOG.setLevel(level)
        for handler in LOG.handlers:
            handler.setLevel(level)


# singleton instance for easy import
LOG = LoopgenLogger.get_logger()
