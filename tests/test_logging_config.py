import logging

from greenpe_exchange.logging_config import logger, set_logger_and_children_level


class TestLoggerLevels:
    def test_sets_package_and_child_loggers(self):
        child = logging.getLogger("greenpe_exchange.settlement")
        original = logger.level
        try:
            set_logger_and_children_level("debug")
            assert logger.level == logging.DEBUG
            assert child.level == logging.DEBUG

            set_logger_and_children_level(logging.WARNING)
            assert logger.level == logging.WARNING
            assert child.level == logging.WARNING
        finally:
            set_logger_and_children_level(original)
