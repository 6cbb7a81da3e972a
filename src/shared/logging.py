import logging
import sys

from opentelemetry._logs import set_logger_provider
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor, ConsoleLogRecordExporter

from .config import settings


def setup_logging(level: str | None = None) -> None:
    """Configure stderr logging, bridged into OpenTelemetry logs."""
    level = (level or settings.LOG_LEVEL).upper()

    # 1. Setup OpenTelemetry Logger Provider
    logger_provider = LoggerProvider()

    # Console export is opt-in so normal CLI output stays clean
    if settings.TELEMETRY_CONSOLE:
        console_exporter = ConsoleLogRecordExporter()
        logger_provider.add_log_record_processor(BatchLogRecordProcessor(console_exporter))

    set_logger_provider(logger_provider)

    # 2. Attach OTel LoggingHandler to Python's root logger
    handler = LoggingHandler(level=getattr(logging, level), logger_provider=logger_provider)

    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(level)

    # stdout carries no log lines; the CLI may print there
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    root.addHandler(stream_handler)


logger = logging.getLogger("kubecerts")
