import logging
from pharmacy.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper(), format=LOG_FORMAT)
    # kafka-python logs every reconnect at INFO
    logging.getLogger("kafka").setLevel(logging.WARNING)
