import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def configure_logging(level: str = "INFO") -> None:
    level_name = level.upper()
    logging.basicConfig(level=level_name, format=LOG_FORMAT, datefmt=DATE_FORMAT)
    logging.getLogger("call_analytics").setLevel(level_name)
    # SQL echo is controlled by DB_ECHO; keep the engine quiet otherwise.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
