"""Logging setup. Called once from the application lifespan."""
import logging

from duesbook.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = None) -> None:
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper(), format=LOG_FORMAT)
    # Audit events are JSON lines; keep them even when the root level is raised
    logging.getLogger("audit").setLevel(logging.INFO)
