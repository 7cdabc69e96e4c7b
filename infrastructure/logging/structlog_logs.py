import logging, sys
import structlog

from domain.config import get_metrics_config

_level = logging.getLevelName(get_metrics_config().log_level.upper())
if not isinstance(_level, int):
    _level = logging.INFO

# stdlib logger setup
logging.basicConfig(
    format="%(message)s",
    stream=sys.stdout,
    level=_level,
)

# structlog processors
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(_level),
)

logger = structlog.get_logger()
