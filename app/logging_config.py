"""
Logging setup shared by the worker and scripts.
"""
import logging
from contextvars import ContextVar

# Monitoring run ID context variable
run_id_var: ContextVar[str] = ContextVar("run_id", default="")

LOG_FORMAT = "%(asctime)s level=%(levelname)s logger=%(name)s msg=%(message)s run_id=%(run_id)s"


# Custom logging filter to add run_id
class RunIDFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = run_id_var.get("")
        return True


def configure_logging(level: int = logging.INFO) -> None:
    """Install the key=value format on the root logger."""
    logging.basicConfig(level=level, format=LOG_FORMAT)

    root_logger = logging.getLogger()
    if not any(isinstance(f, RunIDFilter) for f in root_logger.filters):
        root_logger.addFilter(RunIDFilter())
    for handler in root_logger.handlers:
        if not any(isinstance(f, RunIDFilter) for f in handler.filters):
            handler.addFilter(RunIDFilter())
