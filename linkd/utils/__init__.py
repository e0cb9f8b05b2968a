"""linkd utilities package."""

from linkd.utils.logger import get_logger, logger, setup_logger
from linkd.utils.pool import CallOutcome, map_with_timeout

__all__ = ["get_logger", "logger", "setup_logger", "CallOutcome", "map_with_timeout"]
