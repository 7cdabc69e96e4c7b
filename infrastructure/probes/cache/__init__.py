from .client import MeasurableRedisClient, estimate_size
from .commands import UNMEASURED_COMMANDS, command_from_args, command_name

__all__ = [
    "MeasurableRedisClient",
    "estimate_size",
    "UNMEASURED_COMMANDS",
    "command_from_args",
    "command_name",
]
