from .logger import (
    get_logger,
    log_stage,
    log_event,
    log_once_process,
    bind_request_id,
    current_request_id,
)

__all__ = [
    "get_logger",
    "log_stage",
    "log_event",
    "log_once_process",
    "bind_request_id",
    "current_request_id",
]
