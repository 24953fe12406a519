from .countdown import CountdownTimer
from .detached import DetachedTasks, get_detached_tasks, reset_detached_tasks

__all__ = [
    "CountdownTimer",
    "DetachedTasks",
    "get_detached_tasks",
    "reset_detached_tasks",
]
