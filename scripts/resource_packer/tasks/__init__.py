"""
Built-in tasks, and the order the packer offers nodes to them.

Order matters: a node goes to the first task that claims it, and nodes a
task adds go through the whole list again. Ignored nodes never reach a
converter, fonts are rasterized before their pages could be resized or
blended, and directories are flattened before anything is packed or pruned.
"""

from .base import Diagnostic, PackingContext, Severity, Task, TaskOutcome
from .fonts import CreateFontsTask
from .images import PackTask, PreBlendTask, ResizeTask
from .structure import FlattenTask, IgnoreTask, RemoveEmptyDirectoriesTask

DEFAULT_TASKS = [
    IgnoreTask(),
    CreateFontsTask(),
    FlattenTask(),
    ResizeTask(),
    PreBlendTask(),
    PackTask(),
    RemoveEmptyDirectoriesTask(),
]

__all__ = [
    "DEFAULT_TASKS",
    "Task",
    "TaskOutcome",
    "Diagnostic",
    "Severity",
    "PackingContext",
    "IgnoreTask",
    "CreateFontsTask",
    "FlattenTask",
    "ResizeTask",
    "PreBlendTask",
    "PackTask",
    "RemoveEmptyDirectoriesTask",
]
