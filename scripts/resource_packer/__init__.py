"""
Resource Packer

Transforms a directory of raw resources into a directory of runtime-ready
resources. Configuration travels inside file and directory names as
``.``-separated flags, and an ordered list of tasks rasterizes fonts, packs
atlases, resizes and blends images while the tree is walked once.
"""

__version__ = "0.1.0"

from .config import PackerConfig
from .errors import PackerError, FlagError
from .flags import FlagShape, match, split_name, compose_name
from .resource import ResourceNode, ResourceTree
from .pipeline import PackingState, ResourcePacker, TaskPipeline
from .tasks import DEFAULT_TASKS, Task, TaskOutcome

__all__ = [
    "PackerConfig",
    "PackerError",
    "FlagError",
    "FlagShape",
    "match",
    "split_name",
    "compose_name",
    "ResourceNode",
    "ResourceTree",
    "PackingState",
    "ResourcePacker",
    "TaskPipeline",
    "DEFAULT_TASKS",
    "Task",
    "TaskOutcome",
]
