"""
Task contract shared by every pipeline stage.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

from ..flags import compose_name
from ..resource import ResourceNode, ResourceTree

if TYPE_CHECKING:
    from ..config import PackerConfig
    from ..services.atlas import AtlasGenerator
    from ..services.descriptors import DescriptorWriter
    from ..services.fonts import FontRasterizer

logger = logging.getLogger("resource_packer.tasks")


class Severity(Enum):
    """Severity of a task diagnostic."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal finding reported by a task about one node."""
    severity: Severity
    message: str
    task: str
    node: str


@dataclass
class TaskOutcome:
    """
    Result of offering one node to one task.

    ``claimed`` means the node belongs to the task's domain, not that it was
    transformed: a task claims a font without a size and leaves it alone.
    """
    task: str
    node: str
    claimed: bool = False
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def report(self, severity: Severity, message: str) -> "TaskOutcome":
        logger.log(severity.value, f"[{self.task}] {message} ({self.node})")
        self.diagnostics.append(Diagnostic(severity, message, self.task, self.node))
        return self

    def debug(self, message: str) -> "TaskOutcome":
        return self.report(Severity.DEBUG, message)

    def info(self, message: str) -> "TaskOutcome":
        return self.report(Severity.INFO, message)

    def warning(self, message: str) -> "TaskOutcome":
        return self.report(Severity.WARNING, message)

    def error(self, message: str) -> "TaskOutcome":
        return self.report(Severity.ERROR, message)

    def has(self, severity: Severity) -> bool:
        return any(d.severity is severity for d in self.diagnostics)


@dataclass
class PackingContext:
    """Run-scoped services handed to every task."""
    tree: ResourceTree
    config: "PackerConfig"
    font_rasterizer: "FontRasterizer"
    atlas_generator: "AtlasGenerator"
    descriptor_writer: "DescriptorWriter"

    def new_folder(self, label: str = "task") -> Path:
        return self.tree.new_folder(label)


class Task(ABC):
    """
    A stateless transformation offered one node at a time.

    Subclasses document the node shapes they expect and the nodes they
    produce in ``expects`` and ``produces``, so the fixed order of the
    default task list stays auditable.
    """

    expects: str = ""
    produces: str = ""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def operate(self, node: ResourceNode, context: PackingContext) -> TaskOutcome:
        """
        Inspect one node and possibly transform it.

        The task only looks at ``node`` and may mutate ``node``'s own children
        or its parent's child list (to remove ``node`` or add siblings).

        Returns:
            TaskOutcome whose ``claimed`` flag stops further tasks for the node
        """

    def skip(self, node: ResourceNode) -> TaskOutcome:
        """Outcome for a node outside this task's domain."""
        return TaskOutcome(self.name, node.tree_path, claimed=False)

    def claim(self, node: ResourceNode) -> TaskOutcome:
        """Outcome for a node this task owns."""
        return TaskOutcome(self.name, node.tree_path, claimed=True)

    def output_name(self, node: ResourceNode, drop: Optional[List[str]] = None) -> str:
        """Name for a replacement of ``node`` without the given flags."""
        drop = drop or []
        flags = [flag for flag in node.flags if flag not in drop]
        return compose_name(node.base_name, flags, node.extension)

    def __repr__(self) -> str:
        return f"<{self.name}>"
