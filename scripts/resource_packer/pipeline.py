"""
Task pipeline and packing run coordinator.

``TaskPipeline`` walks the resource tree depth-first and offers every node to
the ordered task list until one task claims it. ``ResourcePacker`` wraps one
complete run: discovery, staging, the pass itself and the final flush.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from .config import PackerConfig
from .errors import PackerError
from .resource import ResourceNode, ResourceTree
from .services.atlas import AtlasConfig, AtlasGenerator
from .services.descriptors import DescriptorWriter
from .services.fonts import FontRasterizer, PillowFontRasterizer
from .tasks import DEFAULT_TASKS
from .tasks.base import Diagnostic, PackingContext, Severity, Task, TaskOutcome

logger = logging.getLogger(__name__)


@dataclass
class PackingState:
    """Summary of one packing run."""
    start_time: Optional[float] = None
    duration: float = 0.0
    nodes_offered: int = 0
    unclaimed: int = 0
    failures: int = 0
    claims: Dict[str, int] = field(default_factory=dict)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    files_written: List[Path] = field(default_factory=list)

    def diagnostics_at(self, severity: Severity) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is severity]

    @property
    def errors(self) -> List[Diagnostic]:
        return self.diagnostics_at(Severity.ERROR)

    @property
    def warnings(self) -> List[Diagnostic]:
        return self.diagnostics_at(Severity.WARNING)


class TaskPipeline:
    """
    Offers every node of a tree to an ordered task list, once per pass.

    - Nodes are visited depth-first, a directory before its children.
    - A node goes to the tasks in list order until one claims it.
    - A removed node is neither recursed into nor flushed.
    - Children are read after the node's tasks ran, so nodes added by a task
      get the whole task list and removed ones are never offered.
    - A task raising an exception counts as a claim with an error
      diagnostic; the pass continues with the next node.
    """

    def __init__(self, tasks: Sequence[Task]):
        self.tasks = list(tasks)

    def run(self, tree: ResourceTree, context: PackingContext,
            state: Optional[PackingState] = None) -> PackingState:
        state = state if state is not None else PackingState()
        self._visit(tree.root, context, state)
        return state

    def _visit(self, node: ResourceNode, context: PackingContext, state: PackingState) -> None:
        if node.process:
            self.offer(node, context, state)

        if node.removed or not node.is_directory:
            return

        # Tasks append to the parent or remove the offered child, so a
        # positional walk sees every live child exactly once
        index = 0
        while index < len(node.children):
            child = node.children[index]
            self._visit(child, context, state)
            if index < len(node.children) and node.children[index] is child:
                index += 1

    def offer(self, node: ResourceNode, context: PackingContext,
              state: PackingState) -> Optional[TaskOutcome]:
        """Offer one node to the task list; returns the claiming outcome."""
        state.nodes_offered += 1

        for task in self.tasks:
            try:
                outcome = task.operate(node, context)
            except Exception as e:
                logger.debug(f"{task.name} raised on {node.tree_path}", exc_info=True)
                state.failures += 1
                outcome = task.claim(node).error(f"Task failed: {e}")

            state.diagnostics.extend(outcome.diagnostics)
            if outcome.claimed:
                state.claims[task.name] = state.claims.get(task.name, 0) + 1
                return outcome

        state.unclaimed += 1
        return None


class ResourcePacker:
    """
    Runs one forward pass over one resource tree.

    Services default to the Pillow based implementations and can be replaced,
    for instance with stubs in tests.
    """

    def __init__(self, config: Optional[PackerConfig] = None,
                 tasks: Optional[Sequence[Task]] = None,
                 font_rasterizer: Optional[FontRasterizer] = None,
                 atlas_generator: Optional[AtlasGenerator] = None,
                 descriptor_writer: Optional[DescriptorWriter] = None):
        self.config = config or PackerConfig.default()
        self.pipeline = TaskPipeline(DEFAULT_TASKS if tasks is None else tasks)
        self.descriptor_writer = descriptor_writer or DescriptorWriter()
        self.font_rasterizer = font_rasterizer or PillowFontRasterizer(self.descriptor_writer)
        self.atlas_generator = atlas_generator or AtlasGenerator(AtlasConfig(
            padding=self.config.atlas_padding,
            power_of_two=self.config.atlas_power_of_two,
            max_size=self.config.atlas_max_size,
        ))
        self.state = PackingState()
        self.logger = self._setup_logging()

    def _setup_logging(self) -> logging.Logger:
        """Set up logging for the packer."""
        packer_logger = logging.getLogger("resource_packer")
        packer_logger.setLevel(self.config.log_level.upper())

        if not packer_logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            packer_logger.addHandler(handler)

        return packer_logger

    def pack(self, input_dir: Union[str, Path], output_dir: Union[str, Path]) -> PackingState:
        """
        Transform ``input_dir`` into ``output_dir``.

        Raises:
            PackerError: If the configuration is invalid or the output
                directory lies inside the input directory
        """
        errors = self.config.validate()
        if errors:
            raise PackerError(f"Invalid configuration: {'; '.join(errors)}")

        input_dir = Path(input_dir)
        output_dir = Path(output_dir)
        if output_dir.resolve().is_relative_to(input_dir.resolve()):
            raise PackerError(f"Output directory {output_dir} must not be inside {input_dir}")

        self.logger.info(f"Packing {input_dir} into {output_dir}")
        self.state = PackingState(start_time=time.time())

        tree = ResourceTree.discover(input_dir, skip_hidden=self.config.skip_hidden)
        tree.start(self.config.staging_dir)
        try:
            context = PackingContext(
                tree=tree,
                config=self.config,
                font_rasterizer=self.font_rasterizer,
                atlas_generator=self.atlas_generator,
                descriptor_writer=self.descriptor_writer,
            )
            self.pipeline.run(tree, context, self.state)
            self.state.files_written = tree.finish(output_dir)
        finally:
            tree.cleanup()

        self.state.duration = time.time() - self.state.start_time
        self._log_summary()
        return self.state

    def _log_summary(self) -> None:
        state = self.state
        self.logger.info(
            f"Packed in {state.duration:.2f}s: {state.nodes_offered} nodes offered, "
            f"{state.unclaimed} unclaimed, {len(state.files_written)} files written"
        )
        for task_name, count in state.claims.items():
            self.logger.debug(f"  {task_name}: {count} claimed")
        if state.errors or state.warnings:
            self.logger.warning(f"{len(state.errors)} errors, {len(state.warnings)} warnings")
