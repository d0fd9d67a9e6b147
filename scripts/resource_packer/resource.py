"""
Mutable resource tree shared by all tasks of a packing run.
"""

import logging
import shutil
import tempfile
import weakref
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from .errors import ResourceError
from .flags import ParsedName, split_name

logger = logging.getLogger(__name__)


class ResourceNode:
    """
    A file or folder of the resource tree.

    Flags are parsed from the name once, when the node is created, and never
    change afterwards. A task that needs different flags removes the node and
    adds a new one built from a different backing file.

    The parent link is a weak reference and only used for navigation; children
    are owned by their parent's ``children`` list, in visiting order.
    """

    def __init__(self, path: Union[str, Path], parent: Optional["ResourceNode"] = None,
                 process: bool = True, skip_hidden: bool = True):
        self.path = Path(path)
        self.name = self.path.name
        self.is_directory = self.path.is_dir()
        self.process = process
        self.removed = False
        self.children: List["ResourceNode"] = []
        self._parsed: ParsedName = split_name(self.name, self.is_directory)
        self._parent = weakref.ref(parent) if parent is not None else None
        self._skip_hidden = skip_hidden

    @classmethod
    def from_path(cls, path: Union[str, Path], parent: Optional["ResourceNode"] = None,
                  process: bool = True, skip_hidden: bool = True) -> "ResourceNode":
        """
        Build a node and, for directories, its whole subtree.

        Children are discovered in sorted name order so that runs are
        reproducible across filesystems.
        """
        path = Path(path)
        if not path.exists():
            raise ResourceError(f"Resource does not exist: {path}")

        node = cls(path, parent, process=process, skip_hidden=skip_hidden)
        if node.is_directory:
            for entry in sorted(path.iterdir(), key=lambda p: p.name):
                if skip_hidden and entry.name.startswith("."):
                    logger.debug(f"Skipping hidden entry {entry}")
                    continue
                node.children.append(cls.from_path(entry, node, process, skip_hidden))
        return node

    @property
    def parent(self) -> Optional["ResourceNode"]:
        return self._parent() if self._parent is not None else None

    @property
    def flags(self) -> Tuple[str, ...]:
        return self._parsed.flags

    @property
    def base_name(self) -> str:
        return self._parsed.base

    @property
    def extension(self) -> Optional[str]:
        return self._parsed.extension

    @property
    def clean_name(self) -> str:
        """Name without flags, used for the output tree."""
        return self._parsed.clean_name

    def has_extension(self, *extensions: str) -> bool:
        if self.is_directory or self.extension is None:
            return False
        return self.extension.lower() in {ext.lower() for ext in extensions}

    @property
    def tree_path(self) -> str:
        """Slash separated path from the root, for diagnostics."""
        parts = []
        node: Optional[ResourceNode] = self
        while node is not None:
            parts.append(node.name)
            node = node.parent
        return "/".join(reversed(parts))

    def add_child(self, path: Union[str, Path], process: bool = True) -> "ResourceNode":
        """
        Append a node built from the given backing file or folder.

        Args:
            path: Backing file or folder of the new node
            process: When False, the pipeline flushes the node but never
                offers it to any task

        Returns:
            The new child node, with its flags already parsed
        """
        self._ensure_live()
        if not self.is_directory:
            raise ResourceError(f"Cannot add child to file {self.tree_path}", self)

        child = ResourceNode.from_path(path, self, process=process, skip_hidden=self._skip_hidden)
        self.children.append(child)
        return child

    def remove_child(self, child: "ResourceNode") -> None:
        """Detach a child and mark it removed."""
        self._ensure_live()
        for index, existing in enumerate(self.children):
            if existing is child:
                del self.children[index]
                child.removed = True
                return
        raise ResourceError(f"{child.tree_path} is not a child of {self.tree_path}", child)

    def child_named(self, clean_name: str) -> Optional["ResourceNode"]:
        """Find a child by its clean (output) name."""
        for child in self.children:
            if child.clean_name == clean_name:
                return child
        return None

    def iter_nodes(self) -> Iterator["ResourceNode"]:
        """Depth-first iteration over this node and its live descendants."""
        yield self
        for child in list(self.children):
            yield from child.iter_nodes()

    @contextmanager
    def mutation(self):
        """
        Treat a series of child mutations as one unit.

        When the body raises, the child sequence and the removed markers are
        restored to their state on entry and the exception propagates.
        """
        self._ensure_live()
        snapshot = list(self.children)
        removed = [child.removed for child in snapshot]

        try:
            yield self
        except Exception:
            self.children[:] = snapshot
            for child, was_removed in zip(snapshot, removed):
                child.removed = was_removed
            logger.debug(f"Rolled back mutation of {self.tree_path}")
            raise

    def _ensure_live(self) -> None:
        if self.removed:
            raise ResourceError(f"Cannot mutate removed node {self.tree_path}", self)

    def __repr__(self) -> str:
        kind = "dir" if self.is_directory else "file"
        state = " removed" if self.removed else ""
        return f"<ResourceNode {kind} {self.tree_path!r}{state}>"


class ResourceTree:
    """The resource hierarchy of one run, with its output staging area."""

    def __init__(self, root: ResourceNode):
        if not root.is_directory:
            raise ResourceError(f"Tree root must be a directory: {root.path}", root)
        self.root = root
        self.staging_dir: Optional[Path] = None
        self._folder_counter = 0

    @classmethod
    def discover(cls, input_dir: Union[str, Path], skip_hidden: bool = True) -> "ResourceTree":
        """Build the tree from an input directory."""
        input_dir = Path(input_dir)
        if not input_dir.is_dir():
            raise ResourceError(f"Input directory not found: {input_dir}")

        root = ResourceNode.from_path(input_dir, skip_hidden=skip_hidden)
        logger.info(f"Discovered {sum(1 for _ in root.iter_nodes()) - 1} resources in {input_dir}")
        return cls(root)

    def iter_nodes(self) -> Iterator[ResourceNode]:
        return self.root.iter_nodes()

    def start(self, staging_dir: Optional[Union[str, Path]] = None) -> Path:
        """Create the output staging area for this run."""
        if staging_dir is not None:
            Path(staging_dir).mkdir(parents=True, exist_ok=True)
        self.staging_dir = Path(tempfile.mkdtemp(prefix="resource-packer-", dir=staging_dir))
        self._folder_counter = 0
        logger.debug(f"Staging area created at {self.staging_dir}")
        return self.staging_dir

    def new_folder(self, label: str = "task") -> Path:
        """Hand out a fresh, empty folder inside the staging area."""
        if self.staging_dir is None:
            raise ResourceError("Run not started, no staging area available")

        self._folder_counter += 1
        folder = self.staging_dir / f"{self._folder_counter:04d}-{label}"
        folder.mkdir()
        return folder

    def finish(self, output_dir: Union[str, Path]) -> List[Path]:
        """
        Flush surviving nodes to the output directory under clean names.

        Returns:
            Paths of all files written
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        written: List[Path] = []
        try:
            self._flush_children(self.root, output_dir, written)
        finally:
            self.cleanup()

        logger.info(f"Wrote {len(written)} files to {output_dir}")
        return written

    def cleanup(self) -> None:
        """Delete the staging area."""
        if self.staging_dir is not None:
            shutil.rmtree(self.staging_dir, ignore_errors=True)
            logger.debug(f"Staging area {self.staging_dir} removed")
            self.staging_dir = None

    def _flush_children(self, node: ResourceNode, target_dir: Path, written: List[Path]) -> None:
        used_names = set()
        for child in node.children:
            if child.clean_name in used_names:
                logger.error(f"Duplicate output name '{child.clean_name}' in {node.tree_path}, "
                             f"skipping {child.tree_path}")
                continue
            used_names.add(child.clean_name)

            target = target_dir / child.clean_name
            if child.is_directory:
                target.mkdir(parents=True, exist_ok=True)
                self._flush_children(child, target, written)
            else:
                shutil.copy2(child.path, target)
                written.append(target)
