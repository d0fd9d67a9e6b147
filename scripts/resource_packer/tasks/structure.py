"""
Tasks that reshape the tree without converting file contents.
"""

from ..flags import has_keyword
from ..resource import ResourceNode
from .base import PackingContext, Task, TaskOutcome


class IgnoreTask(Task):
    """Drops any file or directory flagged ``ignore``."""

    expects = "any node flagged 'ignore'"
    produces = "nothing, the node and its subtree are removed"

    def operate(self, node: ResourceNode, context: PackingContext) -> TaskOutcome:
        if node.parent is None or not has_keyword(node.flags, "ignore"):
            return self.skip(node)

        node.parent.remove_child(node)
        return self.claim(node).debug("Ignored.")


class FlattenTask(Task):
    """
    Moves the children of a directory flagged ``flatten`` into its parent.

    The flattened directory is removed; its former children are appended to
    the parent and go through the whole task list from the start.
    """

    expects = "directories flagged 'flatten'"
    produces = "the directory's children, re-added to its parent"

    def operate(self, node: ResourceNode, context: PackingContext) -> TaskOutcome:
        if not node.is_directory or node.parent is None or not has_keyword(node.flags, "flatten"):
            return self.skip(node)

        outcome = self.claim(node)
        parent = node.parent

        clashes = []
        for child in node.children:
            existing = parent.child_named(child.clean_name)
            if existing is not None and existing is not node:
                clashes.append(child.clean_name)
        if clashes:
            return outcome.error(f"Cannot flatten, names already present in parent: {', '.join(clashes)}")

        moved = list(node.children)
        with parent.mutation():
            parent.remove_child(node)
            for child in moved:
                parent.add_child(child.path, process=child.process)

        return outcome.debug(f"Flattened {len(moved)} entries into {parent.tree_path}.")


class RemoveEmptyDirectoriesTask(Task):
    """
    Removes directories without any file below them.

    Entries flagged ``ignore`` do not count, since they are dropped later in
    the pass. Other than that, directories are offered before their children,
    so a directory emptied by tasks working on its children survives.
    """

    expects = "directories"
    produces = "nothing, empty directories are removed"

    def operate(self, node: ResourceNode, context: PackingContext) -> TaskOutcome:
        if not node.is_directory or node.parent is None or _keeps_files(node):
            return self.skip(node)

        node.parent.remove_child(node)
        return self.claim(node).debug("Removed empty directory.")


def _keeps_files(node: ResourceNode) -> bool:
    for child in node.children:
        if has_keyword(child.flags, "ignore"):
            continue
        if not child.is_directory or _keeps_files(child):
            return True
    return False
