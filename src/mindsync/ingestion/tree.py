"""Directory tree sum type and the single traversal used across the project.

Consumers that need to walk a scanned tree go through :func:`fold_tree` rather
than writing their own recursion.
"""

from __future__ import annotations

from typing import Annotated, Callable, List, Literal, TypeVar, Union

from pydantic import BaseModel, Field

R = TypeVar("R")


class FileNode(BaseModel):
    """Leaf node representing a regular file."""

    kind: Literal["file"] = "file"
    name: str
    path: str
    size_bytes: int = 0


class DirectoryNode(BaseModel):
    """Inner node representing a directory and its children."""

    kind: Literal["directory"] = "directory"
    name: str
    path: str
    children: List["TreeNode"] = Field(default_factory=list)


TreeNode = Annotated[Union[FileNode, DirectoryNode], Field(discriminator="kind")]
DirectoryNode.model_rebuild()


def fold_tree(
    node: FileNode | DirectoryNode,
    on_file: Callable[[FileNode, tuple[str, ...]], R],
    on_directory: Callable[[DirectoryNode, tuple[str, ...], List[R]], R],
    *,
    _trail: tuple[str, ...] = (),
) -> R:
    """Fold a tree bottom-up.

    Args:
        node: Node to fold.
        on_file: Called for each file with the names of its ancestors below the root.
        on_directory: Called for each directory with its ancestor trail and the
            already-folded results of its children.

    Returns:
        R: Result produced for ``node``.
    """
    if isinstance(node, FileNode):
        return on_file(node, _trail)
    child_trail = _trail + (node.name,)
    results = [
        fold_tree(child, on_file, on_directory, _trail=child_trail) for child in node.children
    ]
    return on_directory(node, _trail, results)


def extract_categories(tree: DirectoryNode) -> list[str]:
    """Return slash-joined relative paths of every directory below ``tree``.

    The root itself is not a category. Parents are listed before their children.
    """

    def on_file(_: FileNode, __: tuple[str, ...]) -> list[str]:
        return []

    def on_directory(
        node: DirectoryNode, trail: tuple[str, ...], children: List[list[str]]
    ) -> list[str]:
        collected: list[str] = []
        if trail:
            collected.append("/".join(trail[1:] + (node.name,)))
        for child in children:
            collected.extend(child)
        return collected

    return fold_tree(tree, on_file, on_directory)


__all__ = [
    "FileNode",
    "DirectoryNode",
    "TreeNode",
    "fold_tree",
    "extract_categories",
]
