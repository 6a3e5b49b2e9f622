"""Category tree persisted alongside the file index."""

from __future__ import annotations

import logging
import re
import uuid
from typing import Iterable, Iterator, List, Optional

from pydantic import BaseModel, Field

from .resolver import normalize_path

LOGGER = logging.getLogger(__name__)

DEFAULT_ROOTS = ("Work", "Life", "Archive", "_Unclassified")


class CategoryNode(BaseModel):
    """A node of the category tree.

    ``path`` is always the slash-joined chain of ancestor names with a leading
    slash, e.g. ``/Work/Finance``.
    """

    id: str
    name: str
    path: str
    children: List["CategoryNode"] = Field(default_factory=list)


CategoryNode.model_rebuild()


def _slug(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")
    return slug or f"cat_{uuid.uuid4().hex[:8]}"


def default_roots() -> List[CategoryNode]:
    """Return the initial category roots for a new library."""
    return [CategoryNode(id=_slug(name), name=name, path=f"/{name}") for name in DEFAULT_ROOTS]


class CategoryTree:
    """Mutable view over a list of root :class:`CategoryNode` objects."""

    def __init__(self, roots: Optional[Iterable[CategoryNode]] = None, *, max_children: int = 10):
        self.roots: List[CategoryNode] = list(roots) if roots is not None else default_roots()
        self.max_children = max_children

    def walk(self) -> Iterator[CategoryNode]:
        """Yield nodes depth-first, parents before children."""
        stack = list(reversed(self.roots))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def all_paths(self) -> List[str]:
        """Return every category path, parents first."""
        return [node.path for node in self.walk()]

    def find(self, path: str) -> Optional[CategoryNode]:
        """Return the node at ``path``, matching names case-insensitively."""
        segments = [segment for segment in normalize_path(path).split("/") if segment]
        if not segments:
            return None
        current = self.roots
        found: Optional[CategoryNode] = None
        for segment in segments:
            found = next(
                (node for node in current if node.name.lower() == segment.lower()), None
            )
            if found is None:
                return None
            current = found.children
        return found

    def add_category(self, name: str, parent: Optional[str] = None) -> bool:
        """Add ``name`` under ``parent`` (or at the root).

        Returns:
            bool: False when the parent is unknown, the name already exists or
            the parent already holds ``max_children`` entries.
        """
        name = name.strip().strip("/")
        if not name:
            return False
        if parent:
            parent_node = self.find(parent)
            if parent_node is None:
                return False
            siblings = parent_node.children
            prefix = parent_node.path
        else:
            siblings = self.roots
            prefix = ""
        if any(node.name.lower() == name.lower() for node in siblings):
            return False
        if len(siblings) >= self.max_children:
            LOGGER.warning(
                "Max children limit (%d) reached under %s", self.max_children, prefix or "/"
            )
            return False
        node_id = f"{_slug(name)}_{uuid.uuid4().hex[:6]}"
        siblings.append(CategoryNode(id=node_id, name=name, path=f"{prefix}/{name}"))
        return True

    def ensure_path(self, path: str) -> None:
        """Create every missing node along ``path`` (bounds not enforced)."""
        current = self.roots
        prefix = ""
        for segment in (part for part in path.split("/") if part):
            node = next(
                (item for item in current if item.name.lower() == segment.lower()), None
            )
            if node is None:
                node_path = f"{prefix}/{segment}"
                node = CategoryNode(id=_slug(node_path), name=segment, path=node_path)
                current.append(node)
            prefix = node.path
            current = node.children


__all__ = ["CategoryNode", "CategoryTree", "DEFAULT_ROOTS", "default_roots"]
