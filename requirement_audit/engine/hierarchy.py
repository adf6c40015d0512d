"""
Hierarchy Converter — nested import trees ⇄ flat, pointer-linked storage.

Ordering contract:
  • ``flatten_requirements`` emits a pre-order traversal: each node, then
    its flattened descendants, depth-first, in input child order.
  • ``build_hierarchy`` returns roots in flat-list order and children in
    the order of their parent's ``children_ids``.
"""

from __future__ import annotations

import logging

from requirement_audit.models.schemas import (
    Requirement,
    RequirementImport,
    RequirementTreeNode,
)

logger = logging.getLogger(__name__)


def flatten_requirements(
    requirements: list[RequirementImport],
    catalog_title: str = "",
    parent_id: str | None = None,
) -> list[Requirement]:
    """Flatten a nested import into storage nodes with explicit parent/children links."""
    flat: list[Requirement] = []
    for req in requirements:
        flat.append(
            Requirement(
                id=req.id,
                level=req.level,
                section=req.section,
                heading=req.heading,
                text=req.text,
                parent_id=parent_id,
                children_ids=[child.id for child in req.children],
                is_container=is_blank(req.text),
                important=req.important,
                dependencies=list(req.dependencies),
                n_dep=req.n_dep,
                n_audit=0,
                effort=req.effort,
                risk=0.0,
                catalog_title=catalog_title,
            )
        )
        if req.children:
            flat.extend(flatten_requirements(req.children, catalog_title, req.id))
    return flat


def collect_ids(requirement: RequirementImport) -> list[str]:
    """All ids in a nested import subtree, pre-order."""
    ids = [requirement.id]
    for child in requirement.children:
        ids.extend(collect_ids(child))
    return ids


def build_hierarchy(requirements: list[Requirement]) -> list[RequirementTreeNode]:
    """
    Rebuild the nested view from flat storage.
    A node is a root when its section has a single segment; children come
    from ``children_ids``.  Ids without a matching node are skipped.
    """
    by_id = index_by_id(requirements)
    roots = [req for req in requirements if req.depth == 0]
    return [_build_node(root, by_id, frozenset()) for root in roots]


def _build_node(
    req: Requirement,
    by_id: dict[str, Requirement],
    ancestors: frozenset[str],
) -> RequirementTreeNode:
    path = ancestors | {req.id}
    children: list[RequirementTreeNode] = []
    for child_id in req.children_ids:
        child = by_id.get(child_id)
        if child is None:
            logger.debug(f"Skipping orphaned child id {child_id} under {req.id}")
            continue
        if child_id in path:
            logger.warning(f"Cycle detected at {child_id} under {req.id}; not descending")
            continue
        children.append(_build_node(child, by_id, path))
    return RequirementTreeNode(**req.model_dump(), children=children)


def index_by_id(requirements: list[Requirement]) -> dict[str, Requirement]:
    """Map id → requirement (first occurrence wins)."""
    by_id: dict[str, Requirement] = {}
    for req in requirements:
        by_id.setdefault(req.id, req)
    return by_id


def is_blank(text: str | None) -> bool:
    return not text or not text.strip()
