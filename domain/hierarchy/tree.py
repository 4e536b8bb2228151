"""
Hierarchy utilities for entities linked by `parent_id`.

All walks are iterative with explicit visited/in-progress sets and a depth bound,
so malformed data (cycles, very deep chains) degrades to warnings instead of
runaway recursion.
"""

import logging
from collections.abc import Iterable, Sequence
from typing import TypeVar

from domain.errors import CycleDetected
from domain.schemas import TaxonomyBreadcrumb, TaxonomyEntity, TaxonomyTreeNode, TaxonomyType

logger = logging.getLogger(__name__)

ROOT_LEVEL = 0
MAX_HIERARCHY_DEPTH = 50

EntityT = TypeVar("EntityT", bound=TaxonomyEntity)


def _parent_id(entity: TaxonomyEntity) -> int | None:
    return getattr(entity, "parent_id", None)


def _index_by_id(entities: Iterable[EntityT]) -> dict[int, EntityT]:
    # First occurrence wins for duplicate ids
    by_id: dict[int, EntityT] = {}
    for entity in entities:
        by_id.setdefault(entity.id, entity)
    return by_id


def _warn_cycle(entity_id: int) -> None:
    logger.warning(
        "Cycle detected in taxonomy hierarchy for entity %d; treating it as root level.",
        entity_id,
        extra={"category": CycleDetected.__name__, "entity_id": entity_id},
    )


def _find_cycle_members(entities: Sequence[TaxonomyEntity], by_id: dict[int, TaxonomyEntity]) -> set[int]:
    """Return ids of entities that sit on a parent_id cycle (each id reported once)."""
    cyclic: set[int] = set()
    finished: set[int] = set()

    for entity in entities:
        if entity.id in finished:
            continue
        path: list[int] = []
        on_path: set[int] = set()
        node: TaxonomyEntity | None = entity
        while node is not None and node.id not in finished:
            if node.id in on_path:
                for member in path[path.index(node.id) :]:
                    if member not in cyclic:
                        cyclic.add(member)
                        _warn_cycle(member)
                break
            path.append(node.id)
            on_path.add(node.id)
            parent_id = _parent_id(node)
            node = by_id.get(parent_id) if parent_id is not None else None
        finished.update(path)

    return cyclic


def compute_levels(
    entities: Sequence[TaxonomyEntity],
    *,
    max_depth: int = MAX_HIERARCHY_DEPTH,
) -> dict[int, int]:
    """
    Precompute hierarchy levels for all entities.

    - Level is the length of the ancestor chain (roots are 0).
    - Members of a cycle are demoted to level 0 and warned about once each;
      their descendants are measured from them.
    - A chain longer than `max_depth` stops with a warning; the walk's topmost
      reached entity is treated as level 0.

    Returns:
        Mapping entity id -> level
    """
    by_id = _index_by_id(entities)
    cyclic = _find_cycle_members(list(by_id.values()), by_id)
    return _levels_from(by_id, cyclic, max_depth)


def _levels_from(by_id: dict[int, EntityT], cyclic: set[int], max_depth: int) -> dict[int, int]:
    levels: dict[int, int] = {entity_id: ROOT_LEVEL for entity_id in cyclic}

    for entity in by_id.values():
        if entity.id in levels:
            continue

        path: list[int] = []
        node: TaxonomyEntity = entity
        base = ROOT_LEVEL - 1
        while True:
            if node.id in levels:
                base = levels[node.id]
                break
            if len(path) >= max_depth:
                logger.warning("Maximum hierarchy depth (%d) reached for entity %d", max_depth, entity.id)
                break
            path.append(node.id)
            parent_id = _parent_id(node)
            parent = by_id.get(parent_id) if parent_id is not None else None
            if parent is None:
                break
            node = parent

        for member in reversed(path):
            base += 1
            levels[member] = base

    return levels


def build_tree(
    entities: Sequence[EntityT],
    *,
    max_depth: int = MAX_HIERARCHY_DEPTH,
) -> list[TaxonomyTreeNode]:
    """
    Build a forest from flat entities linked by `parent_id`.

    Entities without a parent, with a parent outside the input, or on a cycle
    become roots. Input order is preserved among siblings and roots.
    """
    by_id = _index_by_id(entities)
    cyclic = _find_cycle_members(list(by_id.values()), by_id)
    levels = _levels_from(by_id, cyclic, max_depth)

    nodes: dict[int, TaxonomyTreeNode] = {
        entity_id: TaxonomyTreeNode(entity=entity, level=levels.get(entity_id, ROOT_LEVEL))
        for entity_id, entity in by_id.items()
    }

    roots: list[TaxonomyTreeNode] = []
    for entity_id, entity in by_id.items():
        node = nodes[entity_id]
        parent_id = _parent_id(entity)
        parent_node = nodes.get(parent_id) if parent_id is not None else None
        if parent_node is None or entity_id in cyclic:
            roots.append(node)
        else:
            parent_node.children.append(node)

    return roots


def find_node(tree: Sequence[TaxonomyTreeNode], entity_id: int) -> TaxonomyTreeNode | None:
    stack = list(reversed(tree))
    while stack:
        node = stack.pop()
        if node.entity.id == entity_id:
            return node
        stack.extend(reversed(node.children))
    return None


def flatten_tree(tree: Sequence[TaxonomyTreeNode], *, include_collapsed: bool = False) -> list[TaxonomyTreeNode]:
    """Depth-first, pre-order flattening. Children of collapsed nodes are skipped unless asked for."""
    result: list[TaxonomyTreeNode] = []
    stack = list(reversed(tree))
    while stack:
        node = stack.pop()
        result.append(node)
        if node.expanded or include_collapsed:
            stack.extend(reversed(node.children))
    return result


def ancestors_of(
    entity: EntityT,
    all_entities: Sequence[EntityT],
    *,
    max_depth: int = MAX_HIERARCHY_DEPTH,
) -> list[EntityT]:
    """Return the ancestor chain root-first (the entity itself excluded)."""
    by_id = _index_by_id(all_entities)
    ancestors: list[EntityT] = []
    visited = {entity.id}

    current = entity
    depth = 0
    while True:
        parent_id = _parent_id(current)
        if parent_id is None:
            break
        if depth >= max_depth:
            logger.warning("Maximum hierarchy depth (%d) reached for entity %d", max_depth, entity.id)
            break
        if parent_id in visited:
            logger.warning("Circular reference detected in taxonomy hierarchy at entity %d", current.id)
            break
        parent = by_id.get(parent_id)
        if parent is None:
            break
        visited.add(parent_id)
        ancestors.append(parent)
        current = parent
        depth += 1

    ancestors.reverse()
    return ancestors


def descendants_of(entity: EntityT, all_entities: Sequence[EntityT]) -> list[EntityT]:
    """Return all descendants, depth-first in input order."""
    children_by_parent = group_by_parent(all_entities)
    descendants: list[EntityT] = []
    seen = {entity.id}

    stack = list(reversed(children_by_parent.get(entity.id, [])))
    while stack:
        child = stack.pop()
        if child.id in seen:
            continue
        seen.add(child.id)
        descendants.append(child)
        stack.extend(reversed(children_by_parent.get(child.id, [])))

    return descendants


def breadcrumbs_of(
    entity: EntityT,
    all_entities: Sequence[EntityT],
    kind: TaxonomyType,
) -> list[TaxonomyBreadcrumb]:
    trail = [*ancestors_of(entity, all_entities), entity]
    return [TaxonomyBreadcrumb(id=e.id, name=e.name, path=f"/{kind}s/{e.id}", type=kind) for e in trail]


def common_ancestor_of(entities: Sequence[EntityT], all_entities: Sequence[EntityT]) -> EntityT | None:
    """
    Deepest ancestor shared by every entity's chain.

    A single entity is its own common ancestor. Entities under different roots
    (or without ancestors) have none.
    """
    if not entities:
        return None
    if len(entities) == 1:
        return entities[0]

    chains = [ancestors_of(e, all_entities) for e in entities]
    common: EntityT | None = None
    for column in zip(*chains):
        first_id = column[0].id
        if all(a.id == first_id for a in column):
            common = column[0]
        else:
            break
    return common


def group_by_parent(entities: Iterable[EntityT]) -> dict[int | None, list[EntityT]]:
    groups: dict[int | None, list[EntityT]] = {}
    for entity in entities:
        groups.setdefault(_parent_id(entity), []).append(entity)
    return groups


def has_children(entity: TaxonomyEntity, all_entities: Iterable[TaxonomyEntity]) -> bool:
    return any(_parent_id(e) == entity.id for e in all_entities)


def depth_of(entity: EntityT, all_entities: Sequence[EntityT]) -> int:
    return len(ancestors_of(entity, all_entities))


def sort_by_hierarchy(entities: Sequence[EntityT]) -> list[EntityT]:
    """Parents before children, siblings in input order."""
    flattened = flatten_tree(build_tree(entities), include_collapsed=True)
    return [node.entity for node in flattened]  # type: ignore[misc]


def filter_entities(
    entities: Iterable[EntityT],
    query: str,
    fields: Sequence[str] = ("name", "title", "description"),
) -> list[EntityT]:
    """Keep entities whose searchable text contains every whitespace-separated term (case-insensitive)."""
    entities = list(entities)
    terms = query.lower().split()
    if not terms:
        return entities

    def _text(entity: TaxonomyEntity) -> str:
        return " ".join(str(v) for v in (getattr(entity, f, None) for f in fields) if v).lower()

    return [e for e in entities if all(term in _text(e) for term in terms)]
