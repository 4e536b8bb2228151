"""Hierarchy utilities for legacy entities whose `title` encodes the full path ("USA / Texas / Dallas")."""

import re
from collections.abc import Sequence
from typing import TypeVar

from domain.schemas import TaxonomyBreadcrumb, TaxonomyEntity, TaxonomyTreeNode, TaxonomyType

TITLE_SEPARATOR = " / "

EntityT = TypeVar("EntityT", bound=TaxonomyEntity)

_ANY_SEPARATOR_RE = re.compile(r"\s*(?:›|/)\s*")


def _path_of(entity: TaxonomyEntity, separator: str) -> list[str]:
    return (entity.title or entity.name).split(separator)


def title_level(title: str | None, separator: str = TITLE_SEPARATOR) -> int:
    if not title:
        return 0
    return len(title.split(separator)) - 1


def hierarchy_path(entity: TaxonomyEntity) -> list[str]:
    """
    Split a display title into its path segments.

    Understands both the "›" and "/" separators:
        "USA › Texas › Dallas" -> ["USA", "Texas", "Dallas"]
    """
    title = entity.title or entity.name
    return [part for part in _ANY_SEPARATOR_RE.split(title) if part] or [title]


def leaf_name(entity: TaxonomyEntity) -> str:
    return hierarchy_path(entity)[-1]


def build_title_tree(entities: Sequence[EntityT], separator: str = TITLE_SEPARATOR) -> list[TaxonomyTreeNode]:
    """
    Build a forest by matching title prefixes.

    A node's parent is the entity whose title equals its title minus the last
    segment. Entities whose parent title is absent become roots (same rule as
    the parent_id builder). Duplicate titles keep the first entity.
    """
    nodes: dict[str, TaxonomyTreeNode] = {}
    ordered: list[tuple[list[str], TaxonomyTreeNode]] = []
    for entity in entities:
        key = entity.title or entity.name
        if key in nodes:
            continue
        node = TaxonomyTreeNode(entity=entity, level=title_level(entity.title, separator))
        nodes[key] = node
        ordered.append((key.split(separator), node))

    roots: list[TaxonomyTreeNode] = []
    for path, node in ordered:
        parent = nodes.get(separator.join(path[:-1])) if len(path) > 1 else None
        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)
    return roots


def title_ancestors_of(
    entity: EntityT,
    all_entities: Sequence[EntityT],
    separator: str = TITLE_SEPARATOR,
) -> list[EntityT]:
    """Ancestors root-first, skipping path segments that have no matching entity."""
    by_title = {(e.title or e.name): e for e in reversed(all_entities)}
    parts = _path_of(entity, separator)
    ancestors: list[EntityT] = []
    for i in range(1, len(parts)):
        ancestor = by_title.get(separator.join(parts[:i]))
        if ancestor is not None:
            ancestors.append(ancestor)
    return ancestors


def title_descendants_of(
    entity: EntityT,
    all_entities: Sequence[EntityT],
    separator: str = TITLE_SEPARATOR,
) -> list[EntityT]:
    prefix = f"{entity.title or entity.name}{separator}"
    return [e for e in all_entities if (e.title or e.name).startswith(prefix)]


def title_breadcrumbs_of(
    entity: EntityT,
    all_entities: Sequence[EntityT],
    kind: TaxonomyType,
    separator: str = TITLE_SEPARATOR,
) -> list[TaxonomyBreadcrumb]:
    """Breadcrumbs named by path segment; the entity itself always closes the trail."""
    if not entity.title:
        return [TaxonomyBreadcrumb(id=entity.id, name=entity.name, path=f"/{kind}s/{entity.id}", type=kind)]

    by_title = {e.title: e for e in reversed(all_entities) if e.title}
    parts = entity.title.split(separator)
    crumbs: list[TaxonomyBreadcrumb] = []
    for i, part in enumerate(parts, start=1):
        match = by_title.get(separator.join(parts[:i]))
        if i == len(parts):
            match = entity
        if match is not None:
            crumbs.append(TaxonomyBreadcrumb(id=match.id, name=part, path=f"/{kind}s/{match.id}", type=kind))
    return crumbs
