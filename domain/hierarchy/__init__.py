"""
Organization/location hierarchy: forest construction and ancestor/descendant queries.

Two conventions are supported:
- tree: entities carry an explicit `parent_id` (preferred)
- titles: entities encode their path in `title` (legacy)

All functions in this package are pure (no I/O).
"""

from domain.hierarchy.titles import (
    TITLE_SEPARATOR,
    build_title_tree,
    hierarchy_path,
    leaf_name,
    title_ancestors_of,
    title_breadcrumbs_of,
    title_descendants_of,
    title_level,
)
from domain.hierarchy.tree import (
    MAX_HIERARCHY_DEPTH,
    ancestors_of,
    breadcrumbs_of,
    build_tree,
    common_ancestor_of,
    compute_levels,
    depth_of,
    descendants_of,
    filter_entities,
    find_node,
    flatten_tree,
    group_by_parent,
    has_children,
    sort_by_hierarchy,
)

__all__ = [
    # parent_id convention
    "MAX_HIERARCHY_DEPTH",
    "build_tree",
    "compute_levels",
    "ancestors_of",
    "descendants_of",
    "breadcrumbs_of",
    "common_ancestor_of",
    "find_node",
    "flatten_tree",
    "group_by_parent",
    "has_children",
    "depth_of",
    "sort_by_hierarchy",
    "filter_entities",
    # title convention
    "TITLE_SEPARATOR",
    "build_title_tree",
    "title_ancestors_of",
    "title_descendants_of",
    "title_breadcrumbs_of",
    "title_level",
    "hierarchy_path",
    "leaf_name",
]
