"""
Category hierarchy maintenance.

``level`` is stored on every category (0 for roots, ``parent.level + 1``
otherwise) so that listings can be ordered by depth without walking the
tree. This module computes it at write time, keeps descendants in step
when a category moves, refuses parent assignments that would close a
cycle, and offers the small tree helpers used by the navigation
endpoint.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..errors import ValidationError
from ..models import Category


logger = logging.getLogger(__name__)

CYCLE_MESSAGE = (
    "A category cannot be its own parent or be moved under one of its subcategories"
)


def compute_level(session: Session, parent_id: Optional[str]) -> int:
    """Return the level a category gets under ``parent_id``.

    A missing parent id means a root (level 0). A parent id that does
    not resolve is treated as a root as well; callers that must reject
    dangling parents check for them first.
    """
    if not parent_id:
        return 0
    parent_level = session.execute(
        select(Category.level).where(Category.id == parent_id)
    ).scalar_one_or_none()
    if parent_level is None:
        logger.warning("Parent category %s not found, treating as root", parent_id)
        return 0
    return parent_level + 1


def ensure_no_cycle(session: Session, category_id: str, parent_id: Optional[str]) -> None:
    """Raise ``ValidationError`` if ``parent_id`` is ``category_id`` or one of its descendants.

    Walks from the proposed parent up through ``parent_id`` links. The
    walk also stops on an already corrupted loop that does not involve
    ``category_id``.
    """
    seen = set()
    current = parent_id
    while current:
        if current == category_id:
            raise ValidationError(CYCLE_MESSAGE)
        if current in seen:
            logger.error("Category tree already contains a cycle through %s", current)
            return
        seen.add(current)
        current = session.execute(
            select(Category.parent_id).where(Category.id == current)
        ).scalar_one_or_none()


def relevel_descendants(session: Session, category: Category) -> int:
    """Recompute ``level`` below ``category``; returns the number of rows changed."""
    changed = 0
    pending = [category]
    seen = {category.id}
    while pending:
        node = pending.pop()
        children = session.scalars(
            select(Category).where(Category.parent_id == node.id)
        ).all()
        for child in children:
            if child.id in seen:
                continue
            seen.add(child.id)
            expected = node.level + 1
            if child.level != expected:
                child.level = expected
                changed += 1
            pending.append(child)
    if changed:
        logger.info("Re-levelled %d descendant(s) of category %s", changed, category.id)
    return changed


# ---------------------------------------------------------------------------
# Tree helpers
#
# These work on an already loaded list of categories so the navigation
# endpoint can build the whole tree from a single query.

def _order(category) -> int:
    return category.sort_order or 0


def children_of(categories: Sequence[Category], parent_id: Optional[str]) -> List[Category]:
    return sorted((c for c in categories if c.parent_id == parent_id), key=_order)


def roots(categories: Sequence[Category]) -> List[Category]:
    return sorted((c for c in categories if c.level == 0), key=_order)


def build_tree(categories: Sequence[Category]) -> List[Dict]:
    """Nest ``categories`` under their parents, starting from the roots."""

    def _node(category: Category, path: frozenset) -> Dict:
        return {
            "id": category.id,
            "name": category.name,
            "color": category.color,
            "level": category.level,
            "sort_order": category.sort_order,
            "children": [
                _node(child, path | {child.id})
                for child in children_of(categories, category.id)
                if child.id not in path
            ],
        }

    return [_node(root, frozenset({root.id})) for root in roots(categories)]
