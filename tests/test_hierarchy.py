import pytest

from puntolector.catalog.hierarchy import (
    build_tree,
    children_of,
    compute_level,
    ensure_no_cycle,
    relevel_descendants,
    roots,
)
from puntolector.errors import ValidationError
from puntolector.models import Category


def _chain(session, *names):
    """Create a parent -> child -> grandchild ... chain and return it."""
    nodes = []
    parent = None
    for name in names:
        node = Category(
            name=name,
            parent_id=parent.id if parent else None,
            level=parent.level + 1 if parent else 0,
        )
        session.add(node)
        session.flush()
        nodes.append(node)
        parent = node
    return nodes


def test_compute_level(session):
    a, b = _chain(session, "A", "B")
    assert compute_level(session, None) == 0
    assert compute_level(session, "") == 0
    assert compute_level(session, a.id) == 1
    assert compute_level(session, b.id) == 2


def test_compute_level_treats_dangling_parent_as_root(session):
    assert compute_level(session, "does-not-exist") == 0


def test_ensure_no_cycle(session):
    a, b, c = _chain(session, "A", "B", "C")
    other = Category(name="Other", level=0)
    session.add(other)
    session.flush()

    ensure_no_cycle(session, a.id, None)
    ensure_no_cycle(session, a.id, other.id)
    ensure_no_cycle(session, c.id, a.id)
    with pytest.raises(ValidationError):
        ensure_no_cycle(session, a.id, a.id)
    with pytest.raises(ValidationError):
        ensure_no_cycle(session, a.id, c.id)


def test_relevel_descendants(session):
    a, b, c = _chain(session, "A", "B", "C")
    x, = _chain(session, "X")
    y = Category(name="Y", parent_id=x.id, level=1)
    session.add(y)
    session.flush()

    b.parent_id = y.id
    b.level = 2
    session.flush()
    assert relevel_descendants(session, b) == 1
    assert c.level == 3
    assert relevel_descendants(session, b) == 0


def test_tree_helpers_order_by_sort_order():
    cats = [
        Category(id="1", name="Fiction", level=0, sort_order=2),
        Category(id="2", name="Essays", level=0, sort_order=1),
        Category(id="3", name="Crime", parent_id="1", level=1, sort_order=5),
        Category(id="4", name="Fantasy", parent_id="1", level=1, sort_order=0),
    ]
    assert [c.name for c in roots(cats)] == ["Essays", "Fiction"]
    assert [c.name for c in children_of(cats, "1")] == ["Fantasy", "Crime"]
    assert children_of(cats, "2") == []

    tree = build_tree(cats)
    assert [n["name"] for n in tree] == ["Essays", "Fiction"]
    assert [n["name"] for n in tree[1]["children"]] == ["Fantasy", "Crime"]
