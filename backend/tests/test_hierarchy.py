"""
Tests for forest building (departments, organization chart).
"""

from dataclasses import dataclass

from hypothesis import given, settings, strategies as st

from rest_api.services.hierarchy import (
    build_forest,
    count_nodes,
    iter_nodes,
    map_forest,
    max_depth,
)


@dataclass
class Row:
    id: str
    parent: str | None


def _forest(rows):
    return build_forest(rows, id_of=lambda r: r.id, parent_of=lambda r: r.parent)


def _shape(forest):
    """Nested (id, [children]) tuples for easy comparison."""
    return map_forest(forest, lambda row, children: (row.id, children))


class TestBuildForest:
    def test_empty_input(self):
        assert _forest([]) == []
        assert max_depth([]) == 0

    def test_parents_and_children_keep_input_order(self):
        rows = [
            Row("science", None),
            Row("physics", "science"),
            Row("arts", None),
            Row("chemistry", "science"),
        ]
        assert _shape(_forest(rows)) == [
            ("science", [("physics", []), ("chemistry", [])]),
            ("arts", []),
        ]

    def test_child_listed_before_parent(self):
        rows = [Row("physics", "science"), Row("science", None)]
        assert _shape(_forest(rows)) == [("science", [("physics", [])])]

    def test_missing_parent_becomes_root(self):
        rows = [Row("physics", "deleted-dept"), Row("arts", None)]
        assert _shape(_forest(rows)) == [("physics", []), ("arts", [])]

    def test_self_parent_becomes_root(self):
        assert _shape(_forest([Row("loop", "loop")])) == [("loop", [])]

    def test_two_node_cycle_keeps_every_node(self):
        rows = [Row("a", "b"), Row("b", "a")]
        forest = _forest(rows)
        assert count_nodes(forest) == 2
        assert sorted(node.item.id for node, _ in iter_nodes(forest)) == ["a", "b"]

    def test_cycle_with_tail(self):
        rows = [Row("a", "b"), Row("b", "a"), Row("c", "a")]
        forest = _forest(rows)
        assert count_nodes(forest) == 3
        assert len(forest) >= 1

    def test_depth(self):
        rows = [Row("a", None), Row("b", "a"), Row("c", "b"), Row("d", None)]
        forest = _forest(rows)
        assert max_depth(forest) == 3
        assert [(node.item.id, depth) for node, depth in iter_nodes(forest)] == [
            ("a", 0),
            ("b", 1),
            ("c", 2),
            ("d", 0),
        ]


class TestForestProperties:
    @given(
        parents=st.lists(
            st.one_of(st.none(), st.integers(min_value=0, max_value=30)),
            max_size=30,
        )
    )
    @settings(max_examples=100)
    def test_every_item_appears_exactly_once(self, parents):
        """Property: whatever the parent references, no item is lost or duplicated."""
        rows = [
            Row(str(i), None if parent is None else str(parent))
            for i, parent in enumerate(parents)
        ]
        forest = _forest(rows)

        seen = [node.item.id for node, _ in iter_nodes(forest)]
        assert sorted(seen) == sorted(row.id for row in rows)
        assert count_nodes(forest) == len(rows)

    @given(size=st.integers(min_value=1, max_value=25))
    def test_chain_depth_equals_length(self, size):
        rows = [Row("0", None)] + [Row(str(i), str(i - 1)) for i in range(1, size)]
        assert max_depth(_forest(rows)) == size
