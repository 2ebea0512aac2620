from __future__ import annotations

import pytest

from sqla_lazyloads.datastructures import EMPTY_TREE, frozendict


class TestFrozendictBasics:
    def test_from_kwargs(self) -> None:
        fd: frozendict[str, int] = frozendict(x=10, y=20)
        assert fd["x"] == 10
        assert len(fd) == 2

    def test_no_setitem(self) -> None:
        fd: frozendict[str, int] = frozendict({"a": 1})
        with pytest.raises(TypeError):
            fd["a"] = 2  # type: ignore[index]

    def test_nested_trees_are_hashable(self) -> None:
        tree = frozendict(posts=frozendict(comments=EMPTY_TREE))
        same = frozendict(posts=frozendict(comments=frozendict()))

        assert hash(tree) == hash(same)
        assert {tree: "cached"}[same] == "cached"

    def test_equal_to_dict(self) -> None:
        assert frozendict({"a": 1}) == {"a": 1}
        assert frozendict({"a": 1}) != [("a", 1)]

    def test_copy_replaces(self) -> None:
        fd: frozendict[str, int] = frozendict({"a": 1})
        fd2 = fd.copy(a=99, b=2)

        assert fd2 == {"a": 99, "b": 2}
        assert fd["a"] == 1


class TestFrozendictMerge:
    def test_disjoint(self) -> None:
        merged = frozendict(posts=EMPTY_TREE).merge(frozendict(roles=EMPTY_TREE))

        assert merged == {"posts": {}, "roles": {}}

    def test_deep(self) -> None:
        left = frozendict(posts=frozendict(comments=EMPTY_TREE))
        right = frozendict(posts=frozendict(author=frozendict(profile=EMPTY_TREE)))
        merged = left.merge(right)

        assert merged == {"posts": {"comments": {}, "author": {"profile": {}}}}
        assert isinstance(merged["posts"], frozendict)

    def test_leaf_merged_with_branch(self) -> None:
        merged = frozendict(posts=EMPTY_TREE).merge(frozendict(posts=frozendict(comments=EMPTY_TREE)))

        assert merged == {"posts": {"comments": {}}}

    def test_operands_untouched(self) -> None:
        left = frozendict(posts=EMPTY_TREE)
        left.merge(frozendict(roles=EMPTY_TREE))

        assert left == {"posts": {}}

    def test_repr(self) -> None:
        assert repr(frozendict(posts=EMPTY_TREE)) == "<frozendict {'posts': <frozendict {}>}>"
