"""Unit tests for the mount path reducer."""

import random

from executor.paths import is_contained, reduce_paths


def _covered(path: str, roots: list[str]) -> bool:
    return any(path == root.rstrip("/") or is_contained(path, root) for root in roots)


class TestIsContained:
    """Tests for the containment rule."""

    def test_child_contained(self):
        assert is_contained("/data/sub", "/data")

    def test_equal_not_contained(self):
        assert not is_contained("/data", "/data")

    def test_sibling_prefix_not_contained(self):
        assert not is_contained("/data2", "/data")

    def test_trailing_separator_ignored(self):
        assert is_contained("/data/sub/", "/data/")
        assert not is_contained("/data/", "/data")

    def test_root_contains_everything(self):
        assert is_contained("/etc", "/")


class TestReducePaths:
    """Tests for reduce_paths."""

    def test_nested_grant_collapsed(self):
        assert reduce_paths(["/dir", "/dir/sub"]) == ["/dir"]

    def test_order_independent_of_nesting(self):
        assert reduce_paths(["/dir/sub", "/other", "/dir"]) == ["/other", "/dir"]

    def test_workspace_added(self):
        assert reduce_paths(["/data"], "/tmp/ws") == ["/data", "/tmp/ws"]

    def test_workspace_absorbed_by_temp_dir(self):
        assert reduce_paths(["/home/u", "/tmp"], "/tmp/ws") == ["/home/u", "/tmp"]

    def test_duplicates_keep_first(self):
        assert reduce_paths(["/a", "/b", "/a"]) == ["/a", "/b"]

    def test_trailing_separator_duplicate(self):
        assert reduce_paths(["/a/", "/a"]) == ["/a/"]

    def test_empty(self):
        assert reduce_paths([]) == []

    def test_idempotent(self):
        paths = ["/a/b", "/a", "/c/d/e", "/c/d", "/f"]
        once = reduce_paths(paths)
        assert reduce_paths(once) == once

    def test_antichain_and_coverage_hold_for_random_sets(self):
        rng = random.Random(1234)
        names = ["a", "b", "c"]
        for _ in range(200):
            paths = [
                "/" + "/".join(rng.choice(names) for _ in range(rng.randint(1, 4)))
                for _ in range(rng.randint(1, 8))
            ]
            reduced = reduce_paths(paths)

            for x in reduced:
                assert not any(is_contained(x, y) for y in reduced if y != x)
            assert all(_covered(p, reduced) for p in paths)
            assert set(reduced) <= set(paths)
