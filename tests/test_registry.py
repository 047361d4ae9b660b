"""Tests for the compromised package registry."""

import threading

import pytest

from dep_watch.core.registry import AdvisoryRegistry


class TestAdvisoryRegistry:
    """Test advisory merging."""

    def test_merge_unions_versions(self):
        """Test that fragments are unioned per package."""
        registry = AdvisoryRegistry()
        registry.merge({"@ctrl/tinycolor": ["4.1.1"]})
        registry.merge({"@ctrl/tinycolor": ["4.1.2"], "ngx-toastr": ["19.0.1"]})

        snapshot = registry.snapshot()
        assert snapshot["@ctrl/tinycolor"] == ("4.1.1", "4.1.2")
        assert snapshot["ngx-toastr"] == ("19.0.1",)
        assert len(registry) == 2
        assert registry.version_count == 3
        assert registry.fragments_merged == 2

    def test_merge_returns_new_version_count(self):
        registry = AdvisoryRegistry()
        assert registry.merge({"a": ["1.0.0", "1.0.1"]}) == 2
        assert registry.merge({"a": ["1.0.1", "1.0.2"]}) == 1

    def test_merge_is_idempotent(self):
        """Test that merging the same fragment twice changes nothing."""
        fragment = {"a": ["1.0.0"], "b": ["2.0.0", "2.0.1"]}
        registry = AdvisoryRegistry()
        registry.merge(fragment)
        first = dict(registry.snapshot())

        assert registry.merge(fragment) == 0
        assert dict(registry.snapshot()) == first

    def test_merge_order_does_not_matter(self):
        """Test that the snapshot is independent of merge order."""
        fragments = [
            {"a": ["1.10.0"], "b": ["1.0.0"]},
            {"a": ["1.2.0"]},
            {"c": ["0.1.0"], "a": ["1.9.0"]},
        ]
        forward = AdvisoryRegistry()
        forward.merge_all(fragments)
        backward = AdvisoryRegistry()
        backward.merge_all(reversed(fragments))

        assert dict(forward.snapshot()) == dict(backward.snapshot())
        assert list(forward.snapshot()) == ["a", "b", "c"]
        assert forward.snapshot()["a"] == ("1.2.0", "1.9.0", "1.10.0")

    def test_versions_deduplicated_by_exact_text(self):
        """Test that textually different versions stay separate."""
        registry = AdvisoryRegistry()
        registry.merge({"a": ["4.1.1", "4.1.1.0", "4.1.1"]})
        assert registry.snapshot()["a"] == ("4.1.1", "4.1.1.0")

    def test_empty_names_and_versions_are_dropped(self):
        registry = AdvisoryRegistry()
        added = registry.merge({"": ["1.0.0"], "  ": ["1.0.0"], "a": ["", "1.0.0"], "b": []})

        assert added == 1
        assert dict(registry.snapshot()) == {"a": ("1.0.0",)}
        assert "b" not in registry

    def test_non_list_versions_are_dropped(self):
        """Test that one malformed entry does not stop the rest of the fragment."""
        registry = AdvisoryRegistry()
        added = registry.merge({"a": None, "b": 42, "c": {"version": "1.0.0"}, "d": ["1.0.0"]})

        assert added == 1
        assert dict(registry.snapshot()) == {"d": ("1.0.0",)}
        assert registry.fragments_merged == 1

    def test_single_version_string_is_accepted(self):
        registry = AdvisoryRegistry()
        registry.merge({"a": "1.0.0"})
        assert registry.snapshot()["a"] == ("1.0.0",)

    def test_empty_fragment_still_counts(self):
        registry = AdvisoryRegistry()
        registry.merge({})
        assert registry.fragments_merged == 1
        assert len(registry) == 0

    def test_snapshot_is_read_only(self):
        registry = AdvisoryRegistry()
        registry.merge({"a": ["1.0.0"]})
        snapshot = registry.snapshot()

        with pytest.raises(TypeError):
            snapshot["b"] = ("2.0.0",)
        assert "b" not in registry.snapshot()

    def test_concurrent_merges(self):
        """Test that merges from several threads are all kept."""
        registry = AdvisoryRegistry()

        def worker(index):
            for patch in range(50):
                registry.merge({"shared": [f"1.{index}.{patch}"], f"pkg-{index}": ["1.0.0"]})

        threads = [threading.Thread(target=worker, args=(index,)) for index in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        snapshot = registry.snapshot()
        assert len(snapshot["shared"]) == 400
        assert len(snapshot) == 9
        assert registry.fragments_merged == 400

    def test_iteration_yields_package_names(self):
        registry = AdvisoryRegistry()
        registry.merge({"b": ["1.0.0"], "a": ["1.0.0"]})
        assert list(registry) == ["a", "b"]
