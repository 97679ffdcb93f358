"""Tests for deleting scanned paths and patching cached trees."""

from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from diskmap.engine import CacheEntry, ScanCache, delete_paths, detach_node
from diskmap.scan_model import DirectoryWalker, EntryKind, ErrorTally, Node, find_node


def _make_scenario(root: Path) -> None:
    (root / "a.txt").write_bytes(b"a" * 100)
    (root / "sub").mkdir()
    (root / "sub" / "b.txt").write_bytes(b"b" * 50)
    (root / "empty").mkdir()


def _symlink_or_skip(test: unittest.TestCase, target: Path, link: Path, *, target_is_directory: bool = False) -> None:
    try:
        os.symlink(target, link, target_is_directory=target_is_directory)
    except (OSError, NotImplementedError) as exc:
        test.skipTest(f"symlinks unavailable: {exc}")


def _write_non_utf8_or_skip(test: unittest.TestCase, directory: Path, name: bytes, data: bytes) -> None:
    if os.name != "posix":
        test.skipTest("bytes file names need a POSIX filesystem")
    try:
        with open(os.path.join(os.fsencode(directory), name), "wb") as handle:
            handle.write(data)
    except OSError as exc:
        test.skipTest(f"filesystem rejects non-UTF-8 names: {exc}")


def _cached(cache: ScanCache, root: Path, depth: int) -> CacheEntry:
    result = DirectoryWalker(ErrorTally(), max_workers=2).walk(root, depth)
    entry = CacheEntry(root_path=root, tree=result.root, built_depth=depth)
    cache.put(entry)
    return entry


class DetachNodeTests(unittest.TestCase):
    def test_detach_subtracts_size_along_the_chain(self) -> None:
        root = Path("/r")
        leaf = Node(name="b.txt", path=root / "sub" / "b.txt", size=50, is_directory=False)
        sub = Node(name="sub", path=root / "sub", size=50, is_directory=True, children=[leaf], children_count=1)
        tree = Node(name="r", path=root, size=150, is_directory=True, children=[sub], children_count=3)

        removed = detach_node(tree, root / "sub" / "b.txt")

        self.assertIs(removed, leaf)
        self.assertEqual(tree.size, 100)
        self.assertEqual(tree.children_count, 3)
        self.assertEqual(sub.size, 0)
        self.assertEqual(sub.children_count, 0)
        self.assertEqual(sub.children, [])

    def test_root_and_unknown_paths_are_left_alone(self) -> None:
        root = Path("/r")
        tree = Node(name="r", path=root, size=10, is_directory=True, children_count=2)
        self.assertIsNone(detach_node(tree, root))
        self.assertIsNone(detach_node(tree, root / "nope"))
        self.assertEqual(tree.size, 10)
        self.assertEqual(tree.children_count, 2)


class DeletePathsTests(unittest.TestCase):
    def test_deleting_a_file_patches_cached_sizes(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _make_scenario(root)
            cache = ScanCache()
            entry = _cached(cache, root, 2)

            report = delete_paths([root / "sub" / "b.txt"], cache)

            self.assertTrue(report.ok)
            self.assertEqual(report.deleted, (root / "sub" / "b.txt",))
            self.assertFalse((root / "sub" / "b.txt").exists())
            patched = cache.peek(root)
            self.assertIs(patched, entry)
            self.assertEqual(patched.tree.size, 100)
            sub, _ = find_node(patched.tree, root / "sub")
            self.assertEqual(sub.size, 0)
            self.assertEqual(sub.children_count, 0)

    def test_deleting_a_directory_removes_its_whole_tree(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _make_scenario(root)
            cache = ScanCache()
            _cached(cache, root, 1)

            report = delete_paths([str(root / "sub")], cache)

            self.assertTrue(report.ok)
            self.assertFalse((root / "sub").exists())
            tree = cache.peek(root).tree
            self.assertEqual(tree.size, 100)
            self.assertEqual(tree.children_count, 2)
            self.assertNotIn("sub", {child.name for child in tree.children})

    def test_unmaterialized_path_invalidates_entry(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _make_scenario(root)
            cache = ScanCache()
            _cached(cache, root, 1)

            delete_paths([root / "sub" / "b.txt"], cache)

            self.assertIsNone(cache.peek(root))

    def test_deleting_a_cached_root_invalidates_it(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _make_scenario(root)
            cache = ScanCache()
            _cached(cache, root, 2)
            _cached(cache, root / "sub", 1)

            delete_paths([root / "sub"], cache)

            self.assertIsNone(cache.peek(root / "sub"))
            self.assertEqual(cache.peek(root).tree.size, 100)

    def test_unrelated_cache_entries_are_untouched(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp).resolve()
            left = base / "left"
            right = base / "right"
            left.mkdir()
            right.mkdir()
            (left / "l.bin").write_bytes(b"l" * 7)
            (right / "r.bin").write_bytes(b"r" * 9)
            cache = ScanCache()
            _cached(cache, left, 1)
            right_entry = _cached(cache, right, 1)

            delete_paths([left / "l.bin"], cache)

            self.assertIs(cache.peek(right), right_entry)
            self.assertEqual(right_entry.tree.size, 9)

    def test_partial_failure_keeps_going(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _make_scenario(root)
            missing = root / "ghost.txt"

            report = delete_paths([missing, root / "a.txt"])

            self.assertFalse(report.ok)
            self.assertEqual(report.deleted, (root / "a.txt",))
            self.assertEqual(len(report.failures), 1)
            self.assertEqual(report.failures[0].path, missing)
            self.assertIs(report.failures[0].kind, EntryKind.NOT_FOUND)
            payload = report.to_dict()
            self.assertEqual(payload["deleted"], [str(root / "a.txt")])
            self.assertEqual(payload["failed"][0]["kind"], EntryKind.NOT_FOUND.value)

    def test_permission_failure_on_directory_invalidates_containing_entries(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _make_scenario(root)
            cache = ScanCache()
            _cached(cache, root, 2)

            with mock.patch(
                "diskmap.engine.deletion.shutil.rmtree",
                side_effect=PermissionError(13, "Permission denied"),
            ):
                report = delete_paths([root / "sub"], cache)

            self.assertIs(report.failures[0].kind, EntryKind.PERMISSION_DENIED)
            self.assertTrue((root / "sub").exists())
            self.assertIsNone(cache.peek(root))

    def test_duplicate_paths_are_deleted_once(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _make_scenario(root)

            report = delete_paths([root / "a.txt", str(root / "a.txt")])

            self.assertEqual(report.deleted, (root / "a.txt",))
            self.assertTrue(report.ok)

    def test_delete_under_symlinked_root_patches_tree(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp).resolve()
            real = base / "real"
            real.mkdir()
            (real / "a.txt").write_bytes(b"a" * 100)
            (real / "b.txt").write_bytes(b"b" * 50)
            link = base / "link"
            _symlink_or_skip(self, real, link, target_is_directory=True)
            cache = ScanCache()
            entry = _cached(cache, link, 1)
            target = next(child.path for child in entry.tree.children if child.name == "a.txt")
            self.assertEqual(target, link / "a.txt")

            report = delete_paths([target], cache)

            self.assertEqual(report.deleted, (link / "a.txt",))
            self.assertFalse((real / "a.txt").exists())
            patched = cache.peek(link)
            self.assertIsNotNone(patched)
            self.assertEqual(patched.tree.size, 50)
            self.assertEqual([child.name for child in patched.tree.children], ["b.txt"])

    def test_delete_under_symlinked_subdirectory_patches_tree(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp).resolve()
            root = base / "root"
            other = base / "other"
            root.mkdir()
            other.mkdir()
            (root / "a.txt").write_bytes(b"a" * 100)
            (other / "f.bin").write_bytes(b"f" * 70)
            _symlink_or_skip(self, other, root / "lnk", target_is_directory=True)
            cache = ScanCache()
            _cached(cache, root, 2)

            report = delete_paths([root / "lnk" / "f.bin"], cache)

            self.assertEqual(report.deleted, (root / "lnk" / "f.bin",))
            tree = cache.peek(root).tree
            self.assertEqual(tree.size, 100)
            lnk, _ = find_node(tree, root / "lnk")
            self.assertEqual(lnk.size, 0)
            self.assertEqual(lnk.children, [])

    def test_delete_through_symlink_patches_tree_cached_under_real_path(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp).resolve()
            real = base / "real"
            real.mkdir()
            (real / "a.txt").write_bytes(b"a" * 100)
            (real / "b.txt").write_bytes(b"b" * 50)
            _symlink_or_skip(self, real, base / "link", target_is_directory=True)
            cache = ScanCache()
            _cached(cache, real, 1)

            delete_paths([base / "link" / "a.txt"], cache)

            self.assertEqual(cache.peek(real).tree.size, 50)

    def test_delete_through_symlink_invalidates_tree_under_other_spelling(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp).resolve()
            real = base / "real"
            (real / "sub").mkdir(parents=True)
            (real / "sub" / "c.bin").write_bytes(b"c" * 30)
            alias = base / "alias"
            _symlink_or_skip(self, real / "sub", alias, target_is_directory=True)
            cache = ScanCache()
            _cached(cache, alias, 1)

            delete_paths([real / "sub" / "c.bin"], cache)

            self.assertIsNone(cache.peek(alias))

    def test_non_utf8_name_is_deleted_and_patched(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _write_non_utf8_or_skip(self, root, b"bad\xff.bin", b"x" * 10)
            cache = ScanCache()
            entry = _cached(cache, root, 1)
            self.assertEqual(entry.tree.size, 10)
            target = entry.tree.children[0].path

            report = delete_paths([target], cache)

            self.assertEqual(report.deleted, (target,))
            self.assertEqual(os.listdir(root), [])
            self.assertEqual(cache.peek(root).tree.size, 0)
            self.assertEqual(cache.peek(root).tree.children_count, 0)

    def test_deleting_a_symlink_keeps_its_target(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            _make_scenario(root)
            link = root / "link-to-sub"
            try:
                os.symlink(root / "sub", link, target_is_directory=True)
            except (OSError, NotImplementedError) as exc:
                self.skipTest(f"symlinks unavailable: {exc}")

            report = delete_paths([link])

            self.assertTrue(report.ok)
            self.assertFalse(os.path.lexists(link))
            self.assertTrue((root / "sub" / "b.txt").exists())


if __name__ == "__main__":
    unittest.main()
