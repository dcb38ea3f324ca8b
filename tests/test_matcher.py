import os
import shutil
import tempfile
import unittest
from pathlib import Path

from ctxwalker import PathMatcher, TraversalOptions, filter_by_size, filter_files, should_include
from ctxwalker.matcher import match_pattern, normalize_path


class TestPatternForms(unittest.TestCase):
    def test_directory_anchor_matches_any_depth(self):
        self.assertTrue(match_pattern("node_modules/", "node_modules/x.js"))
        self.assertTrue(match_pattern("node_modules/", "a/node_modules/b/c.js"))
        self.assertFalse(match_pattern("node_modules/", "my_node_modules/x.js"))
        # A file with the anchor's name is not beneath such a directory.
        self.assertFalse(match_pattern("node_modules/", "node_modules"))

    def test_multi_segment_directory_anchor(self):
        self.assertTrue(match_pattern("a/b/", "x/a/b/c.txt"))
        self.assertFalse(match_pattern("a/b/", "a/c/b/d.txt"))

    def test_root_anchored_directory(self):
        self.assertTrue(match_pattern("/build/", "build/out.o"))
        self.assertFalse(match_pattern("/build/", "src/build/out.o"))

    def test_basename_glob(self):
        self.assertTrue(match_pattern("*.log", "test.log"))
        self.assertTrue(match_pattern("*.log", "deep/down/test.log"))
        self.assertTrue(match_pattern("file?.go", "pkg/file1.go"))
        self.assertTrue(match_pattern("[ab].txt", "b.txt"))
        self.assertFalse(match_pattern("*.log", "test.log.txt"))

    def test_basename_glob_is_case_sensitive(self):
        self.assertFalse(match_pattern("*.LOG", "test.log"))

    def test_relative_path_pattern(self):
        self.assertTrue(match_pattern("src/*.py", "src/main.py"))
        self.assertFalse(match_pattern("src/*.py", "src/pkg/main.py"))

    def test_double_star(self):
        self.assertTrue(match_pattern("**/test_*.py", "test_a.py"))
        self.assertTrue(match_pattern("**/test_*.py", "x/y/test_a.py"))
        self.assertTrue(match_pattern("docs/**/*.md", "docs/guide/install.md"))
        self.assertFalse(match_pattern("docs/**/*.md", "src/guide/install.md"))

    def test_separators_are_normalized(self):
        self.assertTrue(match_pattern("src\\*.py", "src/main.py"))
        self.assertTrue(match_pattern("src/*.py", "src\\main.py"))
        self.assertTrue(match_pattern("node_modules\\", "a\\node_modules\\b.js"))
        self.assertEqual(normalize_path(".\\a\\b.txt"), "a/b.txt")


class TestPathMatcher(unittest.TestCase):
    def test_no_patterns_accepts_everything(self):
        self.assertTrue(PathMatcher().matches("any/file.bin"))

    def test_include_required_when_given(self):
        matcher = PathMatcher(include_patterns=["*.go"])
        self.assertTrue(matcher.matches("cmd/main.go"))
        self.assertFalse(matcher.matches("README.md"))

    def test_exclude_has_final_say(self):
        matcher = PathMatcher(include_patterns=["*.go"], exclude_patterns=["main.go"])
        self.assertTrue(matcher.matches("util.go"))
        self.assertFalse(matcher.matches("cmd/main.go"))

    def test_blank_patterns_ignored(self):
        matcher = PathMatcher(include_patterns=["", "  "], exclude_patterns=[""])
        self.assertTrue(matcher.matches("a.txt"))

    def test_excludes_directory_only_for_anchors(self):
        matcher = PathMatcher(exclude_patterns=["node_modules/", "*.log"])
        self.assertTrue(matcher.excludes_directory("web/node_modules"))
        self.assertFalse(matcher.excludes_directory("web"))
        self.assertFalse(matcher.excludes_directory("logs.log"))
        self.assertFalse(matcher.excludes_directory(""))

    def test_should_include_uses_options(self):
        options = TraversalOptions(include_patterns=["*.py"], exclude_patterns=["tests/"])
        self.assertTrue(should_include("/repo/src/app.py", "src/app.py", options))
        self.assertFalse(should_include("/repo/tests/test_app.py", "tests/test_app.py", options))
        self.assertFalse(should_include("/repo/README.md", "README.md", options))


class TestFilterHelpers(unittest.TestCase):
    def setUp(self):
        self.test_dir = Path(tempfile.mkdtemp())
        (self.test_dir / "small.txt").write_text("abc")
        (self.test_dir / "large.txt").write_text("x" * 100)

    def tearDown(self):
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_filter_files(self):
        files = ["a/b.go", "c.txt", "d/e.go"]
        self.assertEqual(filter_files(files, ["*.go"]), ["a/b.go", "d/e.go"])
        self.assertEqual(filter_files(files, []), files)

    def test_filter_by_size(self):
        self.assertTrue(filter_by_size(str(self.test_dir / "small.txt"), 10))
        self.assertFalse(filter_by_size(str(self.test_dir / "large.txt"), 10))
        self.assertTrue(filter_by_size(str(self.test_dir / "large.txt"), 0))
        self.assertFalse(filter_by_size(os.path.join(self.test_dir, "missing.txt"), 0))


if __name__ == "__main__":
    unittest.main()
