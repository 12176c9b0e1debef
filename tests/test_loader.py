import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from vaultlinks.ingest.loader import LoadError, LoadOptions, VaultError, VaultNotFoundError, load_notes, parse_note
from vaultlinks.ingest.markdown import extract_tags, split_front_matter


def write(root: Path, rel: str, text: str) -> None:
    p = root / rel
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(text, encoding="utf-8")


class TestLoadNotes(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_missing_root_is_an_ioerror(self):
        with self.assertRaises(IOError):
            load_notes(self.root / "nope")
        with self.assertRaises(VaultNotFoundError):
            load_notes(self.root / "nope")

    def test_file_root_is_rejected(self):
        write(self.root, "note.md", "x")
        with self.assertRaises(VaultNotFoundError):
            load_notes(self.root / "note.md")

    def test_titles_paths_and_order(self):
        write(self.root, "b.md", "")
        write(self.root, "a/React Hooks.md", "")
        write(self.root, "a/Vue.markdown", "")
        notes = load_notes(self.root)
        self.assertEqual([n.path for n in notes], ["a/React Hooks.md", "a/Vue.markdown", "b.md"])
        self.assertEqual([n.title for n in notes], ["React Hooks", "Vue", "b"])

    def test_skips_hidden_ignored_and_other_files(self):
        write(self.root, "Keep.md", "")
        write(self.root, ".obsidian/workspace.md", "")
        write(self.root, ".hidden.md", "")
        write(self.root, "templates/Daily.md", "")
        write(self.root, "img.png", "")
        notes = load_notes(self.root, options=LoadOptions(ignore_dirs=("templates",)))
        self.assertEqual([n.title for n in notes], ["Keep"])

    def test_duplicate_titles_are_all_retained(self):
        write(self.root, "x/Dup.md", "")
        write(self.root, "y/Dup.md", "")
        notes = load_notes(self.root)
        self.assertEqual([n.path for n in notes], ["x/Dup.md", "y/Dup.md"])

    def test_unreadable_file_is_skipped_and_recorded(self):
        write(self.root, "Good.md", "[[Bad]]")
        (self.root / "Bad.md").write_bytes(b"\xff\xfe\xfa not utf-8")
        errors: list[LoadError] = []
        notes = load_notes(self.root, errors=errors)
        self.assertEqual([n.title for n in notes], ["Good"])
        self.assertEqual([e.path for e in errors], ["Bad.md"])

    def deny_listing(self, locked: Path):
        real_scandir = os.scandir
        locked = os.path.abspath(locked)

        def scandir(path="."):
            if os.path.abspath(os.fspath(path)) == locked:
                raise PermissionError(13, "Permission denied", os.fspath(path))
            return real_scandir(path)

        return mock.patch("os.scandir", side_effect=scandir)

    def test_unreadable_root_is_an_error_not_an_empty_vault(self):
        write(self.root, "A.md", "[[B]]")
        with self.deny_listing(self.root):
            with self.assertRaises(VaultError) as ctx:
                load_notes(self.root)
        self.assertIsInstance(ctx.exception, OSError)
        self.assertNotIsInstance(ctx.exception, VaultNotFoundError)
        self.assertIn("not readable", str(ctx.exception))

    def test_unreadable_subdirectory_is_recorded(self):
        write(self.root, "A.md", "[[B]]")
        write(self.root, "locked/B.md", "")
        write(self.root, "open/C.md", "")
        errors: list[LoadError] = []
        with self.deny_listing(self.root / "locked"):
            with self.assertLogs("vaultlinks.ingest.loader", level="WARNING") as logs:
                notes = load_notes(self.root, errors=errors)
        self.assertEqual([n.path for n in notes], ["A.md", "open/C.md"])
        self.assertEqual(errors, [LoadError(path="locked", message="Permission denied")])
        self.assertIn("unreadable directory locked", logs.output[0])

    def test_thread_pool_matches_sequential(self):
        for i in range(12):
            write(self.root, f"n{i:02d}.md", f"[[n{(i + 1) % 12:02d}]]")
        seq = load_notes(self.root, options=LoadOptions(workers=1))
        par = load_notes(self.root, options=LoadOptions(workers=4))
        self.assertEqual(seq, par)


class TestParseNote(unittest.TestCase):
    def test_front_matter_and_inline_tags(self):
        text = "---\ntags: [python, \"#cheatsheet\"]\n---\n# Heading\nBody #inline/nested and `#notatag` #2024\n"
        note = parse_note(text, path="dev/Python.md")
        self.assertEqual(note.title, "Python")
        self.assertEqual(note.stem_path, "dev/Python")
        self.assertEqual(note.tags, frozenset({"python", "cheatsheet", "inline/nested"}))
        self.assertEqual(note.front_matter["tags"], ["python", "#cheatsheet"])

    def test_links_in_front_matter_count(self):
        note = parse_note("---\nrelated: \"[[B]]\"\n---\n[[C]]", path="A.md")
        self.assertEqual([l.title for l in note.links], ["B", "C"])
        self.assertEqual(note.links[1].line, 4)

    def test_invalid_front_matter_is_a_warning(self):
        note = parse_note("---\ntags: [unclosed\n---\n[[B]]", path="A.md")
        self.assertEqual(note.front_matter, {})
        self.assertEqual([l.title for l in note.links], ["B"])
        self.assertEqual(len(note.warnings), 1)
        self.assertIn("front matter", note.warnings[0].message)


class TestMarkdownHelpers(unittest.TestCase):
    def test_split_front_matter(self):
        fm = split_front_matter("---\ntitle: X\n---\nbody\n")
        self.assertEqual(fm.data, {"title": "X"})
        self.assertEqual(fm.body, "body\n")
        self.assertEqual(fm.body_start_line, 4)

    def test_no_front_matter(self):
        fm = split_front_matter("# Title\n---\n")
        self.assertEqual(fm.data, {})
        self.assertEqual(fm.body_start_line, 1)

    def test_string_tags(self):
        self.assertEqual(extract_tags({"tags": "a, b c"}, ""), frozenset({"a", "b", "c"}))

    def test_fenced_tags_ignored(self):
        self.assertEqual(extract_tags({}, "```\n#include <x>\n```\n#real"), frozenset({"real"}))

    def test_fence_closes_only_on_bare_marker(self):
        self.assertEqual(extract_tags({}, "```\n```js\n#hidden\n```\n#shown"), frozenset({"shown"}))

    def test_indented_code_tags_ignored(self):
        self.assertEqual(extract_tags({}, "Intro\n\n    #define X\n\n#real"), frozenset({"real"}))


if __name__ == "__main__":
    unittest.main()
