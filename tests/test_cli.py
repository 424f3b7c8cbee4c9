from __future__ import annotations

import contextlib
import io
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import bazbot_cli


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)
        self.db_path = str(self.root / "var" / "words.db")
        env_patch = mock.patch.dict(os.environ, {}, clear=True)
        env_patch.start()
        self.addCleanup(env_patch.stop)

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def run_cli(self, *args: str) -> tuple[int, str, str]:
        argv = ["--db", self.db_path, "--env-file", str(self.root / ".env"), *args]
        out, err = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            code = bazbot_cli.main(argv)
        return code, out.getvalue(), err.getvalue()

    def test_add_then_complete(self) -> None:
        self.assertEqual(self.run_cli("add", "a", "b", "c", "d", "e")[0], 0)
        code, out, _ = self.run_cli("complete")
        self.assertEqual((code, out), (0, "a b c d e\n"))
        code, out, _ = self.run_cli("complete", "b", "_")
        self.assertEqual((code, out), (0, "a b c d e\n"))

    def test_complete_without_placeholder(self) -> None:
        code, out, _ = self.run_cli("complete", "x", "y")
        self.assertEqual(code, 1)
        self.assertIn("Couldn't find _ to complete against", out)

    def test_migrate_reports_progress(self) -> None:
        code, out, _ = self.run_cli("migrate")
        self.assertEqual(code, 0)
        self.assertIn("Applied 4 migration(s)", out)
        code, out, _ = self.run_cli("migrate")
        self.assertIn("Schema already up to date.", out)

    def test_summary_hints_at_missing_migration(self) -> None:
        code, out, _ = self.run_cli("summary")
        self.assertEqual(code, 1)
        self.assertIn("Migration may be necessary", out)
        self.run_cli("add", "hello", "world")
        code, out, _ = self.run_cli("summary")
        self.assertEqual(code, 0)
        self.assertIn("Words: 3", out)
        self.assertIn("Phrases: 2", out)

    def test_read_files_with_profile(self) -> None:
        corpus = self.root / "corpus.txt"
        corpus.write_text("a b c d e\nf g\n", encoding="utf-8")
        code, out, _ = self.run_cli("read", str(corpus), "--profile")
        self.assertEqual(code, 0)
        self.assertIn("Added 2 line(s)", out)
        self.assertIn("[profile]", out)
        self.assertIn("rss=", out)

    def test_read_missing_file_fails(self) -> None:
        code, _, err = self.run_cli("read", str(self.root / "missing.txt"))
        self.assertEqual(code, 1)
        self.assertIn("Error", err)

    def test_reply(self) -> None:
        self.run_cli("add", "a", "b", "c", "d", "e")
        code, out, _ = self.run_cli("reply", "a", "b", "baz", "d", "e")
        self.assertEqual((code, out), (0, "a b c d e\n"))
        code, out, _ = self.run_cli("reply", "nothing", "here")
        self.assertEqual((code, out), (0, ""))

    def test_bad_max_chain_does_not_abort_startup(self) -> None:
        (self.root / ".env").write_text("BAZBOT_MAX_CHAIN=lots\n", encoding="utf-8")
        code, out, _ = self.run_cli("migrate")
        self.assertEqual(code, 0)
        self.assertIn("Applied 4 migration(s)", out)

    def test_no_command_prints_help(self) -> None:
        code, out, _ = self.run_cli()
        self.assertEqual(code, 2)
        self.assertIn("usage: bazbot", out)


if __name__ == "__main__":
    unittest.main()
