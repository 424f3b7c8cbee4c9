from __future__ import annotations

import random
import unittest

from bazbot import BazEngine
from bazbot.responder import Responder
from bazbot.settings import BazSettings


class ResponderTests(unittest.TestCase):
    def setUp(self) -> None:
        settings = BazSettings(
            words_path=":memory:", trigger="baz", log_level=1, max_chain=200, env_file=None
        )
        self.engine = BazEngine(settings=settings, rng=random.Random(11))
        self.engine.add_line("a b c d e")
        self.responder = Responder(self.engine)

    def tearDown(self) -> None:
        self.engine.close()

    def test_trigger_defaults_to_settings(self) -> None:
        self.assertEqual(self.responder.trigger, "baz")
        self.assertEqual(Responder(self.engine, "zap").trigger, "zap")

    def test_mentions_is_case_insensitive_prefix(self) -> None:
        self.assertTrue(self.responder.mentions("hey BAZZY!"))
        self.assertFalse(self.responder.mentions("hey there"))

    def test_reply_uses_surrounding_words(self) -> None:
        self.assertEqual(self.responder.reply("a b baz d e"), "a b c d e")
        self.assertEqual(self.responder.reply("baz"), "a b c d e")

    def test_no_trigger_no_reply(self) -> None:
        self.assertIsNone(self.responder.reply("a b c"))

    def test_empty_store_has_nothing_to_say(self) -> None:
        empty = BazEngine(settings=self.engine.settings)
        try:
            self.assertIsNone(Responder(empty).reply("baz"))
        finally:
            empty.close()

    def test_handle_learns_from_other_messages(self) -> None:
        before = self.engine.summary().phrases
        self.assertIsNone(self.responder.handle("x y z"))
        self.assertEqual(self.engine.summary().phrases, before + 3)
        self.assertIn(self.responder.handle("baz"), {"a b c d e", "x y z"})
        self.assertEqual(self.engine.summary().phrases, before + 3)

    def test_handle_without_learning(self) -> None:
        quiet = Responder(self.engine, learn=False)
        before = self.engine.summary().phrases
        self.assertIsNone(quiet.handle("x y z"))
        self.assertEqual(self.engine.summary().phrases, before)
        self.assertFalse(quiet.learn("   "))


if __name__ == "__main__":
    unittest.main()
