from __future__ import annotations

import unittest

from misc.mention_routes import DIRECTED_AT_BOT_RULES
from misc.mention_routes import DM_INTENT_RULES
from misc.mention_routes import engagement_reasons
from misc.mention_routes import match_rules
from misc.mention_routes import should_engage
from misc.mention_routes import strip_bot_mentions


class MentionRoutesTests(unittest.TestCase):
    def test_question_opener_engages_in_designated_channel(self):
        reasons = engagement_reasons(
            "what do you think about rust?",
            is_private=False,
            mentioned=False,
            in_designated_channel=True,
        )
        self.assertIn("question_opener", reasons)
        self.assertIn("opinion_request", reasons)

    def test_chatter_outside_designated_channel_is_ignored(self):
        self.assertFalse(
            should_engage("lol nice", is_private=False, mentioned=False, in_designated_channel=False)
        )

    def test_directed_rules_need_designated_channel(self):
        self.assertFalse(
            should_engage("how are you?", is_private=False, mentioned=False, in_designated_channel=False)
        )

    def test_private_surface_always_engages(self):
        for text in ("lol nice", "k", "สวัสดี"):
            self.assertEqual(
                engagement_reasons(text, is_private=True, mentioned=False, in_designated_channel=False),
                ["private"],
            )

    def test_ping_and_bot_name(self):
        reasons = engagement_reasons(
            "yo NguBot come here",
            is_private=False,
            mentioned=True,
            in_designated_channel=False,
            bot_names=("ngubot", "งูบอท"),
        )
        self.assertEqual(reasons[:2], ["ping", "bot_name"])

    def test_dm_intent_engages_anywhere(self):
        self.assertIn(
            "dm_me",
            engagement_reasons("pls dm me the link", is_private=False, mentioned=False, in_designated_channel=False),
        )
        self.assertIn("message_to", match_rules("send a message to Boss saying hi", DM_INTENT_RULES))
        self.assertIn("thai_dm", match_rules("ส่งข้อความหาบอสหน่อย", DM_INTENT_RULES))

    def test_rules_are_tagged_data(self):
        tags = [r.tag for r in DIRECTED_AT_BOT_RULES]
        self.assertEqual(len(tags), len(set(tags)))
        self.assertEqual(match_rules("", DIRECTED_AT_BOT_RULES), [])
        self.assertEqual(match_rules("thanks bro", DIRECTED_AT_BOT_RULES), ["thanks"])

    def test_strip_bot_mentions(self):
        self.assertEqual(strip_bot_mentions("<@123> hello", 123), "hello")
        self.assertEqual(strip_bot_mentions("<@!123>   hi <@456>", 123), "hi <@456>")
        self.assertEqual(strip_bot_mentions(" what does <@456> think? "), "what does <@456> think?")


if __name__ == "__main__":
    unittest.main()
