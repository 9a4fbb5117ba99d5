from __future__ import annotations

import unittest
from types import SimpleNamespace

try:
    import discord
    from discord.ext import commands
except ModuleNotFoundError:
    discord = None
    commands = None

if commands is not None:
    from controller.orchestrator import ConversationState
    from controller.orchestrator import NOT_CONFIGURED_REPLY
    from controller.orchestrator import ResponseOrchestrator
    from misc.commands.command_deps import CommandDeps
    from misc.commands.command_deps import CommandGates
    from misc.commands.commands_chat import ASK_QUOTE_MAX_CHARS
    from misc.commands.commands_chat import GUILD_ONLY_REPLY
    from misc.commands.commands_chat import format_member_list
    from misc.commands.commands_chat import format_roll
    from misc.commands.commands_chat import register as register_chat
    from misc.discord_gates import deferred_reply_editor
    from misc.discord_gates import roster_snapshot

from controller.identity import Identity


class FakeResponse:
    def __init__(self):
        self.sent: list[tuple[str, bool]] = []
        self.deferred: list[bool] = []

    async def send_message(self, text, *, ephemeral=False):
        self.sent.append((text, ephemeral))

    async def defer(self, *, ephemeral=False):
        self.deferred.append(ephemeral)


class FakeInteraction:
    def __init__(self, *, user, guild=None, channel_id=10):
        self.user = user
        self.guild = guild
        self.channel_id = channel_id
        self.response = FakeResponse()
        self.edits: list[str] = []

    async def edit_original_response(self, *, content):
        self.edits.append(content)


def _user(uid: int, name: str, *, bot: bool = False):
    return SimpleNamespace(id=uid, name=name, display_name=name.title(), nick=None, bot=bot)


@unittest.skipIf(commands is None, "discord.py not installed")
class CommandFormattingTests(unittest.TestCase):
    def test_single_die(self):
        self.assertEqual(format_roll(1, 6, [4]), "🎲 Rolling 1d6:\n**Result:** 4")

    def test_member_list_truncates(self):
        roster = [Identity(handle=f"user{i:03d}", display_name=f"Member {i:03d}") for i in range(200)]
        text = format_member_list(roster, 500)
        self.assertLessEqual(len(text), 500)
        self.assertTrue(text.endswith("*List truncated*"))
        self.assertTrue(text.startswith("**Server Members (200):**"))


@unittest.skipIf(commands is None, "discord.py not installed")
class ChatCommandsTests(unittest.IsolatedAsyncioTestCase):
    def _wire(self, *, send_ok: bool = True):
        self.state = ConversationState()
        self.dms: list[tuple[Identity, str]] = []

        async def send(identity, text):
            self.dms.append((identity, text))
            return send_ok

        self.bot = commands.Bot(command_prefix="!", intents=discord.Intents.none(), help_command=None)
        self.bot_orchestrator = ResponseOrchestrator(state=self.state, client=None)
        register_chat(
            self.bot,
            deps=CommandDeps(
                orchestrator=self.bot_orchestrator,
                state=self.state,
                alias_table={},
                roster_snapshot=roster_snapshot,
                send_direct_message=send,
                deferred_reply_editor=deferred_reply_editor,
            ),
            gates=CommandGates(in_designated_channel=lambda ctx: False),
        )

    async def test_hello(self):
        self._wire()
        interaction = FakeInteraction(user=_user(1, "alice"))
        await self.bot.tree.get_command("hello").callback(interaction)
        self.assertEqual(interaction.response.sent, [("Hello alice! 👋", False)])

    async def test_roll_sums_multiple_dice(self):
        self._wire()
        interaction = FakeInteraction(user=_user(1, "alice"))
        await self.bot.tree.get_command("roll").callback(interaction, dice=3, sides=2)
        text = interaction.response.sent[0][0]
        self.assertTrue(text.startswith("🎲 Rolling 3d2:"))
        self.assertIn("**Total:**", text)

    async def test_members_requires_guild(self):
        self._wire()
        interaction = FakeInteraction(user=_user(1, "alice"))
        await self.bot.tree.get_command("members").callback(interaction)
        self.assertEqual(interaction.response.sent, [(GUILD_ONLY_REPLY, True)])

    async def test_members_lists_humans(self):
        self._wire()
        guild = SimpleNamespace(id=5, members=[_user(1, "alice"), _user(2, "ngubot", bot=True)])
        interaction = FakeInteraction(user=_user(1, "alice"), guild=guild)
        await self.bot.tree.get_command("members").callback(interaction)
        text = interaction.response.sent[0][0]
        self.assertIn("**Server Members (1):**", text)
        self.assertIn("**Alice**", text)

    async def test_setchannel_toggles_designation(self):
        self._wire()
        guild = SimpleNamespace(id=5, members=[])
        interaction = FakeInteraction(user=_user(1, "alice"), guild=guild, channel_id=50)
        await self.bot.tree.get_command("setchannel").callback(interaction, enable=True)
        self.assertTrue(self.state.is_designated(5, 50))
        await self.bot.tree.get_command("setchannel").callback(interaction, enable=False)
        self.assertFalse(self.state.is_designated(5, 50))

    async def test_dm_refuses_self(self):
        self._wire()
        alice = _user(1, "alice")
        interaction = FakeInteraction(user=alice)
        await self.bot.tree.get_command("dm").callback(interaction, user=alice, message="hi")
        self.assertIn("can't DM yourself", interaction.response.sent[0][0])
        self.assertEqual(self.dms, [])

    async def test_dm_sends_and_records(self):
        self._wire()
        interaction = FakeInteraction(user=_user(1, "alice"))
        await self.bot.tree.get_command("dm").callback(interaction, user=_user(2, "bob"), message="see you at 8")
        self.assertEqual(interaction.response.deferred, [True])
        target, framed = self.dms[0]
        self.assertEqual(target.handle, "bob")
        self.assertIn("Message from Alice", framed)
        self.assertIn("see you at 8", framed)
        self.assertTrue(self.state.action_log.recent(1)[0].success)
        self.assertIn("Successfully sent", interaction.edits[0])

    async def test_dm_failure_is_reported(self):
        self._wire(send_ok=False)
        interaction = FakeInteraction(user=_user(1, "alice"))
        await self.bot.tree.get_command("dm").callback(interaction, user=_user(2, "bob"), message="hi")
        self.assertFalse(self.state.action_log.recent(1)[0].success)
        self.assertIn("Failed to send", interaction.edits[0])

    async def test_ask_routes_through_orchestrator(self):
        self._wire()
        interaction = FakeInteraction(user=_user(1, "alice"), guild=SimpleNamespace(id=5, members=[]))
        await self.bot.tree.get_command("ask").callback(interaction, question="what is rust?")
        self.assertEqual(interaction.response.deferred, [False])
        self.assertEqual(interaction.edits, [NOT_CONFIGURED_REPLY])

    async def test_ask_keeps_user_mentions_and_caps_heading(self):
        self._wire()
        seen: list[list[dict]] = []

        def create(**kwargs):
            seen.append(kwargs["messages"])
            return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content="short answer"))])

        self.bot_orchestrator.client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))

        interaction = FakeInteraction(user=_user(1, "alice"))
        await self.bot.tree.get_command("ask").callback(interaction, question="what does <@456> think?")
        self.assertEqual(seen[0][-1]["content"], "(from Alice) what does <@456> think?")

        long_question = "why " * 1000
        interaction = FakeInteraction(user=_user(1, "alice"))
        await self.bot.tree.get_command("ask").callback(interaction, question=long_question)
        edited = interaction.edits[0]
        self.assertLessEqual(len(edited), 1900)
        self.assertTrue(edited.endswith("**Ngubot:** short answer"))
        self.assertIn(long_question[: ASK_QUOTE_MAX_CHARS - 3], edited)

    async def test_help_text_command(self):
        self._wire()
        replies: list[str] = []

        class Ctx:
            guild = None

            async def reply(self, text, mention_author=True):
                replies.append(text)

        await self.bot.get_command("help").callback(Ctx())
        self.assertIn("/ask", replies[0])
        self.assertIn("mention @Ngubot", replies[0])


if __name__ == "__main__":
    unittest.main()
