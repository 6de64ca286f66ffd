"""Tests for the /quote slash commands."""

from datetime import date
from unittest.mock import MagicMock

import discord
import pytest

from quote_bot.commands import (
    EMPTY_QUOTE,
    GENERIC_FAILURE,
    MESSAGE_LIMIT,
    QUOTE_MAX_LENGTH,
    QUOTE_TOO_LONG,
    QuoteCommands,
    QuoteGroup,
    format_added,
    format_not_found,
    format_quote,
    on_tree_error,
    send_failure,
)
from quote_bot.models import MalformedEntryError, Quote, StoreIOError


class TestFormatting:
    """Test reply text formatting."""

    def test_format_added(self):
        assert format_added("hello world", "alice") == "Quote: hello world, by alice added!"

    def test_format_quote(self):
        quote = Quote(user_id="42", quote_date=date(2024, 1, 2), quote_text="hello world")

        assert format_quote(quote, "<@42>") == "**hello world**\n<@42> on 2024-01-02"

    def test_format_quote_escapes_markdown(self):
        quote = Quote(user_id="42", quote_date=date(2024, 1, 2), quote_text="**loud**")

        reply = format_quote(quote, "<@42>")

        assert reply.startswith(r"**\*\*loud\*\***")

    def test_format_quote_escapes_mass_mentions(self):
        quote = Quote(user_id="42", quote_date=date(2024, 1, 2), quote_text="hi @everyone")

        assert "@everyone" not in format_quote(quote, "<@42>")

    def test_format_quote_shortens_overlong_text(self):
        """Text stored without a length limit still fits in one message."""
        quote = Quote(user_id="42", quote_date=date(2024, 1, 2), quote_text="*" * 1990)

        reply = format_quote(quote, "<@12345678901234567890>")

        assert len(reply) <= MESSAGE_LIMIT
        assert reply.startswith("**")
        assert reply.endswith("...**\n<@12345678901234567890> on 2024-01-02")
        assert not reply.endswith("\\...**\n<@12345678901234567890> on 2024-01-02")

    def test_format_not_found(self):
        assert format_not_found("ghost") == "No quotes found for user: ghost"


class TestAddCommand:
    """Test /quote add."""

    @pytest.mark.asyncio
    async def test_add_stores_and_confirms(self, store, interaction, user):
        commands = QuoteCommands(store)

        await commands.add(interaction, user, "hello world")

        assert store.count_quotes("42") == 1
        interaction.response.send_message.assert_awaited_once()
        args, kwargs = interaction.response.send_message.call_args
        assert args[0] == "Quote: hello world, by alice added!"
        assert kwargs.get("ephemeral") is None

    @pytest.mark.asyncio
    async def test_add_empty_quote(self, store, interaction, user):
        commands = QuoteCommands(store)

        await commands.add(interaction, user, "   ")

        assert store.count_quotes("42") == 0
        interaction.response.send_message.assert_awaited_once_with(EMPTY_QUOTE, ephemeral=True)

    @pytest.mark.asyncio
    async def test_add_store_failure_replies_generic(self, interaction, user):
        store = MagicMock()
        store.add_quote.side_effect = StoreIOError("disk full")
        commands = QuoteCommands(store)

        await commands.add(interaction, user, "hello")

        interaction.response.send_message.assert_awaited_once_with(GENERIC_FAILURE, ephemeral=True)

    @pytest.mark.asyncio
    async def test_add_uses_string_user_id(self, interaction, user):
        store = MagicMock()
        commands = QuoteCommands(store)

        await commands.add(interaction, user, "hello")

        store.add_quote.assert_called_once_with("42", "hello")

    @pytest.mark.asyncio
    async def test_longest_allowed_quote_fits(self, store, interaction, make_user):
        """The longest quote accepted can be confirmed and shown again."""
        user = make_user(12345678901234567890, "n" * 32)
        text = "*" * QUOTE_MAX_LENGTH
        commands = QuoteCommands(store)

        await commands.add(interaction, user, text)

        assert store.count_quotes("12345678901234567890") == 1
        added = interaction.response.send_message.call_args.args[0]
        assert len(added) <= MESSAGE_LIMIT

        interaction.response.send_message.reset_mock()
        await commands.random(interaction, user)

        shown = interaction.response.send_message.call_args.args[0]
        assert len(shown) <= MESSAGE_LIMIT
        assert shown.startswith("**" + "\\*" * QUOTE_MAX_LENGTH + "**")

    @pytest.mark.asyncio
    async def test_add_overlong_quote_rejected(self, store, interaction, user):
        commands = QuoteCommands(store)

        await commands.add(interaction, user, "x" * (QUOTE_MAX_LENGTH + 1))

        assert store.count_quotes("42") == 0
        interaction.response.send_message.assert_awaited_once_with(QUOTE_TOO_LONG, ephemeral=True)


class TestRandomCommand:
    """Test /quote random."""

    @pytest.mark.asyncio
    async def test_random_replies_with_quote(self, interaction, user):
        store = MagicMock()
        store.random_quote_for_user.return_value = Quote(
            user_id="42", quote_date=date(2024, 5, 6), quote_text="hello world"
        )
        commands = QuoteCommands(store)

        await commands.random(interaction, user)

        store.random_quote_for_user.assert_called_once_with("42")
        interaction.response.send_message.assert_awaited_once_with(
            "**hello world**\n<@42> on 2024-05-06"
        )

    @pytest.mark.asyncio
    async def test_random_no_quotes_is_private(self, store, interaction, make_user):
        commands = QuoteCommands(store)

        await commands.random(interaction, make_user(7, "ghost"))

        interaction.response.send_message.assert_awaited_once_with(
            "No quotes found for user: ghost", ephemeral=True
        )

    @pytest.mark.asyncio
    async def test_random_malformed_entry_replies_generic(self, interaction, user):
        store = MagicMock()
        store.random_quote_for_user.side_effect = MalformedEntryError()
        commands = QuoteCommands(store)

        await commands.random(interaction, user)

        interaction.response.send_message.assert_awaited_once_with(GENERIC_FAILURE, ephemeral=True)

    @pytest.mark.asyncio
    async def test_random_io_error_replies_generic(self, interaction, user):
        store = MagicMock()
        store.random_quote_for_user.side_effect = StoreIOError("locked")
        commands = QuoteCommands(store)

        await commands.random(interaction, user)

        interaction.response.send_message.assert_awaited_once_with(GENERIC_FAILURE, ephemeral=True)


class TestFailureReplies:
    """Test failure reporting."""

    @pytest.mark.asyncio
    async def test_send_failure_uses_followup_when_answered(self, interaction):
        interaction.response.is_done.return_value = True

        await send_failure(interaction)

        interaction.followup.send.assert_awaited_once_with(GENERIC_FAILURE, ephemeral=True)
        interaction.response.send_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_tree_error_handler_replies(self, interaction):
        error = discord.app_commands.AppCommandError("boom")

        await on_tree_error(interaction, error)

        interaction.response.send_message.assert_awaited_once_with(GENERIC_FAILURE, ephemeral=True)


class TestQuoteGroup:
    """Test the command group definition."""

    def test_group_shape(self, store):
        group = QuoteGroup(store)

        assert group.name == "quote"
        assert {command.name for command in group.commands} == {"add", "random"}

    def test_add_parameters(self, store):
        group = QuoteGroup(store)
        add = group.get_command("add")

        assert [param.name for param in add.parameters] == ["user", "quote"]

    def test_quote_length_bounded(self, store):
        group = QuoteGroup(store)
        quote = next(p for p in group.get_command("add").parameters if p.name == "quote")

        assert quote.min_value == 1
        assert quote.max_value == QUOTE_MAX_LENGTH
