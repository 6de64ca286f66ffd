"""
Slash commands for quote-bot.

``/quote add`` and ``/quote random`` translate Discord interactions into
store calls and format the replies. Store failures are reported back to the
user and logged; they never propagate out of a command.
"""

import asyncio
import logging

import discord
from discord import app_commands

from .models import InvalidQuoteError, Quote, QuoteStore, StoreError

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Something went wrong talking to the quote database. Please try again later."
EMPTY_QUOTE = "Quotes can't be empty."

MESSAGE_LIMIT = 2000
# Escaping can double the text; the mention and date need the rest
QUOTE_MAX_LENGTH = 900
QUOTE_TOO_LONG = f"Quotes can be at most {QUOTE_MAX_LENGTH} characters."


def format_added(text: str, user_name: str) -> str:
    return f"Quote: {text}, by {user_name} added!"


def format_quote(quote: Quote, mention: str) -> str:
    """Render a quote as bold text followed by its attribution and date."""
    body = discord.utils.escape_mentions(discord.utils.escape_markdown(quote.quote_text))
    footer = f"\n{mention} on {quote.quote_date.isoformat()}"
    room = MESSAGE_LIMIT - len(footer) - len("****")
    if len(body) > room:
        # A trailing backslash would escape the closing **
        body = body[: room - 3].rstrip("\\") + "..."
    return f"**{body}**{footer}"


def format_not_found(user_name: str) -> str:
    return f"No quotes found for user: {user_name}"


async def send_failure(interaction: discord.Interaction, message: str = GENERIC_FAILURE) -> None:
    """Reply privately with a failure message, if the interaction is still open."""
    if interaction.response.is_done():
        await interaction.followup.send(message, ephemeral=True)
    else:
        await interaction.response.send_message(message, ephemeral=True)


class QuoteCommands:
    """Handlers behind the ``/quote`` command group."""

    def __init__(self, store: QuoteStore):
        self.store = store

    async def add(self, interaction: discord.Interaction, user: discord.abc.User, text: str) -> None:
        user_id = str(user.id)
        if len(text) > QUOTE_MAX_LENGTH:
            await send_failure(interaction, QUOTE_TOO_LONG)
            return

        try:
            await asyncio.to_thread(self.store.add_quote, user_id, text)
        except InvalidQuoteError:
            await send_failure(interaction, EMPTY_QUOTE)
            return
        except StoreError:
            logger.exception(f"Failed to add quote for user {user_id}")
            await send_failure(interaction)
            return

        logger.info(f"Quote added for user {user_id} by {interaction.user.id}")
        await interaction.response.send_message(
            format_added(text, user.name),
            allowed_mentions=discord.AllowedMentions.none(),
        )

    async def random(self, interaction: discord.Interaction, user: discord.abc.User) -> None:
        user_id = str(user.id)
        try:
            quote = await asyncio.to_thread(self.store.random_quote_for_user, user_id)
        except StoreError:
            logger.exception(f"Failed to fetch a random quote for user {user_id}")
            await send_failure(interaction)
            return

        if quote is None:
            await interaction.response.send_message(format_not_found(user.name), ephemeral=True)
            return

        await interaction.response.send_message(format_quote(quote, user.mention))


class QuoteGroup(app_commands.Group):
    """The ``/quote`` parent command."""

    def __init__(self, store: QuoteStore):
        super().__init__(name="quote", description="Save and recall quotes")
        self.handlers = QuoteCommands(store)

    @app_commands.command(name="add", description="Add a quote for a user")
    @app_commands.describe(user="Selected user", quote="Quote you want to add")
    async def add(
        self,
        interaction: discord.Interaction,
        user: discord.User,
        quote: app_commands.Range[str, 1, QUOTE_MAX_LENGTH],
    ) -> None:
        await self.handlers.add(interaction, user, quote)

    @app_commands.command(name="random", description="Bring up a random quote by a particular user")
    @app_commands.describe(user="Selected user")
    async def random(self, interaction: discord.Interaction, user: discord.User) -> None:
        await self.handlers.random(interaction, user)


async def on_tree_error(interaction: discord.Interaction, error: app_commands.AppCommandError) -> None:
    """Last-resort handler for anything a command let escape."""
    command = interaction.command.qualified_name if interaction.command else "unknown"
    logger.error(f"Command {command} failed", exc_info=error)
    try:
        await send_failure(interaction)
    except discord.HTTPException:
        logger.warning(f"Could not report failure of {command} to the user")
