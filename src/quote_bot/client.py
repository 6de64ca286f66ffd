"""
Discord client for quote-bot.
"""

import logging

import discord
from discord import app_commands

from .commands import QuoteGroup, on_tree_error
from .models import QuoteStore

logger = logging.getLogger(__name__)


class QuoteBot(discord.Client):
    """Gateway client that serves the ``/quote`` commands."""

    def __init__(self, store: QuoteStore, guild_id: int | None = None):
        super().__init__(intents=discord.Intents.default())
        self.store = store
        self.guild_id = guild_id
        self.tree = app_commands.CommandTree(self)
        self.tree.add_command(QuoteGroup(store))
        self.tree.error(on_tree_error)

    async def setup_hook(self) -> None:
        logger.info("Registering global commands")
        await self.tree.sync()

        if self.guild_id is not None:
            guild = discord.Object(id=self.guild_id)
            logger.info(f"Registering guild commands in {self.guild_id}")
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)

    async def on_ready(self) -> None:
        logger.info(f"Connected as {self.user} ({len(self.guilds)} guild(s))")
