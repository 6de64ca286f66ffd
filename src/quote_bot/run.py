"""
CLI runner for quote-bot.

Usage:
    python -m quote_bot.run [OPTIONS]

    # Run the bot
    quote-bot --token YOUR_TOKEN

    # Register commands in one guild as well (instant, handy for testing)
    quote-bot --token YOUR_TOKEN --guild 123456789012345678

    # Print a systemd unit instead of running
    quote-bot --token YOUR_TOKEN --database /var/lib/quote-bot/quotes.sqlite --make-systemd-unit
"""

import argparse
import logging
import sys
from pathlib import Path

import discord

from .client import QuoteBot
from .config import DEFAULT_DB_PATH, BotConfig
from .models import QuoteStore, StoreError
from .systemd import systemd_unit

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("quote-bot")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quote-bot",
        description="quote-bot: save and recall quotes on Discord",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Run with a token from the environment
    DISCORD_TOKEN=... quote-bot

    # Use a specific config file and database
    quote-bot --config quote_bot.yaml --database quotes.sqlite
        """,
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=Path("quote_bot.yaml"),
        help="Path to config file (default: quote_bot.yaml)",
    )
    parser.add_argument(
        "--token",
        "-t",
        type=str,
        help="Access token for your bot. Required to run (or set DISCORD_TOKEN)",
    )
    parser.add_argument(
        "--database",
        "-d",
        type=Path,
        help="Path to the SQLite database, created if missing (default: database.sqlite)",
    )
    parser.add_argument(
        "--guild",
        "-g",
        type=int,
        help="Guild id to also register commands in. Speeds up registration while testing",
    )
    parser.add_argument(
        "--make-systemd-unit",
        action="store_true",
        help="Print a premade systemd unit with your options and exit",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser


def load_config(args: argparse.Namespace) -> BotConfig:
    """Merge the config file with command line overrides."""
    config = BotConfig.from_yaml(args.config)
    if args.token:
        config.discord.token = args.token
    if args.database:
        config.database.path = args.database
    if args.guild is not None:
        config.discord.guild_id = args.guild
    return config


def run_bot(config: BotConfig, token: str) -> int:
    """Open the store and run the Discord client until it stops."""
    try:
        store = QuoteStore(
            config.db_path,
            max_connections=config.database.max_connections,
            timeout=config.database.timeout_seconds,
        )
    except StoreError:
        logger.exception(f"Couldn't open database {config.db_path}")
        return 1

    try:
        bot = QuoteBot(store, guild_id=config.discord.guild_id)
        bot.run(token, log_handler=None)
    except discord.LoginFailure as e:
        logger.error(f"Login failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
    finally:
        store.close()

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args)
    level = logging.DEBUG if args.verbose else getattr(logging, config.log_level, logging.INFO)
    logging.getLogger().setLevel(level)

    token = config.discord.get_token()
    if not token:
        logger.error("No bot token given. Pass --token or set DISCORD_TOKEN.")
        return 2

    if args.make_systemd_unit:
        database = config.db_path if config.db_path != DEFAULT_DB_PATH else None
        print(systemd_unit(token, database, config.discord.guild_id))
        return 0

    logger.info(f"Config loaded from {args.config}")
    logger.info(f"Database: {config.db_path}")
    if config.discord.guild_id is not None:
        logger.info(f"Guild: {config.discord.guild_id}")

    return run_bot(config, token)


if __name__ == "__main__":
    sys.exit(main())
