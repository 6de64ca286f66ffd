"""
quote-bot: Discord quote keeper.

A small Discord bot that stores short quotes attributed to community members
and recalls a random one on request.
"""

__version__ = "0.1.0"
