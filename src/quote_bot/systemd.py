"""
systemd unit generation for quote-bot.
"""

import shlex
import shutil
from pathlib import Path

DEFAULT_EXEC_PATH = "/usr/bin/quote-bot"


def default_exec_path() -> str:
    """Location of the installed ``quote-bot`` script, if it is on PATH."""
    return shutil.which("quote-bot") or DEFAULT_EXEC_PATH


def systemd_unit(
    token: str,
    database: Path | None = None,
    guild: int | None = None,
    exec_path: str | None = None,
) -> str:
    """Build a systemd service unit that runs the bot with these options."""
    args = [exec_path or default_exec_path(), "--token", token]
    if database is not None:
        # systemd doesn't start services in the caller's directory
        args += ["--database", str(Path(database).resolve())]
    if guild is not None:
        args += ["--guild", str(guild)]

    return "\n".join(
        [
            "[Unit]",
            "Description=Discord quote bot",
            "[Service]",
            f"ExecStart={shlex.join(args)}",
            "[Install]",
            "WantedBy=multi-user.target",
        ]
    )
