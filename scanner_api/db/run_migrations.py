"""
Alembic runner for the scanning database.

Builds the Alembic configuration in code (no alembic.ini): the script location
is the `migrations` package next to this module and the URL comes from the
database settings. Used by the API on startup and from the command line:

    python -m scanner_api.db.run_migrations upgrade head
    python -m scanner_api.db.run_migrations downgrade -1
    python -m scanner_api.db.run_migrations stamp head
    python -m scanner_api.db.run_migrations current
"""

import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from alembic import command
from alembic.config import Config

from scanner_api.db.config import get_settings

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"

# command name -> (alembic function, default arguments)
_COMMANDS: Dict[str, tuple] = {
    "upgrade": (command.upgrade, ["head"]),
    "downgrade": (command.downgrade, ["-1"]),
    "stamp": (command.stamp, ["head"]),
    "current": (command.current, []),
    "heads": (command.heads, []),
    "history": (command.history, []),
    "show": (command.show, None),
}


# PUBLIC_INTERFACE
def alembic_config() -> Config:
    """Alembic Config pointing at the packaged migrations and the configured database."""
    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    # env.py switches to the async URL for online runs
    cfg.set_main_option("sqlalchemy.url", get_settings().sync_database_url)
    return cfg


# PUBLIC_INTERFACE
def main(argv: Optional[Sequence[str]] = None) -> None:
    """
    Run one Alembic command, e.g. ["upgrade", "head"].

    Raises:
        ValueError: when no command, an unsupported command or a missing
        required argument is given.
    """
    args: List[str] = list(sys.argv[1:] if argv is None else argv)
    if not args:
        raise ValueError("No Alembic command given, e.g. 'upgrade head'")

    name, rest = args[0], args[1:]
    try:
        func, defaults = _COMMANDS[name]
    except KeyError:
        raise ValueError(f"Unsupported Alembic command: {name}") from None
    if defaults is None and not rest:
        raise ValueError(f"'{name}' requires a revision argument")

    run: Callable[..., object] = func
    logger.info("alembic %s %s", name, " ".join(rest or defaults or []))
    run(alembic_config(), *(rest or defaults or []))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    try:
        main()
    except ValueError as exc:
        print(exc, file=sys.stderr)
        sys.exit(2)
