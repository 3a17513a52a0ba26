"""Console entry point of the update-plus command."""

import sys

import uvloop

from update_plus.cli import CLIRunner
from update_plus.logger import get_logger

logger = get_logger(__name__)


async def async_main(argv: list[str] | None = None) -> None:
    """Parse argv and dispatch to the matching command handler."""
    await CLIRunner().run(argv)


def main() -> None:
    """Run update-plus on a uvloop event loop.

    Ctrl+C and unexpected errors end the process with status 1; handled
    failures exit from inside CLIRunner with their own status.
    """
    try:
        uvloop.run(async_main())
    except KeyboardInterrupt:
        logger.warning("⚠️ Interrupted, backups and skills may be partial")
        sys.exit(1)
    except Exception:
        logger.exception("❌ Unexpected error")
        sys.exit(1)


if __name__ == "__main__":
    main()
