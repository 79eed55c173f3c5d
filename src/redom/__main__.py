"""Entry point for the redom REPL.

Run as `redom` or `python -m redom`.
"""

import atexit
import logging

from redom.app import app

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"
)

atexit.register(lambda: app.state.cleanup() if hasattr(app, "state") and app.state else None)


def main():
    """Run the redom REPL."""
    app.run(title="redom - DOM renderer over Chrome DevTools Protocol")


if __name__ == "__main__":
    main()
