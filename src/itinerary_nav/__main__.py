"""CLI entrypoint for itinerary-nav."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from importlib import metadata
from pathlib import Path
from typing import Any

from rich.text import Text

from .config import ensure_config_dir, load_config
from .logging_utils import configure_logging

PLACEHOLDER_VIEWS = ("dashboard", "itinerary", "bookings", "settings")


def _placeholder_view(name: str) -> dict[str, Any]:
    title = name.capitalize()

    def render(options: Any) -> Text:
        body = Text()
        body.append(f"{title}\n\n", style="bold")
        body.append(f"Placeholder content for the {name} view.")
        return body

    return {"render": render, "title": title}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="itinerary-nav",
        description="itinerary-nav - terminal view navigator",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Read configuration from PATH instead of the user config file",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Load configuration, handle CLI flags, and run the TUI."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.version:
        try:
            version = metadata.version("itinerary-nav")
        except metadata.PackageNotFoundError:
            version = "0.0.0"
        print(f"itinerary-nav {version}")
        return

    if args.config is None:
        ensure_config_dir()
    config = load_config(args.config)
    configure_logging(config["logging"])

    from .app import NavigatorApp

    views = {name: _placeholder_view(name) for name in PLACEHOLDER_VIEWS}
    app = NavigatorApp(views, config=config)
    app.run()


if __name__ == "__main__":
    main()
