import argparse
import logging
import platform
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from . import __version__
from .config import Settings, resolve_api_key
from .metrics.base import StatsError
from .metrics.dnsdist import DnsdistStats
from .plugin import Plugin

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_WARNING = 1

# short flags whose value may follow directly, as in -H127.0.0.1
VALUE_FLAGS = "pH"


class UsageError(Exception):
    """Raised instead of exiting when the command line cannot be parsed."""


class ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(f"{self.prog}: error: {message}")


def create_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="mackerel-plugin-dnsdist",
        description="Publish dnsdist statistics to mackerel-agent.",
    )
    parser.add_argument("-v", "--version", action="store_true", help="Show version")
    parser.add_argument("--prefix", help="Metric key prefix (default: dnsdist)")
    parser.add_argument("-p", "--port", help="Port number (default: 8083)")
    parser.add_argument(
        "-H", "--hostname", help="Hostname (default: 127.0.0.1)"
    )
    parser.add_argument("--timeout", help="Timeout, e.g. 30s or 1m (default: 30s)")
    parser.add_argument("--api-key", help="api key")
    parser.add_argument(
        "--config-file",
        type=Path,
        help="dnsdist configuration searched for an apiKey (default: /etc/dnsdist/dnsdist.conf)",
    )
    parser.add_argument(
        "--log-level", help="Logging level written to stderr (default: WARNING)"
    )
    return parser


def configure_logging(level: str = "WARNING") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    if logging.getLogger().level > logging.DEBUG:
        for lib in ("httpcore", "httpx"):
            logging.getLogger(lib).setLevel(logging.WARNING)


def version_text(prog: str) -> str:
    return (
        f"{prog} {__version__}\n"
        f"Python: {platform.python_implementation()} {platform.python_version()}\n"
    )


def wants_version(argv: List[str]) -> bool:
    """Whether -v/--version appears, including inside a short-flag cluster."""
    for token in argv:
        if token == "--":
            break
        if token == "--version":
            return True
        if token.startswith("-") and not token.startswith("--"):
            for flag in token[1:]:
                if flag == "v":
                    return True
                if flag in VALUE_FLAGS:
                    break
    return False


def build_settings(args: argparse.Namespace) -> Settings:
    overrides: Dict[str, Any] = {
        name: value
        for name, value in vars(args).items()
        if name != "version" and value is not None
    }
    return Settings(**overrides)


def main(argv: Optional[List[str]] = None) -> int:
    parser = create_parser()
    argv = sys.argv[1:] if argv is None else argv

    try:
        args = parser.parse_args(argv)
    except UsageError as exc:
        if wants_version(argv):
            sys.stdout.write(version_text(parser.prog))
            return EXIT_OK
        print(exc, file=sys.stderr)
        return EXIT_WARNING

    if args.version:
        sys.stdout.write(version_text(parser.prog))
        return EXIT_OK

    try:
        settings = build_settings(args)
    except ValidationError as exc:
        print(f"{parser.prog}: error: {exc}", file=sys.stderr)
        return EXIT_WARNING

    configure_logging(settings.log_level)

    provider = DnsdistStats(
        url=settings.url,
        timeout=settings.timeout,
        api_key=resolve_api_key(settings),
    )
    plugin = Plugin(provider, settings.prefix)
    try:
        plugin.run()
    except StatsError as exc:
        logger.error("%s", exc)
        return EXIT_WARNING
    return EXIT_OK
