#!/usr/bin/env python3
"""
decomp-console CLI - interactive workspace console.

Usage:
    decomp-console                       Read commands from stdin
    decomp-console -i init.txt           Run init.txt first; any error aborts
    decomp-console -s DIR [-s DIR ...]   Extra resource search paths

Console commands:
    load [<target>] <file>               Build a workspace from an image
    save [<file>]                        Write the workspace to a document
    restore <file>                       Rebuild a workspace from a document
    addpath <path>                       Add a resource search path
"""
import argparse
import logging
import sys

from . import __version__
from .modules.console import ConsoleContext, Session, build_registry
from .modules.core.config import INSTALL_ROOT_ENV, load_console_config, resolve_install_root
from .modules.core.errors import ConsoleError
from .modules.core.languages import spec_paths
from .modules.core.library import shutdown_library, start_library

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="decomp-console",
        description="Interactive console for analysis workspaces",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Version: %(prog)s """ + __version__ + """

Installation root:
    Discovered from the program location. If that fails, the """ + INSTALL_ROOT_ENV + """
    environment variable is used. Without either, at least one -s path is needed.

Configuration:
    .decomp/console.json in the working directory (prompt, initPrompt,
    experimentalRules, searchPaths, historySize).
        """,
    )
    parser.add_argument(
        "-v", "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-i", "--init",
        metavar="SCRIPT",
        help="Run SCRIPT before interactive input; any error ends the process",
    )
    parser.add_argument(
        "-s", "--search-path",
        action="append",
        default=[],
        metavar="PATH",
        help="Extra resource search path (repeatable)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Diagnostic log level (default: WARNING)",
    )

    # Shell completion support
    try:
        import shtab
        shtab.add_argument_to(parser, ["--print-completion"])
    except ImportError:
        pass  # shtab is optional

    return parser


def run(argv: list[str] | None = None, stdin=None, stdout=None) -> int:
    """Run the console and return the exit status."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )

    extra_paths = list(args.search_path)
    root = resolve_install_root(sys.argv[0], extra_paths)
    if root is None:
        print("Could not discover root of installation", file=sys.stderr)
        return 1

    config = load_console_config()
    start_library(root, extra_paths)
    try:
        for path in config.search_paths:
            spec_paths.add_dir(path)

        context = ConsoleContext(
            out=stdout if stdout is not None else sys.stdout,
            experimental_file=config.experimental_rules,
        )
        if stdin is None:
            stdin = sys.stdin
            if hasattr(stdin, "reconfigure"):
                stdin.reconfigure(errors="replace")
        session = Session(
            build_registry(),
            context,
            input_stream=stdin,
            prompt=config.prompt,
            history_size=config.history_size,
        )
        if args.init:
            try:
                session.push_script(args.init, config.init_prompt)
            except ConsoleError as err:
                print(f"Interface error during setup: {err.explain}", file=sys.stderr)
                return 1
            session.error_is_done = True

        status = session.run()
        logger.debug("Session finished with status %d", status)
        return status
    finally:
        shutdown_library()


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
