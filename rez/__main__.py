from __future__ import annotations
from typing import Any

from argparse import ArgumentParser
import logging
import os
import shutil
import sys

from rez import __version__
from rez import errors
from rez.config import ResolvedConfig
from rez.config import CACHE_DIR
from rez.config import load
from rez.task import Config
from rez.task import Context

logger = logging.getLogger("rez")


def build(c: Context, config: ResolvedConfig) -> None:
    c.mkdir(config.artifact_dir_path)

    result = c.run(config.build_command, env=config.environment)

    if result.return_code != 0:
        raise errors.CommandFailed(config.build_command, result.return_code)


def run_delegate(c: Context, config: ResolvedConfig, tasks: list[str]) -> int:
    result = c.run(
        [config.artifact_file_path, *tasks], env=config.environment
    )
    return result.return_code


def clean(c: Context) -> None:
    if not c.exists(CACHE_DIR):
        logger.debug(f"Nothing to clean: {CACHE_DIR!r}")
        return

    if c.config.dry_run:
        print(f"> rm -r {CACHE_DIR}", flush=True)
        return

    logger.info(f"Removing {CACHE_DIR!r}")
    shutil.rmtree(CACHE_DIR)


def _handler_clean(c: Context, args: Any) -> int:
    _ = args

    clean(c)
    return 0


def _handler_run(c: Context, args: Any) -> int:
    config = load(debug=args.verbose)

    build(c, config)
    return run_delegate(c, config, args.tasks)


def make_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="rez",
        description="Compile rez.cpp (or rez.c) and run the requested tasks.",
    )
    parser.set_defaults(handler=_handler_run)

    parser.add_argument("--version", action="version", version=f"rez {__version__}")
    parser.add_argument("-C", "--directory", dest="cwd", default=None)
    parser.add_argument("-v", "--verbose", dest="verbose", action="store_true")
    parser.add_argument(
        "-n", "--dry-run", dest="dry_run", default=False, action="store_true"
    )
    parser.add_argument(
        "-c",
        "--clean",
        dest="handler",
        action="store_const",
        const=_handler_clean,
        help="remove cached artifacts and toolchain environment",
    )
    parser.add_argument("tasks", nargs="*", metavar="task")

    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

    parser = make_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logger.setLevel(logging.DEBUG)

    try:
        if args.cwd is not None:
            if not os.path.exists(args.cwd):
                raise errors.PathNotExists(args.cwd)
            os.chdir(args.cwd)

        c = Context(
            root=os.getcwd(),
            config=Config(dry_run=args.dry_run, echo=args.verbose or args.dry_run),
        )

        return args.handler(c, args)
    except errors.ResolutionError as e:
        logger.error(f"Failed to resolve build configuration: {e}")
    except errors.RezError as e:
        logger.error(f"{e}")

    return 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
