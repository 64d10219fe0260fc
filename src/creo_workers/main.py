"""Application entry point — the `cw` CLI dispatcher.

Subcommands:
  1. `cw new <name> <branch>` — provision a worker, print its path.
  2. `cw ls` — list workers as `<name>\\t<branch>\\t<path>` lines.
  3. `cw path <name>` — print a worker's path.
  4. `cw rm <name>` / `cw rm --all` — delete one or every worker.

Stdout only ever carries the command's result so it composes in scripts
(e.g. `cd "$(cw new foo foo)"`); progress and errors go to stderr.
"""

import argparse
import logging
import sys

from . import __version__
from .errors import CreoWorkersError, InvalidUsageError
from .git import Git
from .settings import workers_dir
from .workspace import WorkerProvisioner, WorkerStore

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cw",
        description="Claude Workers - Git clone-based workspace manager",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="show debug output on stderr"
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)

    new = sub.add_parser(
        "new", help="Create a new worker environment (clone + symlink + setup)"
    )
    new.add_argument("name", help="Worker name")
    new.add_argument("branch", help="Branch name to create")

    sub.add_parser("ls", help="List all worker environments")

    path = sub.add_parser("path", help="Print the path to a worker environment")
    path.add_argument("name", help="Worker name")

    rm = sub.add_parser("rm", help="Remove a worker environment")
    rm.add_argument("name", nargs="?", help="Worker name (or --all)")
    rm.add_argument("--all", action="store_true", help="Remove all workers")

    return parser


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.WARNING,
            stream=sys.stderr,
        )
        logging.getLogger("creo_workers").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(format="%(message)s", level=logging.WARNING, stream=sys.stderr)
        logging.getLogger("creo_workers").setLevel(logging.INFO)


def _run(args: argparse.Namespace) -> None:
    git = Git()
    store = WorkerStore(workers_dir(), git)

    if args.command == "new":
        worker_dir = WorkerProvisioner(store, git).new_worker(args.name, args.branch)
        print(worker_dir)
    elif args.command == "ls":
        for worker in store.list_workers():
            print(f"{worker.name}\t{worker.branch_label}\t{worker.path.absolute()}")
    elif args.command == "path":
        print(store.path(args.name))
    elif args.command == "rm":
        if args.all and args.name:
            raise InvalidUsageError("specify either a worker name or --all, not both")
        if args.all:
            store.remove_all()
        elif args.name:
            store.remove(args.name)
        else:
            raise InvalidUsageError("specify a worker name or --all")


def main(argv: list[str] | None = None) -> int:
    """Main entry point. Returns the process exit status."""
    args = _build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    try:
        _run(args)
    except CreoWorkersError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
