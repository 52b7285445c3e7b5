"""
Command-line interface for retcon.

Parses arguments, opens the repository and loads the commit window before
handing control to the Textual application.
"""

import argparse
import logging
import sys

from retcon.app import RetconApp
from retcon.config import LOG_PATH, ConfigError, load_settings
from retcon.errors import RetconError
from retcon.logging_utils import configure_logging
from retcon.repository import Repository
from retcon.state import SessionState

LOG = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="retcon",
        description=(
            "Interactively edit commit metadata, reorder and delete commits, "
            "then rewrite the current branch."
        ),
    )

    parser.add_argument(
        "-p",
        "--path",
        default=".",
        help="Path to the repository (default: current directory).",
    )
    parser.add_argument(
        "-n",
        "--limit",
        type=int,
        default=None,
        help="Number of commits to load (default: from config, else 50).",
    )
    parser.add_argument(
        "-s",
        "--separate-author-committer",
        action="store_true",
        help="Do not copy author edits onto the committer fields.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (can be specified multiple times).",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if args.limit is not None and args.limit < 1:
        parser.error("--limit must be at least 1")

    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    configure_logging(verbosity=args.verbose, log_file=LOG_PATH)

    limit = args.limit if args.limit is not None else settings.limit
    sync = settings.sync_author_to_committer and not args.separate_author_committer

    try:
        repository = Repository.open(args.path)
        commits = repository.load_commits(limit)
        session = SessionState(
            commits,
            branch_name=repository.current_branch_name(),
            has_upstream=repository.has_upstream(),
            sync_author_to_committer=sync,
        )
        LOG.info("opened %s with %d commits", repository.working_dir, len(commits))
        RetconApp(session, repository, editor=settings.editor, _use_config=True).run()
    except KeyboardInterrupt:
        return 130
    except RetconError as exc:
        LOG.error("startup failed: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":  # pragma: no cover - manual invocation
    raise SystemExit(main())
