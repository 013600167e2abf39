from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from stagesync.app import assemble_batch, assemble_stored_batch, handle_request, save_draft
from stagesync.config import ConfigurationError, configure_logging
from stagesync.domain.staging import Action, TransportRequest, encode_text
from stagesync.domain.staging.dispatch import PAYLOAD_KEY

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Move content batches from stage to production")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    draft = subparsers.add_parser("draft", help="Store a selection of posts as a batch")
    draft.add_argument("post_ids", nargs="+", type=int, help="Ids of the posts to include")
    draft.add_argument("--title", default="", help="Batch title")
    draft.add_argument("--creator", type=int, default=0, help="Id of the user creating the batch")
    draft.add_argument("--batch-id", type=int, help="Replace the selection of an existing batch")

    assemble = subparsers.add_parser("assemble", help="Build a transfer envelope")
    assemble.add_argument("post_ids", nargs="*", type=int, help="Ids of the root posts")
    assemble.add_argument("--batch-id", type=int, help="Assemble a stored batch instead")
    assemble.add_argument("--title", default="", help="Batch title (ignored with --batch-id)")
    assemble.add_argument(
        "--output",
        type=Path,
        help="Write the envelope to this file instead of stdout",
    )

    for name, help_text in (
        ("preflight", "Validate a received envelope without storing it"),
        ("receive", "Store a received envelope and start the import job"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("envelope", type=Path, help="File holding the encoded envelope")

    return parser.parse_args(list(argv))


def _run_draft(args: argparse.Namespace) -> int:
    batch_id = save_draft(
        args.post_ids,
        title=args.title,
        creator_id=args.creator,
        batch_id=args.batch_id,
    )
    print(batch_id)  # noqa: T201
    return 0


def _run_assemble(args: argparse.Namespace) -> int:
    if args.batch_id is not None:
        batch = assemble_stored_batch(args.batch_id)
    elif args.post_ids:
        batch = assemble_batch(args.post_ids)
        batch.title = args.title
    else:
        raise ValueError("Provide post ids or --batch-id")

    envelope = encode_text(batch)
    if args.output is not None:
        args.output.write_text(envelope + "\n", encoding="ascii")
        log.info("Wrote batch %s to %s", batch.guid, args.output)
    else:
        print(envelope)  # noqa: T201
    return 0


def _run_transport(action: Action) -> Callable[[argparse.Namespace], int]:
    def run(args: argparse.Namespace) -> int:
        payload = args.envelope.read_text(encoding="ascii").strip()
        response = handle_request(TransportRequest(action=action, body={PAYLOAD_KEY: payload}))
        print(json.dumps(response, indent=2))  # noqa: T201
        return 1 if response.get("error") else 0

    return run


COMMANDS: dict[str, Callable[[argparse.Namespace], int]] = {
    "draft": _run_draft,
    "assemble": _run_assemble,
    "preflight": _run_transport(Action.PREFLIGHT),
    "receive": _run_transport(Action.SEND),
}


def main(argv: Sequence[str] | None = None) -> None:
    """Command line entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)

    try:
        args = _parse_args(sys.argv[1:] if argv is None else argv)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)  # noqa: T201
        sys.exit(2)

    configure_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        code = COMMANDS[args.command](args)
    except (ConfigurationError, OSError, ValueError, LookupError) as exc:
        print(f"Error: {exc}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    sys.exit(code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")  # noqa: T201
    sys.exit(0)


if __name__ == "__main__":
    main()
