"""Command-line entry point running the feed poll loop with a consumer.

Commands
--------
``ghfeed stream``
    Write every polled event to stdout as one JSON document per line.
``ghfeed identify``
    Forward hashed actor and commit-author identifiers to
    ``GHFEED_IDENTITY_ENDPOINT``.

Configuration is read from ``GHFEED_*`` environment variables (see
:meth:`ghfeed.feed.config.FeedConfig.from_env`). SIGINT and SIGTERM stop the
loop at the next sleep boundary.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import os
import signal
import sys
import typing as typ

import httpx

from ghfeed.feed import (
    FeedConfig,
    FeedConfigError,
    FeedError,
    GitHubEventSource,
    PollLoop,
)
from ghfeed.identity import IdentityConfig, IdentityDispatcher, IdentitySink
from ghfeed.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_exception,
    log_info,
    log_warning,
)
from ghfeed.stream import DEFAULT_SKIPPED_ACTORS, EventStreamWriter

if typ.TYPE_CHECKING:
    from ghfeed.feed import BatchChannel, ServeOutcome

    type Consumer = typ.Callable[[BatchChannel], typ.Awaitable[object]]

logger = get_logger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ghfeed",
        description="Poll the GitHub public event feed.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    stream = commands.add_parser("stream", help="write events to stdout as JSON lines")
    stream.add_argument(
        "--skip-actor",
        action="append",
        dest="skip_actors",
        default=None,
        metavar="LOGIN",
        help="actor login to leave out (repeatable; default: dependabot[bot])",
    )

    commands.add_parser("identify", help="forward hashed identifiers over HTTP")
    return parser


def _install_signal_handlers(poll_loop: PollLoop) -> None:
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        # Not available on every platform (e.g. Windows event loops).
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(signum, poll_loop.cancel)


async def serve_with_consumer(poll_loop: PollLoop, consumer: Consumer) -> ServeOutcome:
    """Run ``poll_loop`` while ``consumer`` drains its batch channel.

    The consumer ends once the loop closes the channel, whether the loop was
    cancelled or failed. A consumer that stops early cancels the loop.
    """
    consumer_task = asyncio.create_task(consumer(poll_loop.batches))
    consumer_task.add_done_callback(lambda _task: poll_loop.cancel())
    try:
        return await poll_loop.serve()
    finally:
        await consumer_task


async def _run(
    args: argparse.Namespace,
    feed_config: FeedConfig,
    identity_config: IdentityConfig | None,
) -> ServeOutcome:
    source = GitHubEventSource(feed_config)
    poll_loop = PollLoop(feed_config, source)
    _install_signal_handlers(poll_loop)

    try:
        if identity_config is None:
            skipped = args.skip_actors or DEFAULT_SKIPPED_ACTORS
            writer = EventStreamWriter(sys.stdout.buffer, skipped_actors=skipped)
            return await serve_with_consumer(poll_loop, writer.run)

        sink = IdentitySink(identity_config)
        dispatcher = IdentityDispatcher(
            sink,
            window=identity_config.window,
            max_concurrency=identity_config.max_concurrency,
        )
        try:
            return await serve_with_consumer(poll_loop, dispatcher.run)
        finally:
            await sink.aclose()
    finally:
        await source.aclose()


def main(argv: list[str] | None = None) -> int:
    """Run the requested command.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 after cancellation, 1 on configuration or fatal errors.

    """
    args = _build_parser().parse_args(argv)

    log_level_str = os.environ.get("GHFEED_LOG_LEVEL", "INFO")
    normalized_level, invalid_level = configure_logging(log_level_str)
    if invalid_level:
        log_warning(
            logger,
            "Invalid GHFEED_LOG_LEVEL %r, falling back to %s",
            log_level_str,
            normalized_level,
        )

    try:
        feed_config = FeedConfig.from_env()
        identity_config = (
            IdentityConfig.from_env() if args.command == "identify" else None
        )
    except FeedConfigError as exc:
        log_error(logger, "Invalid configuration: %s", exc)
        return 1

    log_info(
        logger,
        "Starting ghfeed %s (max_pages=%d per_page=%d queue_capacity=%d)",
        args.command,
        feed_config.max_pages_per_cycle,
        feed_config.max_events_per_page,
        feed_config.queue_capacity,
    )
    try:
        outcome = asyncio.run(_run(args, feed_config, identity_config))
    except (FeedError, httpx.HTTPError, OSError) as exc:
        # OSError covers consumer output failures such as a closed stdout pipe.
        log_exception(logger, f"ghfeed {args.command} stopped: {exc}", exc)
        return 1

    log_info(logger, "ghfeed %s finished: %s", args.command, outcome)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
