from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Sequence

from .config import config_sha256, load_config, resolve_runtime_secrets
from .config_schema import AppConfig
from .cursor import WatermarkCursor
from .errors import ConfigError, FeedError, MetadataError, StorageError
from .feed_client import PnutFeedClient
from .pipeline import PollResult, run_poll
from .retry import OnRetryFn, RetryConfig, RetryEvent
from .run_log import NullRunLogger, RunLogger
from .storage import SQLiteShowStore
from .youtube_client import YouTubeMetadataClient


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="request_poller")

    subparsers = parser.add_subparsers(dest="command", required=True)

    poll = subparsers.add_parser(
        "poll",
        help="Poll the tag feed once and queue new requests.",
    )
    poll.add_argument("--config", required=True, help="Path to YAML config file.")
    poll.add_argument("--out", required=True, help="Directory holding state.sqlite and run.log.")
    poll.set_defaults(_handler=_cmd_poll)

    dry = subparsers.add_parser(
        "dry-run",
        help="Run one poll against an in-memory store and print the queued requests.",
    )
    dry.add_argument("--config", required=True, help="Path to YAML config file.")
    dry.add_argument(
        "--offline",
        action="store_true",
        help="Use built-in sample posts and titles instead of the network.",
    )
    dry.set_defaults(_handler=_cmd_dry_run)

    show = subparsers.add_parser(
        "show-queue",
        help="Print queued requests for the configured tag as JSON lines.",
    )
    show.add_argument("--config", required=True, help="Path to YAML config file.")
    show.add_argument("--out", required=True, help="Directory holding state.sqlite.")
    show.add_argument("--limit", type=int, default=None, help="Maximum number of requests to print.")
    show.set_defaults(_handler=_cmd_show_queue)

    return parser


def _eprint(message: str) -> None:
    print(message, file=sys.stderr)


def _retry_logger(log: RunLogger) -> OnRetryFn:
    def _on_retry(event: RetryEvent) -> None:
        log.warning(
            "http_retry",
            operation=event.operation,
            failure_attempt=event.failure_attempt,
            max_attempts=event.max_attempts,
            delay_seconds=round(event.delay_seconds, 3),
            reason=event.reason,
            error_type=event.error_type,
        )

    return _on_retry


def _print_result(result: PollResult) -> None:
    print(f"status={result.status}")
    print(f"tag={result.tag}")
    print(f"watermark={result.watermark}")
    print(f"fetched={result.fetched}")
    print(f"valid={result.valid}")
    print(f"queued={result.queued}")


def _poll_with_network(
    cfg: AppConfig,
    store: SQLiteShowStore,
    log: RunLogger,
) -> PollResult:
    secrets = resolve_runtime_secrets(cfg)
    retry = RetryConfig.from_settings(cfg.retry)
    on_retry = _retry_logger(log)

    with PnutFeedClient(
        secrets.feed_token, feed=cfg.feed, retry=retry, on_retry=on_retry
    ) as feed, YouTubeMetadataClient(
        secrets.metadata_api_key, metadata=cfg.metadata, retry=retry, on_retry=on_retry
    ) as metadata:
        return run_poll(
            cfg,
            cursor=WatermarkCursor(store),
            feed=feed,
            metadata=metadata,
            queue=store,
            logger=log,
        )


def _cmd_poll(args: argparse.Namespace) -> int:
    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)

    log_path = out_dir / "run.log"
    with RunLogger.open(log_path) as log:
        log.info("poll_command_started", config_path=str(args.config), out_dir=str(out_dir))

        try:
            cfg = load_config(args.config)
            log.info("config_loaded", config_sha256=config_sha256(cfg), tag=cfg.feed.tag)

            with SQLiteShowStore.open(out_dir / "state.sqlite") as store:
                result = _poll_with_network(cfg, store, log)
        except Exception as e:
            log.exception("poll_command_failed", exc=e)
            raise

    _print_result(result)
    print(f"run_log={log_path}")
    return 0


def _cmd_dry_run(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)

    with SQLiteShowStore.open(":memory:") as store:
        if bool(getattr(args, "offline", False)):
            from .offline import OfflineFeedClient, OfflineMetadataClient

            result = run_poll(
                cfg,
                cursor=WatermarkCursor(store),
                feed=OfflineFeedClient(),
                metadata=OfflineMetadataClient(),
                queue=store,
            )
        else:
            result = _poll_with_network(cfg, store, NullRunLogger())

        queued = [r.record for r in store.list_requests(cfg.feed.tag)]

    _print_result(result)
    print("queued_requests=")
    print(json.dumps(queued, indent=2, ensure_ascii=False, sort_keys=True))
    return 0


def _cmd_show_queue(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    db_path = Path(args.out) / "state.sqlite"
    if not db_path.exists():
        raise StorageError(f"No state database at {db_path}")

    with SQLiteShowStore.open(db_path) as store:
        for stored in store.list_requests(cfg.feed.tag, limit=args.limit):
            print(json.dumps({"key": stored.key, **stored.record}, ensure_ascii=False, sort_keys=True))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        handler = getattr(args, "_handler")
        return int(handler(args))
    except ConfigError as e:
        _eprint(str(e))
        return 2
    except (FeedError, MetadataError, StorageError) as e:
        _eprint(str(e))
        return 3
    except KeyboardInterrupt:
        _eprint("Interrupted")
        return 130
    except Exception as e:
        _eprint(f"Unexpected error: {e}")
        return 1
