"""Run a single gather cycle from the command line."""

from __future__ import annotations

import argparse
import logging

from prmetrics.bitbucket.auth import new_client
from prmetrics.core.config import Settings
from prmetrics.core.errors import ConfigurationError
from prmetrics.services.gather import GatherService
from prmetrics.telemetry import configure_metrics, shutdown_metrics, sink_from_settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Gather Bitbucket pull request metrics once")
    parser.add_argument("--owner", help="Team name, user UUID, or repository owner (default: PRMETRICS_OWNER)")
    parser.add_argument(
        "--gather-type",
        help="`team`, `user`, or `repos` (default: PRMETRICS_GATHER_TYPE)",
    )
    parser.add_argument("--base-url", help="Bitbucket API base URL")
    parser.add_argument("--timeout", type=float, help="Per-request HTTP timeout in seconds")
    parser.add_argument("--max-workers", type=int, help="Cap on concurrent pull request fetches")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def apply_overrides(base: Settings, args: argparse.Namespace) -> Settings:
    overrides = {
        "owner": args.owner,
        "gather_type": args.gather_type,
        "bitbucket_api_base_url": args.base_url,
        "http_timeout": args.timeout,
        "max_workers": args.max_workers,
    }
    return base.model_copy(update={key: value for key, value in overrides.items() if value is not None})


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = apply_overrides(Settings(), args)
    if not config.owner:
        raise SystemExit("An owner is required: pass --owner or set PRMETRICS_OWNER")

    configure_metrics()
    sink = sink_from_settings()
    try:
        with new_client(config) as client:
            service = GatherService(
                client,
                sink,
                base_url=config.bitbucket_api_base_url,
                measurement=config.measurement,
                max_workers=config.max_workers,
            )
            try:
                summary = service.gather(config.owner, config.gather_type)
            except ConfigurationError:
                return 2
    finally:
        sink.close()
        shutdown_metrics()

    print(summary.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
