#!/usr/bin/env python3
"""
Application startup script with environment configuration support.

The selected environment is exported as ENVIRONMENT before uvicorn imports
transit_assist.main, so the served app reads the same .env files as the
banner printed here.
"""

import argparse
import os
import sys

from transit_assist.config.loader import ConfigLoader, load_config_for_environment
from transit_assist.config.settings import Environment


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Transit Assist cache and recommendation server")
    parser.add_argument(
        "--env",
        choices=[e.value for e in Environment],
        default=None,
        help="Environment to run (default: from ENVIRONMENT env var or development)"
    )
    parser.add_argument("--host", default=None, help="Host to bind to (overrides config)")
    parser.add_argument("--port", type=int, default=None, help="Port to bind to (overrides config)")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload (overrides config)")
    parser.add_argument("--list-envs", action="store_true", help="List available environment configurations")
    parser.add_argument("--create-sample", metavar="ENV", help="Write .env.<ENV>.sample and exit")
    return parser


def print_banner(settings) -> None:
    remote = f"redis at {settings.redis.host}:{settings.redis.port}" if settings.redis.url else "disabled (local only)"
    print(f"Starting {settings.app_name} v{settings.app_version}")
    print(f"   Environment:      {settings.environment.value}")
    print(f"   Listening on:     {settings.host}:{settings.port}")
    print(f"   Remote cache:     {remote}")
    print(f"   Single flight:    {'on' if settings.cache.single_flight else 'off'}")
    print(f"   Transit provider: {settings.transit.provider.value}")
    print(f"   Refresh every:    {settings.recommendations.refresh_interval_seconds}s")


def main():
    args = build_parser().parse_args()

    if args.list_envs:
        print("Available environment configurations:")
        for env in ConfigLoader.get_available_environments():
            print(f"  - {env}")
        return

    if args.create_sample:
        try:
            print(f"Sample configuration created: {ConfigLoader.create_sample_env_file(args.create_sample)}")
        except (OSError, ValueError) as e:
            print(f"Failed to create sample configuration: {e}")
            sys.exit(1)
        return

    if args.env:
        os.environ["ENVIRONMENT"] = args.env

    try:
        settings = load_config_for_environment(args.env)
    except Exception as e:
        print(f"Failed to load configuration: {e}")
        sys.exit(1)

    host = args.host or settings.host
    port = args.port or settings.port
    settings.host, settings.port = host, port
    print_banner(settings)

    import uvicorn

    # Presence, plans and refresh timers are per process: always one worker
    uvicorn.run(
        "transit_assist.main:app",
        host=host,
        port=port,
        reload=args.reload or settings.reload,
        workers=1,
        log_level=settings.log_level.value.lower(),
    )


if __name__ == "__main__":
    main()
