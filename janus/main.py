#!/usr/bin/env python3
"""
Janus Agent - Entry Point

Remote power control for dual-boot hosts. Commands arrive through a
shared Redis key, a chat bot, or a local HTTP endpoint, and are executed
by a single dispatcher.

Usage:
    janus-agent                       # Search ./config.yaml, ./config/, ../config/
    janus-agent --config my.yaml      # Use custom config file
    janus-agent --dry-run             # Validate config, print recipes and exit
    janus-agent --verbose             # Enable debug logging
"""

import argparse
import asyncio
import sys

from janus import __version__
from janus.common.config import AgentConfig, load_config, validate_config
from janus.common.exceptions import ConfigError, JanusError
from janus.common.logging_setup import get_service_logger, setup_logging
from janus.services.control.recipes import RecipeTable
from janus.supervisor import run

logger = get_service_logger("main")


def configure_logging(config: AgentConfig, verbose: bool = False) -> None:
    """Apply the log section; --verbose forces DEBUG and plain text"""
    log = config.log
    setup_logging(
        log_level="DEBUG" if verbose else log.level,
        json_format=False if verbose else log.format.lower() == "json",
        log_file=log.file or None,
        max_size_mb=log.max_size,
        max_backups=log.max_backups,
        compress=log.compress,
    )


def print_dry_run(config: AgentConfig) -> None:
    """Print the effective configuration without secrets."""
    print()
    print("=" * 60)
    print("  JANUS AGENT - CONFIGURATION CHECK")
    print("=" * 60)
    print()
    print(f"  Config file:    {config.source_path}")
    print(f"  Rendezvous:     {config.rendezvous.addr} (db {config.rendezvous.db})")
    print(f"  Command key:    {config.system.command_key}")
    print(f"  Check interval: {config.system.check_interval}s")
    print(f"  Chat:           {'enabled' if config.chat.enabled else 'disabled'}")
    if config.http.enabled:
        print(f"  HTTP:           {config.http.host}:{config.http.port}")
    else:
        print("  HTTP:           disabled")
    print()
    print("  Recipes:")
    for line in RecipeTable.from_config(config.system).describe():
        print(f"    {line}")

    warnings = validate_config(config)
    if warnings:
        print()
        print("  Warnings:")
        for warning in warnings:
            print(f"    - {warning}")
    print()
    print("=" * 60)
    print()


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Janus Agent - remote shutdown and OS switching for dual-boot hosts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    janus-agent                       # Search for config.yaml
    janus-agent --config my.yaml      # Use custom config file
    janus-agent --dry-run             # Validate config and exit
    janus-agent -v                    # Enable debug logging

Environment:
    APP_<SECTION>_<KEY> overrides any config value, e.g. APP_REDIS_ADDR
        """
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to configuration file (default: search ./config.yaml, ./config/, ../config/)"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate configuration, print recipes and exit without starting"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (debug) logging"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Janus Agent v{__version__}"
    )

    args = parser.parse_args()

    try:
        config = load_config(args.config)
        if args.dry_run:
            print_dry_run(config)
            sys.exit(0)
    except ConfigError as e:
        setup_logging(json_format=False)
        logger.critical(e.message)
        sys.exit(1)

    configure_logging(config, verbose=args.verbose)

    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except JanusError as e:
        logger.critical(f"Fatal error: {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
