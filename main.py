#!/usr/bin/env python3
"""
Main entry point for the title crawler service.
"""

import asyncio
import argparse
import logging
import sys
from typing import List, Optional

import yaml

from titlecrawler import __version__
from titlecrawler.api import create_app, HTTPListener, ShutdownSupervisor
from titlecrawler.utils.config import load_config, Config, DEFAULT_HOST, DEFAULT_PORT, DEFAULT_LOG_LEVEL
from titlecrawler.utils.logger import setup_logging, log_system_info
from titlecrawler.utils.monitoring import CrawlerMonitor


# Extra time the supervisor allows beyond the handler grace period for cleanup hooks.
SHUTDOWN_MARGIN = 1.0


class CrawlerApp:
    """Main application class for the title crawler."""

    def __init__(self):
        self.supervisor: Optional[ShutdownSupervisor] = None
        self.logger = logging.getLogger(__name__)

    async def run(self, config: Config) -> int:
        """Serve until a termination signal or a listener failure."""
        self.logger.info("=== TITLE CRAWLER STARTING ===")
        self.logger.info(f"Listen address: {config.server.host}:{config.server.port}")
        self.logger.info(f"Request timeout: {config.crawler.request_timeout}s")
        self.logger.info(f"Collection window: {config.crawler.window_timeout}s")
        log_system_info()

        monitor = CrawlerMonitor()
        web_app = create_app(config, monitor=monitor)
        listener = HTTPListener(
            web_app,
            config.server.host,
            config.server.port,
            grace_period=config.server.shutdown_timeout
        )
        self.supervisor = ShutdownSupervisor(
            listener,
            shutdown_timeout=config.server.shutdown_timeout + SHUTDOWN_MARGIN
        )

        try:
            if config.monitoring.metrics_enabled:
                monitor.start_prometheus_server(config.monitoring.prometheus_port)

            clean = await self.supervisor.run()

        except Exception as e:
            self.logger.error(f"Fatal error: {e}", exc_info=True)
            return 1

        finally:
            self.logger.info("=== TITLE CRAWLER FINISHED ===")

        if not clean:
            self.logger.warning("Crawler stopped without a clean shutdown")
        else:
            self.logger.info("Crawler stopped !")
        return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Title Crawler Service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                            # Serve on 0.0.0.0:8080 with defaults
  python main.py --config config.yaml       # Load settings from a YAML file
  python main.py --port 9000                # Override the listen port
  python main.py --log-level info           # Less verbose logging
        """
    )

    parser.add_argument(
        '--config',
        help='Path to YAML configuration file (optional)'
    )

    parser.add_argument(
        '--host',
        help=f'Listen address (default: {DEFAULT_HOST})'
    )

    parser.add_argument(
        '--port',
        type=int,
        help=f'HTTP server port (default: {DEFAULT_PORT})'
    )

    parser.add_argument(
        '--log-level',
        help=f'Log level (default: {DEFAULT_LOG_LEVEL})'
    )

    parser.add_argument(
        '--json-logs',
        action='store_true',
        default=None,
        help='Emit logs as JSON lines'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'Title Crawler {__version__}'
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    overrides = {
        'server': {'host': args.host, 'port': args.port},
        'logging': {'level': args.log_level, 'json': args.json_logs},
    }

    try:
        config = load_config(args.config, overrides)
        setup_logging(config.logging)
    except (FileNotFoundError, ValueError, TypeError, yaml.YAMLError) as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1

    app = CrawlerApp()
    try:
        return asyncio.run(app.run(config))
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 1


if __name__ == '__main__':
    sys.exit(main())
