"""
SNMP Agent - Example host process.

Registers static descriptors and live process metrics under the
enterprise subtree and serves them until interrupted.
"""

import argparse
import asyncio
import itertools
import logging
import platform
import signal
import sys
import threading
import time
from pathlib import Path

import psutil

from .agent.snmp_agent import SNMPAgent
from .core.config import Config, get_default_config_path
from .core.errors import ConfigurationError
from .core.logging_setup import setup_logging
from .core.models import ValueType


logger = logging.getLogger(__name__)


def register_demo_oids(agent: SNMPAgent):
    """Register the example OID set on an agent."""
    start_time = time.time()
    process = psutil.Process()
    counter = itertools.count(1)

    # Static descriptors
    agent.register_static("1.1.0", ValueType.OCTET_STRING, "My SNMP Agent v1.0")
    agent.register_static("1.2.0", ValueType.OCTET_STRING, "Example Device")

    # Uptime in seconds
    agent.register("2.1.0", ValueType.INTEGER, lambda: int(time.time() - start_time))

    # Resident memory in MB
    agent.register(
        "2.2.0",
        ValueType.GAUGE32,
        lambda: process.memory_info().rss // (1024 * 1024),
    )

    # Live thread count
    agent.register("2.3.0", ValueType.INTEGER, threading.active_count)

    # Current unix timestamp
    agent.register("2.4.0", ValueType.INTEGER, lambda: int(time.time()))

    # Standard tree: sysDescr
    agent.register_static_absolute(
        "1.3.6.1.2.1.1.1.0",
        ValueType.OCTET_STRING,
        f"snmpreg agent on {platform.system()}",
    )

    # Counter bumped on every query
    agent.register("3.1.0", ValueType.COUNTER32, lambda: next(counter))


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Example SNMP agent exposing process metrics"
    )

    parser.add_argument(
        "-c", "--config",
        default=None,
        help="Path to configuration file (YAML)"
    )

    parser.add_argument(
        "--pen",
        type=int,
        default=None,
        help="Private Enterprise Number"
    )

    parser.add_argument(
        "--listen",
        default=None,
        help="Listen address host:port (default: 0.0.0.0:161)"
    )

    parser.add_argument(
        "--community",
        default=None,
        help="SNMP community string (default: public)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    parser.add_argument(
        "--generate-config",
        action="store_true",
        help="Generate a sample configuration file"
    )

    return parser.parse_args()


async def main():
    """Main entry point."""
    args = parse_args()

    # Generate sample config if requested
    if args.generate_config:
        config = Config()
        config.agent.pen = 12345
        config.agent.listen_addr = "0.0.0.0:1161"
        config_path = "config/config.yaml"
        Path("config").mkdir(exist_ok=True)
        config.to_yaml(config_path)
        print(f"Generated sample configuration: {config_path}")
        return 0

    # Load configuration
    config_path = args.config or get_default_config_path()
    config = Config.from_yaml(config_path)

    # Apply command line overrides
    if args.pen is not None:
        config.agent.pen = args.pen
    if args.listen:
        config.agent.listen_addr = args.listen
    if args.community:
        config.agent.community = args.community
    if args.verbose:
        config.logging.level = "DEBUG"
        config.agent.log_level = "DEBUG"

    setup_logging(config.logging)
    logger.info(f"Loaded configuration from {config_path}")

    try:
        agent = SNMPAgent(config.agent)
    except ConfigurationError as e:
        logger.error(f"Failed to create agent: {e}")
        return 1

    register_demo_oids(agent)

    logger.info("Registered OIDs:")
    for oid, kind in sorted(agent.list_oids().items()):
        logger.info(f"  - {oid} ({kind})")

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def signal_handler():
        logger.info("Received shutdown signal")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        await agent.start()
    except OSError as e:
        logger.error(f"Failed to start agent: {e}")
        return 1

    _, port = agent.bound_address
    logger.info("SNMP Agent is running")
    logger.info(
        f"Test with: snmpget -v2c -c {agent.config.community} "
        f"127.0.0.1:{port} {agent.prefix}.1.1.0"
    )
    logger.info(
        f"Or: snmpwalk -v2c -c {agent.config.community} 127.0.0.1:{port} {agent.prefix}"
    )

    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down...")
        await agent.stop()

    return 0


def run():
    """Entry point for the application."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nShutdown complete")


if __name__ == "__main__":
    run()
