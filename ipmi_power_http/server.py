#!/usr/bin/env python3
"""
IPMI power control HTTP service.

Lets a home automation hub query and switch chassis power of machines
through their BMC, with one bearer token per group of machines.
"""

import argparse
import logging
import os
import sys

from waitress import serve

from .config import load_config
from .dispatcher import PowerApp
from .errors import ConfigError
from .executor import IpmiToolExecutor

# pylint: disable=C0116

DEFAULT_CONFIG_FILE = '/etc/ipmi-power-http/config.yml'
DEFAULT_THREADS = 4


def setup_logging(verbose: bool = False):
    """Configure logging. LOG_LEVEL applies unless --verbose is given."""
    if verbose:
        level = logging.DEBUG
    else:
        level = logging.getLevelName(os.environ.get('LOG_LEVEL', 'INFO').upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def create_app(config) -> PowerApp:
    executor = IpmiToolExecutor(
        ipmitool=config.ipmitool,
        interface=config.interface,
        timeout=config.command_timeout,
    )
    return PowerApp(config.topology, executor)


def main(argv=None):
    parser = argparse.ArgumentParser(description='IPMI Power Control HTTP Service')
    parser.add_argument('-c', '--config-file', type=str, default=DEFAULT_CONFIG_FILE,
                        help=f'Path to configuration file (default: {DEFAULT_CONFIG_FILE})')
    parser.add_argument('--listen-addr', type=str, default=None,
                        help='IP address to bind server to (overrides config)')
    parser.add_argument('--listen-port', type=int, default=None,
                        help='TCP port to listen on (overrides config)')
    parser.add_argument('--threads', type=int, default=DEFAULT_THREADS,
                        help='Number of request handling threads')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Verbose output')
    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        config = load_config(args.config_file)
    except FileNotFoundError as e:
        logger.error("Configuration file not found: %s", e)
        sys.exit(1)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        sys.exit(1)

    host = args.listen_addr or config.listen_addr
    port = args.listen_port or config.listen_port
    logger.info('Loaded %d group(s) from %s', len(config.topology), args.config_file)
    logger.info('IPMI power service listening on %s:%d', host, port)
    serve(create_app(config), host=host, port=port, threads=args.threads)


if __name__ == '__main__':
    main()
