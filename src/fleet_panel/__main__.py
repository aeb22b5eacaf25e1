# fleet_panel/__main__.py
"""
Command line entry point.

    python -m fleet_panel run     --config config/fleet_panel.yaml
    python -m fleet_panel once    --config config/fleet_panel.yaml
    python -m fleet_panel export  --config config/fleet_panel.yaml [--output FILE]
    python -m fleet_panel health  --config config/fleet_panel.yaml
"""

import argparse
import logging
import os
import signal
import sys
import threading
from pathlib import Path
from types import FrameType

from fleet_panel.service import FleetPanelService, ServiceError

logger: logging.Logger = logging.getLogger('fleet_panel')

EXIT_OK: int = 0
EXIT_FAILURE: int = 1
EXIT_USAGE: int = 2


def build_parser() -> argparse.ArgumentParser:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog='fleet_panel',
        description='Trucks Control fleet ingestion service',
    )
    parser.add_argument(
        '--config',
        type=Path,
        default=None,
        help='YAML configuration file (default: config/fleet_panel.yaml)',
    )

    commands = parser.add_subparsers(dest='command', required=True)
    commands.add_parser('run', help='Run the startup sequence and poll until stopped')
    commands.add_parser('once', help='Run the startup sequence once and exit')
    export_parser: argparse.ArgumentParser = commands.add_parser(
        'export', help='Write the fleet view of the saved snapshot to Parquet'
    )
    export_parser.add_argument(
        '--output',
        type=Path,
        default=None,
        help='Parquet file to write (default: storage.export_path)',
    )
    commands.add_parser('health', help='Print the health report of the saved snapshot')
    return parser


def _install_stop_handlers(stop_requested: threading.Event) -> None:
    def _request_stop(signum: int, _frame: FrameType | None) -> None:
        logger.info('Received %s, shutting down', signal.Signals(signum).name)
        stop_requested.set()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)


def _run_until_stopped(service: FleetPanelService, stop_requested: threading.Event) -> int:
    """
    Poll until `stop_requested` is set, then shut down.

    The startup sequence runs on its own thread so a stop request is
    honoured while it is still fetching.
    """
    starter: threading.Thread = threading.Thread(
        target=service.start,
        name='fleet-panel-startup',
        daemon=True,
    )
    starter.start()
    while not stop_requested.wait(timeout=1.0):
        pass

    if not service.shutdown():
        logger.error('Forcing exit')
        os._exit(EXIT_FAILURE)
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args: argparse.Namespace = build_parser().parse_args(argv)

    try:
        service: FleetPanelService = FleetPanelService(args.config)
    except (FileNotFoundError, ValueError) as config_error:
        print(f'Configuration error: {config_error}', file=sys.stderr)
        return EXIT_USAGE

    match args.command:
        case 'run':
            stop_requested: threading.Event = threading.Event()
            _install_stop_handlers(stop_requested)
            return _run_until_stopped(service, stop_requested)
        case 'once':
            service.run_once()
            return EXIT_OK
        case 'export':
            try:
                written: Path = service.export(args.output)
            except ServiceError as export_error:
                print(str(export_error), file=sys.stderr)
                return EXIT_USAGE
            logger.info('Export written to %s', written)
            return EXIT_OK
        case 'health':
            print(service.health().model_dump_json(indent=2))
            return EXIT_OK
        case _:
            return EXIT_USAGE


if __name__ == '__main__':
    sys.exit(main())
