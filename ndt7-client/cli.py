import os
import sys
import signal
import logging
import argparse
import threading

# Add the current directory to Python path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from configuration import (
    ClientConfig,
    LOCATE_URL,
    DEFAULT_PROMETHEUS_PORT,
)

# Set up logging (only if not already configured); stdout is reserved for records
if not logging.root.handlers:
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


class Ndt7ClientCLI:
    """Simple CLI interface for the ndt7 measurement client."""

    def __init__(self):
        self.parser = self._create_parser()
        self.stop_event = threading.Event()

    def _create_parser(self):
        """Create the main argument parser."""
        parser = argparse.ArgumentParser(
            description='ndt7 measurement client',
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Locate the nearest server and run download and upload
  ndt7-client run

  # Test against a local server, skipping TLS verification
  ndt7-client run --download wss://localhost:4443/ndt/v7/download --no-verify

  # Round-trip latency only
  ndt7-client run --round-trip wss://localhost:4443/ndt/v7/roundtrip

  # Pretty-print a captured stream and summarize it
  ndt7-client run > results.jsonl
  ndt7-client format results.jsonl --summary
            """
        )
        parser.add_argument('--verbose', action='store_true', help='Enable debug logging')

        subparsers = parser.add_subparsers(dest='command', help='Available commands')

        # Run command
        run_parser = subparsers.add_parser('run', help='Run measurements')
        run_parser.add_argument('--download', type=str, default='', help='Download URL')
        run_parser.add_argument('--upload', type=str, default='', help='Upload URL')
        run_parser.add_argument('--round-trip', type=str, default='', help='Round trip URL')
        run_parser.add_argument('--no-verify', action='store_true', help='No TLS verify')
        run_parser.add_argument('--locate-url', type=str, default=LOCATE_URL,
                                help=f'Locate API used when no URL is given (default: {LOCATE_URL})')
        run_parser.add_argument('--prometheus-port', type=int, default=DEFAULT_PROMETHEUS_PORT,
                                help='Expose Prometheus metrics on this port (0 = disabled)')
        run_parser.add_argument('--verbose', action='store_true', default=argparse.SUPPRESS,
                                help='Enable debug logging')

        # Format command
        format_parser = subparsers.add_parser('format', help='Render a captured JSON stream')
        format_parser.add_argument('file', nargs='?', default='-',
                                   help='Captured stream (default: stdin)')
        format_parser.add_argument('--summary', action='store_true',
                                   help='Print a per-test summary instead of progress lines')
        format_parser.add_argument('--verbose', action='store_true', default=argparse.SUPPRESS,
                                   help='Enable debug logging')

        return parser

    def _build_config(self, args) -> ClientConfig:
        return ClientConfig(
            download_url=args.download,
            upload_url=args.upload,
            round_trip_url=args.round_trip,
            no_verify=args.no_verify,
            locate_url=args.locate_url,
            prometheus_port=args.prometheus_port,
        )

    def _handle_sigint(self, signum, frame):
        logger.info("Interrupted, stopping after the current message")
        self.stop_event.set()

    def run_measurements(self, args):
        """Run the measurement sub-tests."""
        from observability.emitter import ReportEmitter
        from runner.orchestrator import TestRunner

        config = self._build_config(args)
        logger.info(f"Starting measurements: {config}")

        metrics = None
        if config.prometheus_port:
            from observability.prom import SimplePrometheusExporter
            metrics = SimplePrometheusExporter(port=config.prometheus_port)
            metrics.start_server()

        signal.signal(signal.SIGINT, self._handle_sigint)
        runner = TestRunner(config, ReportEmitter(metrics=metrics), self.stop_event)
        status = runner.run()

        if status == 0:
            logger.info("Measurements completed")
        else:
            logger.error("Measurements aborted")
        return status

    def run_format(self, args):
        """Render a captured stream."""
        from visualization.formatter import StreamFormatter
        from visualization.summary import format_summary, summarize

        try:
            if args.file == '-':
                lines = sys.stdin.readlines()
            else:
                with open(args.file, encoding='utf-8') as f:
                    lines = f.readlines()
        except OSError as e:
            logger.error(f"Cannot read {args.file}: {e}")
            return 1

        if args.summary:
            print(format_summary(summarize(lines)))
        else:
            sys.stdout.write(StreamFormatter().render(lines))
        return 0

    def run(self, args=None):
        """Run the CLI with the given arguments."""
        if args is None:
            args = sys.argv[1:]

        parsed_args = self.parser.parse_args(args)

        if parsed_args.verbose:
            logging.getLogger().setLevel(logging.DEBUG)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            if parsed_args.command == 'run':
                return self.run_measurements(parsed_args)
            elif parsed_args.command == 'format':
                return self.run_format(parsed_args)
            else:
                logger.error(f"Unknown command: {parsed_args.command}")
                return 1

        except KeyboardInterrupt:
            logger.info("Operation interrupted by user")
            return 1
        except Exception as e:
            logger.exception(f"Unexpected error: {e}")
            return 1


def main():
    """Main entry point."""
    cli = Ndt7ClientCLI()
    sys.exit(cli.run())


if __name__ == '__main__':
    main()
