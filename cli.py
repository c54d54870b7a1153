import sys
import logging
import argparse

import uvloop

from configuration import DEFAULT_CONFIG_PATH, DEFAULT_OUTPUT_DIR
from common.config_loader import load_config
from common.storage_factory import open_endpoints, close_endpoints
from algorithms.checker import Checker
from persistence.results_aggregator import ResultsAggregator

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Configure root logging unless the host application already did."""
    if not logging.root.handlers:
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format='%(asctime)s - %(levelname)s - %(message)s',
        )
    elif verbose:
        logging.root.setLevel(logging.DEBUG)


class PerfTesterCLI:
    """Command line interface of the storage performance tester."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self):
        """Create the main argument parser."""
        parser = argparse.ArgumentParser(
            prog='perftester',
            description='Object storage performance tester',
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Upload, download and delete every file test on every endpoint, print the report
  perftester run --config config.toml

  # Also keep the raw results as Parquet
  perftester run --config config.toml --output-dir results

  # List what an endpoint holds under a prefix
  perftester list --endpoint aws-eu --prefix runs --recursive

  # Show the network address every endpoint resolves to
  perftester endpoints
            """
        )
        # Options shared by every command
        common = argparse.ArgumentParser(add_help=False)
        common.add_argument('--config', type=str, default=DEFAULT_CONFIG_PATH,
                            help=f'Configuration file location (default: {DEFAULT_CONFIG_PATH})')
        common.add_argument('--verbose', action='store_true',
                            help='Enable debug logging')

        subparsers = parser.add_subparsers(dest='command', help='Available commands')

        run_parser = subparsers.add_parser('run', parents=[common],
                                           help='Run all checks and print the report')
        run_parser.add_argument('--output-dir', type=str, default=None,
                                help=f'Also save results as Parquet in this directory '
                                     f'(e.g. {DEFAULT_OUTPUT_DIR})')

        list_parser = subparsers.add_parser('list', parents=[common],
                                            help='List objects on an endpoint')
        list_parser.add_argument('--endpoint', type=str, required=True,
                                 help='Endpoint identifier from the config file')
        list_parser.add_argument('--prefix', type=str, default='',
                                 help='Prefix below the endpoint path (default: none)')
        list_parser.add_argument('--recursive', action='store_true',
                                 help='List all nested objects instead of one level')

        subparsers.add_parser('endpoints', parents=[common],
                              help='Show configured endpoints and their addresses')

        return parser

    async def run_checks(self, args):
        """Run every check, print the report and optionally export results."""
        try:
            config = load_config(args.config)

            metrics_exporter = None
            if config.monitoring.address:
                from observability.prom import OperationMetricsExporter
                metrics_exporter = OperationMetricsExporter(
                    config.monitoring.address, config.monitoring.instance_id
                )
                metrics_exporter.start_server()

            file_test_sizes = config.file_test_sizes()
            aggregator = ResultsAggregator(file_test_sizes)

            endpoints = await open_endpoints(config)
            try:
                checker = Checker(aggregator, endpoints, config.file_tests, config.timeout,
                                  metrics_exporter=metrics_exporter)
                await checker.run_checks()
            finally:
                await close_endpoints(endpoints)

            report = aggregator.format_results()
            print(report, end='')

            if args.output_dir:
                from persistence.parquet import ResultsParquetExporter
                exporter = ResultsParquetExporter(args.output_dir)
                path = exporter.save_to_file(aggregator.snapshot(), file_test_sizes)
                if path:
                    logger.info(f"Saved results to {path}")

            return 0

        except Exception as e:
            logger.error(f"Execution failed: {e}")
            return 1

    async def run_list(self, args):
        """List objects below a prefix of one endpoint."""
        try:
            config = load_config(args.config)
            endpoints = await open_endpoints(config)
            try:
                endpoint = next((e for e in endpoints if e.id == args.endpoint), None)
                if endpoint is None:
                    logger.error(f"Unknown endpoint: {args.endpoint}")
                    return 1

                prefix = endpoint.key_for(args.prefix) if args.prefix else endpoint.path
                objects = await endpoint.client.list(prefix, args.recursive)
                for obj in objects:
                    print(f"{'PRE ' if obj.is_prefix else '    '}{obj.key}")
            finally:
                await close_endpoints(endpoints)
            return 0

        except Exception as e:
            logger.error(f"Error listing objects: {e}")
            return 1

    async def run_endpoints(self, args):
        """Print every endpoint with its bucket, path and resolved address."""
        try:
            config = load_config(args.config)
            endpoints = await open_endpoints(config)
            try:
                for endpoint in endpoints:
                    try:
                        address = await endpoint.client.resolve_address()
                    except Exception as e:
                        logger.warning(f"Could not resolve address of {endpoint.id}: {e}")
                        address = ""
                    print(f"{endpoint.id}\tbucket={endpoint.bucket}\tpath={endpoint.path or '/'}"
                          f"\taddress={address or 'unknown'}")
            finally:
                await close_endpoints(endpoints)
            return 0

        except Exception as e:
            logger.error(f"Error resolving endpoints: {e}")
            return 1

    def run(self, args=None):
        """Run the CLI with the given arguments."""
        if args is None:
            args = sys.argv[1:]

        parsed_args = self.parser.parse_args(args)
        setup_logging(getattr(parsed_args, 'verbose', False))

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            if parsed_args.command == 'run':
                return uvloop.run(self.run_checks(parsed_args))
            elif parsed_args.command == 'list':
                return uvloop.run(self.run_list(parsed_args))
            elif parsed_args.command == 'endpoints':
                return uvloop.run(self.run_endpoints(parsed_args))
            else:
                logger.error(f"Unknown command: {parsed_args.command}")
                return 1

        except KeyboardInterrupt:
            logger.info("Operation interrupted by user")
            return 1


def main():
    """Main entry point."""
    cli = PerfTesterCLI()
    sys.exit(cli.run())


if __name__ == '__main__':
    main()
