# cli/cli.py
"""
CLI registry and dispatcher for Prosperian commands.
"""
from __future__ import annotations

import argparse
import asyncio
import os
import sys
from typing import Callable, Dict, Optional

from cli.verification import (
    check_api_health,
    check_imports,
    check_pronto_status,
    fetch_workflow_global_results,
)


def _supports_color() -> bool:
    """Check if terminal supports ANSI color codes."""
    if sys.platform == "win32":
        return os.getenv("TERM") == "xterm" or os.getenv("ANSICON") is not None
    return sys.stdout.isatty()


SUPPORTS_COLOR = _supports_color()

GREEN = '\033[92m' if SUPPORTS_COLOR else ''
RED = '\033[91m' if SUPPORTS_COLOR else ''
YELLOW = '\033[93m' if SUPPORTS_COLOR else ''
BLUE = '\033[94m' if SUPPORTS_COLOR else ''
RESET = '\033[0m' if SUPPORTS_COLOR else ''


def print_success(message: str):
    print(f"{GREEN}[✓]{RESET} {message}")


def print_error(message: str):
    print(f"{RED}[✗]{RESET} {message}")


def print_warning(message: str):
    print(f"{YELLOW}[!]{RESET} {message}")


def print_info(message: str):
    print(f"{BLUE}[i]{RESET} {message}")


async def cmd_verify_imports(args: argparse.Namespace) -> int:
    """Command: Verify all imports work."""
    print_info("Checking imports...")
    result = await check_imports()

    if result.success:
        print_success(result.message)
        return 0
    print_error(result.message)
    for error in result.data.get('errors', []):
        print_error(f"  {error['module']}: {error['error']}")
    return 1


async def cmd_verify_api_start(args: argparse.Namespace) -> int:
    """Command: Verify API is up and the liveness check passes."""
    print_info("Checking API health...")
    result = await check_api_health(api_url=args.api_url)

    if result.success:
        print_success(result.message)
        return 0
    print_error(result.message)
    return 1


async def cmd_pronto_status(args: argparse.Namespace) -> int:
    """Command: Check the Pronto upstream through the API."""
    print_info("Checking Pronto upstream...")
    result = await check_pronto_status(api_url=args.api_url)

    if result.success:
        print_success(result.message)
        return 0
    print_error(result.message)
    return 1


async def cmd_global_results(args: argparse.Namespace) -> int:
    """Command: Run the global results workflow and print a summary."""
    filters = {
        'company_filter': args.company,
        'title_filter': args.title,
        'lead_location_filter': args.lead_location,
        'employee_range_filter': args.employee_range,
        'company_location_filter': args.company_location,
        'industry_filter': args.industry,
    }
    print_info("Fetching global results...")
    result = await fetch_workflow_global_results(api_url=args.api_url, filters=filters, limit=args.limit)

    if not result.success:
        print_error(result.message)
        return 1

    data = result.data
    print_success(result.message)
    print_info(f"  Searches: {data.get('total_searches', 0)}")
    print_info(f"  Leads: {data.get('filtered_leads', 0)} / {data.get('total_leads', 0)}")
    print_info(f"  Unique companies: {data.get('unique_companies', 0)}")
    print_info(f"  Processing time: {data.get('processing_time', 0):.2f}s")
    for error in data.get('errors', []):
        print_warning(f"  Search {error.get('search_id')} failed: {error.get('error')}")
    return 0


COMMANDS: Dict[str, Callable] = {
    'verify-imports': cmd_verify_imports,
    'verify-api-start': cmd_verify_api_start,
    'pronto-status': cmd_pronto_status,
    'global-results': cmd_global_results,
}


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with all commands."""
    parser = argparse.ArgumentParser(
        description='Prosperian CLI',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    subparsers.add_parser('verify-imports', help='Verify all imports work')

    api_parser = subparsers.add_parser('verify-api-start', help='Verify API is running')
    api_parser.add_argument('--api-url', default='http://localhost:8000', help='API URL')

    status_parser = subparsers.add_parser('pronto-status', help='Check the Pronto upstream')
    status_parser.add_argument('--api-url', default='http://localhost:8000', help='API URL')

    results_parser = subparsers.add_parser('global-results', help='Run the global results workflow')
    results_parser.add_argument('--api-url', default='http://localhost:8000', help='API URL')
    results_parser.add_argument('--company', help='Company names, comma-separated')
    results_parser.add_argument('--title', help='Lead titles, comma-separated')
    results_parser.add_argument('--lead-location', help='Lead locations, comma-separated')
    results_parser.add_argument('--employee-range', help='Employee ranges, comma-separated')
    results_parser.add_argument('--company-location', help='Company locations, comma-separated')
    results_parser.add_argument('--industry', help='Industries, comma-separated')
    results_parser.add_argument('--limit', type=int, help='Maximum leads returned')

    return parser


def main(args: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    command_func = COMMANDS.get(parsed_args.command)
    if not command_func:
        print_error(f"Unknown command: {parsed_args.command}")
        parser.print_help()
        return 1

    try:
        return asyncio.run(command_func(parsed_args))
    except KeyboardInterrupt:
        print_error("\nInterrupted by user")
        return 130
    except Exception as e:
        print_error(f"Error executing command: {str(e)}")
        if os.getenv('DEBUG'):
            import traceback
            traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
