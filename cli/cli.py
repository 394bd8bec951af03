# cli/cli.py
"""
CLI registry and dispatcher for StepFlow operator commands.
"""
from __future__ import annotations

import argparse
import asyncio
import os
import sys
import traceback
from typing import Callable, Dict, Optional

from cli.verification import check_api_health, check_flow
from stepflow.services.attribution import resolve_click_source
from stepflow.services.contact import format_contact, validate_contact
from stepflow.services.variants import VARIANTS


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


async def cmd_click_source(args: argparse.Namespace) -> int:
    """Command: Print the attribution label for a set of query parameters."""
    params = {
        key: value
        for key, value in {
            'utm_source': args.utm_source,
            'material_id': args.material_id,
            'blog_id': args.blog_id,
            'cafe_id': args.cafe_id,
        }.items()
        if value
    }
    if not params.get('utm_source'):
        print_warning("No utm_source given, using the campaign fallback")
    print(resolve_click_source(VARIANTS[args.variant].campaign, params))
    return 0


async def cmd_format_contact(args: argparse.Namespace) -> int:
    """Command: Format and validate a phone number."""
    formatted = format_contact(args.number)
    check = validate_contact(formatted)
    print(formatted)
    if check.valid:
        print_success("valid")
        return 0
    print_error(check.error)
    return 1


async def cmd_verify_api_start(args: argparse.Namespace) -> int:
    """Command: Verify API starts and health check passes."""
    print_info("Checking API health...")
    result = await check_api_health(api_url=args.api_url)

    if result.success:
        print_success(result.message)
        return 0
    print_error(result.message)
    return 1


async def cmd_verify_flow(args: argparse.Namespace) -> int:
    """Command: Walk a form flow against a running API."""
    action = "open → fill → submit" if args.submit else "open → fill"
    print_info(f"Testing {args.variant} flow ({action})...")
    result = await check_flow(
        api_url=args.api_url,
        variant=args.variant,
        utm_source=args.utm_source,
        submit=args.submit,
    )

    if result.data.get('click_source'):
        print_info(f"  click_source: {result.data['click_source']}")
    if result.success:
        print_success(result.message)
        return 0

    print_error(result.message)
    for name, ok in result.data.get('checks', {}).items():
        if not ok:
            print_error(f"  {name}: not satisfied")
    return 1


async def cmd_verify_all(args: argparse.Namespace) -> int:
    """Command: Run all verification steps."""
    print_info("Running all verification checks...")
    print()

    results = []
    for check_name, check_func in [('API Health', cmd_verify_api_start), ('Flow', cmd_verify_flow)]:
        print_info(f"Running: {check_name}...")
        exit_code = await check_func(args)
        results.append((check_name, exit_code == 0))
        print()

    passed = sum(1 for _, success in results if success)
    total = len(results)

    if passed == total:
        print_success(f"All {total} checks passed")
        return 0

    print_error(f"{passed}/{total} checks passed")
    for check_name, success in results:
        symbol = "✓" if success else "✗"
        print(f"  [{symbol}] {check_name}: {'PASS' if success else 'FAIL'}")
    return 1


COMMANDS: Dict[str, Callable] = {
    'click-source': cmd_click_source,
    'format-contact': cmd_format_contact,
    'verify-api-start': cmd_verify_api_start,
    'verify-flow': cmd_verify_flow,
    'verify-all': cmd_verify_all,
}


def _add_flow_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--api-url', default='http://localhost:8000', help='API URL')
    parser.add_argument('--variant', choices=sorted(VARIANTS), default='baroform')
    parser.add_argument('--utm-source', default=None)
    parser.add_argument('--submit', action='store_true', help='Also submit the sample record')


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with all commands."""
    parser = argparse.ArgumentParser(
        description='StepFlow CLI',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    source_parser = subparsers.add_parser('click-source', help='Print the attribution label')
    source_parser.add_argument('--variant', choices=sorted(VARIANTS), default='baroform')
    source_parser.add_argument('--utm-source', default=None)
    source_parser.add_argument('--material-id', default=None)
    source_parser.add_argument('--blog-id', default=None)
    source_parser.add_argument('--cafe-id', default=None)

    contact_parser = subparsers.add_parser('format-contact', help='Format and validate a phone number')
    contact_parser.add_argument('number')

    api_parser = subparsers.add_parser('verify-api-start', help='Verify API starts')
    api_parser.add_argument('--api-url', default='http://localhost:8000', help='API URL')

    _add_flow_arguments(subparsers.add_parser('verify-flow', help='Walk a form flow'))
    _add_flow_arguments(subparsers.add_parser('verify-all', help='Run all verification checks'))

    return parser


def main(args: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    command_func = COMMANDS[parsed_args.command]

    try:
        return asyncio.run(command_func(parsed_args))
    except KeyboardInterrupt:
        print_error("\nInterrupted by user")
        return 130
    except Exception as e:
        print_error(f"Error executing command: {e}")
        if os.getenv('DEBUG'):
            traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
