#!/usr/bin/env python3
"""
devicectl - device-sense command line tool

- Detect a device from a User-Agent or headers (devicectl detect)
- Check a rule table file (devicectl validate-rules)
- Version info (devicectl version)
"""

import argparse
import json
import logging
import sys
from typing import Dict, List, Optional

from device_sense import __version__
from device_sense.config import get_config
from device_sense.detection.models import DeviceProfile
from device_sense.detection.pipeline import DetectionPipeline
from device_sense.detection.service import build_cascade, load_rules
from device_sense.exceptions import DeviceSenseError
from device_sense.headers.store import HeaderStore
from device_sense.rules.loader import RuleSet


class Colors:
    """ANSI color codes for terminal output."""

    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    BLUE = "\033[94m"
    RESET = "\033[0m"
    BOLD = "\033[1m"


def colorize(text: str, color: str) -> str:
    """Colorize text if stdout is a TTY."""
    if sys.stdout.isatty():
        return f"{color}{text}{Colors.RESET}"
    return text


def setup_logging(log_level: str) -> None:
    """
    Setup logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def parse_header_args(values: Optional[List[str]]) -> Dict[str, str]:
    """
    Parse repeated NAME=VALUE (or "Name: value") arguments.

    Raises:
        ValueError: For an argument with neither separator
    """
    headers: Dict[str, str] = {}
    for item in values or []:
        positions = [i for i in (item.find("="), item.find(":")) if i > 0]
        if not positions:
            raise ValueError(f"Expected NAME=VALUE, got {item!r}")
        split = min(positions)
        headers[item[:split].strip()] = item[split + 1:].strip()
    return headers


def print_profile(profile: DeviceProfile) -> None:
    """Print a profile as aligned key/value lines."""
    print(colorize(profile.display_name, Colors.BOLD))
    rows = [
        ("type", profile.type.value),
        ("os", profile.os),
        ("os version", profile.os_version),
        ("browser", profile.browser),
        ("browser version", profile.browser_version),
        ("vendor", profile.vendor),
        ("model", profile.model),
        ("model version", profile.model_version),
    ]
    for label, value in rows:
        print(f"  {label:<16} {value if value is not None else '-'}")

    fallbacks = [
        name for name, used in (
            ("os", profile.os_fallback_used),
            ("browser", profile.browser_fallback_used),
        ) if used
    ]
    if fallbacks:
        print(colorize(f"  type inferred via {' and '.join(fallbacks)} tables", Colors.YELLOW))


def cmd_detect(args) -> int:
    """
    Detect a device and print its profile.

    Returns:
        Exit code (0 = detected, 1 = detection failed, 2 = bad arguments)
    """
    try:
        header_map = parse_header_args(args.header)
    except ValueError as e:
        print(colorize(f"✗ {e}", Colors.RED), file=sys.stderr)
        return 2

    config = get_config()
    store = HeaderStore().ingest_bulk(header_map)
    if args.user_agent:
        store.set_user_agent(args.user_agent)

    try:
        rules = load_rules(args.rules or config.detection.rules_path, validate=False)
        pipeline = DetectionPipeline(
            rules,
            cascade=build_cascade(config.detection),
            max_subject_length=config.detection.max_subject_length,
        )
        profile = pipeline.detect(store)
    except DeviceSenseError as e:
        print(colorize(f"✗ Detection failed: {e}", Colors.RED), file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(profile.model_dump(mode="json"), indent=2))
    else:
        print_profile(profile)
    return 0


def cmd_validate_rules(args) -> int:
    """
    Validate every rule of a table file (or the bundled tables).

    Returns:
        Exit code (0 = valid, 1 = invalid)
    """
    source = args.path or "bundled rule tables"
    try:
        rules = RuleSet.load(args.path) if args.path else RuleSet.default()
        counts = rules.validate()
    except DeviceSenseError as e:
        print(colorize(f"✗ {source}: {e}", Colors.RED), file=sys.stderr)
        return 1

    print(colorize(f"✓ {source} OK", Colors.GREEN))
    for table, count in counts.items():
        print(f"  {table:<18} {count} rules")
    return 0


def cmd_version(args) -> int:
    """
    Print version information.

    Returns:
        Exit code (always 0)
    """
    print(f"devicectl version {__version__}")
    print("device-sense - server-side device detection from HTTP request headers")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for devicectl."""
    parser = argparse.ArgumentParser(
        prog="devicectl",
        description="device-sense command line tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  devicectl detect "Mozilla/5.0 (iPad; CPU OS 16_5 like Mac OS X) ..."
  devicectl detect --header "Device-Stock-UA=..." --json
  devicectl validate-rules ./rules.yaml
  devicectl version

Environment variables:
  DEVICE_SENSE_LOG_LEVEL                   # Logging level (default: INFO)
  DEVICE_SENSE_DETECTION_RULES_PATH        # Rule tables (default: bundled)
  DEVICE_SENSE_DETECTION_MAX_SUBJECT_LENGTH
  DEVICE_SENSE_DETECTION_MATCH_TIMEOUT     # Seconds per pattern search
        """
    )

    parser.add_argument(
        "--log-level",
        default=None,
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override DEVICE_SENSE_LOG_LEVEL"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # detect command
    detect_parser = subparsers.add_parser(
        "detect",
        help="Detect the device behind a User-Agent or set of headers"
    )
    detect_parser.add_argument(
        "user_agent",
        nargs="?",
        help="User-Agent string"
    )
    detect_parser.add_argument(
        "-H", "--header",
        action="append",
        metavar="NAME=VALUE",
        help="Request header, repeatable"
    )
    detect_parser.add_argument(
        "--rules",
        help="YAML rule tables to use instead of the configured ones"
    )
    detect_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the profile as JSON"
    )

    # validate-rules command
    validate_parser = subparsers.add_parser(
        "validate-rules",
        help="Check a rule table file"
    )
    validate_parser.add_argument(
        "path",
        nargs="?",
        help="YAML rule tables (default: bundled tables)"
    )

    # version command
    subparsers.add_parser(
        "version",
        help="Show version information"
    )

    return parser


def main(argv=None):
    """Main entry point for devicectl CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level or get_config().log_level)

    if not args.command:
        parser.print_help()
        return 0

    # Dispatch to command handlers
    if args.command == "detect":
        return cmd_detect(args)
    elif args.command == "validate-rules":
        return cmd_validate_rules(args)
    elif args.command == "version":
        return cmd_version(args)
    else:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
