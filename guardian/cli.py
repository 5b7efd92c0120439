"""
Command-line interface for the guardian scanner.

Runs checks over a project, previews what a scan would cover, writes a
starter configuration and lists the built-in rules.
"""

import argparse
import logging
import os
import sys
from typing import Optional, List

from guardian import __version__
from guardian.config import (
    DEFAULT_CONFIG_FILE, GuardianConfig, create_default_config, load_guardian_config,
)
from guardian.core.rules import RuleType, registry
from guardian.core.walker import TreeWalker
from guardian.exceptions import GuardianError
from guardian.formatters import get_formatter
from guardian.formatters.cli import CLIFormatter


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="guardian",
        description="Line-oriented scanner for risky and low-quality code patterns.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  guardian check                         # Check the current directory
  guardian check app.py                  # Check a single file
  guardian check . --format json         # Output as JSON
  guardian check . --format sarif -o out # SARIF output to file
  guardian dry-run ./src                 # Show what would be scanned
  guardian init                          # Create config file
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    check_parser = subparsers.add_parser("check", help="Scan code for issues")
    _add_target_arguments(check_parser)
    check_parser.add_argument(
        "-f", "--format",
        choices=["text", "json", "sarif"],
        default="text",
        help="Output format (default: text)",
    )
    check_parser.add_argument(
        "-o", "--output",
        help="Output file (default: stdout)",
    )
    check_parser.add_argument(
        "-j", "--jobs",
        type=int,
        help="Number of parallel workers (default: from config, 1)",
    )
    check_parser.add_argument(
        "--builtin",
        action="store_true",
        help="Ignore .guardian/guardian.py and use the built-in rules",
    )
    check_parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )

    dry_parser = subparsers.add_parser("dry-run", help="Show what a check would scan")
    _add_target_arguments(dry_parser)
    dry_parser.add_argument(
        "-f", "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    dry_parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )

    init_parser = subparsers.add_parser("init", help="Create a configuration file")
    init_parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Directory to write the configuration file to",
    )
    init_parser.add_argument(
        "-f", "--force",
        action="store_true",
        help="Overwrite existing config file",
    )

    rules_parser = subparsers.add_parser("list-rules", help="List available rules")
    rules_parser.add_argument(
        "--category",
        choices=["security", "quality", "all"],
        default="all",
        help="Filter by category",
    )
    rules_parser.add_argument(
        "--language",
        help="Filter by language (python, javascript)",
    )
    rules_parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )

    return parser


def _add_target_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "target",
        nargs="?",
        default=".",
        help="Target file or directory (default: current directory)",
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to configuration file",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output",
    )


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _load_config(args: argparse.Namespace) -> GuardianConfig:
    start_dir = args.target if os.path.isdir(args.target) else os.path.dirname(os.path.abspath(args.target))
    return load_guardian_config(args.config, start_dir=start_dir)


def cmd_check(args: argparse.Namespace) -> int:
    """Execute the check command."""
    config = _load_config(args)
    if args.jobs is not None:
        config.project.max_workers = args.jobs

    walker = TreeWalker(config)
    result = walker.run(args.target, use_external=False if args.builtin else None)

    if args.format == "text":
        formatter = get_formatter("text", use_color=not args.no_color and not args.output)
    else:
        formatter = get_formatter(args.format)
    output = formatter.format_result(result)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(output)
        print(f"Results written to {args.output}")
    else:
        print(output)

    return 1 if result.has_critical else 0


def cmd_dry_run(args: argparse.Namespace) -> int:
    """Execute the dry-run command."""
    config = _load_config(args)
    info = TreeWalker(config).dry_run(args.target)
    formatter = get_formatter(args.format, use_color=not args.no_color)
    print(formatter.format_dry_run(info))
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    """Execute the init command."""
    config_file = os.path.join(args.directory, DEFAULT_CONFIG_FILE)

    if os.path.exists(config_file) and not args.force:
        print(f"Configuration file {config_file} already exists.")
        print("Use --force to overwrite.")
        return 1

    with open(config_file, "w", encoding="utf-8") as f:
        f.write(create_default_config())

    print(f"Created configuration file: {config_file}")
    return 0


def cmd_list_rules(args: argparse.Namespace) -> int:
    """Execute the list-rules command."""
    if args.language:
        rules = registry.get_rules_for_language(args.language)
    else:
        rules = registry.get_all_rules()

    if args.category != "all":
        rule_type = RuleType.SECURITY if args.category == "security" else RuleType.CODE_QUALITY
        rules = [r for r in rules if r.rule_type == rule_type]

    print(CLIFormatter(use_color=not args.no_color).format_rules(rules))
    print(f"Total: {len(rules)} rules")
    return 0


COMMANDS = {
    "check": cmd_check,
    "dry-run": cmd_dry_run,
    "init": cmd_init,
    "list-rules": cmd_list_rules,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    setup_logging(getattr(args, "verbose", False))

    try:
        return COMMANDS[args.command](args)
    except KeyboardInterrupt:
        print("\nScan interrupted.", file=sys.stderr)
        return 130
    except GuardianError as e:
        print(f"Error: {e}", file=sys.stderr)
        if os.environ.get("DEBUG"):
            raise
        return 2


if __name__ == "__main__":
    sys.exit(main())
