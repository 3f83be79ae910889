"""
Schema CLI tool for gqlreg.

This tool validates schema documents and guards their evolution:
- validate: Build a registry from a schema file and report violations
- snapshot: Export the validated schema (with fingerprint) to JSON
- check: Verify compatibility with a baseline snapshot
- diff: Show differences between two schema files

Usage:
    gqlreg-schema validate schema.yaml
    gqlreg-schema snapshot schema.yaml > schema.lock.json
    gqlreg-schema check schema.yaml --baseline schema.lock.json
    gqlreg-schema diff schema.v1.yaml schema.v2.yaml --format json

Invariants:
    - Invalid schemas and breaking changes cause a non-zero exit code
    - Snapshot output is deterministic (sorted JSON)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from ..config import Settings, get_settings
from ..schema import (
    GqlRegError,
    SchemaValidationError,
    TypeRegistry,
    build_registry,
    check_compatibility,
    load_schema_file,
)
from ..schema.registry import json_default

logger = logging.getLogger(__name__)


def setup_logging(settings: Settings) -> None:
    """Configure root logging for CLI use (stderr, configured level)."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]


class SchemaCLI:
    """CLI tool for schema management.

    Example:
        >>> cli = SchemaCLI()
        >>> registry = cli.load("schema.yaml")
        >>> print(cli.snapshot(registry))
        >>> cli.check(registry, "schema.lock.json")
        (True, [])
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()

    def load(self, path: str) -> TypeRegistry:
        """Build a validated registry from a schema file.

        Raises:
            GqlRegError: If the file is malformed or the schema is invalid
        """
        return build_registry(load_schema_file(path), settings=self.settings)

    def validate(self, path: str) -> list[str]:
        """Validate a schema file.

        Returns:
            List of problems (empty if valid)
        """
        try:
            self.load(path)
        except SchemaValidationError as err:
            return [str(v) for v in err.violations]
        except GqlRegError as err:
            return [err.message]
        return []

    def snapshot(self, registry: TypeRegistry) -> str:
        """Export schema to JSON.

        Returns:
            JSON string with version, fingerprint and schema
        """
        output = {
            "version": 1,
            "fingerprint": registry.fingerprint,
            "schema": registry.to_dict(),
        }
        return json.dumps(output, indent=2, sort_keys=True, default=json_default)

    def check(
        self,
        registry: TypeRegistry,
        baseline_path: str,
    ) -> tuple[bool, list[str]]:
        """Check compatibility with baseline.

        Returns:
            Tuple of (is_compatible, list_of_breaking_changes)
        """
        baseline_registry = self.load(baseline_path)
        if baseline_registry.fingerprint == registry.fingerprint:
            logger.info("Schema fingerprint matches baseline")
            return True, []

        changes = check_compatibility(baseline_registry, registry)
        issues = [str(change) for change in changes if change.is_breaking]
        return len(issues) == 0, issues

    def diff(
        self,
        old_path: str,
        new_path: str,
    ) -> list[dict[str, Any]]:
        """Show differences between two schema files.

        Returns:
            List of change dictionaries
        """
        old_registry = self.load(old_path)
        new_registry = self.load(new_path)
        return [change.to_dict() for change in check_compatibility(old_registry, new_registry)]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gqlreg-schema", description="GraphQL type registry schema tool"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a schema file")
    validate_parser.add_argument("file", help="Schema file (.yaml, .yml or .json)")

    # snapshot command
    snapshot_parser = subparsers.add_parser("snapshot", help="Export schema to JSON")
    snapshot_parser.add_argument("file", help="Schema file (.yaml, .yml or .json)")
    snapshot_parser.add_argument("--output", "-o", help="Output file (default: stdout)")

    # check command
    check_parser = subparsers.add_parser("check", help="Check compatibility with baseline")
    check_parser.add_argument("file", help="Schema file (.yaml, .yml or .json)")
    check_parser.add_argument(
        "--baseline", "-b", required=True, help="Path to baseline schema or snapshot"
    )

    # diff command
    diff_parser = subparsers.add_parser("diff", help="Show differences between schemas")
    diff_parser.add_argument("old", help="Old schema file")
    diff_parser.add_argument("new", help="New schema file")
    diff_parser.add_argument(
        "--format", choices=["text", "json"], default="text", help="Output format"
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point for schema tool.

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings)
    cli = SchemaCLI(settings)

    if args.command == "validate":
        errors = cli.validate(args.file)
        if not errors:
            print("Schema is valid")
            return 0
        print(f"Schema validation failed with {len(errors)} error(s):")
        for error in errors:
            print(f"  - {error}")
        return 1

    try:
        if args.command == "snapshot":
            output = cli.snapshot(cli.load(args.file))
            if args.output:
                Path(args.output).write_text(output + "\n", encoding="utf-8")
                print(f"Schema exported to {args.output}", file=sys.stderr)
            else:
                print(output)
            return 0

        if args.command == "check":
            is_compatible, issues = cli.check(cli.load(args.file), args.baseline)
            if is_compatible:
                print("Schema is compatible with baseline")
                return 0
            print(f"Schema compatibility check FAILED with {len(issues)} breaking change(s):")
            for issue in issues:
                print(f"  - {issue}")
            return 1

        changes = cli.diff(args.old, args.new)
    except GqlRegError as err:
        print(f"Error: {err.message}", file=sys.stderr)
        return 2

    if args.format == "json":
        print(json.dumps(changes, indent=2, default=json_default))
    elif not changes:
        print("No changes detected")
    else:
        print(f"Found {len(changes)} change(s):")
        for change in changes:
            status = "BREAKING" if change["is_breaking"] else "OK"
            print(f"  [{status}] {change['kind']}: {change['path']}")
            print(f"          {change['message']}")

    breaking = [c for c in changes if c["is_breaking"]]
    return 1 if breaking else 0


if __name__ == "__main__":
    sys.exit(main())
