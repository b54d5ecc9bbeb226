"""
CLI for k3schart - Kubernetes manifest renderer for the web-service chart.

Commands:
    template    Render manifests for a release
    lint        Validate values and rendered manifests
    validate    Validate a values file against the chart schema
    show-values Print the chart's default values
    show-chart  Print Chart.yaml
"""

import argparse
import logging
import sys
from typing import List, Optional

import yaml

from .checks import KUBERNETES_VERSION, check_all
from .generators import generate_all_manifests
from .render import render_manifests, write_manifests
from .schema import (
    get_chart_dir,
    load_release,
    load_values,
    load_values_schema,
    validate_values,
)

logger = logging.getLogger(__name__)


def _add_kube_version_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--kube-version",
        default=KUBERNETES_VERSION,
        help=f"Kubernetes version to validate manifests against (default: {KUBERNETES_VERSION})",
    )


def _add_values_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-f", "--values",
        action="append",
        default=[],
        metavar="FILE",
        help="Values file (can be repeated; later files win)",
    )
    parser.add_argument(
        "--set",
        action="append",
        default=[],
        dest="set_values",
        metavar="KEY=VALUE",
        help="Override a value, e.g. --set image.tag=1.2.3 (can be repeated)",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="k3schart",
        description="Render Kubernetes manifests for a generic web service",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # template command
    template_parser = subparsers.add_parser(
        "template",
        help="Render manifests for a release",
    )
    template_parser.add_argument(
        "release",
        help="Release name",
    )
    template_parser.add_argument(
        "-n", "--namespace",
        default="default",
        help="Target namespace (default: default)",
    )
    _add_values_arguments(template_parser)
    template_parser.add_argument(
        "-o", "--output",
        help="Output directory, one file per manifest (default: stdout)",
    )
    template_parser.add_argument(
        "--format",
        choices=["yaml", "json"],
        default="yaml",
        help="Output format (default: yaml)",
    )
    template_parser.add_argument(
        "--skip-checks",
        action="store_true",
        help="Do not check rendered manifests before output",
    )
    _add_kube_version_argument(template_parser)

    # lint command
    lint_parser = subparsers.add_parser(
        "lint",
        help="Validate values and rendered manifests",
    )
    lint_parser.add_argument(
        "release",
        nargs="?",
        default="release-name",
        help="Release name (default: release-name)",
    )
    lint_parser.add_argument(
        "-n", "--namespace",
        default="default",
        help="Target namespace (default: default)",
    )
    _add_values_arguments(lint_parser)
    _add_kube_version_argument(lint_parser)

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a values file against the chart schema",
    )
    validate_parser.add_argument(
        "file",
        help="Values file to validate",
    )

    # show commands
    subparsers.add_parser(
        "show-values",
        help="Print the chart's default values",
    )
    subparsers.add_parser(
        "show-chart",
        help="Print Chart.yaml",
    )

    return parser


def cmd_template(args: argparse.Namespace) -> int:
    """Handle template command."""
    logger.debug("Rendering release %s into namespace %s", args.release, args.namespace)
    try:
        chart, release = load_release(
            args.release,
            namespace=args.namespace,
            values_files=args.values,
            set_values=args.set_values,
        )
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    manifests = generate_all_manifests(chart, release)

    if not args.skip_checks:
        problems = check_all(manifests, args.kube_version)
        if problems:
            print("Rendered manifests failed checks:", file=sys.stderr)
            for problem in problems:
                print(f"  - {problem}", file=sys.stderr)
            return 1

    if args.output:
        written = write_manifests(manifests, args.output, args.format)
        for path in written:
            print(f"Written: {path}", file=sys.stderr)
    else:
        sys.stdout.write(render_manifests(manifests, args.format))

    if args.verbose:
        print(f"Generated {len(manifests)} manifests for {release.name}", file=sys.stderr)

    return 0


def cmd_lint(args: argparse.Namespace) -> int:
    """Handle lint command."""
    try:
        values = load_values(args.values, args.set_values, validate=False)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    problems = validate_values(values, load_values_schema())
    if not problems:
        chart, release = load_release(
            args.release,
            namespace=args.namespace,
            values_files=args.values,
            set_values=args.set_values,
            validate=False,
        )
        problems = check_all(generate_all_manifests(chart, release), args.kube_version)

    if problems:
        print("Lint failed:", file=sys.stderr)
        for problem in problems:
            print(f"  - {problem}", file=sys.stderr)
        return 1

    print("✓ chart rendered and checked with no problems")
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Handle validate command."""
    try:
        values = load_values([args.file], validate=False)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    errors = validate_values(values)
    if errors:
        print("Validation errors:", file=sys.stderr)
        for error in errors:
            print(f"  - {error}", file=sys.stderr)
        return 1

    print(f"✓ {args.file} is valid")
    return 0


def cmd_show_values(args: argparse.Namespace) -> int:
    """Handle show-values command."""
    sys.stdout.write((get_chart_dir() / "values.yaml").read_text())
    return 0


def cmd_show_chart(args: argparse.Namespace) -> int:
    """Handle show-chart command."""
    with open(get_chart_dir() / "Chart.yaml") as f:
        chart = yaml.safe_load(f)
    sys.stdout.write(yaml.safe_dump(chart, default_flow_style=False, sort_keys=False))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 0

    commands = {
        "template": cmd_template,
        "lint": cmd_lint,
        "validate": cmd_validate,
        "show-values": cmd_show_values,
        "show-chart": cmd_show_chart,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
