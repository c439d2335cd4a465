"""kubestack CLI - Command-line interface for stack reconciliation.

This module provides the main CLI entrypoint for kubestack, allowing users
to apply, diff and delete stacks of K8s manifests through kubectl.
"""

import argparse
import json
import logging
import sys

from kubestack.core.config import DEFAULT_CONFIG_PATH, load_config
from kubestack.core.errors import StackError
from kubestack.core.reconciler import Action, ReconcileContext, ReconcileReport, Reconciler
from kubestack.k8s.constants import SERVER_MANAGED_FIELDS
from kubestack.k8s.dry_run import DryRunResourceAccess
from kubestack.k8s.kubectl import KubectlResourceAccess
from kubestack.k8s.stack import Stack

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kubestack",
        description="kubestack - declarative K8s stack reconciliation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create or update every resource in manifests/
  kubestack apply web manifests/

  # Also delete resources previously applied by this stack but no longer declared
  kubestack apply web manifests/ --prune

  # Show the JSON patches an apply would send
  kubestack diff web manifests/

  # Remove everything belonging to the stack
  kubestack delete web manifests/

Note:
  kubectl settings are read from kubestack.json, e.g.
  {"kubectl": {"context": "staging"}, "stack": {"label_key": "example.com/stack"}}
"""
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    def add_common(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("name", help="Stack name")
        sub.add_argument("path", help="Manifest file or directory")
        sub.add_argument(
            "--config",
            default=DEFAULT_CONFIG_PATH,
            help=f"Path to config file (default: {DEFAULT_CONFIG_PATH})"
        )
        sub.add_argument(
            "-v", "--verbose",
            action="store_true",
            help="Verbose output"
        )

    apply_parser = subparsers.add_parser("apply", help="Create or patch the stack's resources")
    add_common(apply_parser)
    apply_parser.add_argument(
        "--prune",
        action="store_true",
        help="Delete stack resources that are no longer declared"
    )
    apply_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change without changing anything"
    )

    diff_parser = subparsers.add_parser("diff", help="Print the patches an apply would send")
    add_common(diff_parser)
    diff_parser.add_argument(
        "--prune",
        action="store_true",
        help="Also list resources a pruning apply would delete"
    )

    delete_parser = subparsers.add_parser("delete", help="Delete every resource of the stack")
    add_common(delete_parser)
    delete_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would be deleted without deleting anything"
    )

    return parser


def main(argv=None):
    """Main CLI entrypoint for kubestack."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging
    if getattr(args, "verbose", False):
        logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
    else:
        logging.basicConfig(level=logging.WARNING, format='%(levelname)s: %(message)s')

    if args.command == "apply":
        return cmd_apply(args)
    elif args.command == "diff":
        return cmd_diff(args)
    elif args.command == "delete":
        return cmd_delete(args)
    else:
        parser.print_help()
        return 1


def _setup(args):
    """Load config and stack, build the reconciler for a command."""
    config = load_config(args.config)
    stack = Stack.load(args.name, args.path)
    access = KubectlResourceAccess.from_config(config)
    if getattr(args, "dry_run", False) or args.command == "diff":
        access = DryRunResourceAccess(access)
    context = ReconcileContext.from_config(config, default_ignore_fields=SERVER_MANAGED_FIELDS)
    return stack, Reconciler(access, context)


def _print_report(report: ReconcileReport) -> None:
    for result in report.results:
        print(f"  {result.action.value:<9} {result.ref}")
    print(report.summary())


def cmd_apply(args):
    """Handle apply command."""
    report = None
    try:
        stack, reconciler = _setup(args)
        report = ReconcileReport(stack=stack.name)
        if args.dry_run:
            print(f"Applying stack '{stack.name}' (dry run)")
        reconciler.apply(stack, prune=args.prune, report=report)
        _print_report(report)
        return 0
    except (StackError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.exception("Apply failed")
        if report is not None:
            _print_report(report)
        return 1


def cmd_diff(args):
    """Handle diff command."""
    try:
        stack, reconciler = _setup(args)
        report = reconciler.apply(stack, prune=args.prune)
    except (StackError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.exception("Diff failed")
        return 1

    for result in report.results:
        if result.patch is not None:
            print(f"--- {result.ref}")
            print(json.dumps(result.patch.to_list(), indent=2))
        elif result.action is not Action.UNCHANGED:
            print(f"--- {result.ref} ({result.action.value})")
    return 0


def cmd_delete(args):
    """Handle delete command."""
    report = None
    try:
        stack, reconciler = _setup(args)
        report = ReconcileReport(stack=stack.name)
        reconciler.delete(stack, report=report)
        _print_report(report)
        return 0
    except (StackError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.exception("Delete failed")
        if report is not None:
            _print_report(report)
        return 1


if __name__ == "__main__":
    sys.exit(main())
