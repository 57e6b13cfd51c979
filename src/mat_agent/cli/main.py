"""CLI entry point for applying Mat AI agent executions to a repository."""
import argparse
from dotenv import load_dotenv
import json
import logging
import os
import sys
import traceback
from pathlib import Path

from mat_agent.logging import setup_logging
from mat_agent.models import PatchResult
from mat_agent.orchestrator.exceptions import OrchestratorError
from mat_agent.orchestrator.run_apply import (
    DEFAULT_EXECUTIONS_DIR,
    find_latest_execution,
    load_executor_output,
    resolve_output_path,
    run_apply,
)
from mat_agent.patcher.config import (
    EXECUTIONS_DIR_ENV,
    PATCH_COMMAND_ENV,
    PATCH_TIMEOUT_ENV,
    REPO_ROOT_ENV,
    TAB_SIZE_ENV,
)
from mat_agent.patcher.exceptions import PatchConfigError
from mat_agent.patcher.executors import ShellPatchExecutor
from mat_agent.patcher.fallback import FallbackPatcher
from mat_agent.patcher.runner import PatchRunner

load_dotenv()

# Exit codes
EXIT_SUCCESS = 0
EXIT_INVALID_INPUT = 1
EXIT_PATCH_FAILURES = 2
EXIT_UNEXPECTED = 5
EXIT_KEYBOARD_INTERRUPT = 130


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="mat-agent",
        description="Apply AI-generated diffs from an executor run to a repository",
    )
    parser.add_argument(
        "target",
        type=str,
        nargs="?",
        default="",
        help=(
            "Execution folder or executor-output.json to apply "
            "(default: latest execution)"
        ),
    )
    parser.add_argument(
        "--repo-root",
        type=str,
        default=os.getenv(REPO_ROOT_ENV, ""),
        help=f"Repository root to patch (default: ${REPO_ROOT_ENV})",
    )
    parser.add_argument(
        "--executions-dir",
        type=str,
        default=os.getenv(EXECUTIONS_DIR_ENV, DEFAULT_EXECUTIONS_DIR),
        help=f"Folder holding execution runs (default: {DEFAULT_EXECUTIONS_DIR})",
    )
    parser.add_argument(
        "--tab-size",
        type=int,
        default=None,
        help=f"Tab width override for tab-indented files (default: ${TAB_SIZE_ENV} or inferred)",
    )
    parser.add_argument(
        "--patch-timeout",
        type=int,
        default=None,
        help=f"Seconds before the external patch tool is killed (default: ${PATCH_TIMEOUT_ENV} or 30)",
    )
    parser.add_argument(
        "--patch-command",
        type=str,
        default=None,
        help=f"External patch binary (default: ${PATCH_COMMAND_ENV} or patch)",
    )
    parser.add_argument(
        "--no-external-patch",
        action="store_true",
        help="Disable the external patch tool strategy",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "--dry-run", action="store_true", help="Print config and exit without patching"
    )
    parser.add_argument(
        "--output-json", action="store_true", help="Output results as JSON"
    )
    return parser


def validate_repo_path(raw_path: str) -> str:
    """Validate and resolve the repository path.

    Args:
        raw_path: Raw path string from CLI arguments or environment.

    Returns:
        Resolved absolute path as string.

    Raises:
        SystemExit: If path is empty or not a valid directory.
    """
    if not raw_path:
        print(
            f"Error: no repository root given. Use --repo-root or set {REPO_ROOT_ENV}.",
            file=sys.stderr,
        )
        raise SystemExit(EXIT_INVALID_INPUT)
    resolved = Path(raw_path).expanduser().resolve()
    if not resolved.is_dir():
        print(f"Error: '{raw_path}' is not a valid directory.", file=sys.stderr)
        raise SystemExit(EXIT_INVALID_INPUT)
    return str(resolved)


def create_runner(args: argparse.Namespace, repo_path: str) -> PatchRunner:
    """Create the patch runner from CLI arguments."""
    external = None
    if not args.no_external_patch:
        external = ShellPatchExecutor(
            command=args.patch_command,
            timeout=args.patch_timeout,
        )
    patcher = FallbackPatcher(
        external_executor=external,
        use_external=not args.no_external_patch,
        tab_size=args.tab_size,
    )
    return PatchRunner(repo_root=repo_path, patcher=patcher)


def format_results_json(results: list[PatchResult]) -> str:
    """Serialize results to a JSON array."""
    return json.dumps([result.model_dump(mode="json") for result in results], indent=2)


def print_results_human(results: list[PatchResult]) -> None:
    """Print one line per file plus a summary."""
    for result in results:
        if result.success:
            print(f"✔ Updated: {result.file}")
        else:
            print(f"❌ Failed: {result.file} → {result.error}")
            if result.backup_path:
                print(f"   Backup preserved at: {result.backup_path}")

    applied = sum(1 for result in results if result.success)
    print(f"\nPatch operation complete: {applied}/{len(results)} file(s) updated.")


def determine_exit_code(results: list[PatchResult]) -> int:
    """Return EXIT_PATCH_FAILURES if any file failed."""
    if any(not result.success for result in results):
        return EXIT_PATCH_FAILURES
    return EXIT_SUCCESS


def print_config_human(config: dict) -> None:
    """Print configuration in human-readable format."""
    print("\nConfiguration:")
    print(f"{'='*40}")
    for key, value in config.items():
        print(f"  {key}: {value}")
    print(f"{'='*40}")


def _handle_error(label: str, exc: BaseException, verbose: bool, exit_code: int) -> int:
    """Print error message to stderr and return the exit code."""
    print(f"{label}: {exc}", file=sys.stderr)
    if verbose:
        traceback.print_exc(file=sys.stderr)
    return exit_code


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code integer.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        repo_path = validate_repo_path(args.repo_root)
    except SystemExit as exc:
        return exc.code

    try:
        target = args.target or find_latest_execution(args.executions_dir)
        output_path = resolve_output_path(target)
        output = load_executor_output(output_path)
    except OrchestratorError as exc:
        return _handle_error("Invalid execution", exc, args.verbose, EXIT_INVALID_INPUT)

    config = {
        "repo_root": repo_path,
        "executor_output": str(output_path),
        "modifications": len(output.modifications),
        "tab_size": args.tab_size,
        "patch_timeout": args.patch_timeout,
        "patch_command": args.patch_command,
        "external_patch": not args.no_external_patch,
        "verbose": args.verbose,
        "dry_run": args.dry_run,
        "output_json": args.output_json,
    }

    if args.dry_run:
        if args.output_json:
            print(json.dumps(config, indent=2))
        else:
            print_config_human(config)
        return EXIT_SUCCESS

    try:
        runner = create_runner(args, repo_path)
        results = run_apply(output, runner)

        if args.output_json:
            print(format_results_json(results))
        else:
            print_results_human(results)

        return determine_exit_code(results)

    except PatchConfigError as exc:
        return _handle_error("Configuration error", exc, args.verbose, EXIT_INVALID_INPUT)

    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_KEYBOARD_INTERRUPT

    except Exception as exc:
        return _handle_error("Unexpected error", exc, args.verbose, EXIT_UNEXPECTED)
