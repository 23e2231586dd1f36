"""CLI entrypoints for testgen commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import TestGenConfig, find_config_file, save_config
from .errors import TestGenError
from .logging import configure_logging
from .orchestrator import Orchestrator
from .scanner import find_project_root
from .serialization import project_analysis_to_dict

_DEFAULT_CONFIG_NAME = "testgen.yaml"


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path inside the crate (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="testgen",
        description="Generate skeletal Rust tests for a crate's public functions.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write detailed logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate test files for every public function in the crate.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_path_argument(generate_parser)
    generate_parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory for generated tests, relative to the crate root.",
    )
    generate_parser.add_argument(
        "--strategy",
        choices=("integration", "unit"),
        default=None,
        help="Emit integration tests (default) or unit-test modules.",
    )
    generate_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the generated tests instead of writing them.",
    )
    generate_parser.add_argument(
        "--no-parallel",
        action="store_true",
        help="Analyze modules one at a time.",
    )

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="List the public function signatures testgen would cover.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    _add_path_argument(analyze_parser)
    analyze_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the analysis as JSON.",
    )

    init_parser = subparsers.add_parser(
        "init-config",
        help="Write a testgen.yaml with the default settings.",
    )
    _add_verbose_option(init_parser, suppress_default=True)
    _add_path_argument(init_parser)
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing configuration file.",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for testgen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    orchestrator = Orchestrator()

    if args.command == "generate":
        try:
            outcome = orchestrator.run_generate(
                args.path,
                dry_run=bool(args.dry_run),
                output_dir=args.output_dir,
                strategy=args.strategy,
                parallel=False if args.no_parallel else None,
            )
        except FileNotFoundError as exc:
            parser.exit(1, f"{exc}\n")
        except (TestGenError, OSError) as exc:
            parser.exit(1, f"testgen generate failed: {exc}\nRun with --verbose for more details.\n")
        if args.dry_run:
            for test_file in outcome.files:
                print(f"// ===== {_relativize(Path(test_file.path))} =====")
                print(test_file.content)
        else:
            for path in outcome.written:
                print(f"Wrote {_relativize(path)}")
        print(f"Generated {outcome.case_count} tests in {len(outcome.files)} files")
        for diagnostic in outcome.diagnostics:
            print(f"warning: {diagnostic}", file=sys.stderr)
    elif args.command == "analyze":
        try:
            analysis = orchestrator.run_analyze(args.path)
        except FileNotFoundError as exc:
            parser.exit(1, f"{exc}\n")
        except (TestGenError, OSError) as exc:
            parser.exit(1, f"testgen analyze failed: {exc}\nRun with --verbose for more details.\n")
        if args.json:
            print(json.dumps(project_analysis_to_dict(analysis), indent=2))
        else:
            for function in analysis.functions():
                path = "::".join((analysis.crate_name, *function.module_path, function.name))
                parameters = ", ".join(
                    f"{parameter.name}: {parameter.type.declared}" for parameter in function.parameters
                )
                returns = f" -> {function.return_type.declared}" if function.return_type else ""
                print(f"{path}({parameters}){returns}")
            for diagnostic in analysis.diagnostics:
                print(f"warning: {diagnostic}", file=sys.stderr)
    elif args.command == "init-config":
        try:
            config_path = _init_config(Path(args.path), force=bool(args.force))
        except FileNotFoundError as exc:
            parser.exit(1, f"{exc}\n")
        except FileExistsError as exc:
            parser.exit(1, f"{exc}\n")
        except (TestGenError, OSError) as exc:
            parser.exit(1, f"testgen init-config failed: {exc}\n")
        print(f"Configuration written to {_relativize(config_path)}")
    elif args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _init_config(path: Path, *, force: bool) -> Path:
    root = find_project_root(path)
    existing = find_config_file(root)
    if existing is not None and not force:
        raise FileExistsError(f"{existing} already exists; pass --force to overwrite it")
    target = existing if existing is not None and existing.suffix != ".toml" else root / _DEFAULT_CONFIG_NAME
    return save_config(TestGenConfig(root=root), target)


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
