"""CLI entrypoints for docforge commands."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from .analyzers import StructuralParser
from .classifier import classify
from .config import CONFIG_FILENAME, ConfigError, DocForgeConfig, load_config
from .logging import configure_logging
from .models import JobStatus
from .orchestrator import Orchestrator
from .repo_scanner import RepoScanner
from .stores.generation_cache import InMemoryGenerationCache

_CACHE_PATH = Path(".docforge") / "generation_cache.json"


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
        help="Path to the repository root (defaults to current directory).",
    )


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Configuration file (defaults to <path>/{CONFIG_FILENAME}).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docforge",
        description="Generate feature documentation and a navigation sidebar for a code base.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also append log records to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Analyze a repository and write documentation with front matter and sidebars.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_path_argument(generate_parser)
    _add_config_option(generate_parser)
    generate_parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Documentation root (defaults to output.docs_dir below the repository).",
    )
    generate_parser.add_argument(
        "--mode",
        choices=("group", "file"),
        default=None,
        help="One document per feature group or per source file.",
    )
    generate_parser.add_argument(
        "--no-cache",
        action="store_true",
        help=f"Ignore and do not update {_CACHE_PATH.as_posix()}.",
    )

    outline_parser = subparsers.add_parser(
        "outline",
        help="Print the extracted symbol outline as JSON.",
    )
    _add_verbose_option(outline_parser, suppress_default=True)
    _add_path_argument(outline_parser)
    _add_config_option(outline_parser)

    classify_parser = subparsers.add_parser(
        "classify",
        help="Print the feature each source file is assigned to.",
    )
    _add_verbose_option(classify_parser, suppress_default=True)
    _add_path_argument(classify_parser)
    _add_config_option(classify_parser)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP job service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="0.0.0.0", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for docforge commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    if args.command == "serve":
        from .service.app import run_service

        run_service(host=args.host, port=args.port)
        return

    repo_path = Path(args.path)
    try:
        config = load_config(args.config or repo_path)
        files = RepoScanner(config.exclude_paths).collect(repo_path)
    except ConfigError as exc:
        parser.exit(1, f"Invalid configuration: {exc}\n")
    except (FileNotFoundError, NotADirectoryError) as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "outline":
        parsed = StructuralParser().parse_all(files)
        print(json.dumps([item.to_dict() for item in parsed], indent=2))
    elif args.command == "classify":
        groups = classify(StructuralParser().parse_all(files))
        print(
            json.dumps(
                {feature: [item.path for item in members] for feature, members in groups.items()},
                indent=2,
            )
        )
    elif args.command == "generate":
        _generate(parser, args, repo_path, config, files)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _generate(
    parser: argparse.ArgumentParser,
    args: argparse.Namespace,
    repo_path: Path,
    config: DocForgeConfig,
    files: list,
) -> None:
    cache_path = None if args.no_cache else repo_path / _CACHE_PATH
    orchestrator = Orchestrator.from_config(config, cache=InMemoryGenerationCache(cache_path))
    destination = args.out or repo_path / config.output.docs_dir
    job_id, navigation = orchestrator.run(files, destination, mode=args.mode)
    job = orchestrator.jobs.read(job_id)
    if navigation is None or job is None or job.status is not JobStatus.COMPLETED:
        reason = job.log[-1] if job and job.log else "unknown error"
        parser.exit(1, f"docforge generate failed: {reason}\nRun with --verbose for more details.\n")
    print(f"Documentation written to {_relativize(destination)}")


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":  # pragma: no cover - manual execution
    main()
