"""CLI entrypoints for squeezebot commands."""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from .logging import configure_logging
from .models import Credentials, PipelineOutcome, RunParameters
from .orchestrator import Orchestrator

_OUTCOME_MESSAGES = {
    PipelineOutcome.PUSHED: "Optimized images pushed",
    PipelineOutcome.NO_ACTION: "No action taken",
    PipelineOutcome.DEFERRED: "Clone failed; run handed to the fallback queue",
}


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


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="squeezebot",
        description="Optimize repository images and push them as a signed commit.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser(
        "run",
        help="Run the optimization pipeline against one repository.",
    )
    _add_verbose_option(run_parser, suppress_default=True)
    run_parser.add_argument("clone_url", help="URL to clone the repository from.")
    run_parser.add_argument("local_path", help="Empty directory to clone into.")
    run_parser.add_argument("--owner", required=True, help="Repository owner.")
    run_parser.add_argument("--name", required=True, help="Repository name.")
    run_parser.add_argument(
        "--username",
        default="x-access-token",
        help="Username sent with the git credentials.",
    )
    run_parser.add_argument(
        "--password-env",
        default="SQUEEZEBOT_GIT_PASSWORD",
        help="Environment variable holding the git password or token.",
    )
    run_parser.add_argument(
        "--signing-key-file",
        required=True,
        type=Path,
        help="ASCII-armored private key used to sign the commit.",
    )
    run_parser.add_argument(
        "--passphrase-env",
        default="SQUEEZEBOT_SIGNING_PASSPHRASE",
        help="Environment variable holding the signing key passphrase.",
    )
    run_parser.add_argument(
        "--fallback-payload",
        type=Path,
        default=None,
        help="JSON file re-queued to the fallback environment if cloning fails.",
    )
    return parser


def _load_payload(path: Optional[Path]) -> Optional[Dict[str, Any]]:
    if path is None:
        return None
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return data


def _params_from_args(args: argparse.Namespace) -> RunParameters:
    return RunParameters(
        clone_url=args.clone_url,
        local_path=Path(args.local_path).expanduser().resolve(),
        credentials=Credentials(
            username=args.username,
            password=os.environ.get(args.password_env, ""),
        ),
        repo_owner=args.owner,
        repo_name=args.name,
        signing_key=args.signing_key_file.read_text(encoding="utf-8"),
        signing_passphrase=os.environ.get(args.passphrase_env, ""),
        fallback_payload=_load_payload(args.fallback_payload),
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for squeezebot commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    if args.command == "run":
        try:
            params = _params_from_args(args)
        except (OSError, ValueError) as exc:
            parser.exit(1, f"{exc}\n")
        orchestrator = Orchestrator()
        try:
            outcome = orchestrator.run(params)
        except RuntimeError as exc:
            parser.exit(1, f"squeezebot run failed: {exc}\nRun with --verbose for more details.\n")
        print(_OUTCOME_MESSAGES[outcome])
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


if __name__ == "__main__":
    main(sys.argv[1:])
