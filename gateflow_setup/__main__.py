"""CLI entry point for gateflow_setup.

Usage:
    python -m gateflow_setup                              # Start login (step 1)
    python -m gateflow_setup --verification-code CODE     # Exchange code (step 2)
    python -m gateflow_setup --project-ref REF            # Save config (step 3)
"""

import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from gateflow_setup import async_setup_gateflow
from gateflow_setup.config import SetupSettings
from gateflow_setup.const import CONF_PROJECT_REF, CONF_VERIFICATION_CODE


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gateflow_setup",
        description="Configure GateFlow deployment credentials via Supabase login",
    )
    parser.add_argument(
        "--verification-code",
        help="Code shown on the Supabase login page (step 2)",
    )
    parser.add_argument(
        "--project-ref",
        help="Project to configure, from the list printed in step 2 (step 3)",
    )
    parser.add_argument(
        "--config-dir",
        help="Directory for deploy config and login state (default: ~/.config/gateflow)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log protocol details to stderr",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        settings = SetupSettings.from_env(config_dir=args.config_dir)
    except ValidationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    tool_args = {
        CONF_VERIFICATION_CODE: args.verification_code,
        CONF_PROJECT_REF: args.project_ref,
    }
    result = asyncio.run(async_setup_gateflow(tool_args, settings))
    print(result.text, file=sys.stderr if result.is_error else sys.stdout)
    return 1 if result.is_error else 0


if __name__ == "__main__":
    sys.exit(main())
