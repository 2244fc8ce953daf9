"""
Command-line entry point: ``ico-stress run``.

Exit codes follow a three-state convention so CI can tell a broken setup
from a system that failed under load:

- ``0`` -- run completed, report written, throughput printed
- ``1`` -- the run failed (HTTP error, transport error, signing error)
- ``2`` -- configuration error; no request was sent

Usage::

    ico-stress run \\
        --applogic-url http://applogic.local \\
        --peatio-url http://peatio.local \\
        --traders 10 --threads 4 \\
        --barong-private-key "$(base64url < barong.pem)" \\
        --management-private-key "$(base64url < applogic.pem)"
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

import requests

from .config import (
    DEFAULT_ALGORITHM,
    DEFAULT_CURRENCIES,
    DEFAULT_MANAGEMENT_SIGNER,
    Config,
    RunConfig,
    SignerConfig,
    build_run_config,
    load_key,
)
from .context import RunContext
from .errors import ConfigurationError, HttpError, IcoStressError
from .report import write_report
from .runner import StressRun

EXIT_OK = 0
EXIT_RUN_FAILED = 1
EXIT_CONFIG_ERROR = 2

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ico-stress",
        description="Stress an ICO deployment (applogic + peatio) with concurrent purchases.",
    )
    parser.add_argument(
        "--log-level",
        default=Config.LOG_LEVEL,
        help="Logging level (default: %(default)s)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Run the ICO purchase workload")
    run.add_argument("--log-level", default=argparse.SUPPRESS, help="Same as the global --log-level")
    run.add_argument("--applogic-url", required=True, help="Root URL of the applogic service")
    run.add_argument("--peatio-url", required=True, help="Root URL of the peatio ledger service")
    run.add_argument(
        "--currencies",
        default=",".join(DEFAULT_CURRENCIES),
        help="Comma-separated currency codes (default: %(default)s)",
    )
    run.add_argument("--traders", type=int, required=True, help="Number of traders, at least 2")
    run.add_argument(
        "--threads",
        type=int,
        default=1,
        help="Maximum simultaneous purchase requests (default: %(default)s)",
    )
    run.add_argument(
        "--barong-private-key",
        help="Session signing key, base64url-encoded PEM "
        "(falls back to SESSION_JWT_PRIVATE_KEY / SESSION_JWT_PRIVATE_KEY_PATH)",
    )
    run.add_argument("--barong-algorithm", default=DEFAULT_ALGORITHM)
    run.add_argument(
        "--management-private-key",
        help="Management signing key, base64url-encoded PEM "
        "(falls back to MANAGEMENT_JWT_PRIVATE_KEY / MANAGEMENT_JWT_PRIVATE_KEY_PATH)",
    )
    run.add_argument("--management-algorithm", default=DEFAULT_ALGORITHM)
    run.add_argument("--management-signer", default=DEFAULT_MANAGEMENT_SIGNER)
    run.add_argument("--report-yml", type=Path, help="Report path (default: report-<timestamp>.yml)")
    run.add_argument(
        "--ico-offers",
        type=int,
        help="Offers per ICO application (default: ICO_STRESS_OFFERS or 3)",
    )
    run.add_argument(
        "--ico-packages",
        type=int,
        help="Packages per offer (default: ICO_STRESS_PACKAGES or 5)",
    )
    run.add_argument(
        "--pacing-delay",
        type=float,
        default=0.0,
        help="Upper bound in seconds of a random delay before each purchase",
    )
    return parser


def resolve_log_level(value: str) -> int:
    """Map a level name such as ``debug`` to its numeric value."""
    level = logging.getLevelName(str(value).strip().upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"Unknown log level: {value!r}")
    return level


def config_from_args(args: argparse.Namespace) -> RunConfig:
    """
    Turn parsed arguments into a validated :class:`RunConfig`.

    Raises:
        ConfigurationError: If a key cannot be resolved or any option is
            out of range.
    """
    session_signer = SignerConfig(
        name="barong",
        private_key=load_key(
            args.barong_private_key,
            "SESSION_JWT_PRIVATE_KEY",
            "SESSION_JWT_PRIVATE_KEY_PATH",
        ),
        algorithm=args.barong_algorithm,
    )
    management_signer = SignerConfig(
        name=args.management_signer,
        private_key=load_key(
            args.management_private_key,
            "MANAGEMENT_JWT_PRIVATE_KEY",
            "MANAGEMENT_JWT_PRIVATE_KEY_PATH",
        ),
        algorithm=args.management_algorithm,
    )
    return build_run_config(
        applogic_url=args.applogic_url,
        peatio_url=args.peatio_url,
        currencies=args.currencies,
        traders_number=args.traders,
        threads_number=args.threads,
        session_signer=session_signer,
        management_signers=(management_signer,),
        report_path=args.report_yml,
        ico_offers_number=args.ico_offers,
        ico_packages_number=args.ico_packages,
        pacing_delay=args.pacing_delay,
    )


def run_command(config: RunConfig, session: requests.Session | None = None) -> int:
    context = RunContext.from_config(config, session=session)
    report = StressRun(context).run()
    path = write_report(report, config.report_path)
    logger.info("Report written to %s", path)
    print(f"ops: {report.results.ops:.3f}")
    return EXIT_OK


def main(argv: Sequence[str] | None = None, session: requests.Session | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        logging.basicConfig(level=resolve_log_level(args.log_level), format=LOG_FORMAT)
        config = config_from_args(args)
        return run_command(config, session=session)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except HttpError as exc:
        print(f"Run failed: {exc}", file=sys.stderr)
        print(exc.diagnostic(), file=sys.stderr)
        return EXIT_RUN_FAILED
    except IcoStressError as exc:
        print(f"Run failed: {exc}", file=sys.stderr)
        return EXIT_RUN_FAILED


if __name__ == "__main__":
    raise SystemExit(main())
