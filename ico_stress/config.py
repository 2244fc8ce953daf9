"""
Configuration for the stress harness.

Two layers:

- :class:`Config` holds the knobs that rarely change between runs (HTTP
  timeout, base currency, funding amount, token lifetime).  Every value can
  be overridden through an environment variable so CI jobs can tune a run
  without touching the command line.
- :class:`RunConfig` is the validated, immutable description of one run,
  built from CLI arguments by :func:`build_run_config`.

Key material follows the same precedence everywhere: an explicit CLI value
wins, then the raw environment variable, then a ``*_PATH`` environment
variable pointing at a PEM file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import urlsplit

from .errors import ConfigurationError

DEFAULT_CURRENCIES: tuple[str, ...] = (
    "btc",
    "bch",
    "dash",
    "eth",
    "ltc",
    "trst",
    "usd",
    "xrp",
)
DEFAULT_ALGORITHM = "RS256"
DEFAULT_MANAGEMENT_SIGNER = "applogic"

MIN_TRADERS = 2
MIN_THREADS = 1

DEFAULT_HTTP_TIMEOUT = 30.0
DEFAULT_TOKEN_LIFETIME = 300
DEFAULT_ICO_OFFERS = 3
DEFAULT_ICO_PACKAGES = 5

URL_SCHEMES = ("http", "https")


class Config:
    """Process-level defaults, overridable through environment variables."""

    # Numeric knobs stay raw strings here; build_run_config parses them
    HTTP_TIMEOUT_SECONDS: str = os.environ.get(
        "ICO_STRESS_HTTP_TIMEOUT", str(DEFAULT_HTTP_TIMEOUT)
    )

    # Currency every trader is funded in and pays with
    BASE_CURRENCY: str = os.environ.get("ICO_STRESS_BASE_CURRENCY", "usd")
    FUNDING_AMOUNT: str = os.environ.get("ICO_STRESS_FUNDING_AMOUNT", "1000000000")

    TOKEN_LIFETIME_SECONDS: str = os.environ.get(
        "ICO_STRESS_TOKEN_LIFETIME", str(DEFAULT_TOKEN_LIFETIME)
    )
    TOKEN_ISSUER: str = os.environ.get("ICO_STRESS_TOKEN_ISSUER", "barong")
    TOKEN_AUDIENCE: tuple[str, ...] = tuple(
        os.environ.get("ICO_STRESS_TOKEN_AUDIENCE", "peatio,barong").split(",")
    )

    ICO_OFFERS_NUMBER: str = os.environ.get("ICO_STRESS_OFFERS", str(DEFAULT_ICO_OFFERS))
    ICO_PACKAGES_NUMBER: str = os.environ.get("ICO_STRESS_PACKAGES", str(DEFAULT_ICO_PACKAGES))

    LOG_LEVEL: str = os.environ.get("ICO_STRESS_LOG_LEVEL", "INFO")


@dataclass(frozen=True)
class SignerConfig:
    """One private key plus the algorithm it signs with."""

    name: str
    private_key: str
    algorithm: str = DEFAULT_ALGORITHM


@dataclass(frozen=True)
class RunConfig:
    """Validated options for a single stress run."""

    applogic_url: str
    peatio_url: str
    currencies: tuple[str, ...]
    traders_number: int
    threads_number: int
    session_signer: SignerConfig
    management_signers: tuple[SignerConfig, ...]
    report_path: Path
    ico_offers_number: int = DEFAULT_ICO_OFFERS
    ico_packages_number: int = DEFAULT_ICO_PACKAGES
    pacing_delay: float = 0.0
    base_currency: str = "usd"
    funding_amount: str = "1000000000"
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    token_lifetime: int = DEFAULT_TOKEN_LIFETIME


def load_key(cli_value: str | None, raw_env_var: str, path_env_var: str) -> str:
    """
    Resolve key material from the CLI, a raw env var, or a PEM file path.

    Raises:
        ConfigurationError: If no source is configured or the file cannot
            be read.
    """
    if cli_value and cli_value.strip():
        return cli_value.strip()

    raw_key = os.environ.get(raw_env_var, "").strip()
    if raw_key:
        return raw_key

    key_path = os.environ.get(path_env_var, "").strip()
    if key_path:
        try:
            return Path(key_path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(
                f"Unable to read key file at '{key_path}' from {path_env_var}."
            ) from exc

    raise ConfigurationError(
        f"Missing key configuration: pass it on the command line or set "
        f"{raw_env_var} or {path_env_var}."
    )


def parse_currencies(value: str | None) -> tuple[str, ...]:
    """Split a comma-separated currency list, dropping blanks and duplicates."""
    if value is None:
        return DEFAULT_CURRENCIES

    currencies: list[str] = []
    for item in value.split(","):
        code = item.strip().lower()
        if code and code not in currencies:
            currencies.append(code)
    if not currencies:
        raise ConfigurationError("At least one currency must be configured")
    return tuple(currencies)


def default_report_path(now: datetime | None = None) -> Path:
    """Build ``report-<UTC timestamp>.yml`` in the working directory."""
    now = now or datetime.now(timezone.utc)
    return Path(f"report-{now.strftime('%Y%m%d%H%M%S')}.yml")


def parse_number(raw: str, cast: type, source: str) -> float:
    """
    Convert a raw option value with *cast*, naming *source* on failure.

    Raises:
        ConfigurationError: If *raw* is not a valid number.
    """
    try:
        return cast(str(raw).strip())
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{source} must be a number, got {raw!r}") from exc


def _require_url(value: str | None, flag: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"{flag} must be a non-empty URL")
    url = value.strip()
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError as exc:
        raise ConfigurationError(f"{flag} is not a valid URL: {url}") from exc
    if parts.scheme not in URL_SCHEMES:
        raise ConfigurationError(f"{flag} must start with http:// or https://")
    if not hostname:
        raise ConfigurationError(f"{flag} must include a host: {url}")
    return url


def build_run_config(
    *,
    applogic_url: str | None,
    peatio_url: str | None,
    currencies: str | None,
    traders_number: int | None,
    threads_number: int = 1,
    session_signer: SignerConfig,
    management_signers: tuple[SignerConfig, ...],
    report_path: Path | None = None,
    ico_offers_number: int | None = None,
    ico_packages_number: int | None = None,
    pacing_delay: float = 0.0,
) -> RunConfig:
    """
    Validate raw options and return an immutable :class:`RunConfig`.

    ICO shape values left as ``None`` fall back to :class:`Config`, as do
    the HTTP timeout and token lifetime.

    Raises:
        ConfigurationError: On blank or host-less URLs, fewer than two
            traders, a concurrency limit below one, non-positive ICO shape
            values, a negative pacing delay, missing signers, or a
            non-numeric environment override.
    """
    if ico_offers_number is None:
        ico_offers_number = parse_number(Config.ICO_OFFERS_NUMBER, int, "ICO_STRESS_OFFERS")
    if ico_packages_number is None:
        ico_packages_number = parse_number(Config.ICO_PACKAGES_NUMBER, int, "ICO_STRESS_PACKAGES")
    http_timeout = parse_number(Config.HTTP_TIMEOUT_SECONDS, float, "ICO_STRESS_HTTP_TIMEOUT")
    token_lifetime = parse_number(Config.TOKEN_LIFETIME_SECONDS, int, "ICO_STRESS_TOKEN_LIFETIME")

    if traders_number is None or int(traders_number) < MIN_TRADERS:
        raise ConfigurationError(f"--traders must be at least {MIN_TRADERS}")
    if int(threads_number) < MIN_THREADS:
        raise ConfigurationError(f"--threads must be at least {MIN_THREADS}")
    if int(ico_offers_number) < 1 or int(ico_packages_number) < 1:
        raise ConfigurationError("ICO offers and packages numbers must be positive")
    if float(pacing_delay) < 0:
        raise ConfigurationError("--pacing-delay must not be negative")
    if http_timeout <= 0:
        raise ConfigurationError("ICO_STRESS_HTTP_TIMEOUT must be positive")
    if token_lifetime <= 0:
        raise ConfigurationError("ICO_STRESS_TOKEN_LIFETIME must be positive")
    if not management_signers:
        raise ConfigurationError("At least one management signer is required")

    return RunConfig(
        applogic_url=_require_url(applogic_url, "--applogic-url"),
        peatio_url=_require_url(peatio_url, "--peatio-url"),
        currencies=parse_currencies(currencies),
        traders_number=int(traders_number),
        threads_number=int(threads_number),
        session_signer=session_signer,
        management_signers=tuple(management_signers),
        report_path=report_path or default_report_path(),
        ico_offers_number=int(ico_offers_number),
        ico_packages_number=int(ico_packages_number),
        pacing_delay=float(pacing_delay),
        base_currency=Config.BASE_CURRENCY,
        funding_amount=Config.FUNDING_AMOUNT,
        http_timeout=http_timeout,
        token_lifetime=token_lifetime,
    )
