from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import httpx

from ..adapters.weather.base import WeatherProviderError
from ..domain.models import TemperatureUnit
from ..logging_setup import init_logging
from ..validation import MAX_TIME_PERIOD_DAYS, MIN_TIME_PERIOD_DAYS, parse_time_period
from .auth import WeatherAuthClient
from .credentials import DEFAULT_CREDENTIALS_FILE, CredentialStore, FileCredentialStore
from .output import OutputFormat, render
from .weather import AuthenticationRequiredError, WeatherApiClient

LOGGER = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 30.0
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
UNIT_OPTIONS = {
    "fahrenheit": TemperatureUnit.F,
    "celsius": TemperatureUnit.C,
}


def parse_unit_option(value: str) -> TemperatureUnit:
    unit = UNIT_OPTIONS.get(value.strip().lower())
    if unit is None:
        raise argparse.ArgumentTypeError(f"The given input temperature unit is not supported: {value}")
    return unit


def parse_time_period_option(value: str) -> int:
    days = parse_time_period(value)
    if days is None:
        raise argparse.ArgumentTypeError(
            f"Time period must be an integer between {MIN_TIME_PERIOD_DAYS} and {MAX_TIME_PERIOD_DAYS}: {value}"
        )
    return days


def _log_level(value: str) -> str:
    level = value.strip().upper()
    if level not in LOG_LEVELS:
        raise argparse.ArgumentTypeError(f"Unknown log level: {value}")
    return level


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--host", default="localhost", help="The hostname providing the weather api")
    common.add_argument(
        "--protocol",
        default="http",
        choices=("http", "https"),
        help="The http protocol to use",
    )
    common.add_argument("--port", type=int, default=5000, help="The port to use when calling the weather api")
    common.add_argument(
        "--log-level",
        type=_log_level,
        default="ERROR",
        help="The minimum log level to use (debug|info|warning|error|critical)",
    )
    common.add_argument(
        "--credentials-file",
        type=Path,
        default=DEFAULT_CREDENTIALS_FILE,
        help=f"Where the login token is stored (default: {DEFAULT_CREDENTIALS_FILE})",
    )

    weather_common = argparse.ArgumentParser(add_help=False, parents=[common])
    weather_common.add_argument("--zip-code", required=True, help="The zipcode to fetch weather from")
    weather_common.add_argument(
        "--units",
        type=parse_unit_option,
        required=True,
        help="The temperature units the weather should be in (fahrenheit|celsius)",
    )
    weather_common.add_argument(
        "--output",
        type=OutputFormat,
        choices=list(OutputFormat),
        default=OutputFormat.TEXT,
        help="Specifies the output format (text|json|yaml)",
    )

    parser = argparse.ArgumentParser(prog="zipweather", description="Query the zip-weather service")
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("register-user", "Registers a new user"),
        ("login-user", "Logs in a user and saves the token to the credentials file"),
    ):
        command = subparsers.add_parser(name, parents=[common], help=help_text)
        command.add_argument("--email", required=True, help="The email of the user")
        command.add_argument("--password", required=True, help="The password of the user")

    subparsers.add_parser("get-current-weather", parents=[weather_common], help="Gets the current weather")
    average = subparsers.add_parser("get-average-weather", parents=[weather_common], help="Gets the average weather")
    average.add_argument(
        "--time-period",
        type=parse_time_period_option,
        required=True,
        help="Number of days to calculate the average over (must be a value from 2-5)",
    )
    return parser


def base_url(args: argparse.Namespace) -> str:
    return f"{args.protocol}://{args.host}:{args.port}"


async def run_command(args: argparse.Namespace, client: httpx.AsyncClient, store: CredentialStore) -> int:
    auth = WeatherAuthClient(client=client, store=store)

    if args.command == "register-user":
        if await auth.register_user(args.email, args.password):
            print("User registered successfully.")
            return 0
        print("Failed to register user.")
        return 1

    if args.command == "login-user":
        if await auth.login_user(args.email, args.password):
            print("User logged in successfully.")
            return 0
        print("Failed to log in user.")
        return 1

    token = await auth.get_bearer_token()
    if token is None:
        print("Not logged in. Run 'zipweather login-user' first.", file=sys.stderr)
        return 1

    weather = WeatherApiClient(client=client, access_token=token.access_token)
    try:
        if args.command == "get-current-weather":
            result = await weather.get_current_weather(args.zip_code, args.units)
        else:
            result = await weather.get_average_weather(args.zip_code, args.time_period, args.units)
    except AuthenticationRequiredError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except WeatherProviderError as exc:
        print(exc.message, file=sys.stderr)
        return 1

    if result is None:
        print(f"No weather available for zip code {args.zip_code}.")
        return 0

    print(render(result, args.output))
    return 0


async def _run(args: argparse.Namespace, store: CredentialStore) -> int:
    async with httpx.AsyncClient(base_url=base_url(args), timeout=REQUEST_TIMEOUT_SECONDS) as client:
        try:
            return await run_command(args, client, store)
        except httpx.HTTPError as exc:
            LOGGER.debug("Request failed", exc_info=True)
            print(f"Could not reach the weather service at {base_url(args)}: {exc}", file=sys.stderr)
            return 1


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    init_logging(args.log_level)
    store = FileCredentialStore(args.credentials_file)
    return asyncio.run(_run(args, store))


if __name__ == "__main__":
    raise SystemExit(main())
