#!/usr/bin/env python3
"""
Cognitive Budget Command Line Interface

Main entry point for the `cogbudget` command. Every command prints a JSON
result with a ``success`` flag and exits 1 on failure.

Usage:
    cogbudget state --user alice
    cogbudget log --user alice --activity deep_work --domain work --cost 0.3
    cogbudget log --user alice --activity meditation          # known activity
    cogbudget advise --user alice --domain work
    cogbudget forecast --user alice --date 2026-10-19
    cogbudget suggest --user alice --count 3 --seed 7
    cogbudget complete --user alice --activity walk
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from cogbudget import __version__
from cogbudget.config_models import load_config
from cogbudget.errors import CognitiveBudgetError
from cogbudget.logging_config import bind_user, setup_logging
from cogbudget.session import CognitiveEngine, EngineSession


def _session(args) -> EngineSession:
    config = load_config(Path(args.config) if args.config else None)
    engine = CognitiveEngine(config=config)
    bind_user(args.user)
    return engine.for_user(args.user, timezone=args.tz, seed=getattr(args, "seed", None))


def _emit(result: dict) -> int:
    print(json.dumps(result, indent=2, default=str))
    return 0 if result.get("success") else 1


async def _state(session: EngineSession) -> dict:
    state = await session.get_budget_state()
    return {"success": True, "data": state.to_dict()}


async def _log(session: EngineSession, args) -> dict:
    entry = await session.log_activity(args.activity, args.domain, args.cost)
    state = await session.get_budget_state()
    return {"success": True, "data": {"entry": entry.to_dict(), "state": state.to_dict()}}


async def _advise(session: EngineSession, args) -> dict:
    await session.get_budget_state()
    return {"success": True, "data": session.advise(args.domain).to_dict()}


async def _forecast(session: EngineSession, args) -> dict:
    forecast = await session.generate_forecast(args.date)
    return {"success": True, "data": forecast.to_dict()}


async def _suggest(session: EngineSession, args) -> dict:
    suggestions = await session.select_suggestions(args.count, compact=args.compact)
    return {"success": True, "data": [s.to_dict() for s in suggestions]}


async def _complete(session: EngineSession, args) -> dict:
    logged = await session.complete_suggestion(args.activity)
    state = await session.get_budget_state()
    return {
        "success": True,
        "data": {
            "logged": logged,
            "restored_today": session.restored_today,
            "state": state.to_dict(),
        },
    }


def cmd_state(args):
    return asyncio.run(_state(_session(args)))


def cmd_log(args):
    return asyncio.run(_log(_session(args), args))


def cmd_advise(args):
    return asyncio.run(_advise(_session(args), args))


def cmd_forecast(args):
    return asyncio.run(_forecast(_session(args), args))


def cmd_suggest(args):
    return asyncio.run(_suggest(_session(args), args))


def cmd_complete(args):
    return asyncio.run(_complete(_session(args), args))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cogbudget",
        description="Cognitive energy budget, forecast and recovery suggestions",
    )
    parser.add_argument("--version", "-V", action="store_true", help="Show version and exit")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--user", required=True, help="User ID")
    common.add_argument("--tz", default=None, help="IANA timezone for day boundaries (default: UTC)")
    common.add_argument("--config", default=None, help="Path to cognition.yaml")
    common.add_argument("--log-level", default=None, help="Log level (default: INFO)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    state_parser = subparsers.add_parser("state", parents=[common], help="Show today's budget")
    state_parser.set_defaults(func=cmd_state)

    log_parser = subparsers.add_parser("log", parents=[common], help="Log an activity")
    log_parser.add_argument("--activity", required=True, help="Activity ID (e.g. deep_work)")
    log_parser.add_argument("--domain", default=None, help="work, health, social or learning")
    log_parser.add_argument(
        "--cost", type=float, default=None, help="Energy cost; negative restores"
    )
    log_parser.set_defaults(func=cmd_log)

    advise_parser = subparsers.add_parser(
        "advise", parents=[common], help="Check whether to start something in a domain"
    )
    advise_parser.add_argument("--domain", required=True, help="Domain to check")
    advise_parser.set_defaults(func=cmd_advise)

    forecast_parser = subparsers.add_parser(
        "forecast", parents=[common], help="Hourly energy forecast"
    )
    forecast_parser.add_argument("--date", default=None, help="Day to forecast (YYYY-MM-DD)")
    forecast_parser.set_defaults(func=cmd_forecast)

    suggest_parser = subparsers.add_parser(
        "suggest", parents=[common], help="Restorative activity suggestions"
    )
    suggest_parser.add_argument("--count", type=int, default=None, help="How many (default: 5)")
    suggest_parser.add_argument("--compact", action="store_true", help="Shorter list (3)")
    suggest_parser.add_argument("--seed", type=int, default=None, help="Seed for repeatable picks")
    suggest_parser.set_defaults(func=cmd_suggest)

    complete_parser = subparsers.add_parser(
        "complete", parents=[common], help="Mark a restorative activity as done"
    )
    complete_parser.add_argument("--activity", required=True, help="Catalog activity ID")
    complete_parser.set_defaults(func=cmd_complete)

    return parser


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"cogbudget {__version__}")
        return 0

    if not args.command:
        parser.print_help()
        return 0

    setup_logging(level=args.log_level)

    try:
        result = args.func(args)
    except CognitiveBudgetError as e:
        result = {"success": False, "error": str(e), "error_type": type(e).__name__}

    return _emit(result)


if __name__ == "__main__":
    sys.exit(main())
