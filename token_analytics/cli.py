"""
CLI: token-analytics <command> [args...]. Every command prints JSON to stdout.
"""

from __future__ import annotations

import argparse
import dataclasses
import enum
import json
import logging
import sys
from typing import Any, List, Optional

from ._version import __version__
from .core.errors import ConfigurationError, ProviderExhausted
from .metrics.comparison import decentralization_score
from .providers.base import ProviderResult
from .providers.defaults import create_token_data_service

logger = logging.getLogger(__name__)


def to_jsonable(obj: Any) -> Any:
    if isinstance(obj, ProviderResult):
        return {
            "source": obj.source.value,
            "cached": obj.cached,
            "synthetic": obj.is_synthetic,
            "data": to_jsonable(obj.data),
        }
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_jsonable(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, enum.Enum):
        return obj.value
    if isinstance(obj, dict):
        return {(k.value if isinstance(k, enum.Enum) else str(k)): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    return obj


def _print(payload: Any) -> None:
    print(json.dumps(to_jsonable(payload), indent=2, sort_keys=True))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="token-analytics",
        description="Token price, holder and decentralization data with provider fallback",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="logging level (default WARNING)",
    )
    sub = parser.add_subparsers(dest="command", help="command")

    p = sub.add_parser("price", help="current price")
    p.add_argument("token")

    p = sub.add_parser("history", help="daily price history")
    p.add_argument("token")
    p.add_argument("--days", type=int, default=90)

    p = sub.add_parser("holders", help="largest holders")
    p.add_argument("token")
    p.add_argument("--limit", type=int, default=100)
    p.add_argument("--cursor", default=None)

    p = sub.add_parser("metrics", help="distribution metrics and decentralization score")
    p.add_argument("token")

    p = sub.add_parser("batch", help="prices for several tokens")
    p.add_argument("tokens", nargs="+")

    p = sub.add_parser("tvl", help="protocol TVL")
    p.add_argument("token")

    sub.add_parser("summaries", help="summary row for every registry token")
    sub.add_parser("stats", help="cache statistics per provider")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        service = create_token_data_service(start_janitor=False)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    with service:
        try:
            cmd = args.command
            if cmd == "price":
                _print(service.get_token_price(args.token))
            elif cmd == "history":
                _print(service.get_price_history(args.token, args.days))
            elif cmd == "holders":
                _print(service.get_token_holders(args.token, args.limit, args.cursor))
            elif cmd == "metrics":
                result = service.get_token_metrics(args.token)
                payload = to_jsonable(result)
                payload["score"] = to_jsonable(decentralization_score(result.data.metrics))
                _print(payload)
            elif cmd == "batch":
                _print(service.get_batch_prices(args.tokens))
            elif cmd == "tvl":
                _print(service.get_token_tvl(args.token))
            elif cmd == "summaries":
                _print(service.get_all_token_summaries())
            elif cmd == "stats":
                _print({name: s.as_dict() for name, s in service.cache_stats().items()})
        except ProviderExhausted as exc:
            print(f"{exc.code}: {exc}", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
