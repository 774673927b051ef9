"""
Runtime validators for untyped provider payloads.

Every validator returns Valid(data) with a typed record, or Invalid(errors)
listing every problem found. Required fields are strict and failures are
atomic (no partial record is ever returned as valid); optional fields are
lenient and become None when absent or mistyped.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Generic, Iterable, List, Mapping, Optional, Tuple, TypeVar, Union

from ..core.errors import ValidationError
from .base import Bar, HolderBalance, HoldersPage, PriceData, PricePoint, ProtocolTvl, TokenInfo

T = TypeVar("T")


@dataclass(frozen=True)
class Valid(Generic[T]):
    data: T
    valid: bool = True


@dataclass(frozen=True)
class Invalid:
    errors: Tuple[str, ...]
    valid: bool = False


ValidationResult = Union[Valid[T], Invalid]


def assert_valid(result: ValidationResult[T], source: str) -> T:
    """Unwrap a result, raising ValidationError if it is Invalid."""
    if isinstance(result, Invalid):
        raise ValidationError(result.errors, source)
    return result.data


# ---------------------------------------------------------------------------
# Primitive checks
# ---------------------------------------------------------------------------


def is_object(val: Any) -> bool:
    return isinstance(val, dict)


def is_array(val: Any) -> bool:
    return isinstance(val, list)


def is_string(val: Any) -> bool:
    return isinstance(val, str)


def is_finite_number(val: Any) -> bool:
    # bool is an int subclass; JSON true/false is never a number here
    if isinstance(val, bool) or not isinstance(val, (int, float)):
        return False
    return math.isfinite(val)


def _numeric(val: Any) -> Optional[float]:
    """Finite number, or a numeric string (Codex returns big balances as strings)."""
    if is_finite_number(val):
        return float(val)
    if is_string(val):
        try:
            parsed = float(val)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def _optional_number(val: Any) -> Optional[float]:
    return float(val) if is_finite_number(val) else None


def _optional_numeric(val: Any) -> Optional[float]:
    return _numeric(val) if val is not None else None


def _optional_string(val: Any) -> Optional[str]:
    return val if is_string(val) else None


def _pairs(points: Any) -> List[Tuple[float, float]]:
    """Lenient [timestamp, value] tuple extraction for optional series."""
    out: List[Tuple[float, float]] = []
    if not is_array(points):
        return out
    for p in points:
        if is_array(p) and len(p) >= 2 and is_finite_number(p[0]) and is_finite_number(p[1]):
            out.append((float(p[0]), float(p[1])))
    return out


# ---------------------------------------------------------------------------
# Generic holder records
# ---------------------------------------------------------------------------


def validate_holder_balance(data: Any) -> ValidationResult[HolderBalance]:
    if not is_object(data):
        return Invalid(("HolderBalance must be an object",))
    errors: List[str] = []
    if not is_string(data.get("address")):
        errors.append("address must be a string")
    balance = _numeric(data.get("balance"))
    if balance is None:
        errors.append("balance must be a finite number or numeric string")
    elif balance < 0:
        errors.append("balance must be >= 0")
    pct = data.get("percentOfSupply")
    if not is_finite_number(pct):
        errors.append("percentOfSupply must be a finite number")
    elif not 0 <= pct <= 100:
        errors.append("percentOfSupply must be within [0, 100]")
    if errors:
        return Invalid(tuple(errors))
    return Valid(HolderBalance(address=data["address"], balance=float(balance), percent_of_supply=float(pct)))


def validate_holder_stats(data: Any) -> ValidationResult[HoldersPage]:
    """A holder snapshot: {totalHolders, holders: [...], cursor?}."""
    if not is_object(data):
        return Invalid(("HolderStats must be an object",))
    errors: List[str] = []
    if not is_finite_number(data.get("totalHolders")):
        errors.append("totalHolders must be a finite number")
    if not is_array(data.get("holders")):
        errors.append("holders must be an array")
    if errors:
        return Invalid(tuple(errors))

    holders: List[HolderBalance] = []
    for i, item in enumerate(data["holders"]):
        result = validate_holder_balance(item)
        if isinstance(result, Invalid):
            errors.append(f"holders[{i}]: {', '.join(result.errors)}")
        else:
            holders.append(result.data)
    total_pct = sum(h.percent_of_supply for h in holders)
    if total_pct > 100 + 1e-6:
        errors.append(f"percentOfSupply sums to {total_pct:.6f} (> 100)")
    if errors:
        return Invalid(tuple(errors))
    return Valid(
        HoldersPage(
            count=int(data["totalHolders"]),
            holders=tuple(holders),
            cursor=_optional_string(data.get("cursor")),
        )
    )


# ---------------------------------------------------------------------------
# Codex (GraphQL)
# ---------------------------------------------------------------------------


def validate_codex_token_info(data: Any) -> ValidationResult[TokenInfo]:
    """`data` of a `token(input: ...)` query: {token: {address, holderCount, ...}}."""
    if not is_object(data):
        return Invalid(("Codex response must be an object",))
    token = data.get("token")
    if not is_object(token):
        return Invalid(("token must be an object",))
    errors: List[str] = []
    if not is_string(token.get("address")):
        errors.append("token.address must be a string")
    if not is_finite_number(token.get("holderCount")):
        errors.append("token.holderCount must be a finite number")
    if errors:
        return Invalid(tuple(errors))
    return Valid(
        TokenInfo(
            address=token["address"],
            name=_optional_string(token.get("name")),
            symbol=_optional_string(token.get("symbol")),
            total_supply=_optional_numeric(token.get("totalSupply")),
            holder_count=int(token["holderCount"]),
        )
    )


def validate_codex_holders(data: Any, total_supply: Optional[float] = None) -> ValidationResult[HoldersPage]:
    """`data` of a `holders(input: ...)` query: {holders: {items, count?, cursor?}}.

    Codex's percentOwned is relative to total supply. Items without it are
    filled from `total_supply` when known; a page-relative share is used only
    when no item on the page carries a percentage, so the two bases never mix.
    The normalized page then goes through validate_holder_stats, which checks
    each percentage and the page total.
    """
    if not is_object(data):
        return Invalid(("Codex response must be an object",))
    block = data.get("holders")
    if not is_object(block):
        return Invalid(("holders must be an object",))
    items = block.get("items")
    if not is_array(items):
        return Invalid(("holders.items must be an array",))

    errors: List[str] = []
    rows: List[Dict[str, Any]] = []
    for i, item in enumerate(items):
        if not is_object(item):
            errors.append(f"holders.items[{i}] must be an object")
            continue
        item_errors: List[str] = []
        address = item.get("address", item.get("walletAddress"))
        if not is_string(address):
            item_errors.append("address must be a string")
        balance = _numeric(item.get("balance"))
        if balance is None or balance < 0:
            item_errors.append("balance must be a non-negative numeric string")
        pct = item.get("percentOwned")
        if pct is not None:
            if not is_finite_number(pct):
                item_errors.append("percentOwned must be a finite number if present")
            elif not 0 <= pct <= 100:
                item_errors.append("percentOwned must be within [0, 100]")
        if item_errors:
            errors.append(f"holders.items[{i}]: {', '.join(item_errors)}")
            continue
        rows.append({"address": address, "balance": balance, "percentOfSupply": pct})
    if errors:
        return Invalid(tuple(errors))

    missing = [row for row in rows if row["percentOfSupply"] is None]
    if missing:
        if total_supply is not None and total_supply > 0:
            for row in missing:
                row["percentOfSupply"] = (row["balance"] / total_supply) * 100
        elif len(missing) == len(rows):
            page_total = sum(row["balance"] for row in rows)
            for row in rows:
                row["percentOfSupply"] = (row["balance"] / page_total) * 100 if page_total > 0 else 0.0
        else:
            return Invalid(("percentOwned missing on some items and total supply is unknown",))

    count = block.get("count")
    return validate_holder_stats(
        {
            "totalHolders": count if is_finite_number(count) else len(rows),
            "holders": rows,
            "cursor": block.get("cursor"),
        }
    )


def validate_codex_bars(data: Any) -> ValidationResult[List[Bar]]:
    """`data` of a `getBars` query. Codex returns parallel arrays {t, o, h, l, c, volume}."""
    if not is_object(data):
        return Invalid(("Codex response must be an object",))
    bars = data.get("getBars")
    if not is_object(bars):
        return Invalid(("getBars must be an object",))
    errors: List[str] = []
    for key in ("t", "o", "h", "l", "c"):
        if not is_array(bars.get(key)):
            errors.append(f"getBars.{key} must be an array")
    if errors:
        return Invalid(tuple(errors))
    lengths = {len(bars[k]) for k in ("t", "o", "h", "l", "c")}
    if len(lengths) != 1:
        return Invalid(("getBars arrays have mismatched lengths",))

    volumes = bars.get("volume") if is_array(bars.get("volume")) else []
    out: List[Bar] = []
    for i, ts in enumerate(bars["t"]):
        o, h, l, c = (_numeric(bars[k][i]) for k in ("o", "h", "l", "c"))
        # Codex emits null OHLC for empty buckets
        if not is_finite_number(ts) or None in (o, h, l, c):
            continue
        vol = _optional_numeric(volumes[i]) if i < len(volumes) else None
        out.append(Bar(timestamp=int(ts), open=o, high=h, low=l, close=c, volume=vol))
    return Valid(out)


# ---------------------------------------------------------------------------
# CoinGecko
# ---------------------------------------------------------------------------


def _coingecko_price_entry(entry: Mapping[str, Any], vs: str = "usd") -> Optional[PriceData]:
    price = entry.get(vs)
    if not is_finite_number(price):
        return None
    return PriceData(
        price=float(price),
        change_24h=_optional_number(entry.get(f"{vs}_24h_change")),
        volume_24h=_optional_number(entry.get(f"{vs}_24h_vol")),
        market_cap=_optional_number(entry.get(f"{vs}_market_cap")),
    )


def validate_coingecko_simple_price(data: Any, coin_id: str) -> ValidationResult[PriceData]:
    if not is_object(data):
        return Invalid(("CoinGecko simple price response must be an object",))
    entry = data.get(coin_id)
    if not is_object(entry):
        return Invalid((f"Token '{coin_id}' not found in response",))
    price = _coingecko_price_entry(entry)
    if price is None:
        return Invalid((f"{coin_id}.usd must be a finite number",))
    return Valid(price)


def validate_coingecko_batch_prices(data: Any) -> ValidationResult[Dict[str, PriceData]]:
    """Lenient per coin: entries without a usd price are dropped, not errors."""
    if not is_object(data):
        return Invalid(("CoinGecko simple price response must be an object",))
    out: Dict[str, PriceData] = {}
    for coin_id, entry in data.items():
        if is_object(entry):
            price = _coingecko_price_entry(entry)
            if price is not None:
                out[coin_id] = price
    return Valid(out)


def validate_coingecko_market_chart(data: Any) -> ValidationResult[List[PricePoint]]:
    if not is_object(data):
        return Invalid(("CoinGecko response must be an object",))
    if not is_array(data.get("prices")):
        return Invalid(("prices must be an array",))
    errors: List[str] = []
    prices: List[Tuple[float, float]] = []
    for i, point in enumerate(data["prices"]):
        if not is_array(point) or len(point) < 2:
            errors.append(f"prices[{i}] must be a [timestamp, value] tuple")
            continue
        if not is_finite_number(point[0]) or not is_finite_number(point[1]):
            errors.append(f"prices[{i}] contains invalid numbers")
            continue
        prices.append((float(point[0]), float(point[1])))
    if errors:
        return Invalid(tuple(errors))

    volumes = dict(_pairs(data.get("total_volumes")))
    caps = dict(_pairs(data.get("market_caps")))
    return Valid(
        [
            PricePoint(timestamp_ms=int(ts), price=price, volume=volumes.get(ts), market_cap=caps.get(ts))
            for ts, price in prices
        ]
    )


# ---------------------------------------------------------------------------
# DeFiLlama
# ---------------------------------------------------------------------------


def validate_defillama_prices(data: Any, keys: Iterable[str]) -> ValidationResult[Dict[str, PriceData]]:
    """{coins: {"solana:<mint>": {price, timestamp, confidence?}}}. Missing keys are simply absent."""
    if not is_object(data):
        return Invalid(("DeFiLlama response must be an object",))
    coins = data.get("coins")
    if not is_object(coins):
        return Invalid(("coins must be an object",))
    errors: List[str] = []
    out: Dict[str, PriceData] = {}
    for key in keys:
        entry = coins.get(key)
        if entry is None:
            continue
        if not is_object(entry) or not is_finite_number(entry.get("price")):
            errors.append(f"coins['{key}'].price must be a finite number")
            continue
        out[key] = PriceData(price=float(entry["price"]))
    if errors:
        return Invalid(tuple(errors))
    return Valid(out)


def validate_defillama_chart(data: Any, key: str) -> ValidationResult[List[PricePoint]]:
    """{coins: {key: {prices: [{timestamp (s), price}]}}}."""
    if not is_object(data):
        return Invalid(("DeFiLlama response must be an object",))
    coins = data.get("coins")
    if not is_object(coins):
        return Invalid(("coins must be an object",))
    entry = coins.get(key)
    if entry is None:
        return Valid([])
    if not is_object(entry) or not is_array(entry.get("prices")):
        return Invalid((f"coins['{key}'].prices must be an array",))
    errors: List[str] = []
    points: List[PricePoint] = []
    for i, p in enumerate(entry["prices"]):
        if not is_object(p) or not is_finite_number(p.get("timestamp")) or not is_finite_number(p.get("price")):
            errors.append(f"prices[{i}] must have numeric timestamp and price")
            continue
        points.append(PricePoint(timestamp_ms=int(p["timestamp"] * 1000), price=float(p["price"])))
    if errors:
        return Invalid(tuple(errors))
    return Valid(points)


def validate_defillama_protocol(data: Any) -> ValidationResult[ProtocolTvl]:
    """/protocol/{slug}: `tvl` is a time series there; currentChainTvls holds the latest per chain."""
    if not is_object(data):
        return Invalid(("DeFiLlama protocol response must be an object",))
    errors: List[str] = []
    if not is_string(data.get("name")):
        errors.append("name must be a string")
    chain_tvls: Dict[str, float] = {}
    raw_chains = data.get("currentChainTvls")
    if is_object(raw_chains):
        chain_tvls = {k: float(v) for k, v in raw_chains.items() if is_finite_number(v)}

    tvl = data.get("tvl")
    if is_finite_number(tvl):
        total = float(tvl)
    elif is_array(tvl) and tvl and is_object(tvl[-1]) and is_finite_number(tvl[-1].get("totalLiquidityUSD")):
        total = float(tvl[-1]["totalLiquidityUSD"])
    elif chain_tvls:
        total = sum(chain_tvls.values())
    else:
        errors.append("tvl must be a number or a non-empty series")
        total = 0.0
    if errors:
        return Invalid(tuple(errors))
    return Valid(ProtocolTvl(name=data["name"], tvl=total, chain_tvls=chain_tvls))
