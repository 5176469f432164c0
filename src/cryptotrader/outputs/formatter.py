"""Plain-text tables for balances, pairs and trade results."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Sequence

from cryptotrader.models import Allocation, Ticker, TradeResult
from cryptotrader.rates.balances import total
from cryptotrader.utils.symbols import pair_involves

COLUMN_GAP = "  "


def _format_amount(value: Any, places: int = 8) -> str:
    if isinstance(value, (int, float)):
        return f"{value:,.{places}f}"
    return "-" if value is None else str(value)


def _format_money(value: Any) -> str:
    return _format_amount(value, 2)


def _format_percent(value: float) -> str:
    return f"{value * 100:+.2f}%"


def _table(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    left_columns: Sequence[int] = (0,),
) -> str:
    """Render ``rows`` under ``headers``; columns not in ``left_columns`` are right-aligned."""

    widths = [len(header) for header in headers]
    for row in rows:
        for idx, cell in enumerate(row):
            widths[idx] = max(widths[idx], len(cell))

    def render(cells: Sequence[str]) -> str:
        parts = []
        for idx, cell in enumerate(cells):
            if idx in left_columns:
                parts.append(cell.ljust(widths[idx]))
            else:
                parts.append(cell.rjust(widths[idx]))
        return COLUMN_GAP.join(parts).rstrip()

    lines = [render(headers), COLUMN_GAP.join("-" * width for width in widths)]
    lines.extend(render(row) for row in rows)
    return "\n".join(lines)


def format_balances(
    balances: Mapping[str, float],
    fiat_values: Mapping[str, float],
    fiat_currency: str,
    usd_values: Optional[Mapping[str, float]] = None,
) -> str:
    """Balances with their fiat (and optionally USD) value and a total row.

    Currencies missing from ``fiat_values`` could not be priced and show ``-``.
    """

    if not balances:
        return "No balances."

    headers = ["Coin", "Amount", fiat_currency]
    if usd_values is not None:
        headers.append("USD")

    ordered = sorted(balances, key=lambda currency: (-fiat_values.get(currency, 0.0), currency))
    rows: List[List[str]] = []
    for currency in ordered:
        row = [currency, _format_amount(balances[currency]), _format_money(fiat_values.get(currency))]
        if usd_values is not None:
            row.append(_format_money(usd_values.get(currency)))
        rows.append(row)

    total_row = ["TOTAL", "", _format_money(total(fiat_values))]
    if usd_values is not None:
        total_row.append(_format_money(total(usd_values)))
    rows.append(total_row)
    return _table(headers, rows)


def format_pairs(tickers: Mapping[str, Ticker], currencies: Optional[Iterable[str]] = None) -> str:
    """Pairs sorted by name, optionally only those involving ``currencies``."""

    wanted = [currency.upper() for currency in currencies or []]
    pairs = sorted(pair for pair in tickers if not wanted or pair_involves(pair, wanted))
    if not pairs:
        return "No matching pairs."

    rows = []
    for pair in pairs:
        ticker = tickers[pair]
        rows.append(
            [
                pair,
                _format_amount(ticker.last),
                _format_percent(ticker.percent_change),
                _format_amount(ticker.quote_volume, 2),
                "frozen" if ticker.is_frozen else "",
            ]
        )
    return _table(["Pair", "Last", "Change", "Volume", ""], rows, left_columns=(0, 4))


def format_allocation(allocation: Allocation, amount: float, source_currency: str) -> str:
    rows = [
        [currency, f"{weight * 100:.2f}%", _format_amount(amount * weight)]
        for currency, weight in allocation.items()
    ]
    return _table(["Coin", "Weight", source_currency], rows)


def format_results(results: Sequence[TradeResult]) -> str:
    """One line per leg: spent, received (or estimated) and the failure reason."""

    if not results:
        return "No trades."

    rows = []
    for result in results:
        rows.append(
            [
                result.target_currency,
                result.status.value.upper(),
                f"{_format_amount(result.source_amount)} {result.source_currency}",
                _format_amount(result.amount) if result.ok else "-",
                result.error or "",
            ]
        )
    return _table(["Coin", "Status", "Spent", "Received", "Error"], rows, left_columns=(0, 1, 4))


__all__ = ["format_balances", "format_pairs", "format_allocation", "format_results"]
