"""
Listing transforms - Turn raw publication, TV and broadcast TV listings into
display rows priced for one viewer.

The priced transforms take the viewer's resolved rule list (None = no
factor assigned) and run each row's raw rate through one shared
PriceCalculator. Listicle rows keep their quoted prices.
"""
import json
import logging
import math
from pathlib import Path
from typing import Any, Optional, Sequence

import pandas as pd

from ..engine.models import PricingRule, TraceHook
from ..engine.price_calculator import PriceCalculator

logger = logging.getLogger(__name__)


def parse_raw_price(value: Any) -> float:
    """
    Parse a raw rate such as "$1,200" or 1200.

    Returns NaN when the value cannot be read as a number.
    """
    if value is None:
        return math.nan
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)

    text = str(value).replace('$', '').replace(',', '').strip()
    if not text:
        return math.nan
    try:
        return float(text)
    except ValueError:
        return math.nan


def format_display_price(price: Optional[float]) -> Any:
    """Absent prices are shown as an empty string."""
    if price is None:
        return ""
    return int(price) if float(price).is_integer() else price


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value)


def _names(entries: Optional[list]) -> str:
    return ", ".join(e.get('name', '') for e in (entries or []) if isinstance(e, dict))


def _asset_ref(container: Optional[dict]) -> str:
    if not isinstance(container, dict):
        return ""
    asset = container.get('asset') or {}
    return asset.get('_ref', '') if isinstance(asset, dict) else ""


def load_publications(path: Path) -> list[dict]:
    """Read the publications JSON export; items live under 'result'."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    items = data.get('result') if isinstance(data, dict) else None
    if not isinstance(items, list):
        raise ValueError("Invalid data format: 'result' not found.")
    return items


def load_csv_listing(path: Path) -> pd.DataFrame:
    """Read a TV listing CSV with every column as text."""
    df = pd.read_csv(path, dtype=str, skip_blank_lines=True, keep_default_na=False)
    df.columns = [c.strip() for c in df.columns]
    return df


def transform_publications(items: Sequence[dict], rules: Optional[Sequence[PricingRule]],
                           on_step: Optional[TraceHook] = None) -> list[dict]:
    """Price publication items; the raw rate is the first defaultPrice entry."""
    calculator = PriceCalculator(rules, on_step=on_step)
    rows = []

    for item in items:
        default_prices = item.get('defaultPrice') or []
        raw_price = default_prices[0] if default_prices else None
        price = calculator.calculate(parse_raw_price(raw_price))
        if price is None:
            logger.debug(f"Invalid price for '{item.get('name', '')}': {raw_price!r}")

        rows.append({
            'name': item.get('name') or '',
            'price': format_display_price(price),
            'do_follow': item.get('do_follow') if item.get('do_follow') is not None else '',
            'estimated_time': item.get('estimated_time') if item.get('estimated_time') is not None else '',
            'genres': _names(item.get('genres')),
            'regions': _names(item.get('regions')),
            'url': item.get('url') or '',
            'example': _asset_ref(item.get('articlePreview')),
            'logo': _asset_ref(item.get('logo')),
        })

    logger.info(f"Priced {len(rows)} publications ({'custom factor' if rules is not None else 'default pricing'})")
    return rows


def _price_column(frame: pd.DataFrame, column: str, calculator: PriceCalculator) -> pd.Series:
    if column not in frame.columns:
        return pd.Series([""] * len(frame), index=frame.index, dtype=object)
    return frame[column].map(lambda raw: format_display_price(calculator.calculate(parse_raw_price(raw))))


def transform_television(frame: pd.DataFrame, rules: Optional[Sequence[PricingRule]],
                         on_step: Optional[TraceHook] = None) -> list[dict]:
    """Price TV station rows from the 'Rate' column."""
    calculator = PriceCalculator(rules, on_step=on_step)
    frame = frame.fillna('')

    def col(name: str) -> pd.Series:
        if name in frame.columns:
            return frame[name].map(_text)
        return pd.Series([""] * len(frame), index=frame.index, dtype=object)

    out = pd.DataFrame({
        'name': col('Program Name'),
        'Affiliate': col('Affiliate'),
        'State': col('State'),
        'call': col('Calls'),
        'market': col('Market'),
        'location': col('Location'),
        'time': col('Time'),
        'price': _price_column(frame, 'Rate', calculator),
    }, index=frame.index)

    logger.info(f"Priced {len(out)} television rows")
    return out.to_dict(orient='records')


def transform_broadcast_television(frame: pd.DataFrame, rules: Optional[Sequence[PricingRule]],
                                   on_step: Optional[TraceHook] = None) -> list[dict]:
    """Price broadcast TV slots from the 'Rate' column."""
    calculator = PriceCalculator(rules, on_step=on_step)
    frame = frame.fillna('')

    def col(name: str) -> pd.Series:
        if name in frame.columns:
            return frame[name].map(_text)
        return pd.Series([""] * len(frame), index=frame.index, dtype=object)

    out = pd.DataFrame({
        'CallSign': col('Call Sign'),
        'station': col('Station'),
        'rate': _price_column(frame, 'Rate', calculator),
        'tat': col('TAT'),
        'sponsored': col('Sponsored'),
        'indexed': col('Indexed'),
        # Source header is misspelled in the export
        'SegmentLength': col('Segement Length'),
        'location': col('Location'),
        'ProgramName': col('Program Name'),
        'InterviewType': col('Interview Type'),
        'Example': col('Example'),
    }, index=frame.index)

    logger.info(f"Priced {len(out)} broadcast television rows")
    return out.to_dict(orient='records')


def _format_amount(value: Any) -> str:
    """Thousands-grouped amount with at most three decimals, e.g. 3000 -> "3,000"."""
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return _text(value)
    return f"{value:,.3f}".rstrip('0').rstrip('.')


def transform_listicles(items: Sequence[dict]) -> list[dict]:
    """
    Rows for publications that sell listicle placements.

    Listicle prices are quoted as-is; no pricing factor applies. Items
    without a non-empty 'listicles' list are skipped.
    """
    rows = []
    for item in items:
        listicles = item.get('listicles')
        if not isinstance(listicles, list) or not listicles:
            continue

        price = ", ".join(
            f"{option.get('name', '')}: {_format_amount(option.get('price'))}"
            for option in listicles if isinstance(option, dict)
        )
        rows.append({
            'name': item.get('name') or '',
            'price': price,
            'do_follow': item.get('do_follow') if item.get('do_follow') is not None else '',
            'estimated_time': item.get('estimated_time') if item.get('estimated_time') is not None else '',
            'genres': _names(item.get('genres')),
            'regions': _names(item.get('regions')),
            'url': item.get('url') or '',
            'logo': _asset_ref(item.get('logo')),
        })

    logger.info(f"Processed {len(rows)} items with listicles out of {len(items)} total items")
    return rows
