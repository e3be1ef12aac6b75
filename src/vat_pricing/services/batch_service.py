"""
Batch Service - Prices a table of rows and exports modification ledgers.

Each input row describes one price:
    base      amount in minor units (required)
    currency  ISO code (optional, settings.default_currency)
    units     units count (optional, 1)
    vat       VAT percentage (optional)
    discount  fixed discount in minor units, applied after VAT (optional)
    tax       fixed tax in minor units, applied before VAT (optional)
"""
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from ..config.settings import Settings, get_settings
from ..engine.money import Money
from ..engine.price import Price

OUTPUT_COLUMNS = ['exclusive', 'inclusive', 'vat_amount']


def _present(value) -> bool:
    return value is not None and not (isinstance(value, float) and pd.isna(value)) and str(value).strip() != ''


def price_from_row(row: dict, settings: Settings) -> Price:
    """Build a Price from one table row."""
    if not _present(row.get('base')):
        raise ValueError("Row is missing the 'base' amount")

    currency = row.get('currency') if _present(row.get('currency')) else settings.default_currency
    units = row.get('units') if _present(row.get('units')) else 1

    price = Price.of_minor(int(row['base']), str(currency), units, settings)

    if _present(row.get('tax')):
        price.add_tax(Money.of_minor(int(row['tax']), price.currency()), 'tax', True)

    if _present(row.get('discount')):
        amount = Money.of_minor(-abs(int(row['discount'])), price.currency())
        price.add_discount(amount, 'discount')

    if _present(row.get('vat')):
        price.set_vat(row['vat'])

    return price


def price_frame(df: pd.DataFrame, settings: Optional[Settings] = None, verbose: bool = False) -> pd.DataFrame:
    """
    Price every row of ``df``.

    Returns a copy of ``df`` with exclusive, inclusive and vat_amount columns
    (minor units, units-multiplied).
    """
    settings = settings or get_settings()
    result = df.copy()

    exclusive, inclusive, vat_amount = [], [], []
    for index, row in enumerate(df.to_dict(orient='records')):
        try:
            price = price_from_row(row, settings)
        except ValueError as e:
            raise ValueError(f"Row {index}: {e}") from e

        vat = price.vat()
        exclusive.append(price.exclusive().minor_amount)
        inclusive.append(price.inclusive().minor_amount)
        vat_amount.append(vat.minor_amount if vat is not None else 0)

    result['exclusive'] = pd.Series(exclusive, index=df.index, dtype='int64')
    result['inclusive'] = pd.Series(inclusive, index=df.index, dtype='int64')
    result['vat_amount'] = pd.Series(vat_amount, index=df.index, dtype='int64')

    if verbose:
        print(f"Priced {len(result)} rows: exclusive {int(result['exclusive'].sum())}, "
              f"inclusive {int(result['inclusive'].sum())}")

    return result


def price_csv(input_path: Path, output_path: Path, settings: Optional[Settings] = None, verbose: bool = True) -> dict:
    """
    Price a CSV file and write the priced table next to it.

    Returns:
        Report dictionary
    """
    report = {
        "timestamp": datetime.now().isoformat(),
        "status": "pending",
        "input": str(input_path),
        "output": str(output_path),
        "metrics": {},
        "errors": [],
    }

    if not input_path.exists():
        msg = f"ERROR: {input_path} not found."
        report["errors"].append(msg)
        report["status"] = "failed"
        if verbose:
            print(msg)
        return report

    df = pd.read_csv(input_path, dtype={'currency': str})

    try:
        priced = price_frame(df, settings, verbose=verbose)
    except ValueError as e:
        msg = f"ERROR: Failed to price {input_path}. {e}"
        report["errors"].append(msg)
        report["status"] = "failed"
        if verbose:
            print(msg)
        return report

    output_path.parent.mkdir(parents=True, exist_ok=True)
    priced.to_csv(output_path, index=False)

    report["metrics"] = {
        "rows": len(priced),
        "total_exclusive": int(priced['exclusive'].sum()),
        "total_inclusive": int(priced['inclusive'].sum()),
    }
    report["status"] = "success"

    if verbose:
        print(f"Priced table saved to: {output_path}")

    return report


def modifications_frame(price: Price) -> pd.DataFrame:
    """Modification ledger of ``price`` as a DataFrame (amounts in minor units)."""
    rows = [record.to_dict() for record in price.modifications()]
    return pd.DataFrame(rows, columns=['type', 'key', 'amount', 'currency'])
