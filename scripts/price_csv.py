#!/usr/bin/env python
"""
Batch pricing - prices every row of a CSV file.

Usage:
    python scripts/price_csv.py prices.csv [priced.csv]
"""
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from vat_pricing.services.batch_service import price_csv


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(2)

    input_path = Path(sys.argv[1])
    output_path = Path(sys.argv[2]) if len(sys.argv) > 2 else input_path.with_name(f"{input_path.stem}_priced.csv")

    print("=" * 60)
    print("VAT PRICING BATCH")
    print("=" * 60)
    print()

    report = price_csv(input_path, output_path, verbose=True)

    if report["status"] != "success":
        print("\n❌ PRICING FAILED")
        for error in report["errors"]:
            print(f"  ERROR: {error}")
        sys.exit(1)

    print()
    print("Summary:")
    print(f"  Rows: {report['metrics']['rows']}")
    print(f"  Total exclusive (minor units): {report['metrics']['total_exclusive']}")
    print(f"  Total inclusive (minor units): {report['metrics']['total_inclusive']}")


if __name__ == "__main__":
    main()
