import argparse
import asyncio
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from treasury_fx.computation import CurrencyConverter
from treasury_fx.providers import ExchangeRateError, TreasuryRatesClient


async def main():
    parser = argparse.ArgumentParser(description="Convert a USD purchase using Treasury rates")
    parser.add_argument("--date", "-d", type=str, required=True, help="Purchase date in YYYY-MM-DD format")
    parser.add_argument("--amount", "-a", type=str, required=True, help="Amount in USD, e.g. 100.50")
    parser.add_argument("--currency", "-c", type=str, required=True, help="Country-currency label, e.g. Canada-Dollar")
    args = parser.parse_args()

    transaction_date = date.fromisoformat(args.date)
    amount_usd = Decimal(args.amount)

    async with TreasuryRatesClient() as client:
        converter = CurrencyConverter(client)
        try:
            result = await converter.convert(transaction_date, amount_usd, args.currency)
        except ExchangeRateError as e:
            print(f"{e.error_type}: {e.message}")
            return 1

    print(f"Purchase date: {result.transaction_date.isoformat()}")
    print(f"Amount (USD): {result.original_amount_usd}")
    print(f"Currency: {result.target_currency}")
    print(f"Rate: {result.exchange_rate} (recorded {result.exchange_rate_date.isoformat()})")
    print(f"Exact date match: {result.is_exact_date_match}")
    print(f"Converted amount: {result.converted_amount}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
