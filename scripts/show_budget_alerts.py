#!/usr/bin/env python3
"""Show budgets in alert and suggested budgets for a user."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pocket_ledger.config import DEFAULT_USER, configure_logging
from pocket_ledger.db import LedgerStore
from pocket_ledger.formatting import format_currency, format_percentage
from pocket_ledger.services import BudgetService


def main(user_id: str = DEFAULT_USER, db_path: Optional[str] = None, suggest: bool = False) -> int:
    store = LedgerStore(db_path)
    store.init_db()
    service = BudgetService(store)

    result = service.get_alerts(user_id)
    if not result['success']:
        print('\n'.join(result['errors']))
        return 1

    stats = result['stats']
    if not stats['total_alerts']:
        print("No budgets in alert. ✅")
    else:
        print(f"Budgets in alert: {stats['total_alerts']}")
        for tier in ('exceeded', 'warning', 'caution'):
            for status in result[tier]:
                print(
                    f"  {status.alert_icon} {tier:<9} {status.category_name:<20} "
                    f"{format_percentage(status.usage.percentage):>7} of {format_currency(status.usage.limit)}"
                    f" (remaining {format_currency(status.usage.remaining)})"
                )

    if suggest:
        suggestions = service.suggest_budgets(user_id)
        if not suggestions['success']:
            print('\n'.join(suggestions['errors']))
            return 1
        print("\nSuggested budgets:")
        for item in suggestions['suggestions']:
            print(
                f"  {item['category_name']:<20} avg {format_currency(item['average_spending'])}"
                f" -> {format_currency(item['suggested_amount'])}  {item['message']}"
            )
        print(f"Total suggested: {format_currency(suggestions['summary']['total_suggested'])}")
    return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Show budget alerts for a user.')
    parser.add_argument('--user', default=DEFAULT_USER, help='User id to inspect')
    parser.add_argument('--db', default=None, help='Path to the SQLite database')
    parser.add_argument('--suggest', action='store_true', help='Also print suggested budgets')
    args = parser.parse_args()
    configure_logging()
    sys.exit(main(user_id=args.user, db_path=args.db, suggest=args.suggest))
