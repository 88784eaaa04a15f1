"""Report aggregation over transaction DataFrames.

:class:`ReportAggregator` receives the already-fetched transactions of
one user, one row per :class:`~pocket_ledger.models.TransactionWithCategory`,
and builds the report bundles shown in the dashboard and exported to
disk. All grouping happens in pandas; nothing here talks to storage.

Every percentage-of-total guards its denominator and yields ``0`` for
an empty one.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from .exceptions import InvalidArgumentError
from .formatting import DateLike, month_label, parse_date
from .models import Report, TransactionWithCategory

logger = logging.getLogger(__name__)

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
TOP_PERIODS = ("today", "week", "month", "year", "custom")
MONTH_THIRDS = (("early", 1, 10), ("mid", 11, 20), ("late", 21, 31))

EVOLUTION_TREND_BAND = 10.0
CATEGORY_TREND_BAND = 5.0
INCOME_EXPENSE_INSIGHT_BAND = 10.0
BALANCE_INSIGHT_BAND = 15.0
CATEGORY_TRANSACTION_LIMIT = 100


def percentage(part: float, total: float) -> float:
    """``part / total * 100``, or 0 when ``total`` is zero."""
    if not total:
        return 0.0
    return float(part) / float(total) * 100


def variation(current: float, prior: float) -> float:
    """Percentage change from ``prior``; 0 unless ``prior`` is positive."""
    return (current - prior) / prior * 100 if prior > 0 else 0.0


def balance_variation(current: float, prior: float) -> float:
    """Percentage change of a signed balance, relative to ``|prior|``."""
    return (current - prior) / abs(prior) * 100 if prior != 0 else 0.0


def validate_month(year: int, month: int) -> None:
    if not 1 <= int(month) <= 12:
        raise InvalidArgumentError("Month must be between 1 and 12")
    if not 2000 <= int(year) <= 2100:
        raise InvalidArgumentError("Year must be between 2000 and 2100")


def validate_months_back(months_back: int, low: int, high: int) -> None:
    if not low <= int(months_back) <= high:
        raise InvalidArgumentError(f"months_back must be between {low} and {high}")


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    start = date(year, month, 1)
    end = (pd.Timestamp(start) + pd.offsets.MonthEnd(0)).date()
    return start, end


def resolve_period(
    period: str,
    now: date,
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
) -> Tuple[date, date]:
    """Date window for a named period. Weeks start on Monday."""
    if period == "today":
        return now, now
    if period == "week":
        monday = now - timedelta(days=now.weekday())
        return monday, monday + timedelta(days=6)
    if period == "month":
        return month_bounds(now.year, now.month)
    if period == "year":
        return date(now.year, 1, 1), date(now.year, 12, 31)
    if period == "custom":
        if start is None or end is None:
            raise InvalidArgumentError("Start and end dates are required for a custom period")
        start_d, end_d = parse_date(start), parse_date(end)
        if end_d < start_d:
            raise InvalidArgumentError("End date must not be before start date")
        return start_d, end_d
    raise InvalidArgumentError(f"Invalid period: {period}. Use one of {', '.join(TOP_PERIODS)}")


def _records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    out = df.copy()
    out["date"] = out["date"].dt.date.map(lambda d: d.isoformat())
    out = out.replace({np.nan: None})
    return out.to_dict("records")


def summarize_transactions(df: pd.DataFrame) -> Dict[str, Any]:
    """Per-type totals, counts and averages of a transaction frame."""
    income = df.loc[df["type"] == "income", "amount"]
    expense = df.loc[df["type"] == "expense", "amount"]
    total_income = float(income.sum())
    total_expense = float(expense.sum())
    return {
        "total_income": total_income,
        "total_expense": total_expense,
        "balance": total_income - total_expense,
        "income_count": int(income.count()),
        "expense_count": int(expense.count()),
        "transaction_count": int(len(df)),
        "average_income": total_income / len(income) if len(income) else 0.0,
        "average_expense": total_expense / len(expense) if len(expense) else 0.0,
    }


def _ticket_stats(amounts: pd.Series) -> Dict[str, float]:
    if amounts.empty:
        return {"count": 0, "total": 0.0, "average": 0.0, "min": 0.0, "max": 0.0, "median": 0.0}
    return {
        "count": int(amounts.count()),
        "total": float(amounts.sum()),
        "average": float(amounts.mean()),
        "min": float(amounts.min()),
        "max": float(amounts.max()),
        "median": float(amounts.median()),
    }


class ReportAggregator:
    """Build report bundles from one user's transactions.

    Args:
        data: DataFrame with the ``TransactionWithCategory`` columns
        user_id: Owner recorded in each report
        now: Reference date for trailing windows; defaults to today
    """

    def __init__(self, data: pd.DataFrame, user_id: Optional[str] = None, now: Optional[DateLike] = None):
        self.user_id = user_id
        self.now = parse_date(now) if now is not None else date.today()
        self.data = self._prepare(data)

    @staticmethod
    def _prepare(data: Optional[pd.DataFrame]) -> pd.DataFrame:
        if data is None or data.empty:
            frame = pd.DataFrame(columns=TransactionWithCategory.COLUMNS)
        else:
            frame = data.copy()
            for column in TransactionWithCategory.COLUMNS:
                if column not in frame.columns:
                    frame[column] = None
        frame["date"] = pd.to_datetime(frame["date"])
        frame["amount"] = pd.to_numeric(frame["amount"], errors="coerce").fillna(0.0).astype(float)
        return frame

    def _between(self, start: date, end: date, df: Optional[pd.DataFrame] = None) -> pd.DataFrame:
        source = self.data if df is None else df
        mask = (source["date"] >= pd.Timestamp(start)) & (source["date"] < pd.Timestamp(end) + pd.Timedelta(days=1))
        return source[mask]

    def _report(self, report_type: str, period: Dict[str, Any], data: Dict[str, Any], summary: Dict[str, Any]) -> Report:
        logger.debug("Built %s report for user %s", report_type, self.user_id)
        return Report(type=report_type, period=period, data=data, summary=summary, user_id=self.user_id)

    def _month_window(self, months: int, include_current: bool = True) -> pd.PeriodIndex:
        current = pd.Timestamp(self.now).to_period("M")
        last = current if include_current else current - 1
        return pd.period_range(end=last, periods=months, freq="M")

    # ------------------------------------------------------------------
    # Monthly
    # ------------------------------------------------------------------
    def monthly_report(self, year: int, month: int) -> Report:
        """Income, expenses, categories and daily statistics for one month."""
        validate_month(year, month)
        start, end = month_bounds(year, month)
        df = self._between(start, end)

        expenses = df[df["type"] == "expense"]
        total_expense = float(expenses["amount"].sum())
        distribution = []
        if not expenses.empty:
            grouped = (
                expenses.groupby(["category_id", "category_name"], dropna=False)
                .agg(total=("amount", "sum"), count=("amount", "count"),
                     icon=("category_icon", "first"), color=("category_color", "first"))
                .reset_index()
                .sort_values("total", ascending=False)
            )
            for row in grouped.itertuples(index=False):
                distribution.append({
                    "category_id": row.category_id,
                    "category_name": row.category_name,
                    "icon": None if pd.isna(row.icon) else row.icon,
                    "color": None if pd.isna(row.color) else row.color,
                    "total": float(row.total),
                    "count": int(row.count),
                    "percentage": percentage(row.total, total_expense),
                })

        data = {
            "transactions": _records(df.sort_values(["date", "id"], ascending=False)),
            "category_distribution": distribution,
            "daily_stats": self._daily_stats(df, end.day),
        }
        period = {
            "year": year,
            "month": month,
            "start": start.isoformat(),
            "end": end.isoformat(),
            "label": month_label(year, month),
        }
        return self._report("monthly", period, data, summarize_transactions(df))

    @staticmethod
    def _daily_stats(df: pd.DataFrame, days_in_month: int) -> Dict[str, Any]:
        daily = (
            df.assign(day=df["date"].dt.date)
            .pivot_table(index="day", columns="type", values="amount", aggfunc="sum", fill_value=0.0)
            if not df.empty else pd.DataFrame()
        )
        daily = daily.reindex(columns=["income", "expense"], fill_value=0.0)
        daily_data = [
            {"date": day.isoformat(), "income": float(row["income"]), "expense": float(row["expense"])}
            for day, row in daily.sort_index().iterrows()
        ]
        spend = daily["expense"][daily["expense"] > 0]
        max_day = min_day = None
        if not spend.empty:
            max_day = {"date": spend.idxmax().isoformat(), "amount": float(spend.max())}
            min_day = {"date": spend.idxmin().isoformat(), "amount": float(spend.min())}
        return {
            "daily_data": daily_data,
            "total_days_in_month": days_in_month,
            "days_with_expenses": int(spend.count()),
            "average_daily": float(spend.mean()) if not spend.empty else 0.0,
            "max_expense_day": max_day,
            "min_expense_day": min_day,
        }

    # ------------------------------------------------------------------
    # Evolution
    # ------------------------------------------------------------------
    def _monthly_buckets(self, months: pd.PeriodIndex, df: Optional[pd.DataFrame] = None) -> pd.DataFrame:
        source = self.data if df is None else df
        frame = source.assign(period=source["date"].dt.to_period("M"))
        frame = frame[frame["period"].isin(months)]
        sums = frame.pivot_table(index="period", columns="type", values="amount", aggfunc="sum", fill_value=0.0) \
            if not frame.empty else pd.DataFrame()
        counts = frame.pivot_table(index="period", columns="type", values="amount", aggfunc="count", fill_value=0) \
            if not frame.empty else pd.DataFrame()
        sums = sums.reindex(index=months, columns=["income", "expense"], fill_value=0.0).fillna(0.0)
        counts = counts.reindex(index=months, columns=["income", "expense"], fill_value=0).fillna(0)
        buckets = pd.DataFrame({
            "income": sums["income"].astype(float),
            "expense": sums["expense"].astype(float),
            "income_count": counts["income"].astype(int),
            "expense_count": counts["expense"].astype(int),
        }, index=months)
        buckets["balance"] = buckets["income"] - buckets["expense"]
        buckets["total_count"] = buckets["income_count"] + buckets["expense_count"]
        return buckets

    @staticmethod
    def _bucket_records(buckets: pd.DataFrame) -> List[Dict[str, Any]]:
        records = []
        for period, row in buckets.iterrows():
            records.append({
                "month": str(period),
                "label": month_label(period.year, period.month),
                "year": int(period.year),
                "month_number": int(period.month),
                "income": float(row["income"]),
                "expense": float(row["expense"]),
                "balance": float(row["balance"]),
                "income_count": int(row["income_count"]),
                "expense_count": int(row["expense_count"]),
                "total_count": int(row["total_count"]),
            })
        return records

    def evolution_report(self, months_back: int = 12) -> Report:
        """Zero-filled monthly series over the trailing ``months_back`` months."""
        validate_months_back(months_back, 3, 24)
        months = self._month_window(months_back)
        buckets = self._monthly_buckets(months)
        monthly_data = self._bucket_records(buckets)

        total_income = float(buckets["income"].sum())
        total_expense = float(buckets["expense"].sum())
        with_data = buckets[buckets["total_count"] > 0]
        best = worst = None
        if not with_data.empty:
            best_period = with_data["balance"].idxmax()
            worst_period = with_data["balance"].idxmin()
            best = {"month": str(best_period), "label": month_label(best_period.year, best_period.month),
                    "balance": float(with_data.loc[best_period, "balance"])}
            worst = {"month": str(worst_period), "label": month_label(worst_period.year, worst_period.month),
                     "balance": float(with_data.loc[worst_period, "balance"])}

        summary = {
            "total_income": total_income,
            "total_expense": total_expense,
            "total_balance": total_income - total_expense,
            "average_monthly_income": total_income / months_back,
            "average_monthly_expense": total_expense / months_back,
            "average_monthly_balance": (total_income - total_expense) / months_back,
            "best_month": best,
            "worst_month": worst,
            "months_analyzed": months_back,
            "months_with_data": int(len(with_data)),
        }
        period = {
            "start": months[0].start_time.date().isoformat(),
            "end": self.now.isoformat(),
            "months_back": months_back,
            "label": f"Last {months_back} months",
        }
        data = {"monthly_data": monthly_data, "trend": self.evolution_trend(buckets["balance"].tolist(), buckets.index)}
        return self._report("evolution", period, data, summary)

    @staticmethod
    def evolution_trend(balances: List[float], months: Optional[pd.PeriodIndex] = None) -> Dict[str, Any]:
        """Compare the mean balance of the first half of a series with the rest.

        ``variation`` is relative to the absolute first-half mean, so a
        move from -200 to +50 is +125%.
        """
        half = len(balances) // 2
        first = balances[:half]
        second = balances[half:]
        first_avg = float(np.mean(first)) if first else 0.0
        second_avg = float(np.mean(second)) if second else 0.0
        change = (second_avg - first_avg) / abs(first_avg) * 100 if first_avg != 0 else 0.0
        if change > EVOLUTION_TREND_BAND:
            trend = "growing"
        elif change < -EVOLUTION_TREND_BAND:
            trend = "declining"
        else:
            trend = "stable"

        accumulated = np.cumsum(balances).tolist() if balances else []
        labels = [str(p) for p in months] if months is not None else list(range(len(balances)))
        return {
            "type": trend,
            "variation": change,
            "first_half_average": first_avg,
            "second_half_average": second_avg,
            "accumulated_data": [
                {"month": label, "accumulated": float(value)} for label, value in zip(labels, accumulated)
            ],
            "final_accumulated": float(accumulated[-1]) if accumulated else 0.0,
        }

    # ------------------------------------------------------------------
    # Comparative
    # ------------------------------------------------------------------
    def comparative_report(self, year1: int, month1: int, year2: int, month2: int) -> Report:
        """Compare two calendar months; differences are second minus first."""
        validate_month(year1, month1)
        validate_month(year2, month2)
        start1, end1 = month_bounds(year1, month1)
        start2, end2 = month_bounds(year2, month2)
        df1 = self._between(start1, end1)
        df2 = self._between(start2, end2)
        summary1 = summarize_transactions(df1)
        summary2 = summarize_transactions(df2)

        comparison = {
            "income_diff": summary2["total_income"] - summary1["total_income"],
            "expense_diff": summary2["total_expense"] - summary1["total_expense"],
            "balance_diff": summary2["balance"] - summary1["balance"],
            "income_variation_percent": variation(summary2["total_income"], summary1["total_income"]),
            "expense_variation_percent": variation(summary2["total_expense"], summary1["total_expense"]),
            "balance_variation_percent": balance_variation(summary2["balance"], summary1["balance"]),
            "transaction_count_diff": summary2["transaction_count"] - summary1["transaction_count"],
        }
        data = {
            "summary1": summary1,
            "summary2": summary2,
            "comparison": comparison,
            "category_comparison": self._category_comparison(df1, df2),
            "insights": self.comparison_insights(comparison),
        }
        period = {
            "period1": {"year": year1, "month": month1, "start": start1.isoformat(), "end": end1.isoformat(),
                        "label": month_label(year1, month1)},
            "period2": {"year": year2, "month": month2, "start": start2.isoformat(), "end": end2.isoformat(),
                        "label": month_label(year2, month2)},
        }
        summary = {
            "period1_total": summary1["balance"],
            "period2_total": summary2["balance"],
            "difference": comparison["balance_diff"],
            "variation_percentage": comparison["balance_variation_percent"],
        }
        return self._report("comparative", period, data, summary)

    @staticmethod
    def _category_totals(df: pd.DataFrame) -> pd.DataFrame:
        expenses = df[df["type"] == "expense"]
        return (
            expenses.groupby("category_id")
            .agg(category_name=("category_name", "first"), icon=("category_icon", "first"), total=("amount", "sum"))
        )

    def _category_comparison(self, df1: pd.DataFrame, df2: pd.DataFrame) -> List[Dict[str, Any]]:
        first = self._category_totals(df1)
        second = self._category_totals(df2)
        joined = first.join(second, how="outer", lsuffix="_1", rsuffix="_2")
        if joined.empty:
            return []
        rows = []
        for category_id, row in joined.iterrows():
            total1 = 0.0 if pd.isna(row["total_1"]) else float(row["total_1"])
            total2 = 0.0 if pd.isna(row["total_2"]) else float(row["total_2"])
            name = row["category_name_1"] if not pd.isna(row["category_name_1"]) else row["category_name_2"]
            icon = row["icon_1"] if not pd.isna(row["icon_1"]) else row["icon_2"]
            rows.append({
                "category_id": category_id,
                "category_name": name,
                "icon": None if pd.isna(icon) else icon,
                "period1_total": total1,
                "period2_total": total2,
                "difference": total2 - total1,
                "variation_percent": variation(total2, total1),
            })
        rows.sort(key=lambda r: abs(r["difference"]), reverse=True)
        return rows

    @staticmethod
    def comparison_insights(comparison: Dict[str, float]) -> List[Dict[str, str]]:
        insights = []
        income_var = comparison["income_variation_percent"]
        if abs(income_var) > INCOME_EXPENSE_INSIGHT_BAND:
            up = comparison["income_diff"] > 0
            insights.append({
                "type": "income",
                "severity": "positive" if up else "negative",
                "message": f"Income {'increased' if up else 'decreased'} {abs(income_var):.1f}%",
            })
        expense_var = comparison["expense_variation_percent"]
        if abs(expense_var) > INCOME_EXPENSE_INSIGHT_BAND:
            up = comparison["expense_diff"] > 0
            insights.append({
                "type": "expense",
                "severity": "negative" if up else "positive",
                "message": f"Expenses {'increased' if up else 'decreased'} {abs(expense_var):.1f}%",
            })
        balance_var = comparison["balance_variation_percent"]
        if abs(balance_var) > BALANCE_INSIGHT_BAND:
            up = comparison["balance_diff"] > 0
            insights.append({
                "type": "balance",
                "severity": "positive" if up else "negative",
                "message": f"Balance {'improved' if up else 'worsened'} significantly ({abs(balance_var):.1f}%)",
            })
        return insights

    # ------------------------------------------------------------------
    # Pattern
    # ------------------------------------------------------------------
    def pattern_report(self, months_back: int = 6) -> Report:
        """Weekday, category, ticket size and time-of-month habits."""
        validate_months_back(months_back, 1, 24)
        start = (pd.Timestamp(self.now).to_period("M") - months_back).start_time.date()
        end = self.now
        df = self._between(start, end)

        summary = summarize_transactions(df)
        active_days = int(df["date"].dt.normalize().nunique())
        total_days = (end - start).days + 1
        summary_out = {
            "total_transactions": summary["transaction_count"],
            "active_days": active_days,
            "total_days": total_days,
            "activity_rate": percentage(active_days, total_days),
            "average_transactions_per_day": summary["transaction_count"] / active_days if active_days else 0.0,
            "total_income": summary["total_income"],
            "total_expenses": summary["total_expense"],
            "balance": summary["balance"],
        }
        data = {
            "day_of_week_pattern": self._day_of_week(df),
            "category_frequency": self._category_frequency(df),
            "ticket_analysis": {
                kind: _ticket_stats(df.loc[df["type"] == kind, "amount"]) for kind in ("income", "expense")
            },
            "time_pattern": self._month_thirds(df),
        }
        period = {
            "start": start.isoformat(),
            "end": end.isoformat(),
            "months_back": months_back,
            "label": f"Last {months_back} months",
        }
        return self._report("pattern", period, data, summary_out)

    @staticmethod
    def _day_of_week(df: pd.DataFrame) -> Dict[str, Any]:
        # pandas counts Monday as 0; reports count Sunday as 0
        dow = (df["date"].dt.dayofweek + 1) % 7
        days = []
        for number, name in enumerate(DAY_NAMES):
            rows = df[dow == number]
            expense = rows.loc[rows["type"] == "expense", "amount"]
            days.append({
                "day_of_week": number,
                "day_name": name,
                "count": int(len(rows)),
                "total_expense": float(expense.sum()),
                "total_income": float(rows.loc[rows["type"] == "income", "amount"].sum()),
                "average_expense": float(expense.mean()) if not expense.empty else 0.0,
            })
        spending_days = [d for d in days if d["total_expense"] > 0]
        top = max(spending_days, key=lambda d: d["total_expense"]) if spending_days else None
        return {"days": days, "max_expense_day": top}

    @staticmethod
    def _category_frequency(df: pd.DataFrame) -> List[Dict[str, Any]]:
        if df.empty:
            return []
        grouped = (
            df.groupby(["category_id", "category_name", "type"])
            .agg(count=("amount", "count"), total=("amount", "sum"), icon=("category_icon", "first"))
            .reset_index()
            .sort_values(["count", "total"], ascending=False)
        )
        total_count = len(df)
        return [
            {
                "category_id": row.category_id,
                "category_name": row.category_name,
                "type": row.type,
                "icon": None if pd.isna(row.icon) else row.icon,
                "count": int(row.count),
                "total": float(row.total),
                "average": float(row.total) / int(row.count),
                "frequency_percent": percentage(row.count, total_count),
            }
            for row in grouped.itertuples(index=False)
        ]

    @staticmethod
    def _month_thirds(df: pd.DataFrame) -> Dict[str, Dict[str, Any]]:
        day = df["date"].dt.day
        result = {}
        for name, first, last in MONTH_THIRDS:
            rows = df[(day >= first) & (day <= last)]
            income = rows.loc[rows["type"] == "income", "amount"]
            expense = rows.loc[rows["type"] == "expense", "amount"]
            result[name] = {
                "days": f"{first}-{last}" if last < 31 else f"{first}+",
                "income": float(income.sum()),
                "expense": float(expense.sum()),
                "income_count": int(income.count()),
                "expense_count": int(expense.count()),
                "count": int(len(rows)),
            }
        return result

    # ------------------------------------------------------------------
    # Top transactions
    # ------------------------------------------------------------------
    def top_report(
        self,
        period: str = "month",
        limit: int = 10,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
    ) -> Report:
        """Largest ``limit`` transactions of each type within a period."""
        if not 1 <= int(limit) <= 50:
            raise InvalidArgumentError("limit must be between 1 and 50")
        start_d, end_d = resolve_period(period, self.now, start, end)
        df = self._between(start_d, end_d)

        data: Dict[str, Any] = {}
        summary: Dict[str, Any] = {}
        for kind in ("income", "expense"):
            rows = df[df["type"] == kind]
            type_total = float(rows["amount"].sum())
            top = rows.sort_values(["amount", "date"], ascending=False).head(int(limit))
            entries = _records(top)
            for entry in entries:
                entry["percentage"] = percentage(entry["amount"], type_total)
            data[kind] = entries
            summary[kind] = {
                "count": int(len(rows)),
                "total": type_total,
                "average": type_total / len(rows) if len(rows) else 0.0,
                "top_total": float(top["amount"].sum()),
                "top_share": percentage(top["amount"].sum(), type_total),
            }
        period_info = {
            "type": period,
            "start": start_d.isoformat(),
            "end": end_d.isoformat(),
            "limit": int(limit),
        }
        return self._report("top", period_info, data, summary)

    # ------------------------------------------------------------------
    # Category
    # ------------------------------------------------------------------
    def category_report(self, category_id: int, months_back: int = 6) -> Report:
        """History of one category over the trailing ``months_back`` months."""
        validate_months_back(months_back, 1, 24)
        rows = self.data[self.data["category_id"] == category_id]
        months = self._month_window(months_back)
        start = months[0].start_time.date()
        window = self._between(start, self.now, rows)
        amounts = window["amount"]

        buckets = self._monthly_buckets(months, rows)
        evolution = [
            {
                "month": str(p),
                "label": month_label(p.year, p.month),
                "total": float(row["income"] + row["expense"]),
                "count": int(row["total_count"]),
                "average": float(row["income"] + row["expense"]) / int(row["total_count"]) if row["total_count"] else 0.0,
            }
            for p, row in buckets.iterrows()
        ]

        name = rows["category_name"].iloc[0] if not rows.empty else None
        summary = {
            "category_id": category_id,
            "category_name": name,
            "count": int(amounts.count()),
            "total": float(amounts.sum()),
            "average": float(amounts.mean()) if not amounts.empty else 0.0,
            "min": float(amounts.min()) if not amounts.empty else 0.0,
            "max": float(amounts.max()) if not amounts.empty else 0.0,
        }
        data = {
            "transactions": _records(
                window.sort_values(["date", "id"], ascending=False).head(CATEGORY_TRANSACTION_LIMIT)
            ),
            "monthly_evolution": evolution,
            "recent_trend": self._recent_trend(rows),
        }
        period = {
            "start": start.isoformat(),
            "end": self.now.isoformat(),
            "months_back": months_back,
            "label": f"Last {months_back} months",
        }
        return self._report("category", period, data, summary)

    def _recent_trend(self, rows: pd.DataFrame) -> Dict[str, Any]:
        """Last three months (current included) against the three before."""
        current = pd.Timestamp(self.now).to_period("M")
        periods = rows["date"].dt.to_period("M")
        recent = rows[(periods > current - 3) & (periods <= current)]["amount"]
        previous = rows[(periods > current - 6) & (periods <= current - 3)]["amount"]
        recent_total = float(recent.sum())
        previous_total = float(previous.sum())
        change = variation(recent_total, previous_total)
        if change > CATEGORY_TREND_BAND:
            trend = "increasing"
        elif change < -CATEGORY_TREND_BAND:
            trend = "decreasing"
        else:
            trend = "stable"
        return {
            "recent": {"total": recent_total, "count": int(recent.count()),
                       "average": recent_total / recent.count() if recent.count() else 0.0},
            "previous": {"total": previous_total, "count": int(previous.count()),
                         "average": previous_total / previous.count() if previous.count() else 0.0},
            "variation": change,
            "trend": trend,
        }

    # ------------------------------------------------------------------
    # Dashboard overview
    # ------------------------------------------------------------------
    def dashboard_overview(self, top_categories: int = 5, trend_months: int = 6) -> Report:
        """Current month against the previous one, plus a short trend."""
        current = pd.Timestamp(self.now).to_period("M")
        previous = current - 1
        cur_df = self._between(*month_bounds(current.year, current.month))
        prev_df = self._between(*month_bounds(previous.year, previous.month))
        cur = summarize_transactions(cur_df)
        prev = summarize_transactions(prev_df)
        overall = summarize_transactions(self.data)

        expenses = cur_df[cur_df["type"] == "expense"]
        top = (
            expenses.groupby(["category_id", "category_name"])["amount"].sum()
            .sort_values(ascending=False).head(top_categories)
        ) if not expenses.empty else pd.Series(dtype=float)
        top_list = [
            {"category_id": cid, "category_name": cname, "total": float(total),
             "percentage": percentage(total, cur["total_expense"])}
            for (cid, cname), total in top.items()
        ]

        buckets = self._monthly_buckets(self._month_window(trend_months))
        data = {
            "current_month": cur,
            "previous_month": prev,
            "income_variation": variation(cur["total_income"], prev["total_income"]),
            "expense_variation": variation(cur["total_expense"], prev["total_expense"]),
            "top_expense_categories": top_list,
            "monthly_trend": self._bucket_records(buckets),
            "recent_transactions": _records(self.data.sort_values(["date", "id"], ascending=False).head(5)),
        }
        summary = {
            "balance": overall["balance"],
            "month_balance": cur["balance"],
            "month_income": cur["total_income"],
            "month_expense": cur["total_expense"],
        }
        period = {"year": current.year, "month": current.month, "label": month_label(current.year, current.month)}
        return self._report("overview", period, data, summary)
