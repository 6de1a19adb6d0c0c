"""Reports package."""

from bizflow.reports.generator import ReportGenerator, month_range, period_range

__all__ = ["ReportGenerator", "month_range", "period_range"]
