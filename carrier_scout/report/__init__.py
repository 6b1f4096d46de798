"""carrier_scout.report: CSV и список URL для результатов запуска."""

from __future__ import annotations

from carrier_scout.report.csv_report import output_paths, render_csv, render_urls, write_result

__all__ = ["render_csv", "render_urls", "output_paths", "write_result"]
