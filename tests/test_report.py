"""
Tests for chart rendering and the PDF rent plan.
"""

import base64
import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from cli import RentToolInputs, compute_display_data
from leap import simulate
from report import budget_chart, impact_chart, rent_plan_pdf, save_rent_plan_pdf, trajectory_chart
from tax import SalaryProfile

PNG_MAGIC = b"\x89PNG"


def _display_data(**kwargs):
    inputs = RentToolInputs(profile=SalaryProfile(85_000, "NY", employee_401k_pct=5), **kwargs)
    return compute_display_data(inputs)


class TestCharts:

    def test_impact_chart_is_png(self):
        impacts = [{"years": 1, "impact": 1_200}, {"years": 10, "impact": -5_000}]
        assert base64.b64decode(impact_chart(impacts, "test")).startswith(PNG_MAGIC)

    def test_trajectory_chart_is_png(self):
        result = simulate(85_000, 3, True)
        png = trajectory_chart(result["trajectory"], result["cost_of_delay"])
        assert base64.b64decode(png).startswith(PNG_MAGIC)

    def test_budget_chart_is_png(self):
        png = budget_chart({"needs": 2_000, "wants": 1_200, "savings": 800})
        assert base64.b64decode(png).startswith(PNG_MAGIC)


class TestRentPlanPdf:

    def test_pdf_bytes(self):
        pdf = rent_plan_pdf(_display_data(city="NYC"), generated=date(2025, 6, 1))
        assert pdf.startswith(b"%PDF")
        assert len(pdf) > 1_000

    def test_without_upfront_or_market(self):
        inputs = RentToolInputs(profile=SalaryProfile(10_000, "CA", employee_401k_pct=100))
        assert rent_plan_pdf(compute_display_data(inputs)).startswith(b"%PDF")

    def test_save(self, tmp_path):
        path = save_rent_plan_pdf(_display_data(), str(tmp_path / "plan.pdf"))
        assert Path(path).read_bytes().startswith(b"%PDF")
