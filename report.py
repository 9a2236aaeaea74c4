"""
Chart rendering and the PDF rent plan.

Provides:
  - Base64-encoded chart images for web embedding
  - A one-page "Your Personal Rent Plan" PDF (rent_plan_pdf)
"""

from __future__ import annotations

import base64
import io
from datetime import date
from typing import Any, Dict, List, Optional

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.backends.backend_pdf import PdfPages
from matplotlib.ticker import FuncFormatter

import leap

# ═══════════════════════════════════════════════════════════════════
# Style constants
# ═══════════════════════════════════════════════════════════════════

BG = "#ffffff"
CARD = "#f7f7f4"
TEXT = "#111827"
TEXT2 = "#6b7280"
GREEN = "#3F6B42"
GREEN_LIGHT = "#a7c4a0"
RED = "#b91c1c"
SLATE = "#94a3b8"
BORDER = "#e5e7eb"

A4W, A4H = 8.27, 11.69
WEB_W, WEB_H = 9, 5


# ═══════════════════════════════════════════════════════════════════
# Axis formatters
# ═══════════════════════════════════════════════════════════════════

def _usd_fmt(x, _):
    if abs(x) >= 1e6:
        return f"${x / 1e6:.1f}M"
    if abs(x) >= 1e3:
        return f"${x / 1e3:.0f}k"
    return f"${x:.0f}"


USD_FMT = FuncFormatter(_usd_fmt)


def _usd(x: float) -> str:
    sign = "-" if x < 0 else ""
    return f"{sign}${abs(x):,.0f}"


def _style(fig, *axes):
    """Apply the light site theme to figure and all axes."""
    fig.patch.set_facecolor(BG)
    for ax in axes:
        ax.set_facecolor(CARD)
        ax.tick_params(colors=TEXT, labelsize=9)
        ax.xaxis.label.set_color(TEXT)
        ax.yaxis.label.set_color(TEXT)
        ax.title.set_color(TEXT)
        for spine in ax.spines.values():
            spine.set_color(BORDER)
        ax.grid(True, axis="y", alpha=0.4, color=BORDER)


def figure_to_base64(fig: plt.Figure) -> str:
    """Render a figure to a base64 PNG and close it."""
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=110, bbox_inches="tight", facecolor=fig.get_facecolor())
    plt.close(fig)
    return base64.b64encode(buf.getvalue()).decode("ascii")


# ═══════════════════════════════════════════════════════════════════
# Web charts
# ═══════════════════════════════════════════════════════════════════

def impact_chart(impacts: List[Dict[str, float]], title: str) -> str:
    """Bar chart of impact at each horizon. *impacts* are dicts with
    ``years`` and ``impact`` keys."""
    fig, ax = plt.subplots(figsize=(WEB_W, WEB_H))
    _style(fig, ax)

    labels = [f"{h['years']} yr" for h in impacts]
    values = [h["impact"] for h in impacts]
    colors = [GREEN if v >= 0 else RED for v in values]
    bars = ax.bar(labels, values, color=colors, width=0.55)
    for bar, v in zip(bars, values):
        ax.annotate(_usd(v), (bar.get_x() + bar.get_width() / 2, v),
                    ha="center", va="bottom" if v >= 0 else "top",
                    fontsize=10, color=TEXT, fontweight="bold")
    ax.axhline(0, color=SLATE, linewidth=0.8)
    ax.yaxis.set_major_formatter(USD_FMT)
    ax.set_title(title, fontsize=12, fontweight="bold")
    return figure_to_base64(fig)


def trajectory_chart(result: leap.TrajectoryResult, cost_of_delay: Optional[float] = None) -> str:
    """Baseline vs optimized 401(k) balance by year."""
    fig, ax = plt.subplots(figsize=(WEB_W, WEB_H))
    _style(fig, ax)

    x = result.year_labels
    ax.plot(x, result.baseline_by_year, color=SLATE, linewidth=2, label="Current path")
    ax.plot(x, result.optimized_by_year, color=GREEN, linewidth=2.4, label="With your Leap")
    ax.fill_between(x, result.baseline_by_year, result.optimized_by_year,
                    color=GREEN_LIGHT, alpha=0.35)

    ax.annotate(f"+{_usd(result.delta)}", (x[-1], result.optimized_end),
                ha="right", va="bottom", fontsize=10, color=GREEN, fontweight="bold")
    ax.set_xlabel("Years from today")
    ax.yaxis.set_major_formatter(USD_FMT)
    title = "Net worth trajectory"
    if cost_of_delay:
        title += f"  (waiting 12 months costs {_usd(cost_of_delay)})"
    ax.set_title(title, fontsize=12, fontweight="bold")
    ax.legend(loc="upper left", fontsize=9, facecolor=BG, edgecolor=BORDER)
    return figure_to_base64(fig)


def budget_chart(budget: Dict[str, float]) -> str:
    """Horizontal stacked bar for the 50/30/20 split."""
    fig, ax = plt.subplots(figsize=(WEB_W, 1.6))
    _style(fig, ax)
    ax.grid(False)

    left = 0.0
    parts = [("Needs", budget["needs"], GREEN), ("Wants", budget["wants"], GREEN_LIGHT),
             ("Savings", budget["savings"], SLATE)]
    for label, value, color in parts:
        if value <= 0:
            continue
        ax.barh([0], [value], left=left, color=color, height=0.6)
        ax.text(left + value / 2, 0, f"{label}\n{_usd(value)}", ha="center", va="center",
                fontsize=9, color=TEXT)
        left += value
    ax.set_yticks([])
    ax.xaxis.set_major_formatter(USD_FMT)
    return figure_to_base64(fig)


# ═══════════════════════════════════════════════════════════════════
# PDF rent plan
# ═══════════════════════════════════════════════════════════════════

def _page_rent_plan(d: Dict[str, Any], generated: date) -> plt.Figure:
    fig = plt.figure(figsize=(A4W, A4H))
    fig.patch.set_facecolor(BG)

    fig.text(0.08, 0.94, "Your Personal Rent Plan", fontsize=22, color=TEXT,
             fontweight="bold", family="serif")
    fig.text(0.08, 0.915, f"Generated on {generated.strftime('%B')} {generated.day}, {generated.year}",
             fontsize=10, color=TEXT2, family="serif")

    y = 0.86

    def heading(text):
        nonlocal y
        fig.text(0.08, y, text, fontsize=14, color=TEXT, fontweight="bold", family="serif")
        y -= 0.03

    def line(text, size=10.5, color=TEXT2, bold=False, indent=0.0):
        nonlocal y
        fig.text(0.08 + indent, y, text, fontsize=size, color=color,
                 fontweight="bold" if bold else "normal", family="serif")
        y -= 0.022

    heading("Your Real Monthly Take-Home")
    line(_usd(d["take_home_monthly"]), size=18, color=TEXT, bold=True)
    y -= 0.008
    line(f"{_usd(d['take_home_annual'])} annually")
    y -= 0.01

    t = d["tax"]
    line("Gross to Take-Home Breakdown", size=11, color=TEXT, bold=True)
    line(f"Gross annual income: {_usd(d['salary'])}", color=TEXT, indent=0.01)
    if d["k401_annual"] or d["hsa"]:
        line(f"Pretax 401(k) and HSA: -{_usd(d['k401_annual'] + d['hsa'])}", indent=0.01)
    line(f"Federal tax: -{_usd(t['federal'])}", indent=0.01)
    line(f"State tax: -{_usd(t['state'])}", indent=0.01)
    line(f"FICA (Social Security + Medicare): -{_usd(t['fica'])}", indent=0.01)
    line(f"Total taxes: -{_usd(t['total'])}", color=TEXT, bold=True, indent=0.01)
    y -= 0.025

    heading("Safe Rent Range")
    line(d["rent_formatted"], size=16, color=TEXT, bold=True)
    y -= 0.006
    debt = f" (adjusted for {_usd(d['debt'])}/mo debt)" if d["debt"] else ""
    line(f"Calculated as 28–35% of take-home pay{debt}.")
    m = d.get("market")
    if m:
        line(f"Market rents in {m['label']}: {_usd(m['low'])}–{_usd(m['high'])} ({m['comparison']})")
    y -= 0.025

    u = d.get("upfront")
    if u:
        heading("Upfront Cash Needed Before Your First Paycheck")
        line(f"{_usd(u['total_low'])}–{_usd(u['total_high'])}", size=16, color=TEXT, bold=True)
        y -= 0.006
        line(f"Deposit and first month's rent, {u['gap_days']} days of living costs, "
             f"{_usd(u['moving_setup'])} moving and setup.")
        y -= 0.025

    b = d["budget"]
    heading("Monthly Budget (50/30/20)")
    line(f"Needs: {_usd(b['needs'])}", color=TEXT, indent=0.01)
    line(f"Wants: {_usd(b['wants'])}", color=TEXT, indent=0.01)
    line(f"Savings: {_usd(b['savings'])}", color=TEXT, indent=0.01)
    y -= 0.025

    heading("Why It Matters")
    line(f"Staying in range instead of spending 40% on rent protects about "
         f"{_usd(d['protection_30yr'])} of net worth over 30 years.")

    fig.text(0.08, 0.05, "Estimates only. Not financial advice.", fontsize=8,
             color=TEXT2, family="serif")
    return fig


def rent_plan_pdf(d: Dict[str, Any], generated: Optional[date] = None) -> bytes:
    """Render the rent plan for display data *d* to PDF bytes."""
    buf = io.BytesIO()
    with PdfPages(buf) as pdf:
        fig = _page_rent_plan(d, generated or date.today())
        pdf.savefig(fig, facecolor=fig.get_facecolor())
        plt.close(fig)
    return buf.getvalue()


def save_rent_plan_pdf(d: Dict[str, Any], path: str) -> str:
    with open(path, "wb") as f:
        f.write(rent_plan_pdf(d))
    return path
