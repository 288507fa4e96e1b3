"""
pdf_generator.py — Finanz-Navigator PDF report.

Builds the unlocked financial report using reportlab PLATYPUS.
Output is a BytesIO buffer (no temp file on disk).

Entry point:
    generate_financial_report(profile, report) -> BytesIO

buffer.seek(0) is called after doc.build(story): reportlab leaves the position
at the end, and a StreamingResponse would otherwise send 0 bytes.

PDF sections:
  1. Header (title, date, short session id)
  2. Overall score callout, tinted with its traffic-light colour
  3. Domain score table, one traffic-light cell per domain
  4. Top action areas
  5. Recommendations
  6. Module results (only the modules that have run)
  7. Disclaimer footer (8pt)
"""
from __future__ import annotations

import datetime
import logging
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib.colors import HexColor, black, white
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import (
    KeepTogether,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from finanznavigator.profile.schemas import (
    FinancingResult,
    PensionResult,
    Profile,
    RiskResult,
    TrafficLight,
)
from finanznavigator.scoring.report import Priority, Report
from finanznavigator.scoring.traffic_light import traffic_light_color

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Colour constants
# ---------------------------------------------------------------------------

GREY_LIGHT = HexColor("#F2F2F2")   # table headers
ACCENT_HEX = "#D70F21"             # high-priority marker

_LIGHT_LABELS = {
    TrafficLight.green: "Good",
    TrafficLight.yellow: "Watch",
    TrafficLight.red: "Act now",
}


def _eur(value: float) -> str:
    return f"€{value:,.0f}"


def _pct(value: float, digits: int = 1) -> str:
    return f"{value * 100:.{digits}f} %"


def _key_value_table(rows: list[list[str]]) -> Table:
    t = Table(rows, colWidths=[100 * mm, 70 * mm])
    t.setStyle(TableStyle([
        ("GRID", (0, 0), (-1, -1), 0.5, black),
        ("ALIGN", (1, 0), (1, -1), "RIGHT"),
        ("TOPPADDING", (0, 0), (-1, -1), 3),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
        ("LEFTPADDING", (0, 0), (0, -1), 6),
    ]))
    return t


# ---------------------------------------------------------------------------
# Private section builders
# ---------------------------------------------------------------------------

def _build_score_table(report: Report) -> Table:
    """Domain | Score | Status, the status cell filled with the traffic-light colour."""
    scores = report.scores
    domains = [
        ("Liquidity", scores.liquidity),
        ("Wealth", scores.wealth),
        ("Protection", scores.protection),
        ("Retirement", scores.retirement),
        ("Financing", scores.debt),
    ]
    data = [["Domain", "Score", "Status"]]
    style_cmds = [
        ("BACKGROUND", (0, 0), (-1, 0), GREY_LIGHT),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("GRID", (0, 0), (-1, -1), 0.5, black),
        ("ALIGN", (1, 0), (-1, -1), "CENTER"),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ]
    for row, (label, score) in enumerate(domains, start=1):
        data.append([label, str(score), ""])
        style_cmds.append(("BACKGROUND", (2, row), (2, row), HexColor(traffic_light_color(score))))

    t = Table(data, colWidths=[90 * mm, 40 * mm, 40 * mm])
    t.setStyle(TableStyle(style_cmds))
    return t


def _build_pension_table(result: PensionResult) -> Table:
    return _key_value_table([
        ["Desired pension (monthly)", _eur(result.desired_pension_monthly)],
        ["Estimated statutory pension", _eur(result.estimated_statutory_pension_monthly)],
        ["Pension gap (monthly)", _eur(result.gap_monthly)],
        ["Capital needed", _eur(result.capital_needed)],
        [f"Saving needed at {_pct(result.scenario_a.return_pa)} return", _eur(result.scenario_a.required_pmt)],
        [f"Saving needed at {_pct(result.scenario_b.return_pa)} return", _eur(result.scenario_b.required_pmt)],
        ["Assessment", _LIGHT_LABELS[result.assessment]],
    ])


def _build_financing_table(result: FinancingResult) -> Table:
    return _key_value_table([
        ["Purchase price", _eur(result.purchase_price)],
        ["Closing costs", _eur(result.ancillary_costs.total)],
        ["Loan amount", _eur(result.loan_amount)],
        ["Loan-to-value", _pct(result.ltv)],
        [f"Instalment at {_pct(result.scenario_a.interest_pa, 2)}", _eur(result.scenario_a.payment_monthly)],
        [f"Instalment at {_pct(result.scenario_b.interest_pa, 2)}", _eur(result.scenario_b.payment_monthly)],
        ["Debt service ratio (primary)", _pct(result.scenario_a.dsti)],
        ["Assessment", _LIGHT_LABELS[result.assessment]],
    ])


def _build_risk_table(result: RiskResult) -> Table:
    return _key_value_table([
        ["Monthly costs", _eur(result.monthly_burn)],
        ["Liquid reserves", _eur(result.liquid_reserves)],
        ["Runway", f"{result.runway_months:g} months"],
        [f"Need for a {result.shock_months}-month income loss", _eur(result.total_shock_need)],
        ["Gap to safety", _eur(result.gap_to_safety)],
        ["Assessment", _LIGHT_LABELS[result.assessment]],
    ])


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def generate_financial_report(profile: Profile, report: Report) -> BytesIO:
    """
    Generate the formatted Finanz-Navigator PDF report.

    Args:
        profile: Profile (lead name for the greeting).
        report: Report from scoring.report.build_report().

    Returns:
        BytesIO buffer at position 0, ready for StreamingResponse.
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=20 * mm,
        rightMargin=20 * mm,
        topMargin=20 * mm,
        bottomMargin=20 * mm,
    )

    styles = getSampleStyleSheet()
    story = []

    # -----------------------------------------------------------------------
    # 1. Header block
    # -----------------------------------------------------------------------

    title_style = ParagraphStyle(
        "report_title",
        parent=styles["Heading1"],
        fontSize=18,
        fontName="Helvetica-Bold",
    )
    story.append(Paragraph("Finanz-Navigator — Financial Report", title_style))
    story.append(Spacer(1, 2 * mm))
    if profile.lead.name:
        story.append(Paragraph(f"Prepared for {escape(profile.lead.name)}", styles["Normal"]))
    story.append(
        Paragraph(
            f"{datetime.date.today().strftime('%d %B %Y')} | ID: {report.session_id[:8]}",
            styles["Normal"],
        )
    )
    story.append(Spacer(1, 6 * mm))

    # -----------------------------------------------------------------------
    # 2. Overall score callout
    # -----------------------------------------------------------------------

    callout_style = ParagraphStyle(
        "callout",
        parent=styles["Normal"],
        fontSize=14,
        fontName="Helvetica-Bold",
        textColor=white,
    )
    callout_table = Table(
        [[Paragraph(
            f"Financial health score: {report.scores.overall} / 100 "
            f"({_LIGHT_LABELS[report.overall_traffic_light]})",
            callout_style,
        )]],
        colWidths=[170 * mm],
    )
    callout_table.setStyle(
        TableStyle([
            ("BACKGROUND", (0, 0), (-1, -1), HexColor(report.overall_color)),
            ("TOPPADDING", (0, 0), (-1, -1), 10),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 10),
            ("LEFTPADDING", (0, 0), (-1, -1), 12),
        ])
    )
    story.append(callout_table)
    story.append(Spacer(1, 8 * mm))

    # -----------------------------------------------------------------------
    # 3. Domain scores
    # -----------------------------------------------------------------------

    score_heading = Paragraph("Your Five Domains", styles["Heading2"])
    story.append(KeepTogether([score_heading, Spacer(1, 2 * mm), _build_score_table(report)]))
    story.append(Spacer(1, 6 * mm))

    # -----------------------------------------------------------------------
    # 4. Action areas
    # -----------------------------------------------------------------------

    story.append(Paragraph("Top Action Areas", styles["Heading2"]))
    for idx, area in enumerate(report.action_areas, start=1):
        story.append(Paragraph(
            f"<b>{idx}. {area.label}</b> ({area.score}/100): {area.reason}",
            styles["Normal"],
        ))
    story.append(Spacer(1, 6 * mm))

    # -----------------------------------------------------------------------
    # 5. Recommendations (only if non-empty)
    # -----------------------------------------------------------------------

    if report.recommendations:
        story.append(Paragraph("Recommended Next Steps", styles["Heading2"]))
        for rec in report.recommendations:
            marker = f' <font color="{ACCENT_HEX}">[important]</font>' if rec.priority == Priority.high else ""
            story.append(Paragraph(f"• <b>{rec.title}</b>{marker}: {rec.description}", styles["Normal"]))
        story.append(Spacer(1, 6 * mm))

    # -----------------------------------------------------------------------
    # 6. Module results
    # -----------------------------------------------------------------------

    sections = [
        ("Pension Check", report.module_results.pension, _build_pension_table),
        ("Financing Check", report.module_results.financing, _build_financing_table),
        ("Risk Stress Test", report.module_results.risk, _build_risk_table),
    ]
    for heading, result, builder in sections:
        if result is None:
            continue
        story.append(KeepTogether([
            Paragraph(heading, styles["Heading2"]),
            Paragraph(result.generated_summary, styles["Normal"]),
            Spacer(1, 2 * mm),
            builder(result),
        ]))
        story.append(Spacer(1, 6 * mm))

    # -----------------------------------------------------------------------
    # 7. Disclaimer
    # -----------------------------------------------------------------------

    disclaimer_style = ParagraphStyle(
        "disclaimer",
        parent=styles["Normal"],
        fontSize=8,
        textColor=black,
    )
    story.append(Spacer(1, 10 * mm))
    story.append(
        Paragraph(
            "This report is a simplified self-assessment based on your own answers and "
            "general assumptions. It is not investment, tax or legal advice.",
            disclaimer_style,
        )
    )

    doc.build(story)
    buffer.seek(0)

    logger.info(
        "PDF report generated session_id=%s modules=%d",
        report.session_id,
        sum(1 for _, result, _ in sections if result is not None),
    )
    return buffer
