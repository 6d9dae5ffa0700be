#!/usr/bin/env python3
"""
Run a seeded autopilot campaign and write its debrief documents:
- Campaign Debrief (.docx)
- Day-by-Day Log (.xlsx)
"""

from docx import Document
from docx.shared import Pt, RGBColor
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml.ns import qn
from docx.oxml import OxmlElement
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from openpyxl.utils import get_column_letter
import argparse
import logging
import os
import random

from derelict_watch import GameEngine, ModuleRegistry
from derelict_watch.simulation import Autopilot, MetricsCollector, CampaignEvaluator

OUTPUT_DIR = "reports"

logger = logging.getLogger("create_campaign_report")


def set_cell_shading(cell, color):
    """Set cell background color."""
    shading = OxmlElement('w:shd')
    shading.set(qn('w:fill'), color)
    cell._tc.get_or_add_tcPr().append(shading)


def add_formatted_table(doc, headers, rows, header_color="1F4E79"):
    """Add a formatted table with header styling."""
    table = doc.add_table(rows=1, cols=len(headers))
    table.style = 'Table Grid'

    header_cells = table.rows[0].cells
    for i, header in enumerate(headers):
        header_cells[i].text = header
        header_cells[i].paragraphs[0].runs[0].bold = True
        header_cells[i].paragraphs[0].runs[0].font.color.rgb = RGBColor(255, 255, 255)
        set_cell_shading(header_cells[i], header_color)

    for row_data in rows:
        row = table.add_row()
        for i, cell_data in enumerate(row_data):
            row.cells[i].text = str(cell_data)

    return table


def run_campaign(seed, days, generated_roster=False):
    """
    Play an autopilot campaign.

    Returns:
        (engine, metrics, autopilot) after the run.
    """
    rng = random.Random(seed)
    modules = ModuleRegistry.generate(rng) if generated_roster else None
    engine = GameEngine(rng=rng, modules=modules)

    metrics = MetricsCollector()
    metrics.attach(engine)

    autopilot = Autopilot(engine)
    autopilot.run(days)
    return engine, metrics, autopilot


def create_debrief(engine, metrics, autopilot, output_path):
    """Write the campaign debrief Word document."""
    doc = Document()

    style = doc.styles['Normal']
    style.font.name = 'Calibri'
    style.font.size = Pt(11)

    # ========== TITLE ==========
    title = doc.add_heading('DERELICT WATCH', 0)
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER

    subtitle = doc.add_paragraph('Campaign Debrief')
    subtitle.alignment = WD_ALIGN_PARAGRAPH.CENTER
    subtitle.runs[0].font.size = Pt(18)
    subtitle.runs[0].bold = True

    final = engine.get_final_report()
    summary = final["session_summary"]

    outcome = doc.add_paragraph()
    outcome.alignment = WD_ALIGN_PARAGRAPH.CENTER
    if summary["is_game_over"]:
        run = outcome.add_run(f"Lost on day {summary['days_survived']}: {summary['game_over_reason']}")
        run.font.color.rgb = RGBColor(0xC0, 0x00, 0x00)
    else:
        run = outcome.add_run(f"Station held for {summary['days_survived']} days")
        run.font.color.rgb = RGBColor(0x00, 0x80, 0x00)
    run.bold = True

    # ========== STATUS ==========
    doc.add_heading('Final Station Status', level=1)
    add_formatted_table(doc, ['Measure', 'Value'], [
        ('Station Integrity', f"{summary['station_integrity']}%"),
        ('Reactor Health', f"{summary['reactor_health']}%"),
        ('Hydration', f"{summary['hydration']}%"),
        ('Modules Discovered', f"{summary['modules_discovered']}/{summary['modules_total']}"),
        ('Threat Points', final["threat"]["total_threat"]),
        ('Issues Resolved', final["issues_resolved"]),
    ])

    # ========== RESOURCES ==========
    doc.add_heading('Resource Flow', level=1)
    add_formatted_table(doc, ['Resource', 'Final', 'Gained', 'Spent'], [
        (kind, totals["final_level"], totals["total_credited"], totals["total_deducted"])
        for kind, totals in final["resource_totals"].items()
    ])

    # ========== METRICS ==========
    doc.add_heading('Campaign Metrics', level=1)
    for key, value in metrics.get_summary().items():
        if isinstance(value, float):
            value = f"{value:.2f}"
        doc.add_paragraph(f"{key.replace('_', ' ').title()}: {value}", style='List Bullet')

    doc.add_heading('Autopilot Decisions', level=1)
    stats = autopilot.get_statistics()
    doc.add_paragraph(
        f"{stats['total_decisions']} decisions, "
        f"{stats['success_rate'] * 100:.1f}% applied."
    )
    if stats["by_action"]:
        add_formatted_table(doc, ['Action', 'Applied'], sorted(stats["by_action"].items()))

    # ========== EVALUATION ==========
    doc.add_heading('Evaluation', level=1)
    evaluation = CampaignEvaluator(metrics).evaluate()
    add_formatted_table(doc, ['Criterion', 'Requirement', 'Achieved', 'Status'], [
        (name.replace('_', ' ').title(), c["requirement"], c["achieved"],
         "PASS" if c["passed"] else "FAIL")
        for name, c in evaluation["criteria"].items()
    ])

    # ========== MORNING REPORTS ==========
    doc.add_heading('Morning Reports', level=1)
    for report in engine.morning_reports:
        doc.add_heading(f"Day {report.day}", level=2)
        doc.add_paragraph(
            f"Station damage {report.station_damage}, reactor damage {report.reactor_damage}, "
            f"threat level {report.threat_level}, {report.aliens_neutralized} aliens neutralized."
        )
        note = doc.add_paragraph(report.observation)
        note.runs[0].italic = True
        if report.data_corrupted:
            note.runs[0].font.color.rgb = RGBColor(0xC0, 0x00, 0x00)

    doc.save(output_path)
    logger.info(f"Debrief saved to {output_path}")


def create_day_log(metrics, output_path):
    """Write the day-by-day Excel workbook."""
    wb = Workbook()

    header_fill = PatternFill(start_color="1F4E79", end_color="1F4E79", fill_type="solid")
    header_font = Font(bold=True, color="FFFFFF")
    warning_fill = PatternFill(start_color="FFEB9C", end_color="FFEB9C", fill_type="solid")
    danger_fill = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")
    thin_border = Border(
        left=Side(style='thin'), right=Side(style='thin'),
        top=Side(style='thin'), bottom=Side(style='thin')
    )

    # ===== SHEET 1: Day Log =====
    ws1 = wb.active
    ws1.title = "Day Log"

    ws1['A1'] = "DERELICT WATCH - DAY-BY-DAY LOG"
    ws1['A1'].font = Font(bold=True, size=14)

    headers = ['Day', 'AP Budget', 'Actions', 'Integrity', 'Station Dmg', 'Reactor',
               'Reactor Dmg', 'Tier', 'Coolant', 'Hydration', 'Water', 'Threat Lvl',
               'Threat TP', 'Issues', 'Defenses', 'Aliens']
    for col, header in enumerate(headers, 1):
        cell = ws1.cell(row=3, column=col, value=header)
        cell.fill = header_fill
        cell.font = header_font
        cell.border = thin_border
        cell.alignment = Alignment(horizontal='center')

    for row, day in enumerate(metrics.day_history, 4):
        values = [
            day.day, day.action_points_budget, day.actions_taken, day.station_integrity,
            day.station_damage, day.reactor_health, day.reactor_damage, day.reactor_tier,
            day.coolant_used, day.hydration, day.water, day.threat_level, day.total_threat,
            day.active_issues, day.defenses_active, day.aliens_neutralized,
        ]
        for col, value in enumerate(values, 1):
            cell = ws1.cell(row=row, column=col, value=value)
            cell.border = thin_border

        if day.reactor_health < 25 or day.station_integrity < 25:
            fill = danger_fill
        elif day.uncooled_heat > 0 or day.hydration < 80:
            fill = warning_fill
        else:
            fill = None
        if fill:
            for col in range(1, len(headers) + 1):
                ws1.cell(row=row, column=col).fill = fill

    for col in range(1, len(headers) + 1):
        ws1.column_dimensions[get_column_letter(col)].width = 12

    # ===== SHEET 2: Resources =====
    ws2 = wb.create_sheet("Resources")
    ws2['A1'] = "RESOURCE LEVELS AT END OF EACH NIGHT"
    ws2['A1'].font = Font(bold=True, size=14)

    kinds = list(metrics.day_history[0].resources) if metrics.day_history else []
    for col, header in enumerate(['Day'] + kinds, 1):
        cell = ws2.cell(row=3, column=col, value=header)
        cell.fill = header_fill
        cell.font = header_font
        cell.border = thin_border

    for row, day in enumerate(metrics.day_history, 4):
        ws2.cell(row=row, column=1, value=day.day).border = thin_border
        for col, kind in enumerate(kinds, 2):
            ws2.cell(row=row, column=col, value=day.resources.get(kind, 0)).border = thin_border

    wb.save(output_path)
    logger.info(f"Day log saved to {output_path}")


# ============================================================================
# MAIN
# ============================================================================
if __name__ == '__main__':
    parser = argparse.ArgumentParser(description="Run an autopilot campaign and write reports")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--days", type=int, default=15)
    parser.add_argument("--generated-roster", action="store_true",
                        help="use a procedurally generated station roster")
    parser.add_argument("--output-dir", default=OUTPUT_DIR)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    os.makedirs(args.output_dir, exist_ok=True)

    print("=" * 60)
    print(f"Campaign: seed {args.seed}, up to {args.days} days")
    print("=" * 60)
    engine, metrics, autopilot = run_campaign(args.seed, args.days, args.generated_roster)

    create_debrief(engine, metrics, autopilot,
                   os.path.join(args.output_dir, f"Campaign_Debrief_seed{args.seed}.docx"))
    create_day_log(metrics, os.path.join(args.output_dir, f"Day_Log_seed{args.seed}.xlsx"))
    engine.export_log(os.path.join(args.output_dir, f"session_seed{args.seed}.json"))

    print()
    print(CampaignEvaluator(metrics).generate_report())
    print(f"\nOutput directory: {args.output_dir}")
