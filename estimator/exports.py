"""Spreadsheet, CSV and PDF renderings of estimates."""

import csv
import io

from flask import render_template
from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from estimator.pricing.formatters import format_currency
from estimator.pricing.models import WorkType

XLSX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


def _work_type_label(value):
    try:
        return WorkType(value).label
    except ValueError:
        return str(value).replace('_', ' ')


def _set_widths(ws, widths):
    for idx, w in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(idx)].width = w


def estimate_workbook(est) -> bytes:
    """Build an .xlsx with an "Estimate" sheet and, if researched, "AI Pricing"."""
    pricing = est.breakdown
    bold = Font(bold=True)

    wb = Workbook()
    ws = wb.active
    ws.title = 'Estimate'

    ws.append(['ELECTRICAL ESTIMATE'])
    ws['A1'].font = Font(bold=True, size=14)
    rows = [
        [],
        ['Client Information'],
        ['Name', est.client_name],
        ['Phone', est.client_phone or ''],
        ['Email', est.client_email or ''],
        [],
        ['Project Information'],
        ['Address', est.project_address],
        ['City', est.city],
        ['State', est.state or ''],
        ['Work Type', _work_type_label(est.work_type)],
        ['Date', est.created_at.strftime('%Y-%m-%d') if est.created_at else ''],
        ['Status', (est.status or '').upper()],
        [],
        ['Scope of Work'],
        [est.scope_of_work],
        [],
        ['Pricing Breakdown'],
    ]
    for r in rows:
        ws.append(r)

    ws.append(['Category', 'Description', 'Quantity', 'Rate', 'Amount'])
    for cell in ws[ws.max_row]:
        cell.font = bold
    ws.append(['Labor', pricing.labor.description, pricing.labor.hours,
               pricing.labor.hourly_rate, pricing.labor.total])
    for item in pricing.materials.items:
        ws.append(['Material', item.description or 'Material', item.quantity,
                   item.unit_cost, item.total])

    ws.append([])
    ws.append(['', '', '', 'Subtotal', pricing.subtotal])
    ws.append(['', '', '', f'Markup ({pricing.markup_percentage:g}%)', pricing.markup_amount])
    ws.append(['', '', '', 'TOTAL', pricing.total])
    for cell in ws[ws.max_row]:
        cell.font = bold
    _set_widths(ws, [15, 30, 10, 15, 15])

    ai = est.ai_research
    if ai is not None:
        ai_ws = wb.create_sheet('AI Pricing')
        ai_ws.append(['AI PRICING RESEARCH'])
        ai_ws['A1'].font = Font(bold=True, size=14)
        for r in [
            [],
            ['Search Query', ai.search_query],
            ['Last Updated', ai.last_updated.strftime('%Y-%m-%d')],
            ['Confidence', ai.confidence.upper()],
            [],
            ['Average Price', ai.average_price],
            ['Price Range Min', ai.price_range.min],
            ['Price Range Max', ai.price_range.max],
            [],
            ['Sources'],
            ['Source', 'Price', 'Description', 'URL'],
        ]:
            ai_ws.append(r)
        for src in ai.sources:
            ai_ws.append([src.source, src.price, src.description, src.url or ''])
        _set_widths(ai_ws, [20, 15, 40, 30])

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


PDF_DISCLAIMER = (
    'This cost estimate is provided for budget purposes only. Final pricing is '
    'subject to finalized scope, site conditions, and official quotation. '
    'This estimate is valid for 30 days from the date above.'
)


def estimate_pdf_html(est, company) -> str:
    """Render the printable estimate page, headed by the company block from ``company`` settings."""
    return render_template(
        'estimate_pdf.html',
        est=est,
        company=company,
        pricing=est.breakdown,
        ai=est.ai_research,
        work_type=_work_type_label(est.work_type),
        disclaimer=PDF_DISCLAIMER,
    )


def estimate_pdf(est, company) -> bytes:
    # weasyprint loads pango on import, keep it off the app import path
    from weasyprint import HTML

    return HTML(string=estimate_pdf_html(est, company)).write_pdf()


CSV_COLUMNS = [
    'id', 'client_name', 'project_address', 'city', 'state', 'work_type',
    'status', 'labor', 'materials', 'subtotal', 'markup', 'total', 'created_at',
]


def estimates_csv(estimates) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(CSV_COLUMNS)
    for est in estimates:
        p = est.breakdown
        writer.writerow([
            est.id,
            est.client_name,
            est.project_address,
            est.city,
            est.state or '',
            est.work_type,
            est.status,
            format_currency(p.labor.total),
            format_currency(p.materials.subtotal),
            format_currency(p.subtotal),
            format_currency(p.markup_amount),
            format_currency(p.total),
            est.created_at.isoformat() if est.created_at else '',
        ])
    return output.getvalue()
