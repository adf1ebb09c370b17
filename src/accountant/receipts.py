# ============================================================
# REPAYMENT RECEIPT PDF
# ============================================================

from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A5
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.platypus import (
    SimpleDocTemplate,
    Table,
    TableStyle,
    Paragraph,
    Spacer,
    HRFlowable,
)
from reportlab.lib.enums import TA_CENTER

from accountant.models import DebtRepayment, StoreConfiguration
from accountant.utils import format_number, local_now


def generate_repayment_receipt_pdf(
    repayment: DebtRepayment,
    store: StoreConfiguration,
    currency: str = "FCFA",
) -> BytesIO:
    """
    Build the receipt handed to a customer after a repayment.

    Args:
        repayment: the repayment, with its debt loaded
        store: storefront configuration (name, location, receipt texts)
        currency: code printed next to amounts

    Returns:
        BytesIO buffer containing the PDF
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A5,
        rightMargin=1.2*cm,
        leftMargin=1.2*cm,
        topMargin=1.2*cm,
        bottomMargin=1.2*cm,
    )

    settings = store.to_dict()
    debt = repayment.debt

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        'ReceiptTitle',
        parent=styles['Heading1'],
        fontSize=16,
        alignment=TA_CENTER,
        spaceAfter=4,
        textColor=colors.HexColor('#32325d')
    )
    centered_style = ParagraphStyle(
        'ReceiptCentered',
        parent=styles['Normal'],
        fontSize=9,
        alignment=TA_CENTER,
        textColor=colors.grey
    )
    body_style = ParagraphStyle(
        'ReceiptBody',
        parent=styles['Normal'],
        fontSize=9,
        spaceBefore=6,
    )

    story = []

    # === HEADER ===
    story.append(Paragraph(escape(settings["app_name"]), title_style))
    if settings["location"]:
        story.append(Paragraph(escape(settings["location"]), centered_style))
    story.append(Paragraph(f"Receipt {repayment.receipt_number}", centered_style))
    story.append(HRFlowable(
        width="100%",
        thickness=1,
        color=colors.HexColor('#e9ecef'),
        spaceBefore=8,
        spaceAfter=12
    ))

    # === DETAILS ===
    rows = [
        ['Payment date:', repayment.payment_date],
        ['Debt receipt:', debt.receipt_number],
        ['Item:', f"{debt.pcs} x {debt.name}"],
        ['Client:', debt.client_name or '-'],
        ['Total price:', f"{format_number(debt.total_price)} {currency}"],
        ['Amount paid:', f"{format_number(repayment.amount)} {currency}"],
        ['Balance owed:', f"{format_number(debt.balance_owed)} {currency}"],
    ]
    if repayment.seller_name:
        rows.append(['Received by:', repayment.seller_name])

    available_width = A5[0] - 2.4*cm
    table = Table(rows, colWidths=[available_width * 0.4, available_width * 0.6])
    table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTNAME', (1, 0), (1, -1), 'Helvetica'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('ALIGN', (0, 0), (0, -1), 'RIGHT'),
        ('ALIGN', (1, 0), (1, -1), 'LEFT'),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
        ('TOPPADDING', (0, 0), (-1, -1), 4),
        # Amount paid row
        ('BACKGROUND', (0, 5), (-1, 5), colors.HexColor('#f8f9fe')),
    ]))
    story.append(table)

    # === FOOTER ===
    received = settings["receipt_items_received_message"].replace(
        "{customer}", debt.client_name or "The customer"
    )
    story.append(Spacer(1, 12))
    story.append(Paragraph(escape(received), body_style))
    story.append(Spacer(1, 8))
    story.append(Paragraph(escape(settings["receipt_thank_you_message"]), centered_style))
    story.append(Paragraph(
        f"Printed {local_now().strftime('%d/%m/%Y %H:%M')}", centered_style
    ))

    doc.build(story)
    buffer.seek(0)
    return buffer
