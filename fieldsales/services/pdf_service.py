"""Order invoice PDF."""

from datetime import datetime
from io import BytesIO
from typing import Any, Dict
from xml.sax.saxutils import escape

from reportlab.lib.pagesizes import A4
from reportlab.lib import colors
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_CENTER

from fieldsales.models import Order
from fieldsales.services.line_items import LineItemStore
from fieldsales.utils.formatters import money_in, date_in


def business_info_from_config(config) -> Dict[str, Any]:
    return {
        'name': config.get('BUSINESS_NAME'),
        'address': config.get('BUSINESS_ADDRESS'),
        'phone': config.get('BUSINESS_PHONE'),
        'email': config.get('BUSINESS_EMAIL'),
    }


def _text(value) -> str:
    return escape(str(value)) if value not in (None, '') else '-'


def render_order_pdf(order: Order, business_info: Dict[str, Any]) -> BytesIO:
    """
    Render the ORDER INVOICE of an order.

    Discount entries are not item rows; they only show up in the totals
    block.
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=0.6*inch,
        leftMargin=0.6*inch,
        topMargin=0.6*inch,
        bottomMargin=0.6*inch
    )

    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'InvoiceTitle',
        parent=styles['Heading1'],
        fontSize=22,
        textColor=colors.HexColor('#2C3E50'),
        spaceAfter=12,
        alignment=TA_CENTER,
        fontName='Helvetica-Bold'
    )

    header_style = ParagraphStyle(
        'InvoiceHeader',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.HexColor('#7F8C8D'),
        alignment=TA_CENTER,
        spaceAfter=6
    )

    # 1. Title and business header
    elements.append(Paragraph("ORDER INVOICE", title_style))

    if business_info.get('name'):
        elements.append(Paragraph(f"<b>{escape(business_info['name'])}</b>", header_style))

    if business_info.get('address'):
        elements.append(Paragraph(escape(business_info['address']), header_style))

    contact_parts = []
    if business_info.get('phone'):
        contact_parts.append(f"Ph: {escape(business_info['phone'])}")
    if business_info.get('email'):
        contact_parts.append(f"Email: {escape(business_info['email'])}")

    if contact_parts:
        elements.append(Paragraph(" | ".join(contact_parts), header_style))

    elements.append(Spacer(1, 0.3*inch))

    # 2. School details
    cell_style = ParagraphStyle('Cell', parent=styles['Normal'], fontSize=9)
    details_data = [
        ['Order No:', str(order.id), 'Date:', date_in(order.created_at or datetime.now())],
        ['School:', Paragraph(_text(order.school_name), cell_style), 'School Code:', _text(order.school_code)],
        ['Board:', _text(order.board), 'Pincode:', _text(order.pincode)],
        ['Address:', Paragraph(_text(order.address), cell_style), 'State:', _text(order.state)],
        ['Principal:', _text(order.principal_name), 'Mobile:', _text(order.principal_mobile)],
        ['Delivery Date:', date_in(order.delivery_date) or '-', 'Transport:', _text(order.transport_name)],
    ]

    details_table = Table(details_data, colWidths=[1.2*inch, 2.6*inch, 1.1*inch, 2.1*inch])
    details_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (0, -1), 'RIGHT'),
        ('ALIGN', (2, 0), (2, -1), 'RIGHT'),
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTNAME', (2, 0), (2, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('TEXTCOLOR', (0, 0), (-1, -1), colors.HexColor('#34495E')),
    ]))

    elements.append(details_table)
    elements.append(Spacer(1, 0.3*inch))

    # 3. Items table
    table_data = [['Category', 'Product', 'Qty', 'Unit Price', 'Amount']]
    store = LineItemStore.from_wire(order.items or {})

    for key, entry in store.lines():
        table_data.append([
            Paragraph(escape(key.category), cell_style),
            Paragraph(escape(key.product_name), cell_style),
            str(entry.qty),
            money_in(entry.unit_price),
            money_in(entry.line_total),
        ])

    if len(table_data) == 1:
        table_data.append(['', 'No items', '', '', ''])

    items_table = Table(table_data, colWidths=[1.6*inch, 2.6*inch, 0.6*inch, 1.1*inch, 1.1*inch])
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#3498DB')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('ALIGN', (0, 0), (-1, 0), 'CENTER'),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 10),
        ('ALIGN', (2, 1), (2, -1), 'CENTER'),
        ('ALIGN', (3, 1), (4, -1), 'RIGHT'),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#BDC3C7')),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#ECF0F1')]),
    ]))

    elements.append(items_table)
    elements.append(Spacer(1, 0.2*inch))

    # 4. Totals
    totals_table = Table([
        ['Total Amount:', money_in(order.total_amount)],
        ['Discount:', money_in(order.total_discount)],
        ['Net Amount:', money_in(order.net_amount)],
    ], colWidths=[5.6*inch, 1.4*inch])
    totals_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('FONTNAME', (0, 0), (-1, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 11),
        ('FONTSIZE', (0, 2), (-1, 2), 13),
        ('TEXTCOLOR', (0, 2), (-1, 2), colors.HexColor('#27AE60')),
        ('BACKGROUND', (0, 2), (-1, 2), colors.HexColor('#E8F8F5')),
        ('BOX', (0, 2), (-1, 2), 2, colors.HexColor('#27AE60')),
    ]))

    elements.append(totals_table)
    elements.append(Spacer(1, 0.4*inch))

    if order.remarks:
        footer_style = ParagraphStyle('Footer', parent=styles['Normal'], fontSize=9, textColor=colors.HexColor('#95A5A6'))
        elements.append(Paragraph(f"<b>Remarks:</b> {escape(order.remarks)}", footer_style))

    doc.build(elements)
    buffer.seek(0)
    return buffer
