from io import BytesIO
from typing import Optional

from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from bookstore.models.order import Order
from bookstore.models.user import User


def build_receipt_pdf(order: Order, customer: Optional[User] = None) -> bytes:
    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=letter)
    width, height = letter
    y = height - 50

    # Title
    c.setFont("Helvetica-Bold", 18)
    c.drawString(100, y, f"Receipt - Order #{order.id}")
    y -= 30

    c.setFont("Helvetica", 12)
    if customer:
        c.drawString(100, y, f"Customer: {customer.full_name}")
        y -= 18
        c.drawString(100, y, f"Email: {customer.email}")
        y -= 18
    c.drawString(100, y, f"Date: {order.order_date.strftime('%Y-%m-%d')}")
    y -= 18
    c.drawString(100, y, f"Claim code: {order.claim_code}")
    y -= 25

    # Items
    c.setFont("Helvetica-Bold", 12)
    c.drawString(100, y, "Items:")
    y -= 20

    c.setFont("Helvetica", 11)
    for item in order.items:
        line = (
            f"{item.book_title} - {item.unit_price:.2f} x {item.quantity}"
            f" = {item.line_total:.2f}"
        )
        c.drawString(100, y, line)
        y -= 15
        if y < 80:
            c.showPage()
            c.setFont("Helvetica", 11)
            y = height - 50

    # Totals
    y -= 20
    c.setFont("Helvetica", 12)
    c.drawString(100, y, f"Subtotal: {order.subtotal:.2f}")
    y -= 18
    c.drawString(100, y, f"Discount: -{order.discount_applied:.2f}")
    y -= 20
    c.setFont("Helvetica-Bold", 12)
    c.drawString(100, y, f"Total: {order.total_amount:.2f}")
    y -= 20
    c.drawString(100, y, f"Status: {order.status}")

    c.save()
    return buffer.getvalue()
