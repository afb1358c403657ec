from flask import current_app
from flask_mail import Message
from collections import defaultdict
from markupsafe import escape
from services.utils import format_price, format_price_with_decimals


class NotificationService:

    @staticmethod
    def group_items_by_vendor(order):
        groups = defaultdict(list)
        for item in order.items:
            groups[item.product.vendor].append(item)
        return groups

    @staticmethod
    def send_new_order_notifications(order):
        """
        E-mail every vendor with products in ``order`` the lines that are theirs.

        Returns the number of e-mails handed to the mail server. Mail failures
        are logged and never undo the order.
        """
        mail = current_app.extensions.get('mail')
        if not mail:
            current_app.logger.error("Flask-Mail not initialized")
            return 0

        sent = 0
        for vendor, items in NotificationService.group_items_by_vendor(order).items():
            vendor_email = vendor.user.email if vendor.user else None
            if not vendor_email:
                current_app.logger.warning(f"Vendor {vendor.id} has no e-mail, skipping order notification")
                continue

            vendor_subtotal = sum(item.subtotal for item in items)
            subject = f"New Order #{str(order.id)[-8:]} - AgroConnect"

            rows = "".join(
                f"""
                <tr>
                    <td style="border:1px solid #ddd; padding:8px;">{escape(item.product.name)}</td>
                    <td style="border:1px solid #ddd; padding:8px; text-align:center;">{item.quantity} {escape(item.product.unit)}</td>
                    <td style="border:1px solid #ddd; padding:8px; text-align:right;">{format_price_with_decimals(item.unit_price)}</td>
                    <td style="border:1px solid #ddd; padding:8px; text-align:right;">{format_price(item.subtotal)}</td>
                </tr>"""
                for item in items
            )

            html_body = f"""
<!DOCTYPE html>
<html>
<head><meta charset="UTF-8"><title>New Order</title></head>
<body style="font-family: Arial, sans-serif; color: #222;">
<div style="max-width: 600px; margin: auto; padding: 20px; border: 1px solid #eee;">
    <h1 style="font-size: 20px;">New Order Received</h1>
    <p>Dear {escape(vendor.business_name)},</p>
    <p>A customer ordered your produce on {order.created_at.strftime('%Y-%m-%d %H:%M')}.</p>
    <table style="width:100%; border-collapse:collapse; margin-bottom:15px;">
        <tr>
            <th style="border:1px solid #ddd; padding:8px; background:#f3f3f3;">Product</th>
            <th style="border:1px solid #ddd; padding:8px; background:#f3f3f3;">Qty</th>
            <th style="border:1px solid #ddd; padding:8px; background:#f3f3f3;">Unit Price</th>
            <th style="border:1px solid #ddd; padding:8px; background:#f3f3f3;">Subtotal</th>
        </tr>{rows}
    </table>
    <p><b>Your total:</b> {format_price(vendor_subtotal)}</p>
    <p><b>Deliver to:</b> {escape(order.customer_name)}, {escape(order.delivery_address)} ({escape(order.customer_phone)})</p>
    <p style="color: #888; font-size: 11px;">AgroConnect | This is an automated message.</p>
</div>
</body>
</html>
"""

            text_body = f"""
New Order Received

Dear {vendor.business_name},

Order ID: {order.id}
Placed: {order.created_at.strftime('%Y-%m-%d %H:%M')}

Products:
""" + "".join(
                f"- {item.product.name}: {item.quantity} {item.product.unit} x {format_price_with_decimals(item.unit_price)} = {format_price(item.subtotal)}\n"
                for item in items
            ) + f"""
Your total: {format_price(vendor_subtotal)}
Deliver to: {order.customer_name}, {order.delivery_address} ({order.customer_phone})
"""

            msg = Message(subject, recipients=[vendor_email], body=text_body, html=html_body)
            try:
                mail.send(msg)
                sent += 1
            except Exception as e:
                current_app.logger.error(f"Failed to send order notification to vendor {vendor.id}: {e}")

        current_app.logger.info(f"Order {order.id}: notified {sent} vendor(s)")
        return sent
