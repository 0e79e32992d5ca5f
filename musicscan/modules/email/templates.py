"""HTML bodies for order emails. All order values are escaped before interpolation."""

from html import escape
from typing import Any, Dict, List, Tuple
import datetime

SUPPORT_EMAIL = "support@musicscan.app"

_PAGE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background-color: #f3f4f6; margin: 0; padding: 20px;">
  <div style="max-width: 600px; margin: 0 auto; background-color: white; border-radius: 12px; overflow: hidden;">
    <div style="background: {gradient}; padding: 32px; text-align: center;">
      <h1 style="color: white; margin: 0; font-size: 28px;">{heading}</h1>
    </div>
    <div style="padding: 32px;">
      <p style="font-size: 16px; color: #374151; margin: 0 0 24px 0;">Hoi {name},</p>
      {body}
    </div>
    <div style="background-color: #f9fafb; padding: 24px; text-align: center; border-top: 1px solid #e5e7eb;">
      <p style="margin: 0; color: #6b7280; font-size: 14px;">
        Vragen? Neem contact op via <a href="mailto:{support}" style="color: #8b5cf6;">{support}</a>
      </p>
      <p style="margin: 12px 0 0 0; color: #9ca3af; font-size: 12px;">&copy; {year} MusicScan - Voor muziekliefhebbers</p>
    </div>
  </div>
</body>
</html>"""


def _money(value: Any) -> str:
    return f"&euro;{float(value or 0):.2f}"


def _text(value: Any) -> str:
    return escape(str(value)) if value is not None else ""


def _page(order: Dict[str, Any], heading: str, gradient: str, body: str) -> str:
    return _PAGE.format(
        gradient=gradient,
        heading=heading,
        name=_text(order.get("customer_name") or "muziekliefhebber"),
        body=body,
        support=SUPPORT_EMAIL,
        year=datetime.date.today().year,
    )


def items_table(items: List[Dict[str, Any]]) -> str:
    rows = "".join(
        "<tr>"
        f"<td style=\"padding: 12px;\"><strong>{_text(i.get('title'))}</strong><br>"
        f"<span style=\"color: #6b7280; font-size: 14px;\">{_text(i.get('artist'))}</span></td>"
        f"<td style=\"padding: 12px; text-align: center;\">{int(i.get('quantity') or 0)}</td>"
        f"<td style=\"padding: 12px; text-align: right;\">{_money(i.get('price'))}</td>"
        "</tr>"
        for i in items
    )
    return (
        "<table style=\"width: 100%; border-collapse: collapse;\">"
        "<thead><tr><th style=\"text-align: left;\">Product</th><th>Aantal</th>"
        "<th style=\"text-align: right;\">Prijs</th></tr></thead>"
        f"<tbody>{rows}</tbody></table>"
    )


def totals_block(order: Dict[str, Any]) -> str:
    return (
        "<div style=\"margin-top: 16px; padding-top: 16px; border-top: 2px solid #e5e7eb;\">"
        f"<p>Subtotaal: {_money(order.get('subtotal'))}</p>"
        f"<p>Verzendkosten: {_money(order.get('shipping_cost'))}</p>"
        f"<p style=\"font-size: 18px; font-weight: bold; color: #8b5cf6;\">Totaal: {_money(order.get('total'))}</p>"
        "</div>"
    )


def address_block(order: Dict[str, Any]) -> str:
    address = order.get("shipping_address") or {}
    if not address.get("street"):
        return ""
    return (
        "<div style=\"background-color: #f9fafb; border-radius: 8px; padding: 20px; margin-bottom: 24px;\">"
        "<h3 style=\"margin: 0 0 12px 0;\">Verzendadres</h3><p style=\"margin: 0; line-height: 1.6;\">"
        f"{_text(address.get('name') or order.get('customer_name'))}<br>"
        f"{_text(address.get('street'))}<br>"
        f"{_text(address.get('postal_code'))} {_text(address.get('city'))}<br>"
        f"{_text(address.get('country') or 'Nederland')}</p></div>"
    )


def confirmation_email(order: Dict[str, Any], items: List[Dict[str, Any]]) -> str:
    number = _text(order.get("order_number"))
    body = (
        f"<p>We hebben je bestelling <strong>{number}</strong> ontvangen en gaan er direct mee aan de slag!</p>"
        "<div style=\"background-color: #f9fafb; border-radius: 8px; padding: 20px; margin-bottom: 24px;\">"
        f"<h3 style=\"margin: 0 0 16px 0;\">Je bestelling</h3>{items_table(items)}{totals_block(order)}</div>"
        f"{address_block(order)}"
        "<p style=\"font-size: 14px; color: #6b7280;\">Je ontvangt een email zodra je bestelling verzonden is "
        "met track &amp; trace informatie.</p>"
    )
    return _page(order, "&#127925; MusicScan", "linear-gradient(135deg, #8b5cf6 0%, #6366f1 100%)", body)


def shipped_email(order: Dict[str, Any], items: List[Dict[str, Any]]) -> str:
    tracking = ""
    if order.get("tracking_number"):
        carrier = f"<p style=\"color: #6b7280; font-size: 14px;\">Vervoerder: {_text(order['carrier'])}</p>" \
            if order.get("carrier") else ""
        tracking = (
            "<div style=\"background-color: #ecfdf5; border-radius: 8px; padding: 20px; margin-bottom: 24px;\">"
            "<p style=\"margin: 0 0 8px 0; color: #065f46;\">Track &amp; Trace</p>"
            f"<p style=\"margin: 0; font-size: 18px; font-weight: bold;\">{_text(order['tracking_number'])}</p>"
            f"{carrier}</div>"
        )
    body = (
        f"<p>Goed nieuws! Je bestelling <strong>{_text(order.get('order_number'))}</strong> is verzonden "
        "en komt snel jouw kant op.</p>"
        f"{tracking}{items_table(items)}{address_block(order)}"
    )
    return _page(order, "&#128230; Je pakket is onderweg!", "linear-gradient(135deg, #10b981 0%, #059669 100%)", body)


def delivered_email(order: Dict[str, Any], items: List[Dict[str, Any]]) -> str:
    body = (
        f"<p>Je bestelling <strong>{_text(order.get('order_number'))}</strong> is bezorgd. "
        "Veel plezier met je nieuwe muziekaankoop!</p>"
        f"{items_table(items)}"
    )
    return _page(order, "&#9989; Bestelling bezorgd", "linear-gradient(135deg, #f59e0b 0%, #d97706 100%)", body)


def render_order_email(email_type: str, order: Dict[str, Any], items: List[Dict[str, Any]]) -> Tuple[str, str]:
    """Returns (subject, html) for an order email."""
    number = order.get("order_number")
    if email_type == "shipped":
        return f"Je bestelling {number} is verzonden! \U0001F4E6", shipped_email(order, items)
    if email_type == "delivered":
        return f"Je bestelling {number} is bezorgd! ✅", delivered_email(order, items)
    return f"Bedankt voor je bestelling {number}! \U0001F3B5", confirmation_email(order, items)
