"""
Email bodies for order notifications
"""
from html import escape
from typing import List, Optional, Sequence, Tuple

from order_service.config import settings

BRAND = "Vian Clothing Hub"
ACCENT = "#800080"


def render_html(
    heading: str,
    paragraphs: Sequence[str],
    details: Sequence[Tuple[str, str]] = (),
    actions: Sequence[Tuple[str, str]] = (),
) -> str:
    """Wrap a message in the branded single-column layout"""
    detail_rows = "".join(
        f'<p style="font-size: 14px; margin: 5px 0;"><strong style="color: {ACCENT};">'
        f'{escape(label)}:</strong> {escape(str(value))}</p>'
        for label, value in details
    )
    buttons = "".join(
        f'<a href="{escape(url)}" target="_blank" style="display: inline-block; padding: 10px 20px; '
        f'background-color: {ACCENT}; color: #fff; text-decoration: none; border-radius: 5px; '
        f'margin: 0 5px;">{escape(label)}</a>'
        for label, url in actions
    )
    body = "".join(f'<p style="font-size: 14px; margin: 0 0 10px;">{escape(p)}</p>' for p in paragraphs)
    return f"""<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"><title>{BRAND} - {escape(heading)}</title></head>
<body style="margin: 0; padding: 20px; font-family: Arial, Helvetica, sans-serif; color: #333; background-color: #f4f4f4;">
  <div style="max-width: 600px; margin: 0 auto; background-color: #fff; border: 1px solid #ddd; border-radius: 8px;">
    <div style="text-align: center; border-bottom: 2px solid {ACCENT}; padding: 20px;">
      <h1 style="color: {ACCENT}; margin: 10px 0; font-size: 24px;">{BRAND}</h1>
      <h2 style="font-size: 20px; margin: 0;">{escape(heading)}</h2>
    </div>
    <div style="padding: 20px;">{body}{detail_rows}<div style="text-align: center; margin: 20px 0;">{buttons}</div></div>
    <div style="text-align: center; font-size: 12px; color: #666; border-top: 1px solid #ddd; padding: 20px;">
      <p>Please do not reply to this email. This inbox is not monitored.</p>
      <p>Thank you for choosing {BRAND}!</p>
    </div>
  </div>
</body>
</html>"""


def render_text(
    heading: str,
    paragraphs: Sequence[str],
    details: Sequence[Tuple[str, str]] = (),
    actions: Sequence[Tuple[str, str]] = (),
) -> str:
    """Plain-text fallback for the same message"""
    lines: List[str] = [f"{BRAND} - {heading}", ""]
    lines.extend(paragraphs)
    if details:
        lines.append("")
        lines.extend(f"{label}: {value}" for label, value in details)
    if actions:
        lines.append("")
        lines.extend(f"{label}: {url}" for label, url in actions)
    return "\n".join(lines)


def dashboard_url() -> str:
    return f"{settings.PUBLIC_SITE_URL.rstrip('/')}/dashboard"


def pay_invoice_url(invoice_id) -> str:
    return f"{settings.PUBLIC_SITE_URL.rstrip('/')}/pay-invoice?invoice_id={invoice_id}"


def document_action(label: str, url: Optional[str]) -> List[Tuple[str, str]]:
    return [(label, url)] if url else []
