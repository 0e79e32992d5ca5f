from supabase import Client
from musicscan.modules.email.client import ResendClient
from musicscan.modules.email.schemas import OrderEmailResponse
from musicscan.modules.email import templates
from typing import Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class EmailService:
    def __init__(self, supabase: Client, resend: Optional[ResendClient] = None):
        self.supabase = supabase
        self.resend = resend or ResendClient()

    def send_order_email(self, order_id: str, email_type: str = "confirmation") -> OrderEmailResponse:
        """Render and send an order email, then record it in email_logs."""
        logger.info(f"Processing {email_type} email for order: {order_id}")
        order_result = self.supabase.table("platform_orders")\
            .select("*")\
            .eq("id", order_id)\
            .maybe_single()\
            .execute()
        order = order_result.data if order_result else None
        if not order:
            raise HTTPException(status_code=404, detail=f"Order not found: {order_id}")

        try:
            items_result = self.supabase.table("platform_order_items")\
                .select("*")\
                .eq("order_id", order_id)\
                .execute()
            items = items_result.data or []
        except Exception as e:
            logger.error(f"Error fetching order items for {order_id}: {e}")
            items = []

        subject, html = templates.render_order_email(email_type, order, items)
        resend_id = self.resend.send(order["customer_email"], subject, html)

        try:
            self.supabase.table("email_logs").insert({
                "email_type": f"order_{email_type}",
                "recipient_email": order["customer_email"],
                "subject": subject,
                "status": "sent",
                "resend_id": resend_id,
                "user_id": order.get("customer_id"),
                "metadata": {"order_id": order_id, "order_number": order.get("order_number")},
            }).execute()
        except Exception as e:
            logger.warning(f"Email sent but logging failed for order {order_id}: {e}")

        return OrderEmailResponse(success=True, message="Email sent", resend_id=resend_id)
