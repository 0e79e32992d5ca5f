from fastapi import APIRouter, Depends
from musicscan.database.supabase_client import get_service_supabase
from musicscan.modules.email.schemas import OrderEmailRequest, OrderEmailResponse
from musicscan.modules.email.service import EmailService
from musicscan.core.dependencies import require_admin
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/email", tags=["email"])


def get_email_service(supabase: Client = Depends(get_service_supabase)) -> EmailService:
    return EmailService(supabase)


@router.post("/orders/{order_id}", response_model=OrderEmailResponse)
def send_order_email(
    order_id: str,
    data: OrderEmailRequest,
    user_data: Dict = Depends(require_admin),
    service: EmailService = Depends(get_email_service),
):
    """Resend an order email by hand."""
    return service.send_order_email(order_id, data.email_type)
