from pydantic import BaseModel
from typing import Literal, Optional

EmailType = Literal["confirmation", "shipped", "delivered"]


class OrderEmailRequest(BaseModel):
    email_type: EmailType = "confirmation"


class OrderEmailResponse(BaseModel):
    success: bool
    message: str
    resend_id: Optional[str] = None
