# models/payment.py

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from models.enums import PaymentStatus


class PaymentUpdate(BaseModel):
    status: Optional[PaymentStatus] = None
    transaction_id: Optional[str] = None
    paid_at: Optional[datetime] = Field(None, description="ISO timestamp")


# Column order for CSV export
PAYMENT_EXPORT_COLUMNS = [
    ("ID", "id"),
    ("Vendor ID", "vendor_id"),
    ("Amount", "amount"),
    ("Currency", "currency"),
    ("Status", "status"),
    ("Method", "method"),
    ("Due Date", "due_date"),
    ("Paid At", "paid_at"),
    ("Transaction ID", "transaction_id"),
]
