from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

class CreatePaymentIn(BaseModel):
    amount: float = Field(..., description="Amount in euros e.g. 10.25")
    description: str
    redirect_url: Optional[str] = None
    webhook_url: Optional[str] = None
    method: Optional[str] = None
    metadata: Optional[dict] = None

class CreatePaymentOut(BaseModel):
    mollie_id: str
    checkout_url: Optional[str] = None
    status: Optional[str] = None

class PaymentStatusOut(BaseModel):
    mollie_id: str
    status: Optional[str] = None
    amount: Optional[float] = None
    description: Optional[str] = None
    checkout_url: Optional[str] = None
    expiry_minutes: Optional[float] = None
    raw: Optional[Dict[str, Any]] = None

class PaymentListOut(BaseModel):
    count: int
    data: List[PaymentStatusOut]

class CountOut(BaseModel):
    count: int

class CreateLinkIn(BaseModel):
    amount: float
    description: str
    partnerid: Optional[str] = None
    profile_key: Optional[str] = None
    reporturl: Optional[str] = None
    returnurl: Optional[str] = None

class CreateLinkOut(BaseModel):
    url: str
