from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field


class Payment(SQLModel):
    """Schema of the remote payments resource; field aliases are the wire names."""

    id: Optional[str] = Field(default=None, primary_key=True)  # tr_xxxxxxxxxx, assigned by Mollie
    mode: Optional[str] = None  # test, live
    created_datetime: Optional[datetime] = Field(default=None, alias="createdDatetime")
    status: str = Field(default="open")  # open, pending, paid, cancelled, expired
    expiry_period: Optional[float] = Field(default=None, alias="expiryPeriod")  # minutes, absent once paid
    amount: float
    description: Optional[str] = None
    payment_metadata: Optional[dict] = Field(default=None, alias="metadata")
    links: Optional[dict] = None
    redirect_url: Optional[str] = Field(default=None, alias="redirectUrl")
    webhook_url: Optional[str] = Field(default=None, alias="webhookUrl")
    method: Optional[str] = None
    locale: Optional[str] = None
    details: Optional[dict] = None  # read-only, filled in by Mollie
