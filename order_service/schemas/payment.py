"""
Pydantic schemas for payment sessions and verification
"""
from pydantic import BaseModel, Field, ConfigDict


class ChargeSessionResponse(BaseModel):
    """Parameters for the browser payment SDK"""
    public_key: str
    email: str
    amount: int = Field(..., description="Amount in kobo")
    currency: str
    reference: str

    model_config = ConfigDict(from_attributes=True)


class PaymentVerifyRequest(BaseModel):
    """Reference reported by the client after a successful charge"""
    reference: str = Field(..., min_length=1, max_length=100, description="Gateway payment reference")
