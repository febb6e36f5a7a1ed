from pydantic import BaseModel, Field
from typing import Optional

class NonceResponse(BaseModel):
    nonce: str = Field(..., description="One-time nonce to embed in the signed message.")

class NonceErrorResponse(BaseModel):
    error: str

class VerifyRequest(BaseModel):
    # Optional so that absent fields reach the handler and map to 400, not 422
    address: Optional[str] = Field(None, description="The wallet address claimed by the caller.")
    signature: Optional[str] = Field(None, description="Hex signature of the canonical message.")
    nonce: Optional[str] = Field(None, description="The nonce previously issued for the address.")
    email: Optional[str] = Field(None, description="Where to send the login alert.")

class VerifyResponse(BaseModel):
    success: bool

class HealthResponse(BaseModel):
    success: bool = True
    message: str
    timestamp: str
    status: str = "OK"
