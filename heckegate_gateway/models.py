
from pydantic import BaseModel, Field, StrictInt
from typing import Dict, Any, List, Literal, Optional

WebhookEvent = Literal["tx.blocked", "tx.material_weakness"]

class VerifyRequest(BaseModel):
    id: str = Field(min_length=1)
    type: str
    amount: float
    currency: str
    counterparty: str
    lifecycleWord: List[StrictInt]
    purpose: Optional[str] = None

class ReduceRequest(BaseModel):
    lifecycleWord: List[StrictInt]

class ReplayRequest(BaseModel):
    transaction: VerifyRequest
    result: Dict[str, Any]

class WebhookRegistration(BaseModel):
    url: str = Field(min_length=1)
    events: List[WebhookEvent] = Field(default_factory=lambda: ["tx.blocked"])
    secret: str = Field(min_length=1)
