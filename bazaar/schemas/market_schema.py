from pydantic import BaseModel, field_serializer
from typing import Optional, Any
from datetime import datetime

from bazaar.core.security import sanitize_text

class ProductCreate(BaseModel):
    title: str
    description: str
    # Accept anything here; the service reports which field is wrong
    price: Any
    image_url: str

class ProductUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Any] = None
    image_url: Optional[str] = None

class ProductOut(BaseModel):
    id: str
    title: str
    description: str
    image_url: str
    author: str
    price: int
    created_at: Optional[datetime] = None
    purchased_by: Optional[str] = None
    purchased_at: Optional[datetime] = None
    is_deleted: bool = False
    class Config:
        from_attributes = True

    @field_serializer("title", "description")
    def _sanitize(self, value: str):
        return sanitize_text(value)

class PurchaseOut(BaseModel):
    product: ProductOut
    buyer_balance: int

class ReportCreate(BaseModel):
    reason: str

class ContentReportCreate(BaseModel):
    type: str
    content_id: Optional[str] = None
    reported_user: str
    reason: str

class ReportOut(BaseModel):
    id: str
    type: str
    content_id: Optional[str] = None
    reported_user: str
    reason: str
    reported_by: str
    created_at: Optional[datetime] = None
    class Config:
        from_attributes = True

    @field_serializer("reason")
    def _sanitize(self, value: str):
        return sanitize_text(value)

class MessageCreate(BaseModel):
    content: str
    recipient: Optional[str] = None

class MessageUpdate(BaseModel):
    content: str

class MessageOut(BaseModel):
    id: str
    content: str
    author: str
    created_at: Optional[datetime] = None
    is_private: bool = False
    recipient: Optional[str] = None
    class Config:
        from_attributes = True

    @field_serializer("content")
    def _sanitize(self, value: str):
        return sanitize_text(value)

class ConversationOut(BaseModel):
    partner: str
    last_message: MessageOut

class SweepOut(BaseModel):
    deleted: int
