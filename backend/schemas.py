from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PlaceOrderRequest(BaseModel):
    orderId: str = Field(..., min_length=1, description="Local order identifier")


class PlaceOrderResponse(BaseModel):
    success: bool = True
    externalOrderId: str
    message: str


class CheckStatusRequest(BaseModel):
    orderId: Optional[str] = None
    checkAll: bool = False


class CheckStatusResponse(BaseModel):
    success: bool = True
    checked: int
    updated: int
    errors: int
    message: str


class ProviderCreate(BaseModel):
    name: str = Field(..., min_length=1, description="Display name of the panel")
    api_url: str = Field(..., min_length=1, description="Panel API endpoint")
    api_key: str = Field(..., min_length=1, description="Panel API key")
    is_active: bool = True


class ProviderResponse(BaseModel):
    id: str
    name: str
    api_url: str
    api_key_preview: str
    is_active: bool
    balance: Optional[float]
    currency: Optional[str]
    last_sync_at: Optional[datetime]
    created_at: Optional[datetime]


class ProviderListResponse(BaseModel):
    items: List[ProviderResponse]


class SyncBalanceRequest(BaseModel):
    providerId: str = Field(..., min_length=1)


class SyncBalanceResponse(BaseModel):
    success: bool = True
    balance: float
    currency: str
    message: str


class CatalogRequest(BaseModel):
    providerId: str = Field(..., min_length=1)
    action: str = "import"
    categoryId: Optional[str] = None
    priceMultiplier: float = 1.0
    selectedServices: Optional[List[Dict[str, Any]]] = None
    serviceId: Optional[str] = None


class ProviderService(BaseModel):
    id: str
    name: str
    category: str
    rate: float
    min: int
    max: int
    description: Optional[str] = None
    speed: Optional[str] = None


class CatalogListResponse(BaseModel):
    success: bool = True
    services: List[ProviderService]
    total: int


class CatalogServiceResponse(BaseModel):
    success: bool = True
    service: ProviderService


class CatalogImportResponse(BaseModel):
    success: bool = True
    imported: int
    updated: int
    failed: int
    total: int
    message: str


class TwoFactorSendRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)


class TwoFactorVerifyRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1)


class TwoFactorToggleRequest(BaseModel):
    enabled: bool


class TwoFactorToggleResponse(BaseModel):
    success: bool = True
    enabled: bool
    message: str


class PasswordResetRequest(BaseModel):
    email: str = ""
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class PasswordResetVerifyRequest(BaseModel):
    email: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1)


class PasswordResetVerifyResponse(BaseModel):
    success: bool = True
    reset_token: str
    user_id: str
    message: str


class PasswordResetCompleteRequest(BaseModel):
    email: str = Field(..., min_length=1)
    reset_token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class StatusWorkerResponse(BaseModel):
    running: bool
    interval_seconds: int
    last_run_at: Optional[datetime]
    last_error: Optional[str]


class PaymentCreateRequest(BaseModel):
    amount: float = 0
    currency: str = "USD"


class PaymentCreateResponse(BaseModel):
    success: bool = True
    paymentId: str
    paymentUrl: str
    orderId: str
    status: Optional[str] = None


class AdminUser(BaseModel):
    model_config = ConfigDict(extra="allow")

    user_id: str
    email: Optional[str] = None
    role: str = "user"


class AdminUserListResponse(BaseModel):
    items: List[AdminUser]
