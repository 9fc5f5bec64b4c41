"""
Pydantic schemas for the Shop Agent HTTP API.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from ..models import Order, Policy, Product

ProviderName = Literal["deepseek", "gemini"]


class PolicyModel(BaseModel):
    """A store policy entry."""

    topic: str = Field(..., min_length=1, description="Policy topic, e.g. 退货政策")
    content: str = Field(..., description="Policy text returned to the model")

    def to_policy(self) -> Policy:
        return Policy(topic=self.topic, content=self.content)

    @classmethod
    def from_policy(cls, policy: Policy) -> "PolicyModel":
        return cls(topic=policy.topic, content=policy.content)


class ProductModel(BaseModel):
    """A catalog entry."""

    id: str
    name: str
    price: float
    category: str
    description: str
    stock: int

    @classmethod
    def from_product(cls, product: Product) -> "ProductModel":
        return cls(**product.to_dict())


class OrderModel(BaseModel):
    """A customer order."""

    id: str
    customer_name: str
    items: list[str]
    status: str
    estimated_delivery: Optional[str] = None

    @classmethod
    def from_order(cls, order: Order) -> "OrderModel":
        return cls(
            id=order.id,
            customer_name=order.customer_name,
            items=list(order.items),
            status=order.status.value,
            estimated_delivery=order.estimated_delivery,
        )


class CreateSessionRequest(BaseModel):
    """Request body for POST /v1/sessions."""

    provider: Optional[ProviderName] = Field(
        default=None, description="Model backend (defaults to SHOP_AGENT_PROVIDER)"
    )
    api_key: Optional[str] = Field(
        default=None, description="API key; falls back to the provider's env var, then API_KEY"
    )

    model_config = {
        "json_schema_extra": {"example": {"provider": "deepseek"}}
    }


class SessionResponse(BaseModel):
    """A conversation session."""

    session_id: str
    provider: ProviderName
    has_credential: bool


class TurnRequest(BaseModel):
    """Request body for POST /v1/sessions/{id}/turns."""

    message: str = Field(..., min_length=1, description="The user's message")

    model_config = {
        "json_schema_extra": {"example": {"message": "我的订单 ORD-1001 到哪了？"}}
    }


class TurnResponse(BaseModel):
    """Reply to one user turn."""

    session_id: str
    reply: str
    statuses: list[str] = Field(default_factory=list, description="Progress updates in order")
    dispatches: int = 0
    tools_used: list[str] = Field(default_factory=list)
    budget_exhausted: bool = False


class UpdatePoliciesRequest(BaseModel):
    """Request body for PUT /v1/sessions/{id}/policies."""

    policies: list[PolicyModel]


class PoliciesResponse(BaseModel):
    policies: list[PolicyModel]


class ProductListResponse(BaseModel):
    products: list[ProductModel]


class OrderListResponse(BaseModel):
    orders: list[OrderModel]


class HealthResponse(BaseModel):
    """Response body for /health endpoint."""

    status: Literal["healthy", "unhealthy"]
    version: str
    provider: str
