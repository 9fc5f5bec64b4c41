"""Read-only views of the store data new sessions start from."""

from fastapi import APIRouter, Depends

from ..schemas import (
    OrderListResponse,
    OrderModel,
    PoliciesResponse,
    PolicyModel,
    ProductListResponse,
    ProductModel,
)
from ..sessions import SessionManager, get_session_manager

router = APIRouter(prefix="/v1/store")


@router.get("/products", response_model=ProductListResponse, summary="List products")
def list_products(manager: SessionManager = Depends(get_session_manager)) -> ProductListResponse:
    return ProductListResponse(
        products=[ProductModel.from_product(p) for p in manager.store.products]
    )


@router.get("/orders", response_model=OrderListResponse, summary="List orders")
def list_orders(manager: SessionManager = Depends(get_session_manager)) -> OrderListResponse:
    return OrderListResponse(orders=[OrderModel.from_order(o) for o in manager.store.orders])


@router.get("/policies", response_model=PoliciesResponse, summary="List policies")
def list_policies(manager: SessionManager = Depends(get_session_manager)) -> PoliciesResponse:
    return PoliciesResponse(
        policies=[PolicyModel.from_policy(p) for p in manager.store.policies]
    )
