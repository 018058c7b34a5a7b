from fastapi import APIRouter, Depends, status
from typing import List
import logging

from dependencies import get_sales_service
from schemas.sales_orders import CancelSaleResponse, SalesOrder as SalesOrderSchema, SalesOrderCreate
from services.sales_service import SalesService
from utils.auth_utils import get_current_user

router = APIRouter(prefix="/sales-orders", tags=["Sales Orders"])
logger = logging.getLogger("sales_orders")


@router.post("/", response_model=SalesOrderSchema, status_code=status.HTTP_201_CREATED)
def create_sales_order(
    so: SalesOrderCreate,
    service: SalesService = Depends(get_sales_service),
    user: dict = Depends(get_current_user),
):
    """Create a completed sale and deduct its items from stock."""
    return service.create_sale(so.client_id, so.items, user)


@router.post("/cancelled", response_model=SalesOrderSchema, status_code=status.HTTP_201_CREATED)
def create_cancelled_sales_order(
    so: SalesOrderCreate,
    service: SalesService = Depends(get_sales_service),
    user: dict = Depends(get_current_user),
):
    """Record an abandoned sale without touching stock."""
    return service.create_cancelled_sale(so.client_id, so.items, user)


@router.get("/", response_model=List[SalesOrderSchema])
def list_sales_orders(
    service: SalesService = Depends(get_sales_service),
    user: dict = Depends(get_current_user),
):
    return service.list_sales()


@router.get("/client/{client_id}", response_model=List[SalesOrderSchema])
def list_sales_orders_by_client(
    client_id: int,
    service: SalesService = Depends(get_sales_service),
    user: dict = Depends(get_current_user),
):
    return service.list_sales_by_client(client_id)


@router.get("/{so_id}", response_model=SalesOrderSchema)
def get_sales_order(
    so_id: int,
    service: SalesService = Depends(get_sales_service),
    user: dict = Depends(get_current_user),
):
    return service.get_sale(so_id)


@router.post("/{so_id}/cancel", response_model=CancelSaleResponse)
def cancel_sales_order(
    so_id: int,
    service: SalesService = Depends(get_sales_service),
    user: dict = Depends(get_current_user),
):
    """Cancel a completed sale and return its items to stock."""
    message = service.cancel_sale(so_id, user)
    return CancelSaleResponse(message=message, sale_id=so_id)
