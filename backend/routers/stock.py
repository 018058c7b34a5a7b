from fastapi import APIRouter, Depends
from typing import List
import logging

from dependencies import get_stock_service
from schemas.stock import StockLevel, StockMovement, StockOperationResult, StockRequest
from services.stock_service import StockService
from utils.auth_utils import get_current_user

router = APIRouter(prefix="/stock", tags=["Stock"])
logger = logging.getLogger("stock")


@router.post("/in", response_model=StockOperationResult)
def stock_in(
    request: StockRequest,
    service: StockService = Depends(get_stock_service),
    user: dict = Depends(get_current_user),
):
    """Add units of a medicine to stock."""
    return service.stock_in(request.medicine_id, request.quantity, request.reason, user)


@router.post("/out", response_model=StockOperationResult)
def stock_out(
    request: StockRequest,
    service: StockService = Depends(get_stock_service),
    user: dict = Depends(get_current_user),
):
    """Remove units of a medicine from stock."""
    return service.stock_out(request.medicine_id, request.quantity, request.reason, user)


@router.get("/{medicine_id}", response_model=StockLevel)
def get_stock(
    medicine_id: int,
    service: StockService = Depends(get_stock_service),
    user: dict = Depends(get_current_user),
):
    return service.get_stock(medicine_id)


@router.get("/{medicine_id}/movements", response_model=List[StockMovement])
def list_movements(
    medicine_id: int,
    service: StockService = Depends(get_stock_service),
    user: dict = Depends(get_current_user),
):
    """Stock ledger of a medicine, oldest first."""
    return service.list_movements(medicine_id)
