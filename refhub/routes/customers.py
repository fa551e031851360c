# refhub/routes/customers.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..controllers.business_customer_controller import (
    create_customer,
    delete_customer,
    get_customer,
    import_customers,
    list_customers,
    update_customer,
)
from ..db.mongo import MongoManager, get_db
from ..schemas.customer_schema import (
    BulkImportResponse,
    ContactStatusName,
    CustomerCreateRequest,
    CustomerOut,
    CustomerUpdateRequest,
    DeleteCustomerResponse,
)
from ..utils.auth_utils import require_role

router = APIRouter(prefix="/customers", tags=["Customers"])

business_only = require_role("business")


@router.get("", response_model=List[CustomerOut], summary="List my customer directory")
async def list_all(
    status: Optional[ContactStatusName] = Query(default=None),
    tag: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None, description="Matches name, email or phone"),
    business: dict = Depends(business_only),
    db: MongoManager = Depends(get_db),
):
    return await list_customers(db, business, status, tag, search)


@router.post("", status_code=201, response_model=CustomerOut, summary="Add a customer")
async def create(
    payload: CustomerCreateRequest,
    business: dict = Depends(business_only),
    db: MongoManager = Depends(get_db),
):
    return await create_customer(db, business, payload)


@router.post("/bulk", response_model=BulkImportResponse, summary="Import customers, upserting by email")
async def bulk_import(
    payload: List[CustomerCreateRequest],
    business: dict = Depends(business_only),
    db: MongoManager = Depends(get_db),
):
    return await import_customers(db, business, payload)


@router.get("/{customer_id}", response_model=CustomerOut, summary="Get one customer")
async def get_one(customer_id: str, business: dict = Depends(business_only), db: MongoManager = Depends(get_db)):
    return await get_customer(db, business, customer_id)


@router.patch("/{customer_id}", response_model=CustomerOut, summary="Update a customer")
async def update(
    customer_id: str,
    payload: CustomerUpdateRequest,
    business: dict = Depends(business_only),
    db: MongoManager = Depends(get_db),
):
    return await update_customer(db, business, customer_id, payload)


@router.delete("/{customer_id}", response_model=DeleteCustomerResponse, summary="Remove a customer")
async def delete(customer_id: str, business: dict = Depends(business_only), db: MongoManager = Depends(get_db)):
    return await delete_customer(db, business, customer_id)
