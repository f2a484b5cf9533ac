"""Invoice router - counter invoices for the admin dashboard"""

from fastapi import APIRouter, Depends

from ...services.backend_client import BarbershopBackend, get_backend_client
from .schemas import InvoiceCreate, InvoiceResponse, InvoiceUpdate
from .service import InvoiceService

router = APIRouter(prefix="/invoices", tags=["Invoices"])


def get_invoice_service(backend: BarbershopBackend = Depends(get_backend_client)) -> InvoiceService:
    """Dependency injection for InvoiceService"""
    return InvoiceService(backend)


@router.post("", response_model=InvoiceResponse)
async def create_invoice(data: InvoiceCreate, service: InvoiceService = Depends(get_invoice_service)):
    """Create a confirmed invoice with its lines and discount"""
    return await service.create_invoice(data)


@router.get("/{reservation_id}", response_model=InvoiceResponse)
async def get_invoice(reservation_id: int, service: InvoiceService = Depends(get_invoice_service)):
    """Load an invoice's lines, with any attached discount re-priced"""
    return await service.load_invoice(reservation_id)


@router.put("/{reservation_id}", response_model=InvoiceResponse)
async def update_invoice(
    reservation_id: int,
    data: InvoiceUpdate,
    service: InvoiceService = Depends(get_invoice_service),
):
    return await service.save_invoice(reservation_id, data)
