"""WhatsApp click-to-chat links used to confirm orders and appointments"""

from typing import Any, Iterable, Optional
from urllib.parse import quote

from ..config import BRAND_NAME, WHATSAPP_NUMBER
from ..domain.availability.service import format_date
from ..shared.money import format_amount, line_total

ANY_BARBER_LABEL = "Cualquiera (Primero disponible)"

TYPE_LABELS = {"product": "Producto", "service": "Servicio", "offer": "Promoción"}


def whatsapp_link(text: str, number: Optional[str] = None) -> str:
    """https://wa.me/<digits>?text=<urlencoded text>"""
    digits = "".join(ch for ch in (number or WHATSAPP_NUMBER) if ch.isdigit()) or "0000000000"
    return f"https://wa.me/{digits}?text={quote(text, safe='')}"


def build_order_message(
    customer_name: str,
    customer_phone: str,
    lines: Iterable[Any],
    subtotal: Any,
    total: Any,
    discount_code: Optional[str] = None,
    discount_amount: Any = 0,
) -> str:
    """
    Order summary sent to the shop. `lines` are cart items exposing
    item_type, name, price, quantity and the booking_* / barber_name fields.
    """
    message = "¡Hola! Me gustaría realizar el siguiente pedido:\n\n"

    message += "📋 DATOS DEL CLIENTE:\n"
    message += f"Nombre: {customer_name}\n"
    message += f"Teléfono: {customer_phone}\n\n"

    message += "🛒 PEDIDO:\n"
    for line in lines:
        message += f"• {TYPE_LABELS.get(line.item_type, 'Producto')}: {line.name}\n"
        message += f"  Cantidad: {line.quantity}\n"
        message += f"  Precio unitario: {format_amount(line.price)}\n"

        if line.booking_date:
            message += f"  📅 Fecha: {format_date(line.booking_date)}\n"
            message += f"  🕐 Hora: {line.booking_time}\n"
            message += f"  👤 Barbero: {line.barber_name or ANY_BARBER_LABEL}\n"

        message += f"  Subtotal: {format_amount(line_total(line.price, line.quantity))}\n\n"

    message += "💰 RESUMEN:\n"
    message += f"Subtotal: {format_amount(subtotal)}\n"
    if discount_code:
        message += f"Descuento ({discount_code}): -{format_amount(discount_amount)}\n"
    message += f"TOTAL: {format_amount(total)}\n\n"
    message += "Por favor, confirma disponibilidad y forma de pago. ¡Gracias!"
    return message


def build_booking_message(
    service_name: Optional[str],
    barber_name: Optional[str],
    date_str: Optional[str],
    time: str,
    customer_name: str,
    customer_phone: str,
    brand_name: str = BRAND_NAME,
) -> str:
    date_label = format_date(date_str) if date_str else "Fecha no especificada"
    return (
        f"¡Hola! Me gustaría reservar una cita en {brand_name}.\n\n"
        f"- Servicio / Promo: {service_name or 'Servicio no especificado'}\n"
        f"- Barbero: {barber_name or ANY_BARBER_LABEL}\n"
        f"- Fecha: {date_label}\n"
        f"- Hora: {time}\n"
        f"- Nombre: {customer_name}\n"
        f"- Teléfono: {customer_phone}\n\n"
        "Por favor, confirma mi reserva. ¡Gracias!"
    )
