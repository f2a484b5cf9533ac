import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Upstream REST backend (barbers, services, products, offers, reservations, discounts)
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:4000/api").rstrip("/")
BACKEND_TIMEOUT = float(os.getenv("BACKEND_TIMEOUT", "15"))

# Local storage for carts
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./barberdesk.db")

# Catalog responses change rarely; products are never cached because of stock
CATALOG_CACHE_TTL = int(os.getenv("CATALOG_CACHE_TTL", "300"))

# WhatsApp number in international format, digits only (e.g. "50370009306")
WHATSAPP_NUMBER = "".join(ch for ch in os.getenv("WHATSAPP_NUMBER", "") if ch.isdigit()) or "0000000000"
BRAND_NAME = os.getenv("BRAND_NAME", "Khoopper Barbershop")

# Slot grid: every SLOT_INTERVAL_MINUTES from SLOT_START_HOUR to SLOT_END_HOUR:00
SLOT_START_HOUR = int(os.getenv("SLOT_START_HOUR", "9"))
SLOT_END_HOUR = int(os.getenv("SLOT_END_HOUR", "19"))
SLOT_INTERVAL_MINUTES = int(os.getenv("SLOT_INTERVAL_MINUTES", "30"))

# After this local time today is no longer offered for booking
BOOKING_CUTOFF = os.getenv("BOOKING_CUTOFF", "16:30")
BOOKING_DAYS_AHEAD = int(os.getenv("BOOKING_DAYS_AHEAD", "7"))

# Discount code validation is public, so it is throttled per IP
DISCOUNT_VALIDATE_LIMIT = int(os.getenv("DISCOUNT_VALIDATE_LIMIT", "10"))
DISCOUNT_VALIDATE_WINDOW = int(os.getenv("DISCOUNT_VALIDATE_WINDOW", "60"))
BOOKING_LIMIT = int(os.getenv("BOOKING_LIMIT", "5"))
BOOKING_WINDOW = int(os.getenv("BOOKING_WINDOW", "60"))

# Frontend base URL (CORS)
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    f"{FRONTEND_URL},http://localhost:3000",
).split(",")
