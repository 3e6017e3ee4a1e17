import os
from dotenv import load_dotenv

load_dotenv()

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-me-before-deploying")
DB_FILE = os.getenv("DB_FILE", os.path.join(os.path.dirname(__file__), "orders.db"))
TOKEN_TTL_MINUTES = int(os.getenv("TOKEN_TTL_MINUTES", "60"))

# Fraction taken off the amount when another user claims a redistributed order
CLAIM_DISCOUNT_RATE = float(os.getenv("CLAIM_DISCOUNT_RATE", "0.5"))

ORDER_API_URL = os.getenv("ORDER_API_URL", "http://127.0.0.1:5000")
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "10"))
CURRENCY = os.getenv("CURRENCY", "$")
