import logging
import os
from dotenv import load_dotenv

load_dotenv()

# Frontend origin allowed by CORS
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000") # Default to the local dev frontend

# Log level for the root logger (configured in main.py)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()
if not isinstance(logging.getLevelName(LOG_LEVEL), int):
    print(f"Warning: Invalid LOG_LEVEL '{LOG_LEVEL}' in .env file. Defaulting to INFO.")
    LOG_LEVEL = "INFO"

# --- Mail Transport (SMTP) ---
EMAIL_HOST = os.getenv("EMAIL_HOST")
EMAIL_USER = os.getenv("EMAIL_USER")
EMAIL_PASSWORD = os.getenv("EMAIL_PASSWORD")
EMAIL_FROM_NAME = os.getenv("EMAIL_FROM_NAME", "Wallet Security")
EMAIL_USE_TLS = os.getenv("EMAIL_USE_TLS", "false").strip().lower() in ("1", "true", "yes")

# Mailbox that gets a copy of every login alert
MONITORING_EMAIL = os.getenv("MONITORING_EMAIL") or EMAIL_USER

try:
    EMAIL_PORT = int(os.getenv("EMAIL_PORT", "587"))
except ValueError:
    print("Warning: Invalid EMAIL_PORT in .env file. Defaulting to 587.")
    EMAIL_PORT = 587

# Basic validation
if not EMAIL_HOST:
    print("Warning: EMAIL_HOST not found in .env file. Login alert emails will not be sent.")
if not EMAIL_USER:
    print("Warning: EMAIL_USER not found in .env file. Login alert emails have no sender.")
