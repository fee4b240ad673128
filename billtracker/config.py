import os

DB_PATH = (
    os.environ.get("DB_PATH")
    or os.environ.get("BILLS_DB_PATH")
    or "billtracker.sqlite3"  # fallback
)

# Name of the storage slot holding the JSON array of bills
STORAGE_KEY = os.environ.get("BILLS_STORAGE_KEY", "myBills")

DEFAULT_CURRENCY = os.environ.get("BILLS_DEFAULT_CURRENCY", "EUR").upper()

# "1" rejects invalid amount input instead of coercing it to 0
STRICT_AMOUNTS = os.environ.get("BILLS_STRICT_AMOUNTS", "0") == "1"
