# billtracker/main.py
import os
import json
import html
import logging
from datetime import datetime
from typing import Any, Dict

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query, Header, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import ValidationError

from .book import BillBook
from .db import init_db, DB_PATH
from .models import Bill, BillIn, BillEdit, BillStatus
from .view import ALL, SortKey

# ----------------------------
# Env & API-key guard
# ----------------------------
load_dotenv()

API_KEY    = os.getenv("BILLS_API_KEY", "")
DEBUG_MODE = os.getenv("BILLS_DEBUG", "0") == "1"

FILTER_PATTERN = "^(All|Paid|Unpaid|Pending)$"

def verify_key(x_api_key: str = Header(default="")):
    # Personal installs run without a key; once one is configured it is enforced
    if API_KEY and x_api_key != API_KEY:
        raise HTTPException(status_code=401, detail="Unauthorized")

# ----------------------------
# App bootstrap (docs toggle)
# ----------------------------
docs_enabled = os.getenv("BILLS_DOCS", "0") == "1"
docs_url     = "/docs" if docs_enabled else None
openapi_url  = "/openapi.json" if docs_enabled else None

app = FastAPI(
    title="Bill Tracker",
    version="9.0.0",
    docs_url=docs_url,
    redoc_url=None,
    openapi_url=openapi_url,
)

# CORS
allowed_origins = [o for o in os.getenv("BILLS_CORS", "").split(",") if o]
if allowed_origins:
    # Credentials + explicit origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
        allow_credentials=True,
    )
else:
    # No credentials when wildcard origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
        allow_credentials=False,
    )

# Logging
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
logger = logging.getLogger("billtracker")

# ----------------------------
# Lifecycle
# ----------------------------
@app.on_event("startup")
def _startup():
    init_db()
    app.state.book = BillBook().load()
    logger.info("Bill Tracker startup: DB_PATH=%s", DB_PATH)
    logger.info(
        "Config: BILLS_STORAGE_KEY=%s BILLS_STRICT_AMOUNTS=%s",
        app.state.book.storage_key,
        os.getenv("BILLS_STRICT_AMOUNTS", "0"),
    )

def get_book(request: Request) -> BillBook:
    return request.app.state.book

# ----------------------------
# Utilities
# ----------------------------
STATUS_COLORS = {
    BillStatus.PAID: "success",
    BillStatus.UNPAID: "danger",
    BillStatus.PENDING: "warning",
}

async def read_submission(request: Request) -> Dict[str, Any]:
    """Accept a JSON body, a form post, or a form post carrying JSON in `payload`."""
    try:
        data = await request.json()
    except Exception:
        form = await request.form()
        data = dict(form)
        if data.get("payload"):
            try:
                data = json.loads(data["payload"])
            except ValueError as e:
                raise HTTPException(400, f"Invalid payload JSON: {e}")
    if not isinstance(data, dict):
        raise HTTPException(400, "Expected an object")
    return data

def totals_payload(totals: Dict[BillStatus, float]) -> Dict[str, float]:
    return {status.value: total for status, total in totals.items()}

def unknown_bill(bill_id: str) -> dict:
    return {"ok": True, "ignored": True, "reason": "unknown bill", "bill_id": bill_id}

def render_card(bill: Bill) -> str:
    e = html.escape
    return f"""
      <div class="card mb-3">
        <div class="card-body">
          <div class="d-flex justify-content-between align-items-start">
            <div>
              <h5 class="card-title">{e(bill.display_name)}</h5>
              <h6 class="card-subtitle mb-2 text-muted">{e(bill.type)} Bill</h6>
            </div>
            <span class="badge bg-{STATUS_COLORS[bill.status]}">{e(bill.status.value)}</span>
          </div>
          <p class="card-text"><strong>Amount:</strong> {bill.amount.value:.2f} {e(bill.amount.currency)}</p>
          <p class="card-text"><strong>Payment Method:</strong> {e(bill.payment_method)}</p>
        </div>
      </div>
    """

# ----------------------------
# Public endpoints (no API key)
# ----------------------------
@app.get("/", summary="Health (root)")
def root_health():
    payload = {
        "ok": True,
        "service": app.title,
        "time": datetime.utcnow().isoformat(),
    }
    if DEBUG_MODE:
        payload["db_path"] = DB_PATH
    return payload

@app.get("/health", summary="Health")
def health():
    # Alias for convenience
    return root_health()

# ----------------------------
# Protected endpoints (X-API-KEY when configured)
# ----------------------------
@app.get("/bills", summary="List bills", dependencies=[Depends(verify_key)])
def get_bills(
    filter: str = Query(ALL, pattern=FILTER_PATTERN),
    sort: str = Query(SortKey.DEFAULT.value),
    book: BillBook = Depends(get_book),
):
    view = book.view(filter, sort)
    return {
        "items": [b.model_dump(mode="json", by_alias=True) for b in view.items],
        "totals": totals_payload(view.totals),
    }

@app.get("/totals", summary="Totals per status", dependencies=[Depends(verify_key)])
def get_totals(book: BillBook = Depends(get_book)):
    return totals_payload(book.totals())

@app.post("/bills", response_model=Bill, summary="Add a bill (JSON or form)", dependencies=[Depends(verify_key)])
async def add_bill(request: Request, book: BillBook = Depends(get_book)):
    data = await read_submission(request)
    try:
        bill_in = BillIn.model_validate(data)
    except ValidationError as e:
        raise HTTPException(400, f"Invalid bill: {e}")
    return book.add(bill_in)

@app.post("/bills/{bill_id}/edit", summary="Change amount and status", dependencies=[Depends(verify_key)])
async def edit_bill(bill_id: str, request: Request, book: BillBook = Depends(get_book)):
    data = await read_submission(request)
    try:
        edit = BillEdit.model_validate(data)
    except ValidationError as e:
        raise HTTPException(400, f"Invalid edit: {e}")
    bill = book.update(bill_id, edit.amount, edit.status)
    if bill is None:
        return unknown_bill(bill_id)
    return {"ok": True, "bill": bill.model_dump(mode="json", by_alias=True)}

@app.post("/bills/{bill_id}/mark_paid", summary="Mark a bill as paid", dependencies=[Depends(verify_key)])
def mark_paid(bill_id: str, book: BillBook = Depends(get_book)):
    bill = book.mark_paid(bill_id)
    if bill is None:
        return unknown_bill(bill_id)
    return {"ok": True, "bill_id": bill_id, "status": bill.status.value}

@app.post("/bills/{bill_id}/toggle", summary="Pay bill / withdraw payment", dependencies=[Depends(verify_key)])
def toggle_bill(bill_id: str, book: BillBook = Depends(get_book)):
    bill = book.toggle_status(bill_id)
    if bill is None:
        return unknown_bill(bill_id)
    return {"ok": True, "bill_id": bill_id, "status": bill.status.value}

@app.delete("/bills/{bill_id}", summary="Delete a bill", dependencies=[Depends(verify_key)])
def delete_bill(bill_id: str, book: BillBook = Depends(get_book)):
    if not book.remove(bill_id):
        return unknown_bill(bill_id)
    return {"ok": True, "bill_id": bill_id, "deleted": True}

@app.get("/page", summary="Bill cards", dependencies=[Depends(verify_key)])
def bills_page(
    filter: str = Query(ALL, pattern=FILTER_PATTERN),
    sort: str = Query(SortKey.DEFAULT.value),
    book: BillBook = Depends(get_book),
):
    view = book.view(filter, sort)
    if view.items:
        cards = "".join(render_card(b) for b in view.items)
    else:
        cards = '<p class="text-center text-muted">No bills to display.</p>'
    totals = view.totals
    return HTMLResponse(f"""
      <html><body style="font-family:system-ui">
        <h2>My Bills</h2>
        <p><b>Paid:</b> <span id="total-paid">&euro;{totals[BillStatus.PAID]:.2f}</span><br/>
           <b>Pending:</b> <span id="total-pending">&euro;{totals[BillStatus.PENDING]:.2f}</span><br/>
           <b>Unpaid:</b> <span id="total-unpaid">&euro;{totals[BillStatus.UNPAID]:.2f}</span></p>
        <div id="bills-list">{cards}</div>
      </body></html>
    """)
