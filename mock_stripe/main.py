"""Mock payments provider exposing the price and checkout session endpoints the gateway client uses"""

import uuid
from typing import Any, Dict
from urllib.parse import parse_qsl

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

app = FastAPI(title="Mock Payments Provider", version="1.0.0")

PRICES: Dict[str, Dict[str, Any]] = {
    "price_pro_annual": {
        "id": "price_pro_annual",
        "object": "price",
        "currency": "gbp",
        "unit_amount": 9500,
        "type": "recurring",
        "recurring": {"interval": "year", "interval_count": 1},
    },
    "price_pro_lifetime": {
        "id": "price_pro_lifetime",
        "object": "price",
        "currency": "gbp",
        "unit_amount": 24900,
        "type": "one_time",
        "recurring": None,
    },
}

SESSIONS: Dict[str, Dict[str, Any]] = {}


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": {"type": "invalid_request_error", "message": message}})


def _authorized(request: Request) -> bool:
    return request.headers.get("authorization", "").startswith("Bearer sk_")


@app.get("/health")
def health(): return {"status": "ok"}


@app.get("/v1/prices/{price_id}")
def get_price(price_id: str, request: Request):
    if not _authorized(request):
        return _error(401, "Invalid API Key provided")
    price = PRICES.get(price_id)
    if price is None:
        return _error(404, f"No such price: '{price_id}'")
    return price


@app.post("/v1/checkout/sessions")
async def create_session(request: Request):
    if not _authorized(request):
        return _error(401, "Invalid API Key provided")

    form = dict(parse_qsl((await request.body()).decode("utf-8")))
    mode = form.get("mode")
    if mode not in ("payment", "subscription"):
        return _error(400, "Invalid mode")
    if not form.get("success_url"):
        return _error(400, "Missing required param: success_url")

    price_id = form.get("line_items[0][price]")
    if price_id and price_id not in PRICES:
        return _error(400, f"No such price: '{price_id}'")
    if mode == "subscription" and (not price_id or PRICES[price_id]["recurring"] is None):
        return _error(400, "You must provide at least one recurring price in `subscription` mode")
    if mode == "payment" and form.get("subscription_data[metadata][plan]"):
        return _error(400, "You can not pass `subscription_data` in `payment` mode")

    session_id = f"cs_test_{uuid.uuid4().hex}"
    email = form.get("customer_email")
    session = {
        "id": session_id,
        "object": "checkout.session",
        "url": f"https://checkout.mock/pay/{session_id}",
        "mode": mode,
        "status": "open",
        "customer_details": {"email": email} if email else None,
        "customer": None,
        "subscription": f"sub_{uuid.uuid4().hex[:14]}" if mode == "subscription" else None,
        "metadata": {k[len("metadata["):-1]: v for k, v in form.items() if k.startswith("metadata[")},
        "amount_total": int(form.get("line_items[0][price_data][unit_amount]") or PRICES.get(price_id or "", {}).get("unit_amount") or 0),
    }
    SESSIONS[session_id] = session
    return session


@app.get("/v1/checkout/sessions/{session_id}")
def get_session(session_id: str, request: Request):
    if not _authorized(request):
        return _error(401, "Invalid API Key provided")
    session = SESSIONS.get(session_id)
    if session is None:
        return _error(404, f"No such checkout.session: '{session_id}'")

    expand = request.query_params.getlist("expand[]")
    result = dict(session)
    if "subscription" in expand and result["subscription"]:
        result["subscription"] = {"id": result["subscription"], "object": "subscription", "status": "active"}
    if "customer" in expand and result["customer_details"]:
        result["customer"] = {"object": "customer", "email": result["customer_details"]["email"]}
    return result
