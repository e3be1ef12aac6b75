from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import List, Optional, Union

from vat_pricing import __version__
from vat_pricing.config.settings import get_settings
from vat_pricing.engine import Price, PricingError, modifier_from_action
from vat_pricing.engine.serialization import SerializedPrice

app = FastAPI(
    title="VAT Pricing API",
    description="Exclusive/inclusive price computation with taxes, discounts and VAT",
    version=__version__
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ModifierRequest(BaseModel):
    """A pricing rule action applied to the price."""
    action: str  # discount_percent, discount_amount, tax_percent, tax_amount, override_unit_price, price_floor
    value: Union[float, str]
    key: Optional[str] = None
    before_vat: bool = False


class QuoteRequest(BaseModel):
    base: int  # minor units
    currency: Optional[str] = None
    units: Union[float, str] = 1
    vat: Optional[Union[float, str]] = None
    modifiers: List[ModifierRequest] = []


def build_price(req: QuoteRequest) -> Price:
    currency = req.currency or get_settings().default_currency
    price = Price.of_minor(req.base, currency, req.units)
    for mod in req.modifiers:
        price.add_modifier(modifier_from_action(
            mod.action, mod.value, price.currency(),
            key=mod.key, before_vat=mod.before_vat, rounding=price.rounding
        ))
    return price.set_vat(req.vat)


def quote_response(price: Price) -> dict:
    vat_unit = price.vat(per_unit=True)
    vat_total = price.vat()
    response = price.to_dict()
    response["per_unit"] = {
        "exclusive": price.exclusive(per_unit=True).minor_amount,
        "inclusive": price.inclusive(per_unit=True).minor_amount,
        "vat": vat_unit.minor_amount if vat_unit is not None else None,
    }
    response["vat_amount"] = vat_total.minor_amount if vat_total is not None else None
    response["modifications"] = [record.to_dict() for record in price.modifications()]
    return response


@app.get("/")
async def root():
    return {"status": "online", "message": "VAT Pricing API Active"}


@app.post("/price/quote")
async def quote(req: QuoteRequest):
    try:
        return quote_response(build_price(req))
    except (PricingError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/price/hydrate")
async def hydrate(record: SerializedPrice):
    try:
        return Price.from_json(record.model_dump()).to_dict()
    except (PricingError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/system/status")
async def get_status():
    settings = get_settings()
    return {
        "engine_active": True,
        "rounding": settings.rounding,
        "default_currency": settings.default_currency,
    }
