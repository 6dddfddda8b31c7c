# billbreak/gemini_ocr.py
import io
import json
import re
import time
from typing import Any

import PIL.Image
from google import genai
from google.genai import types
from loguru import logger
from pydantic import BaseModel, Field, ValidationError, model_validator

from .config import GEMINI_MODEL_NAME, get_gemini_config
from .models import LineItem
from .parsing import clean_and_convert_number


class ReceiptParseError(ValueError):
    """The receipt could not be turned into usable line items."""


# --- Pydantic Models ---
class ParsedItem(BaseModel):
    name: str = Field(description="Item name as printed on the receipt")
    price: float = Field(ge=0, description="Price of a single unit")
    quantity: int = Field(default=1, ge=1, description="Number of units")

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, data: Any) -> Any:
        if isinstance(data, cls):
            return data
        if not isinstance(data, dict):
            raise ValueError(f"line item must be an object, got {type(data).__name__}")
        price = clean_and_convert_number(data.get("price")) or 0.0
        raw_quantity = data.get("quantity") or data.get("qty")
        quantity = clean_and_convert_number(raw_quantity, is_quantity=True) or 1.0
        return {
            "name": str(data.get("name") or "Unknown Item").strip() or "Unknown Item",
            "price": max(0.0, price),
            "quantity": max(1, round(quantity)),
        }


class TaxDetail(BaseModel):
    tax_label: str = Field(default="Tax", description="Label for the tax or charge")
    tax_amount: float = Field(default=0.0, description="Amount of the tax or charge")

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, data: Any) -> Any:
        if isinstance(data, cls):
            return data
        if not isinstance(data, dict):
            raise ValueError(f"tax detail must be an object, got {type(data).__name__}")
        return {
            "tax_label": str(data.get("tax_label") or "Tax"),
            "tax_amount": clean_and_convert_number(data.get("tax_amount")) or 0.0,
        }


class ParsedReceipt(BaseModel):
    items: list[ParsedItem] = Field(default_factory=list)
    tax_details: list[TaxDetail] = Field(default_factory=list)

    @property
    def total_tax(self) -> float:
        return sum((t.tax_amount for t in self.tax_details), 0.0)

    def to_line_items(self) -> list[LineItem]:
        """Fresh, unassigned bill items for the parsed lines."""
        return [LineItem(name=i.name, unit_price=i.price, quantity=i.quantity) for i in self.items]


RECEIPT_PROMPT = """You are a receipt parser. Analyze this receipt image and extract all purchased items.

IMPORTANT RULES:
1. Extract ONLY individual items (food, drinks, products) into "items"
2. Do NOT list tax, tip, subtotal, total, discounts or service charges as items
3. For each item, extract: name, price (as number), quantity (as number, default 1)
4. If price includes quantity (e.g., "2 x Coffee $6.00"), set quantity=2 and price=3.00 (unit price)
5. List each tax or service charge printed on the receipt in "tax_details"
6. Return ONLY valid JSON, no other text

OUTPUT FORMAT (strict JSON object):
{
  "items": [
    {"name": "Margherita Pizza", "price": 450, "quantity": 1},
    {"name": "Coke", "price": 50, "quantity": 2}
  ],
  "tax_details": [
    {"tax_label": "GST 5%", "tax_amount": 27.5}
  ]
}

Parse the receipt now:"""

_FENCE_START = re.compile(r'^```(?:json)?\s*\n?', re.IGNORECASE)
_FENCE_END = re.compile(r'\n?```\s*$')


def strip_markdown(text: str) -> str:
    """Remove a ```json ... ``` fence the model sometimes wraps its answer in."""
    return _FENCE_END.sub('', _FENCE_START.sub('', text.strip())).strip()


def parse_receipt_response(response_text: str) -> ParsedReceipt:
    """Validate the model's JSON answer into a ParsedReceipt.

    Accepts ``{"items": [...], "tax_details": [...]}`` or a bare item array.
    Raises ReceiptParseError for anything else.
    """
    cleaned = strip_markdown(response_text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse AI response: {cleaned!r}")
        raise ReceiptParseError("Failed to parse receipt data from AI response") from e

    if isinstance(parsed, list):
        parsed = {"items": parsed}
    if not isinstance(parsed, dict) or not isinstance(parsed.get("items") or [], list):
        raise ReceiptParseError("AI response is not a list of items")
    if not isinstance(parsed.get("tax_details") or [], list):
        raise ReceiptParseError("AI response tax_details is not a list")

    try:
        return ParsedReceipt(items=parsed.get("items") or [], tax_details=parsed.get("tax_details") or [])
    except ValidationError as e:
        logger.warning(f"Pydantic validation failed for AI response: {e}")
        raise ReceiptParseError(f"Receipt data did not validate: {e.error_count()} error(s)") from e


def extract_receipt_with_gemini(image_bytes: bytes, client: Any = None) -> ParsedReceipt:
    """Send a receipt image to Gemini and return the parsed items.

    ``client`` defaults to a ``genai.Client`` built from the environment.
    Every failure surfaces as ReceiptParseError.
    """
    start_time = time.time()
    logger.info(f"Starting receipt data extraction at {time.strftime('%Y-%m-%d %H:%M:%S')}")
    try:
        if client is None:
            api_key, model_name = get_gemini_config()
            client = genai.Client(api_key=api_key)
        else:
            model_name = GEMINI_MODEL_NAME

        img = PIL.Image.open(io.BytesIO(image_bytes))
        config_obj = types.GenerateContentConfig(
            temperature=0.1,
            response_mime_type="application/json",
        )

        logger.info(f"Sending receipt to Gemini API ({model_name})...")
        response = client.models.generate_content(
            model=model_name,
            contents=[RECEIPT_PROMPT, img],
            config=config_obj,
        )
        response_text = response.text
    except Exception as e:
        logger.error(f"An error occurred calling Gemini API: {e}")
        raise ReceiptParseError(f"Gemini API call failed: {e}") from e
    logger.info(f"Gemini API response received in {time.time() - start_time:.2f} seconds.")

    if not response_text:
        raise ReceiptParseError("Gemini returned an empty response.")

    receipt = parse_receipt_response(response_text)
    logger.info(f"Parsed {len(receipt.items)} line item(s), total tax {receipt.total_tax:.2f}")
    return receipt
