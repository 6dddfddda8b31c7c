# billbreak/api.py
from typing import Callable

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from pydantic import BaseModel

from . import split_logic
from .actions import BillAction
from .config import MAX_IMAGE_SIZE_BYTES, MAX_IMAGE_SIZE_MB
from .demo import load_demo_action
from .gemini_ocr import ParsedReceipt, ReceiptParseError, extract_receipt_with_gemini
from .models import BillState
from .store import BillStore

ReceiptParser = Callable[[bytes], ParsedReceipt]


# Pydantic models for request/response bodies
class BillSnapshot(BaseModel):
    state: BillState
    progress: int
    subtotal: float
    grand_total: float
    user_shares: list[split_logic.UserShare]
    is_ready: bool

    @classmethod
    def of(cls, state: BillState) -> "BillSnapshot":
        return cls(
            state=state,
            progress=split_logic.progress(state),
            subtotal=split_logic.subtotal(state),
            grand_total=split_logic.grand_total(state),
            user_shares=split_logic.user_shares(state),
            is_ready=split_logic.is_ready(state),
        )


class ActionRequest(BaseModel):
    action: BillAction


def get_store(request: Request) -> BillStore:
    return request.app.state.store

def get_receipt_parser(request: Request) -> ReceiptParser:
    return request.app.state.receipt_parser


def create_app(store: BillStore | None = None, receipt_parser: ReceiptParser | None = None) -> FastAPI:
    """Build the API around one bill store.

    The store and the receipt parser live on ``app.state`` and reach the
    endpoints through dependencies, so tests can hand in their own.
    """
    app = FastAPI(
        title="BillBreak API",
        description="API for parsing receipts, assigning items and computing per-person shares.",
        version="1.0.0",
    )
    app.state.store = store if store is not None else BillStore()
    app.state.receipt_parser = receipt_parser or extract_receipt_with_gemini

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def read_root():
        return {"message": "BillBreak API is running"}

    @app.get("/bill", response_model=BillSnapshot)
    def read_bill(store: BillStore = Depends(get_store)):
        return BillSnapshot.of(store.state)

    @app.post("/bill/actions", response_model=BillSnapshot)
    def apply_bill_action(body: ActionRequest, store: BillStore = Depends(get_store)):
        return BillSnapshot.of(store.dispatch(body.action))

    @app.post("/bill/demo", response_model=BillSnapshot)
    def load_demo(store: BillStore = Depends(get_store)):
        return BillSnapshot.of(store.dispatch(load_demo_action()))

    @app.post("/upload-receipt", response_model=ParsedReceipt)
    def upload_receipt(file: UploadFile = File(...), parse: ReceiptParser = Depends(get_receipt_parser)):
        if not (file.content_type or "").startswith("image/"):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Please upload an image file.")
        image_bytes = file.file.read()
        if len(image_bytes) > MAX_IMAGE_SIZE_BYTES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Image too large ({len(image_bytes) / (1024*1024):.2f} MB). Max {MAX_IMAGE_SIZE_MB} MB.",
            )
        try:
            return parse(image_bytes)
        except ReceiptParseError as e:
            logger.warning(f"Receipt parsing failed: {e}")
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Parsing failed: {e}")

    return app


app = create_app()
