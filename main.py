import logging
from dataclasses import asdict
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from sqlalchemy import text
from sqlalchemy.orm import Session

from config import get_settings
from database import SessionLocal, session_scope, store_errors
from errors import DataIntegrityError, NotFound, StoreUnavailable, ValidationError
from models import TransactionType, categories_for_type
from periods import resolve_month
from schemas import (
    BudgetIn,
    BudgetOut,
    Pagination,
    TransactionIn,
    TransactionOut,
    TransactionPage,
    TransactionUpdate,
)
from services import AnalyticsService, BudgetService, TransactionService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Finance Tracker")

DEFAULT_PAGE_SIZE = 10


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def month_from_request(request: Request):
    try:
        return resolve_month(request.query_params.get("month"))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _positive_int(raw: Optional[str], default: int) -> int:
    try:
        value = int(raw) if raw else default
    except ValueError:
        return default
    return value if value > 0 else default


@app.get("/health")
def health():
    try:
        with session_scope() as session:
            with store_errors("health"):
                session.execute(text("SELECT 1"))
    except StoreUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return {"status": "ok"}


@app.get("/api/categories")
def list_categories(type: TransactionType = TransactionType.expense):
    return {"type": type.value, "categories": list(categories_for_type(type))}


@app.get("/api/transactions")
def list_transactions(request: Request, db: Session = Depends(get_db)):
    page = _positive_int(request.query_params.get("page"), 1)
    limit = _positive_int(request.query_params.get("limit"), DEFAULT_PAGE_SIZE)
    try:
        items = TransactionService(db).list(limit=limit, offset=(page - 1) * limit)
    except StoreUnavailable as exc:
        if not get_settings().degrade_reads:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        logger.warning(f"transactions_degraded: reason={exc}")
        page, limit, items = 1, DEFAULT_PAGE_SIZE, []
    return TransactionPage(
        transactions=[TransactionOut.model_validate(t) for t in items],
        pagination=Pagination(page=page, limit=limit, has_more=len(items) == limit),
    )


@app.post("/api/transactions")
def create_transaction(data: TransactionIn, db: Session = Depends(get_db)):
    try:
        txn = TransactionService(db).create(data)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except StoreUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return TransactionOut.model_validate(txn)


@app.put("/api/transactions/{transaction_id}")
def update_transaction(
    transaction_id: int, data: TransactionUpdate, db: Session = Depends(get_db)
):
    try:
        TransactionService(db).update(transaction_id, data)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except StoreUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return {"success": True}


@app.delete("/api/transactions/{transaction_id}")
def delete_transaction(transaction_id: int, db: Session = Depends(get_db)):
    try:
        TransactionService(db).delete(transaction_id)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except StoreUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return {"success": True}


@app.get("/api/budgets")
def list_budgets(request: Request, db: Session = Depends(get_db)):
    month = month_from_request(request)
    try:
        budgets = BudgetService(db).list_for_month(month)
    except StoreUnavailable as exc:
        if not get_settings().degrade_reads:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        logger.warning(f"budgets_degraded: month={month.key} reason={exc}")
        budgets = []
    return [BudgetOut.model_validate(b) for b in budgets]


@app.post("/api/budgets")
def set_budget(data: BudgetIn, db: Session = Depends(get_db)):
    try:
        budget = BudgetService(db).set_budget(data)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except StoreUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return BudgetOut.model_validate(budget)


@app.get("/api/budgets/progress")
def budget_progress(request: Request, db: Session = Depends(get_db)):
    month = month_from_request(request)
    try:
        progress = BudgetService(db).progress_for_month(month)
    except StoreUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except DataIntegrityError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return jsonable_encoder([asdict(p) for p in progress])


@app.get("/api/analytics")
def analytics(db: Session = Depends(get_db)):
    try:
        data = AnalyticsService(db).dashboard()
    except StoreUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except DataIntegrityError as exc:
        logger.error(f"analytics_failed: reason={exc}")
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return jsonable_encoder(
        {
            "monthly_data": [asdict(m) for m in data["monthly_data"]],
            "category_data": [asdict(c) for c in data["category_data"]],
        }
    )


@app.get("/api/insights")
def insights(request: Request, db: Session = Depends(get_db)):
    month = request.query_params.get("month")
    try:
        result = AnalyticsService(db).insights(month)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except StoreUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except DataIntegrityError as exc:
        logger.error(f"insights_failed: reason={exc}")
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return jsonable_encoder(asdict(result))


def main():
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    main()
