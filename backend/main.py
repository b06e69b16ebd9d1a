import logging
from contextlib import asynccontextmanager

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

import db
import snapshot
from config import CORS_ORIGINS, DEFAULT_PERIOD, PERIODS, SEED_SAMPLE_PORTFOLIO, SNAPSHOT_INTERVAL_SECONDS
from history import reconstruct_series
from metrics import compute_metrics
from valuation import (
    compute_allocation,
    compute_portfolio_stats,
    compute_quick_stats,
    line_pl,
    line_value,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


class PositionIn(BaseModel):
    ticker: str = Field(min_length=1)
    quantity: float = Field(ge=0, allow_inf_nan=False)
    average_cost: float = Field(ge=0, allow_inf_nan=False)
    current_price: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    name: str | None = None
    currency: str | None = None


class PricesIn(BaseModel):
    prices: dict[str, float]


class CashIn(BaseModel):
    amount: float = Field(ge=0, allow_inf_nan=False)


@asynccontextmanager
async def lifespan(app: FastAPI):
    db.create_tables()
    if SEED_SAMPLE_PORTFOLIO and db.seed_sample_portfolio():
        logger.info("Seeded sample portfolio")
    snapshot.run_snapshot_job()

    scheduler = BackgroundScheduler()
    scheduler.add_job(snapshot.run_snapshot_job, "interval", seconds=SNAPSHOT_INTERVAL_SECONDS)
    scheduler.start()
    logger.info("Snapshot scheduler started (every %ss)", SNAPSHOT_INTERVAL_SECONDS)
    try:
        yield
    finally:
        if scheduler.running:
            scheduler.shutdown(wait=False)


app = FastAPI(title="PEA Tracker", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # Rejected input is left out: an Infinity/NaN body value cannot be echoed as JSON
    errors = [{k: v for k, v in err.items() if k != "input"} for err in exc.errors()]
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(errors)})


@app.get("/api/health")
def health():
    return {"status": "ok"}


@app.get("/api/periods")
def periods():
    return {"periods": PERIODS, "default": DEFAULT_PERIOD}


@app.get("/api/positions")
def list_positions():
    rows = []
    for p in db.get_positions():
        pl = line_pl(p.quantity, p.average_cost, p.current_price)
        row = p.to_dict()
        row["value"] = line_value(p.quantity, p.current_price)
        row["pl_absolute"] = pl.absolute
        row["pl_percent"] = pl.percent
        rows.append(row)
    return rows


@app.post("/api/positions", status_code=201)
def add_position(body: PositionIn):
    position = db.insert_position(
        ticker=body.ticker.strip().upper(),
        quantity=body.quantity,
        average_cost=body.average_cost,
        current_price=body.current_price,
        name=body.name,
        currency=body.currency,
    )
    logger.info("Added position %s (%s)", position.ticker, position.id)
    return position.to_dict()


@app.delete("/api/positions/{position_id}", status_code=204)
def remove_position(position_id: str):
    if not db.delete_position(position_id):
        raise HTTPException(status_code=404, detail=f"Unknown position: {position_id}")
    return Response(status_code=204)


@app.post("/api/prices")
def update_prices(body: PricesIn):
    updated, unchanged = snapshot.apply_price_updates(body.prices)
    return {"updated": updated, "unchanged": unchanged}


@app.get("/api/stats")
def stats():
    return compute_portfolio_stats(db.get_positions(), db.get_cash_balance()).to_dict()


@app.get("/api/cash")
def get_cash():
    return {"cash_balance": db.get_cash_balance()}


@app.put("/api/cash")
def put_cash(body: CashIn):
    db.set_cash_balance(body.amount)
    return {"cash_balance": body.amount}


@app.get("/api/history")
def history(period: str = DEFAULT_PERIOD):
    series = reconstruct_series(db.get_positions(), period, db.get_history_observations())
    return [point.to_dict() for point in series]


@app.get("/api/metrics")
def metrics(period: str = DEFAULT_PERIOD):
    positions = db.get_positions()
    series = reconstruct_series(positions, period, db.get_history_observations())
    current = compute_portfolio_stats(positions)
    summary = compute_metrics(series, current.total_value, current.total_cost)
    if summary is None:
        raise HTTPException(status_code=503, detail="Not enough history to compute metrics")
    return summary.to_dict()


@app.get("/api/allocation")
def allocation():
    return [s.to_dict() for s in compute_allocation(db.get_positions())]


@app.get("/api/quick-stats")
def quick_stats():
    result = compute_quick_stats(db.get_positions())
    if result is None:
        raise HTTPException(status_code=503, detail="No positions")
    return result.to_dict()


@app.post("/api/snapshot")
def take_snapshot():
    return {"recorded": snapshot.record_daily_snapshot()}
