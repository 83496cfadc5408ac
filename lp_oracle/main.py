from __future__ import annotations

from fastapi import FastAPI

from lp_oracle.api.routers.valuation import router as valuation_router

app = FastAPI(title="LP Position Oracle")
app.include_router(valuation_router)


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
