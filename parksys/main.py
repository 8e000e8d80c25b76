from __future__ import annotations

from fastapi import FastAPI, HTTPException

from parksys.api.routers import asset, asset_history, asset_maintenance
from parksys.infra.audit import AuditMiddleware
from parksys.infra.db import check_db_ready

app = FastAPI(
    title="parksys",
    description="Park asset registry with maintenance records and an append-only change history.",
    version="0.1.0",
)

app.add_middleware(AuditMiddleware)

# History routes go first so /history/recent is not captured by /{asset_id}.
app.include_router(asset_history.router, prefix="/api/assets", tags=["asset-history"])
app.include_router(asset.router, prefix="/api/assets", tags=["assets"])
app.include_router(asset_maintenance.router, prefix="/api/assets", tags=["asset-maintenance"])


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/readyz")
def readyz() -> dict[str, object]:
    db_ok = check_db_ready()
    checks = {"db": "ok" if db_ok else "fail"}
    if not db_ok:
        raise HTTPException(
            status_code=503,
            detail={"status": "not_ready", "checks": checks},
        )
    return {"status": "ready", "checks": checks}
