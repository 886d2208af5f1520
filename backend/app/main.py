# app/main.py

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.core.db import init_db, close_db
from app.core.bootstrap import build_services, report_missing_configuration

from app.api.v1.routers import licenses, summarise, webhook
from app.schemas.license import HealthOut


app = FastAPI(title=settings.APP_NAME)

# Collaborators are built once and shared; routes resolve them via Depends
app.state.services = build_services(settings)

# CORS: the extension calls from a chrome-extension:// origin, no cookies involved
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

@app.on_event("startup")
async def on_startup():
    report_missing_configuration(settings)
    await init_db(generate_schemas=settings.env == "dev")

@app.on_event("shutdown")
async def on_shutdown():
    # Let queued license emails finish before the connection pool goes away
    await app.state.services.issuance.drain()
    await close_db()

# REST
app.include_router(summarise.router, prefix="/api/v1")
app.include_router(licenses.router, prefix="/api/v1")
app.include_router(webhook.router, prefix="/api/v1")

@app.get("/", response_model=HealthOut)
@app.get("/healthz", response_model=HealthOut)
def healthz():
    return {
        "status": "ok",
        "service": settings.APP_NAME,
        "env": app.state.services.settings.collaborator_status(),
    }
