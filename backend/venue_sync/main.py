import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from venue_sync.core.config import settings
from venue_sync.core.errors import SyncError
from venue_sync.routers import invitations, restaurants, venue_requests, venues

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger("vedi.api")

app = FastAPI(title="Vedi Venue Sync API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(restaurants.router)
app.include_router(venues.router)
app.include_router(venue_requests.router)
app.include_router(invitations.router)


@app.exception_handler(SyncError)
def sync_error_handler(request: Request, exc: SyncError):
    log.warning("%s %s -> %s: %s", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "kind": exc.kind})


@app.get("/health")
def health():
    return {"status": "ok"}
