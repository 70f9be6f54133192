import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tournament_scheduler.database import init_db
from tournament_scheduler.routes import schedule, teams, tournaments

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Turf Tournament Scheduler API")

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    _cors_origins.extend(o.strip() for o in _extra.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(tournaments.router, prefix="/api", tags=["tournaments"])
app.include_router(teams.router, prefix="/api", tags=["teams"])
app.include_router(schedule.router, prefix="/api", tags=["schedule"])


@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("Registered %d routes", len(app.routes))


@app.get("/api/health")
def health_check():
    return {"app_name": "Turf Tournament Scheduler API", "status": "healthy"}
