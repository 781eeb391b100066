from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .core.config import settings
from .core.log import configure_logging, log_event
from .db.jobs_store import JobStore
from .routers import jobs as jobs_router
from .routers import static as static_router

app = FastAPI(title="carousel-studio")
app.state.store = JobStore()

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.CORS_ORIGIN] if settings.CORS_ORIGIN != "*" else ["*"],
    allow_credentials=True, allow_methods=["*"], allow_headers=["*"],
)

@app.get("/health")
async def health():
    return {"ok": True, "service": "carousel-studio"}

@app.on_event("startup")
async def start_sweeper():
    configure_logging()
    app.state.store.start_sweeper()
    log_event("app.startup", public_dir=str(settings.PUBLIC_DIR),
              job_ttl_sec=settings.JOB_TTL_SEC, sweep_interval_sec=settings.SWEEP_INTERVAL_SEC)

app.include_router(jobs_router.router)
# catch-all, keep last
app.include_router(static_router.router)

@app.on_event("shutdown")
async def stop_sweeper():
    await app.state.store.stop_sweeper()
    log_event("app.shutdown", jobs=len(app.state.store))
