import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from routes import habits, cron
from core.config import settings
from core.exceptions import (
    HabitError,
    ValidationError,
    FrozenDayError,
    ConflictError,
    QuotaExceededError,
    UnsupportedOperationError,
    ConcurrentUpdateError,
)
from core.scheduler import start_scheduler, shutdown_scheduler

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
log = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: 400,
    FrozenDayError: 409,
    ConflictError: 409,
    ConcurrentUpdateError: 409,
    QuotaExceededError: 429,
    UnsupportedOperationError: 422,
}

@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.SCHEDULER_ENABLED:
        start_scheduler()
    yield
    shutdown_scheduler()

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# CORS
origins = [
    settings.FRONTEND_URL,
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(HabitError)
async def habit_error_handler(request: Request, exc: HabitError):
    status_code = ERROR_STATUS.get(type(exc), 400)
    log.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": exc.message, "error": exc.code})

# Routers
app.include_router(habits.router)
app.include_router(cron.router)

@app.get("/")
def read_root():
    return {"message": f"Welcome to {settings.APP_NAME} API"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
