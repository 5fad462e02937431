import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from admin_view import render_admin_page
from clock import Clock
from errors import BookingError, InvalidInput
from scheduler import RolloverScheduler
from schemas import BookingCreate
from settings import Settings
from store import BookingStore

logger = logging.getLogger(__name__)


def configure_logging(level: str):
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def get_store(request: Request) -> BookingStore:
    return request.app.state.store


# ================== API ==================
router = APIRouter()


@router.get("/")
def index():
    return {"message": "Temple Booking System Running", "admin": "/admin/bookings"}


@router.get("/api/health")
def health(store: BookingStore = Depends(get_store)):
    result = store.health()
    if not result.ok:
        return JSONResponse(status_code=503, content={"status": "ERROR", "database": "unreachable"})
    return {"status": "OK", "database": "connected", "latency_ms": result.latency_ms}


@router.get("/api/bookings")
def list_bookings(store: BookingStore = Depends(get_store)):
    return [
        {"section_id": section_id, "slot_number": slot_number}
        for section_id, slot_number in sorted(store.list_today())
    ]


@router.post("/api/bookings", status_code=201)
def create_booking(data: BookingCreate, store: BookingStore = Depends(get_store)):
    receipt = store.create_booking(
        section_id=data.section_id,
        slot_number=data.slot_number,
        full_name=data.full_name,
        place=data.place,
        mobile=data.mobile,
    )
    return {"message": "Success", **receipt.model_dump()}


@router.get("/api/stats")
def stats(store: BookingStore = Depends(get_store)):
    return store.stats()


# ================== ADMIN ==================
@router.get("/api/admin/bookings")
def admin_bookings(store: BookingStore = Depends(get_store)):
    return store.list_for_admin()


@router.get("/admin/bookings", response_class=HTMLResponse)
def admin_page(store: BookingStore = Depends(get_store)):
    try:
        bookings = store.list_for_admin()
    except BookingError as exc:
        return HTMLResponse("Error", status_code=exc.status_code)
    return render_admin_page(bookings)


# ================== APP ==================
async def booking_error_handler(request: Request, exc: BookingError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError):
    missing = any(err.get("type") == "missing" for err in exc.errors())
    error = InvalidInput("All fields required" if missing else "Invalid input")
    return JSONResponse(status_code=error.status_code, content={"message": error.message})


def create_app(settings: Settings = None, store: BookingStore = None, clock: Clock = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings.LOG_LEVEL)
    if store is None:
        store = BookingStore(
            settings.DATABASE_URL,
            clock=clock or Clock(),
            pool_size=settings.DB_POOL_SIZE,
            pool_timeout=settings.DB_POOL_TIMEOUT,
        )
    scheduler = RolloverScheduler(store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store.open()
        if settings.ROLLOVER_ENABLED:
            scheduler.start()
        try:
            yield
        finally:
            if settings.ROLLOVER_ENABLED:
                scheduler.stop()
            store.close()

    app = FastAPI(title="Temple Booking System", lifespan=lifespan)
    app.state.store = store
    app.state.scheduler = scheduler
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(BookingError, booking_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.include_router(router)
    return app


settings = Settings()
app = create_app(settings)


if __name__ == "__main__":
    import uvicorn

    logger.info("Temple Booking System on http://localhost:%s (admin: /admin/bookings)", settings.PORT)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
