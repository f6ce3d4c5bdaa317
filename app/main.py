from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import DataError, IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import config
from app.db.session import init_db
from app.errors import error_body
from app.logging_setup import configure_logging, log
from app.routes import cart, clients, employees, me, notifications, orders, products, settings


configure_logging(config.LOG_LEVEL)

app = FastAPI(
    title="Storefront API",
    version="1.0.0",
)
print(f"[BOOT] Storefront API ({config.ENVIRONMENT})", flush=True)


# ----------------------------
#  CORS
# ----------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ----------------------------
#  ERREURS -> {error, message?}
# ----------------------------
@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.detail), headers=getattr(exc, "headers", None))


def jsonable_errors(errors):
    return [{"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in errors]


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ())[1:])
    message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    return JSONResponse(
        status_code=400,
        content={"error": "Validation failed", "message": message, "details": jsonable_errors(errors)},
    )


@app.exception_handler(IntegrityError)
@app.exception_handler(DataError)
async def db_error_handler(request: Request, exc: Exception) -> JSONResponse:
    msg = str(getattr(exc, "orig", exc))[:1500]
    log.error("❌ DB error on %s %s: %s", request.method, request.url.path, msg)
    return JSONResponse(status_code=500, content={"error": "Database error"})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("❌ %s %s failed", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal Server Error", "message": "Unexpected error"},
    )


# ----------------------------
#  ROUTES
# ----------------------------
app.include_router(products.router)
app.include_router(cart.router)
app.include_router(orders.router)
app.include_router(notifications.router)
app.include_router(me.router)
app.include_router(clients.router)
app.include_router(employees.router)
app.include_router(settings.router)


@app.get("/")
def root():
    return {
        "ok": True,
        "service": "Storefront API",
        "docs": "/docs",
        "health": "/health",
    }


@app.head("/")
def root_head():
    return Response(status_code=200)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.head("/health")
def health_head():
    return Response(status_code=200)


# ----------------------------
#  STARTUP
# ----------------------------
@app.on_event("startup")
def on_startup() -> None:
    config.check_production_config()
    init_db()
