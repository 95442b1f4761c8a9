from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.routes import clients as clients_routes
from app.routes import servicos as servicos_routes
from app.routes import products as products_routes
from app.routes import agendamentos as agendamentos_routes
from app.routes import reports as reports_routes
from app.routes import dashboard as dashboard_routes
from app.db import session as db_session
from app.core.config import settings
from app.core.errors import AppError, StoreError
import logging
import threading
from collections import Counter
import time

app = FastAPI(
    title=f"API {settings.APP_NAME}",
    version=settings.APP_VERSION,
    description="Sistema de Gestão para Estética Facial e Corporal",
    # collection routes are registered with and without the trailing slash
    redirect_slashes=False,
)

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL, logging.INFO))
# uvicorn.access expects its own record format, so requests log under app.request
_req_logger = logging.getLogger("app.request")
_req_logger.setLevel(getattr(logging, settings.LOG_LEVEL, logging.INFO))
_err_logger = logging.getLogger("app.errors")

MSG_ERRO_INTERNO = "Erro interno do servidor"


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if isinstance(exc, StoreError):
        _err_logger.error(f"Store failure on {request.method} {request.url.path}: {exc.message}")
        message = MSG_ERRO_INTERNO if settings.is_production else exc.message
        return _error_response(exc.status_code, message)
    _err_logger.info(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return _error_response(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and query strings are client errors: 400 with one readable message."""
    _err_logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    partes = []
    for error in exc.errors():
        loc = ".".join(str(p) for p in error.get("loc", ()) if p not in ("body", "query", "path"))
        partes.append(f"{loc}: {error.get('msg')}" if loc else str(error.get("msg")))
    return _error_response(400, "Dados inválidos - " + "; ".join(partes))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        return _error_response(404, "Rota não encontrada")
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    _err_logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    message = MSG_ERRO_INTERNO if settings.is_production else str(exc)
    return _error_response(500, message)


# Hits per "METHOD /route/template", guarded by a lock
_hits_por_rota = Counter()
_hits_lock = threading.Lock()


def _contar_hit(chave: str):
    with _hits_lock:
        _hits_por_rota[chave] += 1
        return _hits_por_rota[chave], sum(_hits_por_rota.values())


def _deve_detalhar(path: str) -> bool:
    if not settings.REQUEST_LOG_VERBOSE:
        return False
    prefixos = [p.strip() for p in (settings.REQUEST_LOG_INCLUDE_PREFIXES or "").split(",") if p.strip()]
    return any(path.startswith(p) for p in prefixos)


@app.middleware("http")
async def request_count_middleware(request: Request, call_next):
    route = request.scope.get("route")
    chave = f"{request.method} {getattr(route, 'path', None) or request.url.path}"
    hits_rota, hits_total = _contar_hit(chave)
    if hits_rota % settings.REQUEST_LOG_EVERY_N == 0:
        _req_logger.info(f"{chave}: {hits_rota} requisições (total={hits_total})")

    consultas = [0]
    token = db_session.request_db_query_count.set(consultas)
    inicio = time.perf_counter()
    try:
        response = await call_next(request)
    finally:
        db_session.request_db_query_count.reset(token)
    duracao_ms = int((time.perf_counter() - inicio) * 1000)

    if _deve_detalhar(request.url.path):
        alvo = f"{request.url.path}?{request.url.query}" if request.url.query else request.url.path
        _req_logger.info(
            f"{request.method} {alvo} -> {response.status_code} em {duracao_ms}ms | "
            f"{consultas[0]} consultas ao banco | rota={hits_rota} total={hits_total}"
        )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)


app.include_router(clients_routes.router)
app.include_router(servicos_routes.router)
app.include_router(products_routes.router)
app.include_router(agendamentos_routes.router)
app.include_router(reports_routes.router)
app.include_router(dashboard_routes.router)


@app.on_event("startup")
def on_startup():
    db_session.create_db()


@app.get("/")
def root():
    return {
        "message": f"API {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "status": "online",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": db_session.db_stats(),
    }
