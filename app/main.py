from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import HTMLResponse, JSONResponse
from redis import Redis
from sqlalchemy import text

from app.core.admin.api.v1.routes_admin import router as admin_router
from app.core.config import settings
from app.core.food.api.v1.routes_food import router as food_router
from app.core.notifications.api.v1.routes_notifications import (
    router as notifications_router,
)
from app.core.promocodes.api.v1.routes_promocodes import router as promocodes_router
from app.core.travel.api.v1.routes_travel import router as travel_router
from app.database.session import SessionLocal
from app.response import StandardResponse, make_error_response
from app.response.response import APIError
from flaia_bg_worker.celery_app import celery_app


app = FastAPI()
app.title = "Flaia API"
app.version = "1.0.0"


@app.exception_handler(APIError)
async def api_error_handler(
    request: Request,
    exc: APIError,
) -> JSONResponse:
    response: StandardResponse = make_error_response(
        code=exc.code,
        message=exc.message,
        details=exc.details,
    )
    return JSONResponse(
        status_code=exc.http_code,
        content=jsonable_encoder(response),
    )


def _check_database() -> bool:
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
    finally:
        db.close()


def _check_broker() -> bool:
    try:
        Redis.from_url(settings.celery_broker_url, socket_timeout=0.5).ping()
        return True
    except Exception:
        return False


def _check_worker() -> bool:
    try:
        return bool(celery_app.control.ping(timeout=0.5))
    except Exception:
        return False


@app.get("/", response_class=HTMLResponse, include_in_schema=False)
def root() -> str:
    checks = (
        ("API:", True),
        ("Database:", _check_database()),
        ("Broker:", _check_broker()),
        ("BG worker:", _check_worker()),
    )

    def row(label: str, ok: bool) -> str:
        state = "up" if ok else "down"
        return f'<tr><td>{label}</td><td class="{state}">{state.upper()}</td></tr>'

    status_rows = "\n".join(row(label, ok) for label, ok in checks)

    html = """
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8" />
        <title>Flaia API</title>
        <style>
            body { font-family: system-ui, sans-serif; background: #FFF8F2; color: #2B2B2B; padding: 48px; }
            table { border-collapse: collapse; min-width: 320px; }
            td { padding: 8px 16px; border-bottom: 1px solid #F1D9C6; }
            .up { color: #15803D; font-weight: 600; }
            .down { color: #B91C1C; font-weight: 600; }
            nav a { margin-right: 16px; color: #FF6B35; }
        </style>
    </head>
    <body>
        <h1>Flaia backend</h1>
        <table>
__STATUS_ROWS__
        </table>
        <nav><a href="/docs">OpenAPI</a><a href="/redoc">ReDoc</a></nav>
    </body>
    </html>
    """
    return html.replace("__STATUS_ROWS__", status_rows)


app.include_router(travel_router, prefix="/api/v1")
app.include_router(food_router, prefix="/api/v1")
app.include_router(promocodes_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")
app.include_router(notifications_router, prefix="/api/v1")


__all__ = ["app"]
