# backend/wims/main.py

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import wims.models  # noqa: F401  (registers every mapper)
from wims.api.routes import router as api_router
from wims.api.auth_routes import router as auth_router
from wims.core.config import settings
from wims.core.logging import configure_logging
from wims.services.errors import InventoryError

configure_logging()

app = FastAPI(title="WIMS API", version="0.1.0")

# Prefer a comma-separated allowlist in prod, fallback to FRONTEND_URL/local
# Example: CORS_ORIGINS="https://wims.example.com,http://localhost:3000"
cors_env = settings.cors_origins.strip()
if cors_env:
    ALLOW_ORIGINS = [o.strip() for o in cors_env.split(",") if o.strip()]
else:
    ALLOW_ORIGINS = list({settings.frontend_url.strip(), "http://localhost:3000"})

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["Authorization", "Content-Type"],
)


@app.exception_handler(InventoryError)
def inventory_error_handler(request: Request, exc: InventoryError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
app.include_router(api_router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok"}
