from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from protein_dashboard.core.config import settings
from protein_dashboard.core.logging_conf import setup_logging
from protein_dashboard.db.repository import ProteinRepository
from protein_dashboard.db.session import engine, AsyncSessionLocal
from protein_dashboard.services.errors import (
    DatabaseError,
    SearchValidationError,
    StatementTimeoutError,
    user_message,
)
from protein_dashboard.services.registry import ServiceRegistry
from protein_dashboard.api.v1 import routes_access, routes_proteins, routes_sequences, routes_saved

setup_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Protein Dashboard Backend...")
    app.state.registry = ServiceRegistry(ProteinRepository(AsyncSessionLocal))
    yield
    # Shutdown
    logger.info("Shutting down...")
    await app.state.registry.aclose()
    await engine.dispose()

app = FastAPI(
    title="Protein Dashboard API",
    description="Search, export and saved sets over the protein database",
    version=settings.VERSION,
    lifespan=lifespan
)

# Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(routes_access.router, prefix="/api/v1/access", tags=["Access"])
app.include_router(routes_proteins.router, prefix="/api/v1/proteins", tags=["Proteins"])
app.include_router(routes_sequences.router, prefix="/api/v1/sequences", tags=["Sequence Search"])
app.include_router(routes_saved.router, prefix="/api/v1/saved", tags=["Saved Proteins"])

@app.exception_handler(SearchValidationError)
async def validation_error_handler(request: Request, exc: SearchValidationError):
    return JSONResponse(status_code=400, content={"detail": exc.message, "field": exc.field})

@app.exception_handler(DatabaseError)
async def database_error_handler(request: Request, exc: DatabaseError):
    status_code = 504 if isinstance(exc, StatementTimeoutError) else 503
    logger.bind(**exc.diagnostics()).error(f"Unrecovered database error on {request.url.path}")
    return JSONResponse(status_code=status_code, content={"detail": user_message(exc), "code": exc.code})

@app.get("/healthz")
async def health_check():
    return {"status": "healthy", "version": settings.VERSION}

@app.get("/readyz")
async def readiness_check():
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
        return {"status": "ready"}
    except (SQLAlchemyError, OSError) as e:
        return {"status": "not ready", "error": str(e)}
