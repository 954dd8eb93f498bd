from fastapi import FastAPI
from routers.ration import router as ration_router
from middleware.middleware import LoggingMiddleware
from middleware.cors_config import setup_cors
from middleware.error_handler import ErrorHandlerMiddleware
from middleware.logging_config import get_logger

# Initialize logging
logger = get_logger("main")

app = FastAPI(
    title="Ration Audit Backend",
    description="""
# Ration Audit Backend API

Auditable dairy cow ration calculation based on CVB feeding standards.

## Ration Audit
- **POST /ration/audit**: VEM/DVE requirements, feed contributions, supply,
  intake capacity (VOC) and nutrient balances, with every calculation step
- **POST /ration/audit/report**: the same audit as a plain-text report
- **GET /ration/constants**: the active CVB constant table

Every number in a response carries its formula, inputs and source.
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS (must be before other middleware)
setup_cors(app)

# Add error handler middleware (catches unexpected exceptions)
app.add_middleware(ErrorHandlerMiddleware)

# Add logging middleware
app.add_middleware(LoggingMiddleware)

app.include_router(ration_router)


@app.get("/")
async def root():
    logger.info("Root endpoint accessed")
    return {
        "message": "Ration Audit Backend v1.0",
        "status": "running",
        "docs": "/docs",
        "version": "1.0.0"
    }


@app.get("/health")
async def health():
    return {"status": "healthy"}


@app.on_event("startup")
async def startup_event():
    logger.info("Ration Audit Backend starting up...")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Ration Audit Backend shutting down...")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
