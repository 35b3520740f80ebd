from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .api.routes import router as api_router
from .config import get_settings
from .database import create_indexes
from .logging_config import setup_logging

settings = get_settings()
setup_logging(settings.LOG_LEVEL)

app = FastAPI(title="Waste Report")

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["*"]
)

# Include routers
app.include_router(api_router)

@app.on_event("startup")
async def startup_event():
    """Initialize database indexes on startup"""
    await create_indexes()

@app.get("/")
def root():
    return {"message": "Welcome to Waste Report!"}
