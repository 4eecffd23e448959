# backend/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from config import settings
from database import init_db
from utils.errors import register_exception_handlers
from utils.logging_config import setup_logging
from utils.uploads import upload_dir

# Routers
from routes.auth import router as auth_router
from routes.categories import router as categories_router
from routes.products import router as products_router
from routes.stock import router as stock_router
from routes.logs import router as logs_router

setup_logging()
logger = logging.getLogger(__name__)

# Initialisation
init_db()

app = FastAPI(title=settings.APP_NAME, version="1.0.0")

# Product images
app.mount("/uploads", StaticFiles(directory=str(upload_dir())), name="uploads")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Router registration
app.include_router(auth_router, prefix=settings.API_PREFIX)
app.include_router(categories_router, prefix=settings.API_PREFIX)
app.include_router(products_router, prefix=settings.API_PREFIX)
app.include_router(stock_router, prefix=settings.API_PREFIX)
app.include_router(logs_router, prefix=settings.API_PREFIX)

logger.info("%s ready, routes under %s", settings.APP_NAME, settings.API_PREFIX)

@app.get("/")
def read_root():
    return {"message": f"{settings.APP_NAME} is running"}
