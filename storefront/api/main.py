# storefront/api/main.py

# This is the main FastAPI application entry point.
# It sets up the FastAPI app instance, adds global middleware,
# defines startup/shutdown events, exception handlers, and includes routers
# from feature modules.
# Relies on modules in db/, shared/, config/ and features/.

import datetime
import logging
import time

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pymongo.errors import DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException

# --- Import modules from their locations ---
from ..config.paths import IMAGES_UPLOAD_DIR, IMAGES_UPLOAD_URL
from ..config.settings import settings # Import the settings instance from config/settings.py
from ..db import mongo_client as database
from ..features.brands import routes as brand_routes
from ..features.categories import routes as category_routes
from ..features.coupons import routes as coupon_routes
from ..features.products import routes as product_routes
from ..features.reviews import routes as review_routes
from ..features.subcategories import routes as subcategory_routes
from ..features.user.addresses import routes as address_routes
from ..features.user.auth import routes as auth_routes
from ..features.user.users import routes as user_routes
from ..features.user.wishlist import routes as wishlist_routes
from ..shared.exceptions import StorefrontError
from ..shared.responses import error, failed, success

API_PREFIX = "/api/v1"

# --- Logging ---
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# --- FastAPI App Instance ---
app = FastAPI(title=settings.APP_NAME)

# --- CORS Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True, # the session travels in the jwt cookie
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Access Log Middleware ---
@app.middleware("http")
async def access_log(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    if settings.is_production:
        logger.info("%s %s %s", request.method, request.url.path, response.status_code)
    else:
        logger.info("%s %s %s %.1f ms", request.method, request.url.path, response.status_code, elapsed_ms)
    return response


# --- Application Startup Event ---
# Connect to DB and store the collections registry on app.state.
@app.on_event("startup")
async def startup_event():
    """Actions to run on application startup: connect to DB, ensure indexes, store collections on app.state."""
    logger.info("Application startup initiated.")
    app.state.settings = settings
    app.state.db_client, app.state.collections = await database.connect_to_mongo(settings)
    logger.info("Application startup complete.")


# --- Application Shutdown Event ---
@app.on_event("shutdown")
async def shutdown_event():
    """Actions to run on application shutdown: Close DB connection."""
    logger.info("Application shutdown initiated.")
    await database.close_mongo_connection(getattr(app.state, "db_client", None))
    app.state.collections = None


# --- Include Feature Routers ---
app.include_router(auth_routes.router, prefix=API_PREFIX)
app.include_router(category_routes.router, prefix=API_PREFIX)
app.include_router(subcategory_routes.nested_router, prefix=API_PREFIX)
app.include_router(subcategory_routes.router, prefix=API_PREFIX)
app.include_router(brand_routes.router, prefix=API_PREFIX)
app.include_router(product_routes.router, prefix=API_PREFIX)
app.include_router(review_routes.router, prefix=API_PREFIX)
app.include_router(coupon_routes.router, prefix=API_PREFIX)
app.include_router(user_routes.router, prefix=API_PREFIX)
app.include_router(wishlist_routes.router, prefix=API_PREFIX)
app.include_router(address_routes.router, prefix=API_PREFIX)

# Uploaded images (avatars, ...) are served as static files.
app.mount(IMAGES_UPLOAD_URL, StaticFiles(directory=IMAGES_UPLOAD_DIR, check_dir=False), name="images")


# --- Root Endpoint ---
@app.get("/hello")
async def hello():
    return success({
        "message": f"Welcome to the {settings.APP_NAME} API",
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
    }).to_response()


# --- Global Exception Handlers ---
@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    return failed(exc.to_dict(), exc.status_code).to_response()


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())[1:]) or None,
            "location": err.get("loc", ("body",))[0],
            "message": err.get("msg", "invalid value"),
        }
        for err in exc.errors()
    ]
    return failed({"message": "validation failed", "errors": errors}, status.HTTP_400_BAD_REQUEST).to_response()


@app.exception_handler(DuplicateKeyError)
async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
    key_value = (exc.details or {}).get("keyValue") or {}
    return failed(
        {"message": "already exists", **{key: str(value) for key, value in key_value.items()}},
        status.HTTP_409_CONFLICT,
    ).to_response()


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return failed(
            {"message": "404 Not Found", "path": request.url.path, "method": request.method},
            status.HTTP_404_NOT_FOUND,
        ).to_response()
    return failed({"message": exc.detail}, exc.status_code).to_response()


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return error("An internal server error occurred.").to_response()
