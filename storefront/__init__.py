from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

load_dotenv()

from storefront.core.config import Config
from storefront.core.logging import configure_logging, get_logger
from storefront.db.database import init_db
from storefront.exceptions import (
    create_exception_handler,
    AuthenticationRequiredException,
    ConflictException,
    InsufficientStockException,
    InvalidStateException,
    NotFoundException,
    UnauthorizedException,
)
from storefront.middleware.auth_middleware import CustomAuthMiddleWare
from storefront.routers.cart import router as cart_router
from storefront.routers.coupons import router as coupons_router
from storefront.routers.orders import router as orders_router
from storefront.routers.payments import router as payments_router


logger = get_logger(__name__)

api_version = "v1"
swagger_docs_url = f"/api/{api_version}/docs"
redoc_docs_url = f"/api/{api_version}/redoc"
openapi_url = f"/api/{api_version}/openapi.json"


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    if Config.AUTO_CREATE_TABLES:
        await init_db()
    logger.info("Storefront API started (environment=%s)", Config.ENVIRONMENT)
    yield


app = FastAPI(
    docs_url=swagger_docs_url,
    redoc_url=redoc_docs_url,
    openapi_url=openapi_url,
    title="Storefront API",
    description="Cart, coupon, order and payment-confirmation API for the storefront.",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware first
app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE'],
    allow_headers=["*"],
)

# Add custom auth middleware after CORS (order matters!)
app.add_middleware(CustomAuthMiddleWare)

# Register endpoints
app.include_router(cart_router, prefix=f'/api/{api_version}/cart', tags=["Cart"])
app.include_router(coupons_router, prefix=f'/api/{api_version}/coupons', tags=["Coupons"])
app.include_router(orders_router, prefix=f'/api/{api_version}/orders', tags=['Orders'])
app.include_router(payments_router, prefix=f'/api/{api_version}/payments', tags=["Payments"])


@app.get("/")
async def root():
    return {
        "message": "Storefront API",
        "version": "1.0.0",
        "docs": swagger_docs_url,
        "status": "running"
    }

@app.get("/health")
async def health_check():
    return {"status": "healthy"}


# Register custom exceptions
app.add_exception_handler(NotFoundException, create_exception_handler(404))
app.add_exception_handler(InvalidStateException, create_exception_handler(400))
app.add_exception_handler(InsufficientStockException, create_exception_handler(400))
app.add_exception_handler(UnauthorizedException, create_exception_handler(403))
app.add_exception_handler(ConflictException, create_exception_handler(409))
app.add_exception_handler(AuthenticationRequiredException, create_exception_handler(401))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exception: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        content={"detail": "Internal server error", "error": "internal_error"},
        status_code=500
    )
