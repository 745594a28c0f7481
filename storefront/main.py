# storefront/main.py
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings
from .core import AddToCartIn, CheckoutIn, UpdateCartIn
from .database import Store, make_store
from .errors import StoreError
from .logic import (
    cart_add_logic, cart_remove_logic, cart_update_logic, checkout_logic,
    get_product_logic, list_orders_logic, list_products_logic,
    seed_products_logic, view_cart_logic
)
from .models import CartItem, CartView, Order, Product, Receipt, RemovedItem

logger = logging.getLogger(__name__)


def _describe_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        field = ".".join(loc)
        parts.append(f"{field}: {err.get('msg')}" if field else err.get("msg", "invalid"))
    return "; ".join(parts) or "Invalid request body"


def get_store(request: Request) -> Store:
    return request.app.state.store


def create_app(settings: Optional[Settings] = None, store: Optional[Store] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.store is None:
            app.state.store = make_store(settings)
        await seed_products_logic(app.state.store)
        yield

    app = FastAPI(title="storefront", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store

    # Registered before CORS so it sits inside it and 500s still carry the
    # CORS headers.
    @app.middleware("http")
    async def unhandled_errors(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=True)
            return JSONResponse(status_code=500, content={"error": str(exc)})

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------------------------
    # Error mapping: every failure body is {"error": <message>}
    # ---------------------------
    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _describe_validation_error(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    # ---------------------------
    # Health
    # ---------------------------
    @app.get("/", response_class=PlainTextResponse)
    async def root():
        return "Shopping Cart API is running"

    @app.get("/health")
    async def health(store: Store = Depends(get_store)):
        try:
            await store.ping()
            database = "connected"
        except Exception as e:
            database = f"unavailable: {e}"
        return {
            "status": "OK",
            "message": "Storefront API is running",
            "store": store.name,
            "database": database,
        }

    # ---------------------------
    # Product endpoints
    # ---------------------------
    @app.get("/api/products")
    async def list_products(store: Store = Depends(get_store)) -> List[Product]:
        return await list_products_logic(store)

    @app.get("/api/products/{product_id}")
    async def get_product(product_id: str, store: Store = Depends(get_store)) -> Product:
        return await get_product_logic(store, product_id)

    # ---------------------------
    # Cart endpoints
    # ---------------------------
    @app.post("/api/cart", status_code=201)
    async def cart_add(payload: AddToCartIn, store: Store = Depends(get_store)) -> CartItem:
        return await cart_add_logic(store, payload)

    @app.get("/api/cart")
    async def view_cart(store: Store = Depends(get_store)) -> CartView:
        return await view_cart_logic(store)

    @app.put("/api/cart/{item_id}")
    async def cart_update(item_id: str, payload: UpdateCartIn,
                          store: Store = Depends(get_store)) -> CartItem:
        return await cart_update_logic(store, item_id, payload)

    @app.delete("/api/cart/{item_id}")
    async def cart_remove(item_id: str, store: Store = Depends(get_store)) -> RemovedItem:
        return await cart_remove_logic(store, item_id)

    # ---------------------------
    # Checkout / orders
    # ---------------------------
    @app.post("/api/checkout")
    async def checkout(payload: CheckoutIn, store: Store = Depends(get_store)) -> Receipt:
        return await checkout_logic(store, payload)

    @app.get("/api/orders")
    async def list_orders(store: Store = Depends(get_store)) -> List[Order]:
        return await list_orders_logic(store)

    return app


app = create_app()


def run():
    settings = app.state.settings
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, settings.log_level, logging.INFO),
    )
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
