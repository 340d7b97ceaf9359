import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator
from pharmacy.version import VERSION
from pharmacy.api.v1 import routes_auth, routes_cart, routes_categories, routes_orders, routes_products
from pharmacy.core.errors import install_error_handlers
from pharmacy.core.logging import configure_logging
from pharmacy.core.ratelimit import rate_limit_middleware
from pharmacy.kafka.producer import close_producer

configure_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    for route in app.routes:
        if hasattr(route, "methods") and hasattr(route, "path"):
            logger.debug("%s %s", sorted(route.methods), route.path)
    logger.info("Pharmacy storefront %s started", VERSION)
    yield
    close_producer()

instrumentator = Instrumentator()

app = FastAPI(title='Pharmacy Storefront', version=VERSION, lifespan=lifespan)

instrumentator.instrument(app).expose(
    app,
    include_in_schema=False,
    endpoint="/metrics",
    should_gzip=True,
)

install_error_handlers(app)
app.middleware("http")(rate_limit_middleware)

@app.get('/health')
def health(): return {'status':'ok'}

@app.get('/v1/_info')
def info(): return {'service':'pharmacy','version':VERSION}

app.include_router(routes_auth.router,       prefix='/api/v1/auth',       tags=['auth'])
app.include_router(routes_categories.router, prefix='/api/v1/categories', tags=['categories'])
app.include_router(routes_products.router,   prefix='/api/v1/products',   tags=['products'])
app.include_router(routes_cart.router,       prefix='/api/v1/cart',       tags=['cart'])
app.include_router(routes_orders.router,     prefix='/api/v1/orders',     tags=['orders'])
