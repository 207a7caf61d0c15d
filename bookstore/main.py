import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bookstore.config import settings
from bookstore.database import create_db_and_tables
from bookstore.exceptions import BookstoreError
from bookstore.routes import (
    admin_orders,
    auth,
    books,
    books_admin,
    cart,
    claim,
    notifications,
    orders,
    review,
    wishlist,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.ENV == "local":
        create_db_and_tables()
    yield


app = FastAPI(title="Online Bookstore API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BookstoreError)
async def bookstore_error_handler(request: Request, exc: BookstoreError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.code},
    )


app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(books.router, prefix="/books", tags=["Public Books"])
app.include_router(books_admin.router, prefix="/admin/books", tags=["Admin Books"])
app.include_router(cart.router, prefix="/cart", tags=["Cart"])
app.include_router(orders.router, prefix="/orders", tags=["Orders"])
app.include_router(claim.router, prefix="/claim", tags=["Claim"])
app.include_router(admin_orders.router, prefix="/admin/orders", tags=["Admin Orders"])
app.include_router(review.router, prefix="/reviews", tags=["Reviews"])
app.include_router(wishlist.router, prefix="/wishlist", tags=["Wishlist"])
app.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])


@app.get("/")
def root():
    return {
        "auth_endpoints": ["/auth/register", "/auth/login", "/auth/register-staff"],
        "books": ["/books", "/books/{book_id}"],
        "cart": [
            "/cart", "/cart/add", "/cart/update/{book_id}",
            "/cart/remove/{book_id}", "/cart/clear"
        ],
        "orders": [
            "/orders", "/orders/mine", "/orders/{order_id}/cancel",
            "/orders/{order_id}/receipt", "/orders/pending", "/orders/claim/{claim_code}"
        ],
        "claim": ["/claim/verify"],
        "reviews": ["/reviews", "/reviews/eligibility/{book_id}", "/reviews/book/{book_id}"],
        "wishlist": ["/wishlist", "/wishlist/add/{book_id}", "/wishlist/remove/{book_id}"],
    }
