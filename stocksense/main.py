from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.staticfiles import StaticFiles
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from stocksense import pages
from stocksense.auth import (
    UserSession,
    UsernameTakenError,
    authenticate,
    ensure_auth_config,
    register_user,
    require_session,
)
from stocksense.config import configure_logging
from stocksense.database import Base, engine, get_db
from stocksense.models import ProductStatus, UserAccount
from stocksense.schemas import (
    FilteredProductsResponse,
    InventoryStats,
    LoginRequest,
    LoginResponse,
    ProductCreate,
    ProductListResponse,
    ProductRead,
    ProductUpdate,
    SignupRequest,
    UserRead,
)
from stocksense.services.inventory import filter_products
from stocksense.services.products import (
    DuplicateSkuError,
    ProductNotFoundError,
    create_product,
    delete_product,
    get_product,
    get_stats,
    list_products,
    update_product,
)

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging()
    ensure_auth_config()
    Base.metadata.create_all(bind=engine)
    logger.info("StockSense started")
    yield


app = FastAPI(
    title="StockSense",
    version="1.0.0",
    description="Inventory dashboard with product search and a two-step product entry form.",
    lifespan=lifespan,
)

app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")
app.include_router(pages.router)


@app.exception_handler(StarletteHTTPException)
async def not_found_page(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND and not request.url.path.startswith("/api"):
        return pages.render_not_found(request)
    return await http_exception_handler(request, exc)


def _get_product_or_404(db: Session, product_id: int):
    try:
        return get_product(db, product_id)
    except ProductNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/api/auth/login", response_model=LoginResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> LoginResponse:
    session = authenticate(db, payload.username, payload.password)
    if session is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    user = db.get(UserAccount, session.user_id)
    return LoginResponse(api_key=session.api_key, user=UserRead.model_validate(user))


@app.post("/api/auth/signup", response_model=LoginResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: SignupRequest, db: Session = Depends(get_db)) -> LoginResponse:
    try:
        session = register_user(db, payload.username, payload.full_name, payload.password)
    except UsernameTakenError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    user = db.get(UserAccount, session.user_id)
    return LoginResponse(api_key=session.api_key, user=UserRead.model_validate(user))


@app.get("/api/me", response_model=UserRead)
def me(
    session: UserSession = Depends(require_session),
    db: Session = Depends(get_db),
) -> UserRead:
    user = db.get(UserAccount, session.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return UserRead.model_validate(user)


@app.get("/api/stats", response_model=InventoryStats)
def stats(
    _: UserSession = Depends(require_session),
    db: Session = Depends(get_db),
) -> InventoryStats:
    return get_stats(db)


@app.get("/api/products", response_model=ProductListResponse)
def list_products_api(
    search: str | None = Query(default=None),
    category: str | None = Query(default=None),
    status_filter: ProductStatus | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=25, ge=1, le=200),
    _: UserSession = Depends(require_session),
    db: Session = Depends(get_db),
) -> ProductListResponse:
    result = list_products(
        db,
        search=search,
        category=category,
        status_filter=status_filter,
        limit=page_size,
        offset=(page - 1) * page_size,
    )
    return ProductListResponse(
        items=[ProductRead.model_validate(product) for product in result.items],
        total=result.total,
        page=page,
        page_size=page_size,
    )


@app.get("/api/products/filter", response_model=FilteredProductsResponse)
def filter_products_api(
    q: str = Query(default=""),
    _: UserSession = Depends(require_session),
    db: Session = Depends(get_db),
) -> FilteredProductsResponse:
    products = list_products(db).items
    return FilteredProductsResponse(
        query=q,
        items=[ProductRead.model_validate(product) for product in filter_products(products, q)],
    )


@app.get("/api/products/{product_id}", response_model=ProductRead)
def get_product_api(
    product_id: int,
    _: UserSession = Depends(require_session),
    db: Session = Depends(get_db),
) -> ProductRead:
    return ProductRead.model_validate(_get_product_or_404(db, product_id))


@app.post("/api/products", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
def create_product_api(
    payload: ProductCreate,
    session: UserSession = Depends(require_session),
    db: Session = Depends(get_db),
) -> ProductRead:
    try:
        product = create_product(db, payload, session)
    except DuplicateSkuError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return ProductRead.model_validate(product)


@app.put("/api/products/{product_id}", response_model=ProductRead)
def update_product_api(
    product_id: int,
    payload: ProductUpdate,
    session: UserSession = Depends(require_session),
    db: Session = Depends(get_db),
) -> ProductRead:
    try:
        product = update_product(db, product_id, payload, session)
    except ProductNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except DuplicateSkuError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return ProductRead.model_validate(product)


@app.delete("/api/products/{product_id}")
def delete_product_api(
    product_id: int,
    session: UserSession = Depends(require_session),
    db: Session = Depends(get_db),
) -> dict[str, object]:
    try:
        delete_product(db, product_id, session)
    except ProductNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"id": product_id, "is_deleted": True}
