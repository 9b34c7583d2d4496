from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from urllib.parse import quote, unquote

from fastapi import APIRouter, Depends, Form, Query, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stocksense.auth import (
    UserSession,
    UsernameTakenError,
    authenticate,
    get_optional_session,
    register_user,
    resolve_session,
)
from stocksense.config import get_settings
from stocksense.database import SessionLocal, get_db
from stocksense.models import Product, ProductStatus
from stocksense.schemas import InventoryStats, SignupRequest
from stocksense.services.icons import Icon, render_icon
from stocksense.services.inventory import filter_products, is_below_minimum
from stocksense.services.product_form import CATEGORIES, ProductForm
from stocksense.services.products import DuplicateSkuError, create_product, get_stats, list_products

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
TOAST_COOKIE = "stocksense_toast"
THEME_COOKIE = "darkMode"
TABS = ("dashboard", "products", "add")

STAT_CARDS = (
    ("Total Products", "total_items", Icon.PACKAGE, "card-blue"),
    ("Low Stock Items", "low_stock", Icon.ALERT_TRIANGLE, "card-yellow"),
    ("Out of Stock", "out_of_stock", Icon.X_CIRCLE, "card-red"),
    ("Recently Added", "recently_added", Icon.PLUS_CIRCLE, "card-green"),
)

STATUS_BADGES = {
    ProductStatus.IN_STOCK: "badge-green",
    ProductStatus.LOW_STOCK: "badge-yellow",
    ProductStatus.OUT_OF_STOCK: "badge-red",
}

templates = Jinja2Templates(directory=TEMPLATES_DIR)
templates.env.globals.update(
    icon=render_icon,
    status_badges=STATUS_BADGES,
    below_minimum=is_below_minimum,
)

router = APIRouter(include_in_schema=False)


def _dark_mode(request: Request) -> bool | None:
    saved = request.cookies.get(THEME_COOKIE)
    if saved is None:
        return None
    return saved == "true"


def _render(
    request: Request,
    template_name: str,
    session: UserSession | None,
    context: dict[str, object] | None = None,
    toast: tuple[str, str] | None = None,
    status_code: int = status.HTTP_200_OK,
) -> HTMLResponse:
    pending = request.cookies.get(TOAST_COOKIE)
    consumed = toast is None and bool(pending)
    if consumed:
        level, _, message = unquote(pending).partition(":")
        toast = (level, message)

    response = templates.TemplateResponse(
        request,
        template_name,
        {
            "session": session,
            "dark_mode": _dark_mode(request),
            "toast": toast,
            "now_year": datetime.now().year,
            **(context or {}),
        },
        status_code=status_code,
    )
    if consumed:
        response.delete_cookie(TOAST_COOKIE)
    return response


def _redirect(url: str, toast: tuple[str, str] | None = None) -> RedirectResponse:
    response = RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)
    if toast is not None:
        level, message = toast
        response.set_cookie(TOAST_COOKIE, quote(f"{level}:{message}"), max_age=60, httponly=True)
    return response


def _start_session(response: Response, session: UserSession) -> Response:
    response.set_cookie(
        get_settings().session_cookie_name,
        session.api_key,
        httponly=True,
        samesite="lax",
    )
    return response


def render_not_found(request: Request) -> HTMLResponse:
    with SessionLocal() as db:
        session = resolve_session(db, request.cookies.get(get_settings().session_cookie_name))
    return _render(request, "not_found.html", session, status_code=status.HTTP_404_NOT_FOUND)


def _load_inventory(db: Session) -> tuple[InventoryStats, list[Product], str | None]:
    try:
        return get_stats(db), list_products(db).items, None
    except SQLAlchemyError:
        logger.exception("Failed to load inventory")
        db.rollback()
        return InventoryStats(), [], "Failed to load inventory data"


def _render_dashboard(
    request: Request,
    db: Session,
    session: UserSession,
    tab: str = "dashboard",
    query: str = "",
    form: ProductForm | None = None,
    preview: dict[str, object] | None = None,
    toast: tuple[str, str] | None = None,
) -> HTMLResponse:
    stats, products, load_error = _load_inventory(db)
    if load_error and toast is None:
        toast = ("error", load_error)

    return _render(
        request,
        "dashboard.html",
        session,
        {
            "tab": tab if tab in TABS else "dashboard",
            "stats": stats,
            "stat_cards": STAT_CARDS,
            "query": query,
            "products": products,
            "filtered": filter_products(products, query),
            "form": form or ProductForm(),
            "preview": preview,
            "categories": CATEGORIES,
        },
        toast=toast,
    )


async def _form_data(request: Request) -> dict[str, str]:
    data = await request.form()
    return {key: str(value) for key, value in data.items()}


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request, session: UserSession | None = Depends(get_optional_session)) -> Response:
    if session is not None:
        return _redirect("/")
    return _render(request, "login.html", None)


@router.post("/login", response_class=HTMLResponse)
def login_submit(
    request: Request,
    username: str = Form(default=""),
    password: str = Form(default=""),
    db: Session = Depends(get_db),
) -> Response:
    session = authenticate(db, username, password)
    if session is None:
        return _render(
            request,
            "login.html",
            None,
            {"username": username, "error": "Invalid username or password"},
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
    return _start_session(_redirect("/"), session)


@router.get("/signup", response_class=HTMLResponse)
def signup_page(request: Request, session: UserSession | None = Depends(get_optional_session)) -> Response:
    if session is not None:
        return _redirect("/")
    return _render(request, "signup.html", None)


@router.post("/signup", response_class=HTMLResponse)
def signup_submit(
    request: Request,
    username: str = Form(default=""),
    full_name: str = Form(default=""),
    password: str = Form(default=""),
    db: Session = Depends(get_db),
) -> Response:
    context: dict[str, object] = {"username": username, "full_name": full_name}
    try:
        payload = SignupRequest(username=username, full_name=full_name, password=password)
        session = register_user(db, payload.username, payload.full_name, payload.password)
    except ValidationError as exc:
        context["error"] = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
    except UsernameTakenError as exc:
        context["error"] = str(exc)
    else:
        return _start_session(_redirect("/", toast=("success", f"Welcome, {session.full_name}!")), session)

    return _render(request, "signup.html", None, context, status_code=status.HTTP_400_BAD_REQUEST)


@router.post("/logout")
def logout() -> Response:
    response = _redirect("/login")
    response.delete_cookie(get_settings().session_cookie_name)
    return response


@router.post("/preferences/theme")
def toggle_theme(
    request: Request,
    next_url: str = Form(default="/", alias="next"),
    current: str = Form(default=""),
) -> Response:
    if not next_url.startswith("/") or next_url.startswith("//"):
        next_url = "/"
    # The page reports what it is showing, which may come from the browser's colour-scheme preference.
    dark = current == "true" if current in {"true", "false"} else bool(_dark_mode(request))
    response = RedirectResponse(next_url, status_code=status.HTTP_303_SEE_OTHER)
    response.set_cookie(THEME_COOKIE, "false" if dark else "true", max_age=365 * 24 * 3600)
    return response


@router.get("/", response_class=HTMLResponse)
def dashboard_page(
    request: Request,
    tab: str = Query(default="dashboard"),
    q: str = Query(default=""),
    session: UserSession | None = Depends(get_optional_session),
    db: Session = Depends(get_db),
) -> Response:
    if session is None:
        return _redirect("/login")
    return _render_dashboard(request, db, session, tab=tab, query=q)


@router.get("/products", response_class=HTMLResponse)
def products_page(
    request: Request,
    session: UserSession | None = Depends(get_optional_session),
    db: Session = Depends(get_db),
) -> Response:
    if session is None:
        return _redirect("/login")
    return _render_dashboard(request, db, session, tab="products")


@router.get("/products/new", response_class=HTMLResponse)
def new_product_page(
    request: Request,
    session: UserSession | None = Depends(get_optional_session),
    db: Session = Depends(get_db),
) -> Response:
    if session is None:
        return _redirect("/login")
    return _render_dashboard(request, db, session, tab="add")


@router.post("/products/new", response_class=HTMLResponse)
def new_product_submit(
    request: Request,
    data: dict[str, str] = Depends(_form_data),
    session: UserSession | None = Depends(get_optional_session),
    db: Session = Depends(get_db),
) -> Response:
    if session is None:
        return _redirect("/login")

    form = ProductForm.from_mapping(data)
    action = data.get("action", "next")
    preview = None
    toast = None

    if action == "back":
        form.previous_step()
    elif action == "preview":
        preview = form.preview()
    elif action == "submit":
        try:
            payload = form.submit()
        except ValidationError as exc:
            payload = None
            toast = ("error", exc.errors()[0]["msg"])
        if payload is not None:
            try:
                product = create_product(db, payload, session)
            except DuplicateSkuError as exc:
                toast = ("error", str(exc))
            except SQLAlchemyError:
                logger.exception("Failed to create product %s", payload.sku)
                db.rollback()
                toast = ("error", "Failed to create product")
            else:
                return _redirect("/", toast=("success", f'Product "{product.name}" added successfully!'))
    else:
        form.next_step()

    return _render_dashboard(request, db, session, tab="add", form=form, preview=preview, toast=toast)
