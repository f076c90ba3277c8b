from typing import Optional
from urllib.parse import urlencode

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from sqlalchemy.orm import Session

import auth
import config
from database import Base, engine, get_db
from detail import NotFound, load_application, load_contact, related_contacts
from forms import ApplicationForm, ContactForm, describe_errors
from listing import APPLICATIONS, CONTACTS, ListQuery, ListView, recent
from log import get_logger
from messages import generate_messages
from models import APPLICATION_STATUSES, CONTACT_STATUSES
from notifications import FlashBox, Notifier
from schemas import (
    ApplicationCreate,
    ApplicationDetailResponse,
    ApplicationResponse,
    ApplicationUpdate,
    ContactCreate,
    ContactResponse,
    ContactUpdate,
    Credentials,
    MessageRequest,
    MessageResponse,
    SessionResponse,
    UserResponse,
)
from store import DataStore
from workspace import UserContext, WorkspaceRegistry

log = get_logger(__name__)

# Create tables
Base.metadata.create_all(bind=engine)

app = FastAPI(title="Job Search Tracker")

# Static files & templates
app.mount("/static", StaticFiles(directory=str(config.STATIC_DIR)), name="static")
templates = Jinja2Templates(directory=str(config.TEMPLATES_DIR))

workspaces = WorkspaceRegistry()
flashes = FlashBox()

APPLICATION_STATUS_COLORS = {
    "Applied": "blue",
    "Interview": "purple",
    "Offer": "green",
    "Rejected": "red",
    "No Response": "gray",
}
CONTACT_STATUS_COLORS = {
    "Active": "green",
    "Follow-up": "blue",
}


# ---------- Session ----------

class NotAuthenticated(Exception):
    pass


def session_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return request.cookies.get(config.SESSION_COOKIE_NAME)


def get_context(request: Request, db: Session = Depends(get_db)) -> UserContext:
    token = session_token(request)
    user = auth.resolve(db, token)
    if user is None:
        raise NotAuthenticated()
    return UserContext(
        user=user,
        token=token,
        store=DataStore(db),
        notifier=Notifier(),
        workspace=workspaces.get(token, user),
    )


@app.exception_handler(NotAuthenticated)
def not_authenticated_handler(request: Request, exc: NotAuthenticated):
    if request.url.path.startswith("/api/"):
        return JSONResponse({"detail": "Not authenticated"}, status_code=401)
    return RedirectResponse("/login", status_code=303)


def _set_session_cookie(response, token: str) -> None:
    response.set_cookie(config.SESSION_COOKIE_NAME, token, httponly=True, samesite="lax")


def _safe_next(target: Optional[str], default: str) -> str:
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return default


def _redirect(ctx: UserContext, url: str) -> RedirectResponse:
    flashes.push(ctx.token, ctx.notifier.drain())
    return RedirectResponse(url, status_code=303)


def _render(request: Request, template_name: str, ctx: Optional[UserContext] = None, **context):
    notices = []
    if ctx is not None:
        notices = flashes.pop(ctx.token) + ctx.notifier.drain()
    context.setdefault("notices", notices)
    context.update(
        user=ctx.user if ctx else None,
        application_statuses=APPLICATION_STATUSES,
        contact_statuses=CONTACT_STATUSES,
        application_colors=APPLICATION_STATUS_COLORS,
        contact_colors=CONTACT_STATUS_COLORS,
        path=request.url.path,
    )
    return templates.TemplateResponse(request, template_name, context)


def _list_query(status: Optional[str], active: Optional[str]) -> ListQuery:
    return ListQuery(status=status or None, active_only=active in ("1", "true", "on"))


def _refresh(view: ListView, ctx: UserContext, query: ListQuery, force: bool) -> None:
    changed = view.set_query(query)
    if changed or force or not view.loaded:
        view.fetch(ctx.store, ctx.notifier)


def _service_unavailable(ctx: UserContext) -> HTTPException:
    detail = "; ".join(ctx.notifier.messages) or "Data store unavailable"
    return HTTPException(status_code=503, detail=detail)


# ---------- Auth API ----------

@app.post("/api/auth/signup", response_model=UserResponse, status_code=201)
def api_sign_up(credentials: Credentials, db: Session = Depends(get_db)):
    try:
        user = auth.sign_up(db, credentials.email, credentials.password)
    except auth.AuthError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return UserResponse(id=user.id, email=user.email)


@app.post("/api/auth/signin", response_model=SessionResponse)
def api_sign_in(credentials: Credentials, db: Session = Depends(get_db)):
    try:
        token = auth.sign_in(db, credentials.email, credentials.password)
    except auth.AuthError as exc:
        raise HTTPException(status_code=401, detail=str(exc))
    user = auth.resolve(db, token)
    body = SessionResponse(token=token, user=UserResponse(id=user.id, email=user.email))
    response = JSONResponse(body.model_dump())
    _set_session_cookie(response, token)
    return response


@app.post("/api/auth/signout")
def api_sign_out(ctx: UserContext = Depends(get_context)):
    try:
        auth.sign_out(ctx.store.db, ctx.token)
    except auth.AuthError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    workspaces.drop(ctx.token)
    response = JSONResponse({"detail": "Signed out"})
    response.delete_cookie(config.SESSION_COOKIE_NAME)
    return response


@app.get("/api/me", response_model=UserResponse)
def api_me(ctx: UserContext = Depends(get_context)):
    return UserResponse(id=ctx.user.id, email=ctx.user.email)


# ---------- Applications API ----------

@app.get("/api/applications", response_model=list[ApplicationResponse])
def api_list_applications(
    status: Optional[str] = None,
    active: Optional[str] = None,
    q: str = "",
    ctx: UserContext = Depends(get_context),
):
    view = ctx.workspace.applications
    view.set_query(_list_query(status, active))
    if not view.fetch(ctx.store, ctx.notifier):
        raise _service_unavailable(ctx)
    return view.visible(q)


@app.post("/api/applications", response_model=ApplicationResponse, status_code=201)
def api_create_application(payload: ApplicationCreate, ctx: UserContext = Depends(get_context)):
    record = ctx.coordinator(APPLICATIONS).create(payload.model_dump())
    if record is None:
        raise _service_unavailable(ctx)
    return record


@app.get("/api/applications/{application_id}", response_model=ApplicationDetailResponse)
def api_get_application(application_id: str, ctx: UserContext = Depends(get_context)):
    try:
        record = load_application(ctx.store, ctx.owner_id, application_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Application not found")
    contacts = related_contacts(ctx.store, ctx.owner_id, record["company"])
    return {**record, "related_contacts": contacts}


@app.patch("/api/applications/{application_id}", response_model=ApplicationResponse)
def api_update_application(
    application_id: str,
    payload: ApplicationUpdate,
    ctx: UserContext = Depends(get_context),
):
    try:
        load_application(ctx.store, ctx.owner_id, application_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Application not found")
    record = ctx.coordinator(APPLICATIONS).update(
        application_id, payload.model_dump(exclude_unset=True)
    )
    if record is None:
        raise _service_unavailable(ctx)
    return record


@app.delete("/api/applications/{application_id}")
def api_delete_application(application_id: str, ctx: UserContext = Depends(get_context)):
    try:
        load_application(ctx.store, ctx.owner_id, application_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Application not found")
    if not ctx.coordinator(APPLICATIONS).delete(application_id):
        raise _service_unavailable(ctx)
    return {"detail": "Application deleted"}


# ---------- Contacts API ----------

@app.get("/api/contacts", response_model=list[ContactResponse])
def api_list_contacts(
    status: Optional[str] = None,
    q: str = "",
    ctx: UserContext = Depends(get_context),
):
    view = ctx.workspace.contacts
    view.set_query(_list_query(status, None))
    if not view.fetch(ctx.store, ctx.notifier):
        raise _service_unavailable(ctx)
    return view.visible(q)


@app.post("/api/contacts", response_model=ContactResponse, status_code=201)
def api_create_contact(payload: ContactCreate, ctx: UserContext = Depends(get_context)):
    record = ctx.coordinator(CONTACTS).create(payload.model_dump())
    if record is None:
        raise _service_unavailable(ctx)
    return record


@app.get("/api/contacts/{contact_id}", response_model=ContactResponse)
def api_get_contact(contact_id: str, ctx: UserContext = Depends(get_context)):
    try:
        return load_contact(ctx.store, ctx.owner_id, contact_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Contact not found")


@app.patch("/api/contacts/{contact_id}", response_model=ContactResponse)
def api_update_contact(
    contact_id: str,
    payload: ContactUpdate,
    ctx: UserContext = Depends(get_context),
):
    try:
        load_contact(ctx.store, ctx.owner_id, contact_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Contact not found")
    record = ctx.coordinator(CONTACTS).update(contact_id, payload.model_dump(exclude_unset=True))
    if record is None:
        raise _service_unavailable(ctx)
    return record


@app.delete("/api/contacts/{contact_id}")
def api_delete_contact(contact_id: str, ctx: UserContext = Depends(get_context)):
    try:
        load_contact(ctx.store, ctx.owner_id, contact_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Contact not found")
    if not ctx.coordinator(CONTACTS).delete(contact_id):
        raise _service_unavailable(ctx)
    return {"detail": "Contact deleted"}


# ---------- Messages API ----------

@app.post("/api/messages", response_model=MessageResponse)
def api_generate_messages(payload: MessageRequest):
    return generate_messages(payload.name, payload.company, payload.role)._asdict()


# ---------- Auth pages ----------

@app.get("/", response_class=HTMLResponse)
def index(request: Request, db: Session = Depends(get_db)):
    if auth.resolve(db, session_token(request)) is None:
        return RedirectResponse("/login", status_code=303)
    return RedirectResponse("/dashboard", status_code=303)


@app.get("/login", response_class=HTMLResponse)
def login_page(request: Request, created: bool = False):
    notices = []
    if created:
        notifier = Notifier()
        notifier.success("Account created successfully! You can now sign in.")
        notices = notifier.drain()
    return _render(request, "login.html", notices=notices, email="")


@app.post("/login", response_class=HTMLResponse)
async def login_submit(request: Request, db: Session = Depends(get_db)):
    form = await request.form()
    email = str(form.get("email", ""))
    notifier = Notifier()
    try:
        token = auth.sign_in(db, email, str(form.get("password", "")))
    except auth.AuthError as exc:
        notifier.error(str(exc))
        return _render(request, "login.html", notices=notifier.drain(), email=email)
    response = RedirectResponse("/dashboard", status_code=303)
    _set_session_cookie(response, token)
    return response


@app.get("/signup", response_class=HTMLResponse)
def signup_page(request: Request):
    return _render(request, "signup.html", email="")


@app.post("/signup", response_class=HTMLResponse)
async def signup_submit(request: Request, db: Session = Depends(get_db)):
    form = await request.form()
    email = str(form.get("email", ""))
    password = str(form.get("password", ""))
    notifier = Notifier()
    if password != str(form.get("confirm_password", "")):
        notifier.error("Passwords do not match")
        return _render(request, "signup.html", notices=notifier.drain(), email=email)
    try:
        auth.sign_up(db, email, password)
    except auth.AuthError as exc:
        log.warning("Sign-up refused for %s: %s", email, exc)
        notifier.error(f"Failed to create account. {exc}")
        return _render(request, "signup.html", notices=notifier.drain(), email=email)
    return RedirectResponse("/login?created=1", status_code=303)


@app.post("/logout")
def logout(request: Request, db: Session = Depends(get_db)):
    token = session_token(request)
    try:
        auth.sign_out(db, token)
    except auth.AuthError:
        log.warning("Session token could not be revoked; clearing cookie anyway")
    workspaces.drop(token)
    flashes.pop(token or "")
    response = RedirectResponse("/login", status_code=303)
    response.delete_cookie(config.SESSION_COOKIE_NAME)
    return response


# ---------- Dashboard ----------

@app.get("/dashboard", response_class=HTMLResponse)
def dashboard(request: Request, ctx: UserContext = Depends(get_context)):
    contacts = recent(ctx.store, ctx.owner_id, CONTACTS, limit=config.DASHBOARD_LIMIT)
    applications = recent(
        ctx.store,
        ctx.owner_id,
        APPLICATIONS,
        limit=config.DASHBOARD_LIMIT,
        query=ListQuery(active_only=True),
    )
    return _render(
        request,
        "dashboard.html",
        ctx,
        recent_contacts=contacts,
        active_applications=applications,
    )


# ---------- Application pages ----------

@app.get("/applications", response_class=HTMLResponse)
def applications_page(
    request: Request,
    q: str = "",
    status: Optional[str] = None,
    active: Optional[str] = None,
    edit: Optional[str] = None,
    refresh: bool = False,
    ctx: UserContext = Depends(get_context),
):
    view = ctx.workspace.applications
    _refresh(view, ctx, _list_query(status, active), refresh)

    form, editing = ApplicationForm.blank(), None
    if edit:
        try:
            editing = view.find(edit) or load_application(ctx.store, ctx.owner_id, edit)
            form = ApplicationForm.from_record(editing)
        except NotFound:
            ctx.notifier.error("Failed to load application details")

    params = {k: v for k, v in (("q", q), ("status", status), ("active", active)) if v}
    return _render(
        request,
        "applications.html",
        ctx,
        applications=view.visible(q),
        loading=view.loading,
        q=q,
        status=status or "all",
        active=view.query.active_only,
        form=form,
        editing=editing,
        current_url="/applications" + (f"?{urlencode(params)}" if params else ""),
    )


@app.post("/applications")
async def create_application(request: Request, ctx: UserContext = Depends(get_context)):
    data = await request.form()
    try:
        payload = ApplicationForm.from_form(data).to_create()
    except ValidationError as exc:
        ctx.notifier.error(f"Failed to add application: {describe_errors(exc)}")
    else:
        ctx.coordinator(APPLICATIONS).create(payload.model_dump())
    return _redirect(ctx, _safe_next(data.get("next"), "/applications"))


@app.post("/applications/{application_id}")
async def update_application(
    application_id: str, request: Request, ctx: UserContext = Depends(get_context)
):
    data = await request.form()
    try:
        payload = ApplicationForm.from_form(data).to_update()
    except ValidationError as exc:
        ctx.notifier.error(f"Failed to update application: {describe_errors(exc)}")
    else:
        ctx.coordinator(APPLICATIONS).update(application_id, payload.model_dump(exclude_unset=True))
    return _redirect(ctx, _safe_next(data.get("next"), "/applications"))


@app.post("/applications/{application_id}/delete")
async def delete_application(
    application_id: str, request: Request, ctx: UserContext = Depends(get_context)
):
    data = await request.form()
    ctx.coordinator(APPLICATIONS).delete(application_id)
    return _redirect(ctx, _safe_next(data.get("next"), "/applications"))


@app.get("/applications/{application_id}", response_class=HTMLResponse)
def application_detail(
    application_id: str, request: Request, ctx: UserContext = Depends(get_context)
):
    try:
        application = load_application(ctx.store, ctx.owner_id, application_id)
    except NotFound:
        ctx.notifier.error("Failed to load application details")
        return _redirect(ctx, "/applications")
    contacts = related_contacts(ctx.store, ctx.owner_id, application["company"])
    return _render(
        request,
        "application_detail.html",
        ctx,
        application=application,
        related_contacts=contacts,
    )


# ---------- Network pages ----------

@app.get("/network", response_class=HTMLResponse)
def network_page(
    request: Request,
    q: str = "",
    status: Optional[str] = None,
    edit: Optional[str] = None,
    company: str = "",
    refresh: bool = False,
    ctx: UserContext = Depends(get_context),
):
    view = ctx.workspace.contacts
    _refresh(view, ctx, _list_query(status, None), refresh)

    form, editing = ContactForm.blank(company=company), None
    if edit:
        try:
            editing = view.find(edit) or load_contact(ctx.store, ctx.owner_id, edit)
            form = ContactForm.from_record(editing)
        except NotFound:
            ctx.notifier.error("Failed to load contact details")

    params = {k: v for k, v in (("q", q), ("status", status)) if v}
    return _render(
        request,
        "network.html",
        ctx,
        contacts=view.visible(q),
        loading=view.loading,
        q=q,
        status=status or "all",
        form=form,
        editing=editing,
        open_form=bool(company or editing),
        current_url="/network" + (f"?{urlencode(params)}" if params else ""),
    )


@app.post("/network")
async def create_contact(request: Request, ctx: UserContext = Depends(get_context)):
    data = await request.form()
    try:
        payload = ContactForm.from_form(data).to_create()
    except ValidationError as exc:
        ctx.notifier.error(f"Failed to add contact: {describe_errors(exc)}")
    else:
        ctx.coordinator(CONTACTS).create(payload.model_dump())
    return _redirect(ctx, _safe_next(data.get("next"), "/network"))


@app.post("/network/{contact_id}")
async def update_contact(contact_id: str, request: Request, ctx: UserContext = Depends(get_context)):
    data = await request.form()
    try:
        payload = ContactForm.from_form(data).to_update()
    except ValidationError as exc:
        ctx.notifier.error(f"Failed to update contact: {describe_errors(exc)}")
    else:
        ctx.coordinator(CONTACTS).update(contact_id, payload.model_dump(exclude_unset=True))
    return _redirect(ctx, _safe_next(data.get("next"), "/network"))


@app.post("/network/{contact_id}/delete")
async def delete_contact(contact_id: str, request: Request, ctx: UserContext = Depends(get_context)):
    data = await request.form()
    ctx.coordinator(CONTACTS).delete(contact_id)
    return _redirect(ctx, _safe_next(data.get("next"), "/network"))


@app.get("/network/{contact_id}", response_class=HTMLResponse)
def contact_detail(contact_id: str, request: Request, ctx: UserContext = Depends(get_context)):
    try:
        contact = load_contact(ctx.store, ctx.owner_id, contact_id)
    except NotFound:
        ctx.notifier.error("Failed to load contact details")
        return _redirect(ctx, "/network")
    return _render(
        request,
        "contact_detail.html",
        ctx,
        contact=contact,
        messages=generate_messages(contact["name"], contact["company"] or "", contact["role"] or ""),
    )


# ---------- Message generator ----------

@app.get("/messages", response_class=HTMLResponse)
def messages_page(
    request: Request,
    name: str = "",
    company: str = "",
    role: str = "",
    ctx: UserContext = Depends(get_context),
):
    return _render(
        request,
        "messages.html",
        ctx,
        name=name,
        company=company,
        role=role,
        messages=generate_messages(name, company, role),
    )
