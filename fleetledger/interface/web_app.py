"""Mini README: FastAPI service exposing the fleet ledger.

Structure:
    * create_application - application factory wiring collaborators, the
      session manager, domain services, error handlers and routes.
    * Session dependency - every data route resolves the session cookie
      through ``SessionManager.require`` before it runs.

Routes answer with JSON. Domain errors map to HTTP status codes through a
single exception handler; ``SessionRedirect`` becomes a 303 to the login
route and clears the session cookie. Gated edits and deletions take the
re-entered work ID from the ``X-Work-Id`` header.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI, File, Form, Header, Request, UploadFile
from fastapi.responses import JSONResponse, RedirectResponse

from ..auth import InMemoryAuthProvider, UserDirectory
from ..authorization import WorkIdPolicy
from ..blobs import BlobStorage, InMemoryBlobStorage
from ..configuration import FleetLedgerSettings, get_settings
from ..errors import FleetLedgerError, SessionRedirect
from ..logging_utils import get_logger
from ..records import (
    AccountService,
    Attachment,
    CreditorService,
    EntryService,
    LedgerInvoiceService,
    TrackerService,
    TruckService,
    WalletService,
)
from ..session import SessionContext, SessionManager
from ..store import STORE_REGISTRY, RecordStore

LOGGER = get_logger(__name__)

SESSION_COOKIE_MAX_AGE = 24 * 60 * 60


def _form_dict(form: Any) -> Dict[str, Any]:
    return {key: value for key, value in form.items() if isinstance(value, str)}


def create_application(
    settings: Optional[FleetLedgerSettings] = None,
    *,
    store: Optional[RecordStore] = None,
    directory: Optional[UserDirectory] = None,
    blobs: Optional[BlobStorage] = None,
    clock: Callable[[], float] = time.monotonic,
) -> FastAPI:
    """Create the FastAPI application with routes and dependencies."""

    settings = settings or get_settings()
    store = store or STORE_REGISTRY.create(settings.store_backend, settings)
    directory = directory or UserDirectory()
    blobs = blobs or InMemoryBlobStorage()

    sessions = SessionManager(
        store,
        lambda: InMemoryAuthProvider(directory),
        timeout_seconds=settings.inactivity_timeout_seconds,
        warning_seconds=settings.inactivity_warning_seconds,
        login_route=settings.login_route,
        clock=clock,
    )
    policy = WorkIdPolicy(store)
    accounts = AccountService(store, sessions, blobs)
    entries = EntryService(store)
    trucks = TruckService(store, policy)
    ledger = LedgerInvoiceService(store)
    wallet = WalletService(
        store,
        blobs=blobs,
        prefix=settings.invoice_prefix,
        counter_seed=settings.invoice_counter_seed,
    )
    creditors = CreditorService(store, policy)
    tracker = TrackerService(store, blobs, policy)
    cookie_name = settings.session_cookie_name

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        LOGGER.info("Fleet ledger starting (%s, store=%s)", settings.environment, store.backend_name)
        yield
        await sessions.close_all()
        await store.close()

    app = FastAPI(title="Fleet Ledger", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.sessions = sessions
    app.state.blobs = blobs

    @app.exception_handler(SessionRedirect)
    async def redirect_to_login(request: Request, error: SessionRedirect) -> RedirectResponse:
        LOGGER.debug("Redirecting %s to %s: %s", request.url.path, error.location, error.message)
        response = RedirectResponse(error.location, status_code=303)
        response.delete_cookie(cookie_name)
        return response

    @app.exception_handler(FleetLedgerError)
    async def domain_error(request: Request, error: FleetLedgerError) -> JSONResponse:
        LOGGER.info("%s on %s: %s", type(error).__name__, request.url.path, error.message)
        return JSONResponse({"detail": error.message}, status_code=error.status_code)

    async def current_session(request: Request) -> SessionContext:
        return await sessions.require(request.cookies.get(cookie_name))

    def _with_cookie(payload: Dict[str, Any], context: SessionContext, status_code: int = 200) -> JSONResponse:
        response = JSONResponse(payload, status_code=status_code)
        response.set_cookie(
            cookie_name,
            context.token,
            max_age=SESSION_COOKIE_MAX_AGE,
            httponly=True,
            samesite="lax",
        )
        return response

    # ------------------------------------------------------------------
    # Health and authentication
    # ------------------------------------------------------------------
    @app.get("/healthz")
    async def healthz() -> JSONResponse:
        return JSONResponse({"status": "ok"}, headers={"Cache-Control": "no-store"})

    @app.get(settings.login_route)
    async def login_page() -> JSONResponse:
        """Landing point for unauthenticated and expired sessions."""

        return JSONResponse({"detail": "Please sign in.", "sign_in": settings.login_route})

    @app.post(settings.login_route)
    async def login(email: str = Form(...), password: str = Form(...)) -> JSONResponse:
        context = await accounts.sign_in(email, password)
        return _with_cookie(context.describe(), context)

    @app.post("/logout")
    async def logout(request: Request) -> RedirectResponse:
        await sessions.sign_out(request.cookies.get(cookie_name))
        response = RedirectResponse(settings.login_route, status_code=303)
        response.delete_cookie(cookie_name)
        return response

    @app.post("/accounts")
    async def create_account(
        email: str = Form(...),
        password: str = Form(...),
        confirm_password: str = Form(...),
        work_id: str = Form(...),
    ) -> JSONResponse:
        context = await accounts.register(email, password, confirm_password, work_id)
        return _with_cookie(context.describe(), context, status_code=201)

    @app.post("/password-reset")
    async def password_reset(email: str = Form(...), work_id: str = Form(...)) -> JSONResponse:
        await accounts.request_password_reset(email, work_id)
        return JSONResponse({"detail": "Password reset email sent."})

    @app.get("/session")
    async def session_details(context: SessionContext = Depends(current_session)) -> JSONResponse:
        return JSONResponse(context.describe())

    @app.post("/session/activity")
    async def session_activity(
        event: str = Form(...), context: SessionContext = Depends(current_session)
    ) -> JSONResponse:
        """Browser heartbeat for pointer and keyboard activity."""

        reset = context.guard.record_activity(event)
        return JSONResponse({"reset": reset, **context.describe()})

    @app.post("/profile/photo")
    async def profile_photo(
        photo: UploadFile = File(...), context: SessionContext = Depends(current_session)
    ) -> JSONResponse:
        url = await accounts.update_profile_photo(context, photo.filename or "", await photo.read())
        return JSONResponse({"photo_url": url})

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------
    @app.post("/entries")
    async def add_entry(
        number: str = Form(...),
        quantity: str = Form(...),
        product: str = Form(...),
        destination: str = Form(...),
        context: SessionContext = Depends(current_session),
    ) -> JSONResponse:
        entry = await entries.create_entry(number, quantity, product, destination)
        return JSONResponse({"id": entry.entry_id, **entry.as_record()}, status_code=201)

    @app.get("/entries")
    async def list_entries(context: SessionContext = Depends(current_session)) -> JSONResponse:
        rows = [{"id": entry.entry_id, **entry.as_record()} for entry in await entries.list_entries()]
        return JSONResponse({"entries": rows})

    @app.get("/allocations")
    async def list_allocations(context: SessionContext = Depends(current_session)) -> JSONResponse:
        rows = [
            {"id": entry.entry_id, **entry.as_record()} for entry in await entries.list_allocations()
        ]
        return JSONResponse({"allocations": rows})

    # ------------------------------------------------------------------
    # Trucks
    # ------------------------------------------------------------------
    @app.get("/trucks")
    async def list_trucks(
        search: Optional[str] = None, context: SessionContext = Depends(current_session)
    ) -> JSONResponse:
        return JSONResponse({"trucks": await trucks.list_trucks(search)})

    @app.post("/trucks")
    async def add_truck(
        truck_no: str = Form(...),
        owner: str = Form(...),
        transporter: str = Form(...),
        driver: str = Form(...),
        ago_comp: List[str] = Form(...),
        pms_comp: List[str] = Form(...),
        context: SessionContext = Depends(current_session),
    ) -> JSONResponse:
        details = {"truck_no": truck_no, "owner": owner, "transporter": transporter, "driver": driver}
        truck_id = await trucks.add_truck(details, ago_comp, pms_comp)
        return JSONResponse(await trucks.get_truck(truck_id), status_code=201)

    @app.put("/trucks/{truck_id}")
    async def update_truck(
        truck_id: str,
        request: Request,
        work_id: Optional[str] = Header(None, alias="X-Work-Id"),
        context: SessionContext = Depends(current_session),
    ) -> JSONResponse:
        changes = _form_dict(await request.form())
        truck = await trucks.update_truck(context.guard.require_principal(), truck_id, changes, work_id)
        return JSONResponse(truck)

    @app.delete("/trucks/{truck_id}")
    async def delete_truck(
        truck_id: str,
        work_id: Optional[str] = Header(None, alias="X-Work-Id"),
        context: SessionContext = Depends(current_session),
    ) -> JSONResponse:
        await trucks.delete_truck(context.guard.require_principal(), truck_id, work_id)
        return JSONResponse({"deleted": truck_id})

    # ------------------------------------------------------------------
    # Ledger invoices
    # ------------------------------------------------------------------
    @app.get("/ledger-invoices")
    async def ledger_invoices(context: SessionContext = Depends(current_session)) -> JSONResponse:
        return JSONResponse({"owners": await ledger.grouped_by_owner()})

    @app.post("/ledger-invoices/preview")
    async def ledger_preview(
        request: Request, context: SessionContext = Depends(current_session)
    ) -> JSONResponse:
        return JSONResponse(ledger.preview(_form_dict(await request.form())))

    @app.post("/ledger-invoices")
    async def submit_ledger_invoice(
        request: Request, context: SessionContext = Depends(current_session)
    ) -> JSONResponse:
        invoice_id = await ledger.submit(_form_dict(await request.form()))
        return JSONResponse({"id": invoice_id, "detail": "Data saved successfully!"}, status_code=201)

    @app.get("/ledger-invoices/owners/{owner}")
    async def owner_statement(
        owner: str, context: SessionContext = Depends(current_session)
    ) -> JSONResponse:
        return JSONResponse(await ledger.owner_statement(owner))

    # ------------------------------------------------------------------
    # Wallet invoices
    # ------------------------------------------------------------------
    @app.get("/wallet/next-number")
    async def wallet_next_number(context: SessionContext = Depends(current_session)) -> JSONResponse:
        return JSONResponse({"invoiceNumber": await wallet.next_invoice_number()})

    @app.post("/wallet/invoices")
    async def wallet_invoice(
        request: Request, context: SessionContext = Depends(current_session)
    ) -> JSONResponse:
        invoice = await wallet.create_invoice(_form_dict(await request.form()))
        return JSONResponse(invoice.as_record(), status_code=201)

    @app.get("/wallet/invoices/search")
    async def wallet_search(q: str, context: SessionContext = Depends(current_session)) -> JSONResponse:
        return JSONResponse({"results": await wallet.search(q)})

    # ------------------------------------------------------------------
    # Creditors
    # ------------------------------------------------------------------
    @app.get("/creditors")
    async def list_creditors(context: SessionContext = Depends(current_session)) -> JSONResponse:
        return JSONResponse({"creditors": await creditors.list_creditors()})

    @app.post("/creditors")
    async def add_creditor(
        name: str = Form(...), context: SessionContext = Depends(current_session)
    ) -> JSONResponse:
        creditor_id = await creditors.add_creditor(name)
        return JSONResponse({"id": creditor_id, "name": name.strip()}, status_code=201)

    @app.put("/creditors/{creditor_id}")
    async def rename_creditor(
        creditor_id: str,
        name: str = Form(...),
        work_id: Optional[str] = Header(None, alias="X-Work-Id"),
        context: SessionContext = Depends(current_session),
    ) -> JSONResponse:
        await creditors.rename_creditor(context.guard.require_principal(), creditor_id, name, work_id)
        return JSONResponse({"id": creditor_id, "name": name.strip()})

    @app.delete("/creditors/{creditor_id}")
    async def delete_creditor(
        creditor_id: str,
        work_id: Optional[str] = Header(None, alias="X-Work-Id"),
        context: SessionContext = Depends(current_session),
    ) -> JSONResponse:
        await creditors.delete_creditor(context.guard.require_principal(), creditor_id, work_id)
        return JSONResponse({"deleted": creditor_id})

    @app.get("/creditors/{creditor_id}/expenses")
    async def creditor_expenses(
        creditor_id: str, context: SessionContext = Depends(current_session)
    ) -> JSONResponse:
        return JSONResponse(
            {
                "expenses": await creditors.list_expenses(creditor_id),
                "total": await creditors.expense_total(creditor_id),
            }
        )

    @app.post("/creditors/{creditor_id}/expenses")
    async def add_creditor_expense(
        creditor_id: str,
        name: str = Form(...),
        amount: str = Form(...),
        date: str = Form(...),
        context: SessionContext = Depends(current_session),
    ) -> JSONResponse:
        expense_id = await creditors.add_expense(creditor_id, name, amount, date)
        return JSONResponse({"id": expense_id}, status_code=201)

    @app.delete("/creditors/{creditor_id}/expenses/{expense_id}")
    async def delete_creditor_expense(
        creditor_id: str,
        expense_id: str,
        work_id: Optional[str] = Header(None, alias="X-Work-Id"),
        context: SessionContext = Depends(current_session),
    ) -> JSONResponse:
        await creditors.delete_expense(
            context.guard.require_principal(), creditor_id, expense_id, work_id
        )
        return JSONResponse({"deleted": expense_id})

    # ------------------------------------------------------------------
    # Expense tracker
    # ------------------------------------------------------------------
    @app.get("/tracker/expenses")
    async def tracker_expenses(context: SessionContext = Depends(current_session)) -> JSONResponse:
        return JSONResponse({"expenses": await tracker.list_expenses()})

    @app.post("/tracker/expenses")
    async def add_tracker_expense(
        name: str = Form(...),
        amount: str = Form(...),
        date: str = Form(...),
        statement: UploadFile = File(...),
        mpesa_statement: UploadFile = File(...),
        context: SessionContext = Depends(current_session),
    ) -> JSONResponse:
        expense_id = await tracker.add_expense(
            name,
            amount,
            date,
            Attachment(statement.filename or "statement", await statement.read()),
            Attachment(mpesa_statement.filename or "mpesa-statement", await mpesa_statement.read()),
        )
        return JSONResponse({"id": expense_id}, status_code=201)

    @app.delete("/tracker/expenses/{expense_id}")
    async def delete_tracker_expense(
        expense_id: str,
        work_id: Optional[str] = Header(None, alias="X-Work-Id"),
        context: SessionContext = Depends(current_session),
    ) -> JSONResponse:
        await tracker.delete_expense(context.guard.require_principal(), expense_id, work_id)
        return JSONResponse({"deleted": expense_id})

    return app
