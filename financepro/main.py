import logging
from datetime import date, datetime
from decimal import Decimal

from fastapi import FastAPI, HTTPException, Header
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel
from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    create_engine,
    func,
    insert,
    or_,
    select,
    update,
)
from sqlalchemy.exc import IntegrityError

from financepro import config
from financepro.auth import (
    GoogleAuthError,
    InvalidTokenError,
    create_access_token,
    decode_access_token,
    fetch_google_profile,
    hash_password,
    username_from_email,
    verify_password,
)
from financepro.csv_export import (
    TransactionExportRow,
    export_dashboard_csv,
    export_projection_csv,
    export_transactions_csv,
)
from financepro.currency import normalize_currency
from financepro.dashboard_engine import (
    EXPENSE,
    DashboardSummary,
    DashboardTransaction,
    savings_rate,
    summarize_transactions,
    validate_kind,
)
from financepro.fixed_expense_advisor import AdvisedExpense, advise_fixed_expenses
from financepro.projection_engine import (
    ProjectionResult,
    ProjectionScenario,
    normalize_scenario_kind,
    project_balance,
)

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger("financepro")

app = FastAPI(title="FinancePro")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.FRONTEND_ORIGIN],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

connect_args = {}
if config.DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(config.DATABASE_URL, connect_args=connect_args)
metadata = MetaData()

DEFAULT_CATEGORIES = [
    ("Salary", "income"),
    ("Sales", "income"),
    ("Investments", "income"),
    ("Other Income", "income"),
    ("Housing", "expense"),
    ("Food", "expense"),
    ("Transportation", "expense"),
    ("Entertainment", "expense"),
    ("Health", "expense"),
    ("Education", "expense"),
    ("Technology", "expense"),
    ("Other Expenses", "expense"),
]
GOOGLE_USERNAME_ATTEMPTS = 5

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), unique=True, nullable=False),
    Column("email", String(255), unique=True),
    Column("hashed_password", String(255)),
    Column("currency", String(3), nullable=False, server_default=config.SYSTEM_DEFAULT_CURRENCY),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)

categories = Table(
    "categories",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("kind", String(20), nullable=False),
)

transactions = Table(
    "transactions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("category_id", Integer, ForeignKey("categories.id"), nullable=False),
    Column("amount", Numeric(14, 2), nullable=False),
    Column("description", String(500), nullable=False),
    Column("date", Date, nullable=False),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)

fixed_expenses = Table(
    "fixed_expenses",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("category_id", Integer, ForeignKey("categories.id"), nullable=False),
    Column("amount", Numeric(14, 2), nullable=False),
    Column("description", String(500), nullable=False),
    Column("due_day", Integer, nullable=False),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)


@app.on_event("startup")
def init_db() -> None:
    metadata.create_all(engine)
    with engine.begin() as conn:
        ensure_default_categories(conn)


class CredentialsPayload(BaseModel):
    username: str
    password: str

    @classmethod
    def validate_payload(cls, payload: "CredentialsPayload") -> "CredentialsPayload":
        payload.username = payload.username.strip()
        if not payload.username or not payload.password:
            raise ValueError("Username and password are required.")
        return payload


class GoogleLoginPayload(BaseModel):
    token: str


class MessageResponse(BaseModel):
    message: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class ProfileResponse(BaseModel):
    id: int
    username: str
    email: str | None = None


class UserSettingsPayload(BaseModel):
    currency: str

    @classmethod
    def validate_payload(cls, payload: "UserSettingsPayload") -> "UserSettingsPayload":
        payload.currency = normalize_currency(payload.currency)
        return payload


class UserSettingsResponse(BaseModel):
    id: int
    username: str
    currency: str


class CategoryResponse(BaseModel):
    id: int
    name: str
    kind: str


class TransactionPayload(BaseModel):
    amount: Decimal
    description: str
    category_id: int
    date: date

    @classmethod
    def validate_payload(cls, payload: "TransactionPayload") -> "TransactionPayload":
        payload.description = payload.description.strip()
        if not payload.description:
            raise ValueError("Description required.")
        if not payload.amount.is_finite():
            raise ValueError("Amount must be a finite number.")
        if payload.amount == 0:
            raise ValueError("Amount must not be zero.")
        return payload


class TransactionResponse(TransactionPayload):
    id: int
    user_id: int
    category: CategoryResponse | None = None
    created_at: datetime | None = None


class FixedExpensePayload(BaseModel):
    amount: Decimal
    description: str
    due_day: int
    category_id: int

    @classmethod
    def validate_payload(cls, payload: "FixedExpensePayload") -> "FixedExpensePayload":
        payload.description = payload.description.strip()
        if not payload.description:
            raise ValueError("Description required.")
        if not payload.amount.is_finite() or payload.amount <= 0:
            raise ValueError("Fixed expense amount must be greater than zero.")
        if not 1 <= payload.due_day <= 31:
            raise ValueError("Due day must be between 1 and 31.")
        return payload


class FixedExpenseResponse(FixedExpensePayload):
    id: int
    user_id: int
    category: CategoryResponse | None = None
    created_at: datetime | None = None


class PayFixedExpensePayload(BaseModel):
    month: str | None = None
    paid_on: date | None = None


class FixedExpenseInsightResponse(BaseModel):
    kind: str
    title: str
    description: str


class CategoryTotalResponse(BaseModel):
    name: str
    total: Decimal


class DashboardSummaryResponse(BaseModel):
    income: Decimal
    expenses: Decimal
    balance: Decimal
    category_breakdown: list[CategoryTotalResponse]
    transaction_count: int
    savings_rate: Decimal
    currency: str


class ProjectionScenarioPayload(BaseModel):
    name: str
    amount: Decimal
    year: int
    kind: str = "one-time"
    enabled: bool = True

    @classmethod
    def validate_payload(
        cls, payload: "ProjectionScenarioPayload"
    ) -> "ProjectionScenarioPayload":
        payload.name = payload.name.strip()
        if not payload.name:
            raise ValueError("Scenario name required.")
        if not payload.amount.is_finite():
            raise ValueError("Scenario amount must be a finite number.")
        payload.kind = normalize_scenario_kind(payload.kind)
        return payload


class ProjectionPayload(BaseModel):
    annual_rate: Decimal = Decimal("7")
    years: int = 10
    scenarios: list[ProjectionScenarioPayload] = []
    current_balance: Decimal | None = None
    monthly_savings: Decimal | None = None

    @classmethod
    def validate_payload(cls, payload: "ProjectionPayload") -> "ProjectionPayload":
        if not payload.annual_rate.is_finite() or payload.annual_rate <= Decimal("-100"):
            raise ValueError("Annual rate must be a number greater than -100.")
        if not 1 <= payload.years <= 100:
            raise ValueError("Projection horizon must be between 1 and 100 years.")
        for value in (payload.current_balance, payload.monthly_savings):
            if value is not None and not value.is_finite():
                raise ValueError("Balance and savings must be finite numbers.")
        payload.scenarios = [
            ProjectionScenarioPayload.validate_payload(scenario)
            for scenario in payload.scenarios
        ]
        return payload


class ProjectionPointResponse(BaseModel):
    year: int
    label: str
    balance: Decimal


class ProjectionResponse(BaseModel):
    points: list[ProjectionPointResponse]
    final_balance: Decimal
    total_growth: Decimal
    current_balance: Decimal
    monthly_savings: Decimal
    savings_rate: Decimal
    annual_rate: Decimal
    years: int


def get_user_id(authorization: str | None = Header(None)) -> int:
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing bearer token.")
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=401, detail="Invalid authorization header.")
    try:
        claims = decode_access_token(token)
    except InvalidTokenError as exc:
        raise HTTPException(status_code=401, detail="Invalid or expired token.") from exc
    with engine.begin() as conn:
        result = conn.execute(select(users.c.id).where(users.c.id == claims.user_id))
        if not result.first():
            raise HTTPException(status_code=404, detail="User not found.")
    return claims.user_id


def ensure_default_categories(conn) -> None:
    existing = conn.execute(select(categories.c.id).limit(1)).first()
    if existing:
        return
    conn.execute(
        insert(categories),
        [{"name": name, "kind": kind} for name, kind in DEFAULT_CATEGORIES],
    )
    logger.info("Seeded %d default categories", len(DEFAULT_CATEGORIES))


def get_category(conn, category_id: int) -> dict | None:
    row = conn.execute(
        select(categories).where(categories.c.id == category_id)
    ).mappings().first()
    return dict(row) if row else None


def require_category(conn, category_id: int, kind: str | None = None) -> dict:
    category = get_category(conn, category_id)
    if not category:
        raise ValueError("Category not found.")
    if kind is not None and validate_kind(category["kind"]) != kind:
        raise ValueError(f"Category must be of kind '{kind}'.")
    return category


def get_user_currency(conn, user_id: int) -> str:
    currency = conn.execute(
        select(users.c.currency).where(users.c.id == user_id)
    ).scalar_one_or_none()
    if not currency:
        return config.SYSTEM_DEFAULT_CURRENCY
    try:
        return normalize_currency(currency)
    except ValueError:
        return config.SYSTEM_DEFAULT_CURRENCY


def issue_token(user_id: int, username: str) -> TokenResponse:
    return TokenResponse(access_token=create_access_token(user_id, username))


def category_response(row) -> CategoryResponse | None:
    if row["category_name"] is None:
        return None
    return CategoryResponse(
        id=row["category_id"],
        name=row["category_name"],
        kind=row["category_kind"],
    )


def transaction_response(row) -> TransactionResponse:
    return TransactionResponse(
        id=row["id"],
        user_id=row["user_id"],
        amount=row["amount"],
        description=row["description"],
        category_id=row["category_id"],
        date=row["date"],
        category=category_response(row),
        created_at=row["created_at"],
    )


def fixed_expense_response(row) -> FixedExpenseResponse:
    return FixedExpenseResponse(
        id=row["id"],
        user_id=row["user_id"],
        amount=row["amount"],
        description=row["description"],
        due_day=row["due_day"],
        category_id=row["category_id"],
        category=category_response(row),
        created_at=row["created_at"],
    )


def transaction_select():
    return select(
        transactions,
        categories.c.name.label("category_name"),
        categories.c.kind.label("category_kind"),
    ).select_from(
        transactions.outerjoin(categories, transactions.c.category_id == categories.c.id)
    )


def fixed_expense_select():
    return select(
        fixed_expenses,
        categories.c.name.label("category_name"),
        categories.c.kind.label("category_kind"),
    ).select_from(
        fixed_expenses.outerjoin(categories, fixed_expenses.c.category_id == categories.c.id)
    )


def escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def fetch_transaction_rows(user_id: int, search: str | None = None) -> list:
    stmt = transaction_select().where(transactions.c.user_id == user_id)
    if search:
        pattern = f"%{escape_like(search.strip())}%"
        stmt = stmt.where(
            or_(
                transactions.c.description.ilike(pattern, escape="\\"),
                categories.c.name.ilike(pattern, escape="\\"),
            )
        )
    stmt = stmt.order_by(transactions.c.date.desc(), transactions.c.id.desc())
    with engine.begin() as conn:
        return conn.execute(stmt).mappings().all()


def fetch_transaction_row(conn, user_id: int, transaction_id: int):
    return conn.execute(
        transaction_select().where(
            transactions.c.id == transaction_id, transactions.c.user_id == user_id
        )
    ).mappings().first()


def fetch_fixed_expense_row(conn, user_id: int, expense_id: int):
    return conn.execute(
        fixed_expense_select().where(
            fixed_expenses.c.id == expense_id, fixed_expenses.c.user_id == user_id
        )
    ).mappings().first()


def load_dashboard_summary(user_id: int) -> DashboardSummary:
    rows = fetch_transaction_rows(user_id)
    return summarize_transactions(
        DashboardTransaction(
            amount=row["amount"],
            category_kind=row["category_kind"],
            category_name=row["category_name"],
        )
        for row in rows
    )


def run_projection(
    user_id: int, payload: ProjectionPayload
) -> tuple[ProjectionResult, Decimal, Decimal, DashboardSummary]:
    summary = load_dashboard_summary(user_id)
    current_balance = (
        payload.current_balance if payload.current_balance is not None else summary.balance
    )
    monthly_savings = (
        payload.monthly_savings
        if payload.monthly_savings is not None
        else summary.income - summary.expenses
    )
    result = project_balance(
        current_balance=current_balance,
        monthly_savings=monthly_savings,
        annual_rate=payload.annual_rate,
        years=payload.years,
        scenarios=[
            ProjectionScenario(
                name=scenario.name,
                amount=scenario.amount,
                year=scenario.year,
                kind=scenario.kind,
                enabled=scenario.enabled,
            )
            for scenario in payload.scenarios
        ],
    )
    return result, current_balance, monthly_savings, summary


def csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.post("/auth/register", response_model=MessageResponse)
def register(payload: CredentialsPayload) -> MessageResponse:
    try:
        payload = CredentialsPayload.validate_payload(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    stmt = insert(users).values(
        username=payload.username,
        hashed_password=hash_password(payload.password),
    )
    try:
        with engine.begin() as conn:
            conn.execute(stmt)
    except IntegrityError as exc:
        raise HTTPException(status_code=409, detail="User already exists.") from exc

    logger.info("Registered user %s", payload.username)
    return MessageResponse(message="User registered successfully")


@app.post("/auth/login", response_model=TokenResponse)
def login(payload: CredentialsPayload) -> TokenResponse:
    username = payload.username.strip()
    with engine.begin() as conn:
        row = conn.execute(
            select(users).where(users.c.username == username)
        ).mappings().first()

    if not row or not verify_password(payload.password, row["hashed_password"]):
        logger.warning("Failed login for %s", username)
        raise HTTPException(status_code=401, detail="Invalid credentials.")

    return issue_token(row["id"], row["username"])


@app.post("/auth/google", response_model=TokenResponse)
def google_login(payload: GoogleLoginPayload) -> TokenResponse:
    token = payload.token.strip()
    if not token:
        raise HTTPException(status_code=400, detail="Google token is required.")
    try:
        profile = fetch_google_profile(token)
    except GoogleAuthError as exc:
        raise HTTPException(status_code=401, detail="Google authentication failed.") from exc

    with engine.begin() as conn:
        row = conn.execute(
            select(users.c.id, users.c.username).where(users.c.email == profile.email)
        ).mappings().first()
    if row:
        return issue_token(row["id"], row["username"])

    for _ in range(GOOGLE_USERNAME_ATTEMPTS):
        username = username_from_email(profile.email)
        stmt = (
            insert(users)
            .values(username=username, email=profile.email)
            .returning(users.c.id, users.c.username)
        )
        try:
            with engine.begin() as conn:
                created = conn.execute(stmt).mappings().first()
        except IntegrityError:
            logger.info("Username %s taken, retrying Google sign-up", username)
            continue
        if created:
            logger.info("Created user %s from Google sign-in", created["username"])
            return issue_token(created["id"], created["username"])

    raise HTTPException(status_code=500, detail="Failed to create user.")


@app.get("/auth/profile", response_model=ProfileResponse)
def get_profile(authorization: str | None = Header(None)) -> ProfileResponse:
    user_id = get_user_id(authorization)
    with engine.begin() as conn:
        row = conn.execute(select(users).where(users.c.id == user_id)).mappings().first()
    return ProfileResponse(id=row["id"], username=row["username"], email=row["email"])


@app.get("/users/me/settings", response_model=UserSettingsResponse)
def get_user_settings(authorization: str | None = Header(None)) -> UserSettingsResponse:
    user_id = get_user_id(authorization)
    with engine.begin() as conn:
        row = conn.execute(select(users).where(users.c.id == user_id)).mappings().first()
        currency = get_user_currency(conn, user_id)
    return UserSettingsResponse(id=row["id"], username=row["username"], currency=currency)


@app.put("/users/me/settings", response_model=UserSettingsResponse)
def update_user_settings(
    payload: UserSettingsPayload, authorization: str | None = Header(None)
) -> UserSettingsResponse:
    user_id = get_user_id(authorization)
    try:
        payload = UserSettingsPayload.validate_payload(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    stmt = (
        update(users)
        .where(users.c.id == user_id)
        .values(currency=payload.currency)
        .returning(users.c.id, users.c.username, users.c.currency)
    )
    with engine.begin() as conn:
        row = conn.execute(stmt).mappings().first()
    return UserSettingsResponse(id=row["id"], username=row["username"], currency=row["currency"])


@app.get("/finance/categories", response_model=list[CategoryResponse])
def list_categories(authorization: str | None = Header(None)) -> list[CategoryResponse]:
    get_user_id(authorization)
    with engine.begin() as conn:
        rows = conn.execute(
            select(categories).order_by(categories.c.name.asc())
        ).mappings().all()
    return [CategoryResponse(id=row["id"], name=row["name"], kind=row["kind"]) for row in rows]


@app.get("/finance/dashboard", response_model=DashboardSummaryResponse)
def get_dashboard(authorization: str | None = Header(None)) -> DashboardSummaryResponse:
    user_id = get_user_id(authorization)
    summary = load_dashboard_summary(user_id)
    with engine.begin() as conn:
        currency = get_user_currency(conn, user_id)
    return DashboardSummaryResponse(
        income=summary.income,
        expenses=summary.expenses,
        balance=summary.balance,
        category_breakdown=[
            CategoryTotalResponse(name=item.name, total=item.total)
            for item in summary.category_breakdown
        ],
        transaction_count=summary.transaction_count,
        savings_rate=savings_rate(summary),
        currency=currency,
    )


@app.get("/finance/dashboard/export")
def export_dashboard(authorization: str | None = Header(None)) -> Response:
    user_id = get_user_id(authorization)
    summary = load_dashboard_summary(user_id)
    today = date.today()
    return csv_response(
        export_dashboard_csv(summary, generated_on=today),
        f"financial_report_{today.isoformat()}.csv",
    )


@app.get("/finance/transactions", response_model=list[TransactionResponse])
def list_transactions(
    q: str | None = None,
    authorization: str | None = Header(None),
) -> list[TransactionResponse]:
    user_id = get_user_id(authorization)
    rows = fetch_transaction_rows(user_id, search=q)
    return [transaction_response(row) for row in rows]


@app.get("/finance/transactions/export")
def export_transactions(authorization: str | None = Header(None)) -> Response:
    user_id = get_user_id(authorization)
    rows = fetch_transaction_rows(user_id)
    content = export_transactions_csv(
        TransactionExportRow(
            description=row["description"],
            category_name=row["category_name"],
            category_kind=row["category_kind"],
            date=row["date"],
            amount=row["amount"],
        )
        for row in rows
    )
    return csv_response(content, f"transaction_history_{date.today().isoformat()}.csv")


@app.post("/finance/transactions", response_model=TransactionResponse)
def create_transaction(
    payload: TransactionPayload, authorization: str | None = Header(None)
) -> TransactionResponse:
    user_id = get_user_id(authorization)
    try:
        payload = TransactionPayload.validate_payload(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    with engine.begin() as conn:
        try:
            require_category(conn, payload.category_id)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        transaction_id = conn.execute(
            insert(transactions)
            .values(
                user_id=user_id,
                category_id=payload.category_id,
                amount=payload.amount,
                description=payload.description,
                date=payload.date,
            )
            .returning(transactions.c.id)
        ).scalar_one()
        row = fetch_transaction_row(conn, user_id, transaction_id)

    if not row:
        raise HTTPException(status_code=500, detail="Failed to create transaction.")
    return transaction_response(row)


@app.put("/finance/transactions/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: int,
    payload: TransactionPayload,
    authorization: str | None = Header(None),
) -> TransactionResponse:
    user_id = get_user_id(authorization)
    try:
        payload = TransactionPayload.validate_payload(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    with engine.begin() as conn:
        try:
            require_category(conn, payload.category_id)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        result = conn.execute(
            update(transactions)
            .where(transactions.c.id == transaction_id, transactions.c.user_id == user_id)
            .values(
                category_id=payload.category_id,
                amount=payload.amount,
                description=payload.description,
                date=payload.date,
            )
        )
        if result.rowcount == 0:
            raise HTTPException(status_code=404, detail="Transaction not found.")
        row = fetch_transaction_row(conn, user_id, transaction_id)

    return transaction_response(row)


@app.delete("/finance/transactions/{transaction_id}")
def delete_transaction(transaction_id: int, authorization: str | None = Header(None)) -> dict:
    user_id = get_user_id(authorization)
    stmt = transactions.delete().where(
        transactions.c.id == transaction_id, transactions.c.user_id == user_id
    )
    with engine.begin() as conn:
        result = conn.execute(stmt)
        if result.rowcount == 0:
            raise HTTPException(status_code=404, detail="Transaction not found.")
    return {"status": "deleted"}


@app.get("/finance/fixed-expenses", response_model=list[FixedExpenseResponse])
def list_fixed_expenses(authorization: str | None = Header(None)) -> list[FixedExpenseResponse]:
    user_id = get_user_id(authorization)
    with engine.begin() as conn:
        rows = conn.execute(
            fixed_expense_select()
            .where(fixed_expenses.c.user_id == user_id)
            .order_by(fixed_expenses.c.due_day.asc(), fixed_expenses.c.id.asc())
        ).mappings().all()
    return [fixed_expense_response(row) for row in rows]


@app.get("/finance/fixed-expenses/insights", response_model=list[FixedExpenseInsightResponse])
def get_fixed_expense_insights(
    authorization: str | None = Header(None),
) -> list[FixedExpenseInsightResponse]:
    user_id = get_user_id(authorization)
    with engine.begin() as conn:
        rows = conn.execute(
            fixed_expense_select().where(fixed_expenses.c.user_id == user_id)
        ).mappings().all()
        currency = get_user_currency(conn, user_id)
    insights = advise_fixed_expenses(
        [
            AdvisedExpense(
                description=row["description"],
                amount=row["amount"],
                category_name=row["category_name"],
            )
            for row in rows
        ],
        currency=currency,
    )
    return [
        FixedExpenseInsightResponse(
            kind=insight.kind,
            title=insight.title,
            description=insight.description,
        )
        for insight in insights
    ]


@app.post("/finance/fixed-expenses", response_model=FixedExpenseResponse)
def create_fixed_expense(
    payload: FixedExpensePayload, authorization: str | None = Header(None)
) -> FixedExpenseResponse:
    user_id = get_user_id(authorization)
    try:
        payload = FixedExpensePayload.validate_payload(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    with engine.begin() as conn:
        try:
            require_category(conn, payload.category_id, kind=EXPENSE)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        expense_id = conn.execute(
            insert(fixed_expenses)
            .values(
                user_id=user_id,
                category_id=payload.category_id,
                amount=payload.amount,
                description=payload.description,
                due_day=payload.due_day,
            )
            .returning(fixed_expenses.c.id)
        ).scalar_one()
        row = fetch_fixed_expense_row(conn, user_id, expense_id)

    if not row:
        raise HTTPException(status_code=500, detail="Failed to create fixed expense.")
    return fixed_expense_response(row)


@app.put("/finance/fixed-expenses/{expense_id}", response_model=FixedExpenseResponse)
def update_fixed_expense(
    expense_id: int,
    payload: FixedExpensePayload,
    authorization: str | None = Header(None),
) -> FixedExpenseResponse:
    user_id = get_user_id(authorization)
    try:
        payload = FixedExpensePayload.validate_payload(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    with engine.begin() as conn:
        try:
            require_category(conn, payload.category_id, kind=EXPENSE)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        result = conn.execute(
            update(fixed_expenses)
            .where(fixed_expenses.c.id == expense_id, fixed_expenses.c.user_id == user_id)
            .values(
                category_id=payload.category_id,
                amount=payload.amount,
                description=payload.description,
                due_day=payload.due_day,
            )
        )
        if result.rowcount == 0:
            raise HTTPException(status_code=404, detail="Fixed expense not found.")
        row = fetch_fixed_expense_row(conn, user_id, expense_id)

    return fixed_expense_response(row)


@app.delete("/finance/fixed-expenses/{expense_id}")
def delete_fixed_expense(expense_id: int, authorization: str | None = Header(None)) -> dict:
    user_id = get_user_id(authorization)
    stmt = fixed_expenses.delete().where(
        fixed_expenses.c.id == expense_id, fixed_expenses.c.user_id == user_id
    )
    with engine.begin() as conn:
        result = conn.execute(stmt)
        if result.rowcount == 0:
            raise HTTPException(status_code=404, detail="Fixed expense not found.")
    return {"status": "deleted"}


@app.post("/finance/fixed-expenses/{expense_id}/pay", response_model=TransactionResponse)
def pay_fixed_expense(
    expense_id: int,
    payload: PayFixedExpensePayload,
    authorization: str | None = Header(None),
) -> TransactionResponse:
    user_id = get_user_id(authorization)
    month_label = payload.month.strip() if payload.month and payload.month.strip() else "Payment"
    paid_on = payload.paid_on or date.today()

    with engine.begin() as conn:
        expense = conn.execute(
            select(fixed_expenses).where(
                fixed_expenses.c.id == expense_id, fixed_expenses.c.user_id == user_id
            )
        ).mappings().first()
        if not expense:
            raise HTTPException(status_code=404, detail="Fixed expense not found.")
        transaction_id = conn.execute(
            insert(transactions)
            .values(
                user_id=user_id,
                category_id=expense["category_id"],
                amount=expense["amount"],
                description=f"{expense['description']} - {month_label}",
                date=paid_on,
            )
            .returning(transactions.c.id)
        ).scalar_one()
        row = fetch_transaction_row(conn, user_id, transaction_id)

    logger.info("User %s paid fixed expense %s", user_id, expense_id)
    return transaction_response(row)


@app.post("/finance/projections", response_model=ProjectionResponse)
def create_projection(
    payload: ProjectionPayload, authorization: str | None = Header(None)
) -> ProjectionResponse:
    user_id = get_user_id(authorization)
    try:
        payload = ProjectionPayload.validate_payload(payload)
        result, current_balance, monthly_savings, summary = run_projection(user_id, payload)
    except (ValueError, ArithmeticError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return ProjectionResponse(
        points=[
            ProjectionPointResponse(year=point.year, label=point.label, balance=point.balance)
            for point in result.points
        ],
        final_balance=result.final_balance,
        total_growth=result.total_growth,
        current_balance=current_balance,
        monthly_savings=monthly_savings,
        savings_rate=savings_rate(summary),
        annual_rate=payload.annual_rate,
        years=payload.years,
    )


@app.post("/finance/projections/export")
def export_projection(
    payload: ProjectionPayload, authorization: str | None = Header(None)
) -> Response:
    user_id = get_user_id(authorization)
    try:
        payload = ProjectionPayload.validate_payload(payload)
        result, _, _, _ = run_projection(user_id, payload)
    except (ValueError, ArithmeticError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return csv_response(
        export_projection_csv(result),
        f"financial_projection_{date.today().year}.csv",
    )
