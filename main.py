from fastapi import FastAPI, HTTPException, Depends, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, condecimal
from sqlalchemy import func
from sqlmodel import Session, select, SQLModel, create_engine
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Dict, List, Optional
from datetime import date, datetime
from decimal import Decimal
import logging

from config import config
from models import Group, Member, Expense, Contribution
from compute import InvalidInput, SplitType, build_report, compute_contributions, round2, total_amount
from seed import seed_sample_data

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

engine = create_engine(config.DATABASE_URL, echo=False)

app = FastAPI(
    title="FairSplit API",
    description="Shared group expenses and who owes whom",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

def create_db_and_tables():
    SQLModel.metadata.create_all(engine)

@app.on_event("startup")
def on_startup():
    create_db_and_tables()
    if config.SEED_SAMPLE_DATA:
        with Session(engine) as session:
            seed_sample_data(session)

def get_session():
    with Session(engine) as session:
        yield session

# ========== Error translation ==========
@app.exception_handler(InvalidInput)
async def invalid_input_handler(request: Request, exc: InvalidInput):
    logger.error("Invalid input on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=400, content={"detail": str(exc)})

@app.exception_handler(StarletteHTTPException)
async def logged_http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 400:
        logger.error("%s on %s: %s", exc.status_code, request.url.path, exc.detail)
    return await http_exception_handler(request, exc)

# ========== Schemas ==========
class GroupIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    participants: List[str] = Field(..., min_length=1)

class GroupOut(BaseModel):
    id: str
    name: str
    participants: List[str]
    participant_count: int
    total_expense: Decimal
    created_at: datetime

class ExpenseIn(BaseModel):
    description: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, max_digits=12)
    paid_by: str
    event_date: Optional[date] = None  # defaults to today
    contributions: Optional[Dict[str, condecimal(max_digits=12)]] = None  # omitted -> equal split

class ExpenseOut(BaseModel):
    id: str
    group_id: str
    description: str
    amount: Decimal
    paid_by: str
    event_date: date
    contributions: Dict[str, Decimal]
    split_type: SplitType
    created_at: datetime

class SettlementOut(BaseModel):
    from_: str = Field(..., alias="from")
    to: str
    amount: Decimal

class MemberBalanceOut(BaseModel):
    total_paid: Decimal
    total_owed: Decimal
    net_balance: Decimal

class SettlementReportOut(BaseModel):
    settlements: List[SettlementOut]
    member_balances: Dict[str, MemberBalanceOut]

# ========== Helpers ==========
def get_group_or_404(session: Session, group_id: str) -> Group:
    group = session.get(Group, group_id)
    if group is None:
        raise HTTPException(status_code=404, detail=f"Group not found: {group_id}")
    return group

def group_participants(session: Session, group_id: str) -> List[str]:
    members = session.exec(
        select(Member).where(Member.group_id == group_id).order_by(Member.position)
    ).all()
    return [m.name for m in members]

def load_expenses(session: Session, group_id: str) -> List[dict]:
    """Expenses of a group as plain dicts, newest first."""
    txs = session.exec(
        select(Expense)
        .where(Expense.group_id == group_id)
        .order_by(Expense.event_date.desc(), Expense.created_at.desc())
    ).all()
    results = []
    for e in txs:
        rows = session.exec(
            select(Contribution).where(Contribution.expense_id == e.id).order_by(Contribution.id)
        ).all()
        results.append({
            "id": e.id,
            "group_id": e.group_id,
            "description": e.description,
            "amount": round2(e.amount),
            "paid_by": e.paid_by,
            "event_date": e.event_date,
            "contributions": {c.participant: round2(c.amount) for c in rows},
            "split_type": e.split_type,
            "created_at": e.created_at,
        })
    return results

def group_out(session: Session, group: Group) -> dict:
    participants = group_participants(session, group.id)
    return {
        "id": group.id,
        "name": group.name,
        "participants": participants,
        "participant_count": len(participants),
        "total_expense": total_amount(load_expenses(session, group.id)),
        "created_at": group.created_at,
    }

# ========== Health ==========
@app.get("/api")
def health_check():
    return {"status": "healthy", "message": "FairSplit backend is running"}

# ========== Group endpoints ==========
@app.post("/api/groups", response_model=GroupOut, status_code=201)
def create_group(payload: GroupIn, session: Session = Depends(get_session)):
    group_count = session.exec(select(func.count()).select_from(Group)).one()
    if group_count >= config.MAX_GROUPS:
        raise HTTPException(status_code=400, detail=f"Maximum group limit of {config.MAX_GROUPS} reached")

    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Group name is required")
    existing = session.exec(select(Group).where(func.lower(Group.name) == name.lower())).first()
    if existing:
        raise HTTPException(status_code=400, detail=f"Group name already exists: {name}")

    participants = [p.strip() for p in payload.participants]
    if len(participants) > config.MAX_PARTICIPANTS:
        raise HTTPException(
            status_code=400,
            detail=f"Maximum {config.MAX_PARTICIPANTS} participants allowed per group",
        )
    if any(not p for p in participants):
        raise HTTPException(status_code=400, detail="Participant name cannot be blank")
    if len(set(participants)) != len(participants):
        raise HTTPException(status_code=400, detail="Duplicate participant names are not allowed")

    group = Group(name=name)
    session.add(group)
    for position, participant in enumerate(participants):
        session.add(Member(group_id=group.id, name=participant, position=position))
    session.commit()
    session.refresh(group)
    logger.info("Created group %s (%s) with %d participants", group.name, group.id, len(participants))
    return group_out(session, group)

@app.get("/api/groups", response_model=List[GroupOut])
def list_groups(session: Session = Depends(get_session)):
    groups = session.exec(select(Group).order_by(Group.created_at)).all()
    return [group_out(session, g) for g in groups]

@app.get("/api/groups/{group_id}", response_model=GroupOut)
def get_group(group_id: str, session: Session = Depends(get_session)):
    return group_out(session, get_group_or_404(session, group_id))

@app.delete("/api/groups/{group_id}")
def delete_group(group_id: str, session: Session = Depends(get_session)):
    group = get_group_or_404(session, group_id)
    for e in session.exec(select(Expense).where(Expense.group_id == group_id)).all():
        for c in session.exec(select(Contribution).where(Contribution.expense_id == e.id)).all():
            session.delete(c)
        session.delete(e)
    for m in session.exec(select(Member).where(Member.group_id == group_id)).all():
        session.delete(m)
    session.delete(group)
    session.commit()
    logger.info("Deleted group %s", group_id)
    return {"deleted": group_id}

# ========== Expense endpoints ==========
@app.post("/api/groups/{group_id}/expenses", response_model=ExpenseOut, status_code=201)
def add_expense(group_id: str, payload: ExpenseIn, session: Session = Depends(get_session)):
    get_group_or_404(session, group_id)
    participants = group_participants(session, group_id)

    description = payload.description.strip()
    if not description:
        raise HTTPException(status_code=400, detail="Description is required")
    event_date = payload.event_date or date.today()
    if event_date > date.today():
        raise HTTPException(status_code=400, detail="Expense date cannot be in the future")
    if payload.paid_by not in participants:
        raise HTTPException(status_code=400, detail="Payer must be a participant in the group")
    unknown = [p for p in (payload.contributions or {}) if p not in participants]
    if unknown:
        raise HTTPException(status_code=400, detail=f"Not participants in the group: {', '.join(unknown)}")

    amount = round2(payload.amount)
    if amount <= 0:
        raise HTTPException(status_code=400, detail="Amount must be positive")
    split_type, shares = compute_contributions(amount, participants, payload.contributions)

    expense = Expense(
        group_id=group_id,
        description=description,
        amount=amount,
        paid_by=payload.paid_by,
        event_date=event_date,
        split_type=split_type,
    )
    session.add(expense)
    for participant, owed in shares.items():
        session.add(Contribution(expense_id=expense.id, participant=participant, amount=owed))
    session.commit()
    session.refresh(expense)
    logger.info("Added %s expense %s of %s to group %s", split_type.value, expense.id, amount, group_id)
    return {
        "id": expense.id,
        "group_id": group_id,
        "description": expense.description,
        "amount": amount,
        "paid_by": expense.paid_by,
        "event_date": expense.event_date,
        "contributions": shares,
        "split_type": split_type,
        "created_at": expense.created_at,
    }

@app.get("/api/groups/{group_id}/expenses", response_model=List[ExpenseOut])
def list_expenses(group_id: str, session: Session = Depends(get_session)):
    get_group_or_404(session, group_id)
    return load_expenses(session, group_id)

# ========== Settlement endpoint ==========
@app.get("/api/groups/{group_id}/settlements", response_model=SettlementReportOut)
def get_settlements(group_id: str, session: Session = Depends(get_session)):
    get_group_or_404(session, group_id)
    report = build_report(load_expenses(session, group_id))
    return {
        "settlements": [
            {"from": s.debtor, "to": s.creditor, "amount": s.amount} for s in report.settlements
        ],
        "member_balances": {
            pid: {"total_paid": b.total_paid, "total_owed": b.total_owed, "net_balance": b.net_balance}
            for pid, b in report.member_balances.items()
        },
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
