from datetime import date, timedelta
from typing import List
import logging

from sqlalchemy import func
from sqlmodel import Session, select

from models import Group, Member, Expense, Contribution
from compute import SplitType, equal_split, round2

logger = logging.getLogger(__name__)

# (group name, participants, [(description, amount, paid by, days ago)])
SAMPLE_GROUPS = [
    ("Weekend Trip", ["Alice", "Bob", "Charlie"], [
        ("Hotel Booking", "300.00", "Alice", 5),
        ("Dinner", "90.00", "Bob", 4),
        ("Gas", "45.00", "Charlie", 3),
        ("Breakfast", "36.00", "Alice", 2),
    ]),
    ("Office Lunch", ["David", "Emma", "Frank", "Grace"], [
        ("Pizza Lunch", "80.00", "David", 7),
        ("Coffee", "24.00", "Emma", 6),
        ("Team Dinner", "160.00", "Frank", 3),
    ]),
    ("Apartment Expenses", ["Henry", "Iris"], [
        ("Rent", "2000.00", "Henry", 10),
        ("Utilities", "150.00", "Iris", 8),
        ("Groceries", "120.00", "Henry", 2),
    ]),
]


def _add_group(session: Session, name: str, participants: List[str]) -> Group:
    group = Group(name=name)
    session.add(group)
    for position, participant in enumerate(participants):
        session.add(Member(group_id=group.id, name=participant, position=position))
    return group


def _add_expense(session: Session, group: Group, participants: List[str],
                 description: str, amount: str, paid_by: str, event_date: date) -> None:
    expense = Expense(
        group_id=group.id,
        description=description,
        amount=round2(amount),
        paid_by=paid_by,
        event_date=event_date,
        split_type=SplitType.EQUAL,
    )
    session.add(expense)
    for participant, owed in equal_split(amount, participants).items():
        session.add(Contribution(expense_id=expense.id, participant=participant, amount=owed))


def seed_sample_data(session: Session) -> int:
    """Create the demo groups and expenses. Does nothing if any group exists. Returns groups created."""
    if session.exec(select(func.count()).select_from(Group)).one():
        logger.info("Groups already present, skipping sample data")
        return 0

    logger.info("Initializing sample data...")
    today = date.today()
    expense_count = 0
    for name, participants, expenses in SAMPLE_GROUPS:
        group = _add_group(session, name, participants)
        for description, amount, paid_by, days_ago in expenses:
            _add_expense(session, group, participants, description, amount, paid_by,
                         today - timedelta(days=days_ago))
            expense_count += 1
    session.commit()
    logger.info("Created %d groups with %d total expenses", len(SAMPLE_GROUPS), expense_count)
    return len(SAMPLE_GROUPS)
