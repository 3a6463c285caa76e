from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from enum import Enum
import logging

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


class InvalidInput(ValueError):
    """Raised when the splitting or settlement engine is handed inputs it cannot work with."""


class SplitType(str, Enum):
    EQUAL = "EQUAL"
    CUSTOM = "CUSTOM"


class Settlement(NamedTuple):
    debtor: str
    creditor: str
    amount: Decimal


class MemberBalance(NamedTuple):
    total_paid: Decimal
    total_owed: Decimal
    net_balance: Decimal


class SettlementReport(NamedTuple):
    settlements: List[Settlement]
    member_balances: Dict[str, MemberBalance]


def to_dec(x) -> Decimal:
    if isinstance(x, Decimal):
        d = x
    elif isinstance(x, bool) or x is None:
        raise InvalidInput(f"Not a monetary value: {x!r}")
    else:
        try:
            d = Decimal(str(x))
        except InvalidOperation:
            raise InvalidInput(f"Not a monetary value: {x!r}") from None
    if not d.is_finite():
        raise InvalidInput(f"Not a monetary value: {x!r}")
    return d


def round2(d) -> Decimal:
    try:
        return to_dec(d).quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidInput(f"Monetary value out of range: {d!r}") from None


# ============== Splits ==============

def equal_split(amount, participants: Sequence[str]) -> Dict[str, Decimal]:
    """
    Split amount equally across participants, in the given order.
    Every participant gets round2(amount / n) except the last one, who takes
    whatever is left so the shares add up to round2(amount) exactly.
    """
    total = round2(amount)
    if total < 0:
        raise InvalidInput("Amount must not be negative.")
    n = len(participants)
    if n == 0:
        raise InvalidInput("No participants to split among.")
    if len(set(participants)) != n:
        raise InvalidInput("Participants must be unique.")

    per = round2(total / n)
    shares = {pid: per for pid in participants[:-1]}
    # last participant absorbs the rounding residue
    shares[participants[-1]] = round2(total - sum(shares.values(), ZERO))
    logger.debug("Equal split of %s among %d participants: %s each", total, n, per)
    return shares


def custom_split(contributions: Mapping[str, object]) -> Dict[str, Decimal]:
    """
    Take caller supplied contributions as they are (rounded to cents).
    The values are not checked against the expense amount.
    """
    if not contributions:
        raise InvalidInput("Custom split needs at least one contribution.")
    shares = {}
    for pid, amt in contributions.items():
        a = round2(amt)
        if a < 0:
            raise InvalidInput(f"Contribution for {pid} must not be negative.")
        shares[pid] = a
    return shares


def compute_contributions(
    amount, participants: Sequence[str], contributions: Optional[Mapping[str, object]] = None
) -> Tuple[SplitType, Dict[str, Decimal]]:
    """
    contributions present (non empty) -> CUSTOM split, used verbatim
    otherwise -> EQUAL split of amount across participants
    """
    if contributions:
        return SplitType.CUSTOM, custom_split(contributions)
    return SplitType.EQUAL, equal_split(amount, participants)


# ============== Balances ==============

def _expense_amount(exp: Mapping) -> Decimal:
    amount = to_dec(exp["amount"])
    if amount < 0:
        raise InvalidInput(f"Expense {exp.get('id')} has a negative amount.")
    return amount


def _expense_contributions(exp: Mapping) -> Mapping:
    contributions = exp.get("contributions") or {}
    if not contributions:
        raise InvalidInput(f"Expense {exp.get('id')} has no contributions.")
    return contributions


def aggregate_balances(expenses: Iterable[Mapping]) -> Dict[str, Decimal]:
    """
    expenses: iterable of dicts with at least
      {"amount": Money, "paid_by": str, "contributions": {participant: Money}}
    returns net: participant -> net (positive means they are owed money; negative means they owe)
    """
    net: Dict[str, Decimal] = {}
    for exp in expenses:
        amount = _expense_amount(exp)
        contributions = _expense_contributions(exp)
        payer = exp["paid_by"]
        net[payer] = net.get(payer, ZERO) + amount
        for pid, owed in contributions.items():
            net[pid] = net.get(pid, ZERO) - to_dec(owed)
    # round nets
    return {pid: round2(v) for pid, v in net.items()}


def total_amount(expenses: Iterable[Mapping]) -> Decimal:
    return round2(sum((to_dec(e["amount"]) for e in expenses), ZERO))


# ============== Settlements ==============

def _largest(parties: Dict[str, Decimal]) -> str:
    # biggest amount first, ties go to the smaller id
    return min(parties, key=lambda pid: (-parties[pid], pid))


def optimize_settlements(balances: Mapping[str, object]) -> List[Settlement]:
    """
    Given net map (participant -> net), produce a list of settlements
    (debtor, creditor, amount) using the greedy algorithm: the largest
    creditor is always matched against the largest debtor.
    """
    creditors: Dict[str, Decimal] = {}
    debtors: Dict[str, Decimal] = {}  # stored as positive owed amounts
    for pid, amt in balances.items():
        amt = round2(amt)
        if amt > 0:
            creditors[pid] = amt
        elif amt < 0:
            debtors[pid] = -amt

    max_rounds = len(creditors) + len(debtors)
    settlements: List[Settlement] = []
    while creditors and debtors:
        if len(settlements) >= max_rounds:
            raise InvalidInput("Balances could not be settled.")
        c_pid = _largest(creditors)
        d_pid = _largest(debtors)
        transfer = round2(min(creditors[c_pid], debtors[d_pid]))
        settlements.append(Settlement(d_pid, c_pid, transfer))  # debtor pays creditor

        creditors[c_pid] -= transfer
        debtors[d_pid] -= transfer
        if creditors[c_pid] < CENT:
            del creditors[c_pid]
        if debtors[d_pid] < CENT:
            del debtors[d_pid]

    leftover = sum(creditors.values(), ZERO) + sum(debtors.values(), ZERO)
    if leftover:
        logger.warning("Balances do not net to zero, %s left unsettled", leftover)
    logger.debug("Settled %d parties with %d transfers", max_rounds, len(settlements))
    return settlements


def build_report(expenses: Sequence[Mapping]) -> SettlementReport:
    """
    Per member paid/owed/net figures plus the settlement list for one group's expenses.
    """
    paid: Dict[str, Decimal] = {}
    owed: Dict[str, Decimal] = {}
    for exp in expenses:
        payer = exp["paid_by"]
        paid[payer] = paid.get(payer, ZERO) + _expense_amount(exp)
        for pid, amt in _expense_contributions(exp).items():
            owed[pid] = owed.get(pid, ZERO) + to_dec(amt)

    net = aggregate_balances(expenses)
    member_balances: Dict[str, MemberBalance] = {}
    for pid in sorted(set(paid) | set(owed)):
        p = paid.get(pid, ZERO)
        o = owed.get(pid, ZERO)
        n = round2(p - o)
        if n != net[pid]:
            logger.error("Net balance mismatch for %s: %s != %s", pid, n, net[pid])
            n = net[pid]
        member_balances[pid] = MemberBalance(round2(p), round2(o), n)

    return SettlementReport(optimize_settlements(net), member_balances)
