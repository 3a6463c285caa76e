from decimal import Decimal

import pytest

from client import ApiError, FairSplitClient


@pytest.fixture
def api(client):
    return FairSplitClient("http://testserver", session=client)


def test_client_round_trip(api):
    g = api.create_group("Office Lunch", ["David", "Emma", "Frank", "Grace"])
    assert [x["name"] for x in api.list_groups()] == ["Office Lunch"]
    assert api.get_group(g["id"])["participant_count"] == 4

    api.add_expense(g["id"], "Pizza Lunch", "80.00", "David")
    api.add_expense(g["id"], "Coffee", Decimal("24"), "Emma", contributions={"Emma": "12", "Grace": "12"})
    expenses = api.list_expenses(g["id"])
    assert {e["description"] for e in expenses} == {"Pizza Lunch", "Coffee"}

    report = api.get_settlements(g["id"])
    # David +60, Emma -8, Frank -20, Grace -32
    assert [(s["from"], s["to"], Decimal(str(s["amount"]))) for s in report["settlements"]] == [
        ("Grace", "David", Decimal("32.00")),
        ("Frank", "David", Decimal("20.00")),
        ("Emma", "David", Decimal("8.00")),
    ]
    assert Decimal(str(report["member_balances"]["Emma"]["net_balance"])) == Decimal("-8.00")

    api.delete_group(g["id"])
    assert api.list_groups() == []


def test_client_raises_api_error(api):
    with pytest.raises(ApiError) as excinfo:
        api.get_group("missing")
    assert excinfo.value.status_code == 404
    assert excinfo.value.message == "Group not found: missing"

    g = api.create_group("Trip", ["Alice", "Bob"])
    with pytest.raises(ApiError) as excinfo:
        api.add_expense(g["id"], "Dinner", "10.00", "Mallory")
    assert excinfo.value.status_code == 400
