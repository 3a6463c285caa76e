from typing import Dict, List, Optional
import requests


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class FairSplitClient:
    """
    Thin wrapper over the FairSplit HTTP API.
    session can be any requests-like object (requests.Session, fastapi TestClient, ...)
    """

    def __init__(self, base_url: str = "http://localhost:8000", session=None):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def _call(self, method: str, path: str, **kwargs):
        r = self.session.request(method, f"{self.base_url}/api{path}", **kwargs)
        if r.status_code >= 400:
            try:
                detail = r.json().get("detail", r.text)
            except ValueError:
                detail = r.text
            raise ApiError(r.status_code, str(detail))
        return r.json()

    # ========== Groups ==========
    def list_groups(self) -> List[dict]:
        return self._call("GET", "/groups")

    def get_group(self, group_id: str) -> dict:
        return self._call("GET", f"/groups/{group_id}")

    def create_group(self, name: str, participants: List[str]) -> dict:
        return self._call("POST", "/groups", json={"name": name, "participants": participants})

    def delete_group(self, group_id: str) -> dict:
        return self._call("DELETE", f"/groups/{group_id}")

    # ========== Expenses ==========
    def list_expenses(self, group_id: str) -> List[dict]:
        return self._call("GET", f"/groups/{group_id}/expenses")

    def add_expense(self, group_id: str, description: str, amount, paid_by: str,
                    event_date: Optional[str] = None,
                    contributions: Optional[Dict[str, object]] = None) -> dict:
        payload = {"description": description, "amount": str(amount), "paid_by": paid_by}
        if event_date:
            payload["event_date"] = event_date
        if contributions:
            payload["contributions"] = {p: str(a) for p, a in contributions.items()}
        return self._call("POST", f"/groups/{group_id}/expenses", json=payload)

    # ========== Settlements ==========
    def get_settlements(self, group_id: str) -> dict:
        return self._call("GET", f"/groups/{group_id}/settlements")
