import streamlit as st
import pandas as pd

from client import ApiError, FairSplitClient
from config import config

api = FairSplitClient(st.secrets.get("backend_url", config.API_URL))

st.title("FairSplit")

# Groups
st.header("Groups")
groups = api.list_groups()
if groups:
    st.dataframe(pd.DataFrame([
        {"name": g["name"], "participants": ", ".join(g["participants"]), "total": g["total_expense"]}
        for g in groups
    ]))

with st.expander("Create group"):
    group_name = st.text_input("Group name")
    names = st.text_input("Participants (comma separated)")
    if st.button("Create Group"):
        try:
            g = api.create_group(group_name, [n.strip() for n in names.split(",") if n.strip()])
            st.success(f"Created: {g['name']}")
        except ApiError as e:
            st.error(f"Error: {e.message}")

if not groups:
    st.stop()

group = st.selectbox("Group", options=groups, format_func=lambda g: g["name"])
participants = group["participants"]

# Add Expense
st.header("Add Expense")
description = st.text_input("Description")
amount = st.number_input("Amount", min_value=0.0, step=0.01, format="%.2f")
paid_by = st.selectbox("Paid by", options=participants)
event_date = st.date_input("Date")
custom = st.checkbox("Custom split")
contributions = {}
if custom:
    for p in participants:
        share = st.number_input(f"{p}'s share", min_value=0.0, step=0.01, format="%.2f", key=f"share_{p}")
        if share > 0:
            contributions[p] = f"{share:.2f}"

if st.button("Submit Expense"):
    try:
        api.add_expense(group["id"], description, f"{amount:.2f}", paid_by,
                        event_date.isoformat(), contributions or None)
        st.success("Expense added")
    except ApiError as e:
        st.error(f"Error: {e.message}")

# Expenses
st.header("Expenses")
expenses = api.list_expenses(group["id"])
if expenses:
    exp_df = pd.DataFrame(expenses)[["event_date", "description", "amount", "paid_by", "split_type"]]
    st.dataframe(exp_df)
else:
    st.write("No expenses yet.")

# Settlement
st.header("Settle Up")
report = api.get_settlements(group["id"])
st.subheader("Member Balances")
if report["member_balances"]:
    bal_df = pd.DataFrame.from_dict(report["member_balances"], orient="index")
    st.dataframe(bal_df)
st.subheader("Settlements")
if report["settlements"]:
    for s in report["settlements"]:
        st.write(f"{s['from']} pays {s['to']} {s['amount']}")
else:
    st.write("All settled up!")
