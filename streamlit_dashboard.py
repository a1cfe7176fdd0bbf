"""
Streamlit front-end for GuardMoGo: search, report and track MoMo fraud numbers.
"""

import streamlit as st
import requests
import pandas as pd
from typing import Dict, List
import os
import time
import uuid

from guardmogo.utils.validation import (
    CARRIER_PREFIXES,
    OTHER_CARRIER,
    normalize_number,
    validate_report_fields,
    validate_signup_fields,
)

# Configuration
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000/api/v1")

CARRIERS = list(CARRIER_PREFIXES) + [OTHER_CARRIER]
FRAUD_TYPES = [
    "Fake reversal",
    "Impersonation",
    "Fake promotion or prize",
    "Investment scam",
    "Fake job offer",
]

st.set_page_config(
    page_title="GuardMoGo",
    page_icon="🛡️",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Custom CSS
st.markdown("""
<style>
    .flagged-alert {
        color: #721c24;
        background-color: #f8d7da;
        border: 1px solid #f5c6cb;
        padding: 0.75rem;
        border-radius: 0.25rem;
        margin: 1rem 0;
    }
    .clean-alert {
        color: #155724;
        background-color: #d4edda;
        border: 1px solid #c3e6cb;
        padding: 0.75rem;
        border-radius: 0.25rem;
        margin: 1rem 0;
    }
</style>
""", unsafe_allow_html=True)


def make_api_request(endpoint: str, method: str = "GET", data: Dict = None, params: Dict = None) -> Dict:
    """Make API request to the GuardMoGo service"""
    url = f"{API_BASE_URL}{endpoint}"
    headers = {
        "Content-Type": "application/json",
        "X-Request-ID": f"dashboard-{int(time.time())}-{uuid.uuid4().hex[:8]}"
    }
    token = st.session_state.get("access_token")
    if token:
        headers["Authorization"] = f"Bearer {token}"

    try:
        response = requests.request(method, url, headers=headers, json=data, params=params, timeout=30)

        if response.status_code < 400:
            return {"success": True, "data": response.json() if response.content else None}
        else:
            error_data = response.json() if response.content else {"message": "Unknown error"}
            return {"success": False, "status": response.status_code, "error": error_data}

    except requests.exceptions.RequestException as e:
        return {"success": False, "error": {"message": f"Network error: {str(e)}"}}


def check_service_health() -> Dict:
    """Check if the GuardMoGo API and its store are reachable"""
    result = make_api_request("/health")
    if result["success"]:
        return result["data"]
    return {"status": "unhealthy", "error": result["error"].get("message", "Cannot connect to service")}


def current_session() -> Dict:
    result = make_api_request("/auth/session")
    if result["success"]:
        return result["data"]
    return {"authenticated": False, "role": "guest"}


def show_error(error: Dict, fallback: str = "Something went wrong. Please try again."):
    st.error(f"❌ {error.get('message', fallback)}")
    for field, message in (error.get("fields") or {}).items():
        st.caption(f"{field}: {message}")


def reports_frame(reports: List[Dict]) -> pd.DataFrame:
    df = pd.DataFrame(reports)
    if "createdAt" in df:
        df["createdAt"] = pd.to_datetime(df["createdAt"])
    columns = [c for c in ("createdAt", "number", "carrier", "fraudType", "description", "commentsCount") if c in df]
    return df[columns]


def main():
    st.sidebar.title("GuardMoGo")
    page = st.sidebar.selectbox("Choose a page", [
        "Check a Number",
        "Report Fraud",
        "Dashboard",
        "Safety Tips",
        "My Account",
    ])

    health_status = check_service_health()
    if health_status.get("status") == "healthy":
        st.sidebar.success("✅ Service Online")
    else:
        # Covers missing backend configuration as well as an unreachable API
        st.sidebar.error("❌ Service Unavailable")
        st.sidebar.text(health_status.get("error", "Unknown error"))

    session = current_session()
    if session.get("authenticated"):
        st.sidebar.info(f"Signed in as {session.get('email')}")
    else:
        st.sidebar.caption("Browsing as a guest")

    if page == "Check a Number":
        show_number_check()
    elif page == "Report Fraud":
        show_report_form(session)
    elif page == "Dashboard":
        show_dashboard()
    elif page == "Safety Tips":
        show_safety_tips()
    elif page == "My Account":
        show_account(session)


def show_number_check():
    st.header("🔍 Check a MoMo Number")

    number = st.text_input("MoMo number", placeholder="024 412 3456 or +233244123456")

    if st.button("Check Number", type="primary"):
        if not number.strip():
            st.error("❌ Please enter a MoMo number")
            return

        with st.spinner("Searching reports..."):
            result = make_api_request("/numbers/check", params={"number": number})

        if not result["success"]:
            show_error(result["error"], "Failed to check number. Please try again.")
            return

        data = result["data"]
        if data["flagged"]:
            st.markdown(f"""
            <div class="flagged-alert">
                <strong>⚠️ {data['number']} has been reported for fraud</strong><br>
                Reports: {data['reportsCount']}
            </div>
            """, unsafe_allow_html=True)
            if data["reports"]:
                st.dataframe(reports_frame(data["reports"]), hide_index=True, use_container_width=True)
        else:
            st.markdown(f"""
            <div class="clean-alert">
                <strong>✅ No reports found for {data['number']}</strong><br>
                Stay careful: a clean record is not a guarantee.
            </div>
            """, unsafe_allow_html=True)


def show_report_form(session: Dict):
    st.header("🚨 Report a Fraud Number")

    if not session.get("authenticated"):
        st.warning("Please sign in on the My Account page to submit a fraud report.")
        return

    with st.form("report_form"):
        col1, col2 = st.columns(2)

        with col1:
            number = st.text_input("MoMo number", placeholder="0244123456")
            carrier = st.selectbox("Carrier", CARRIERS)
            custom_carrier = st.text_input("Carrier name (if Other)")

        with col2:
            fraud_type = st.selectbox("Fraud type", FRAUD_TYPES + ["Other"])
            custom_type = st.text_input("Fraud type (if Other)")
            description = st.text_area("What happened?", max_chars=1000)

        submitted = st.form_submit_button("Submit Report", type="primary")

    if submitted:
        fraud_type = custom_type if fraud_type == "Other" else fraud_type
        errors = validate_report_fields(number, carrier, fraud_type, description, custom_carrier)
        if errors:
            st.error("❌ Please fix the errors in the form before submitting")
            for message in errors.values():
                st.caption(message)
            return

        with st.spinner("Submitting report..."):
            result = make_api_request("/reports", "POST", data={
                "number": number,
                "carrier": carrier,
                "customCarrier": custom_carrier,
                "fraudType": fraud_type,
                "description": description,
            })

        if result["success"]:
            st.success(f"✅ {result['data']['message']} ({normalize_number(number)})")
        else:
            show_error(result["error"], "Failed to submit report. Please try again.")


def show_dashboard():
    st.header("📊 Fraud Dashboard")

    result = make_api_request("/dashboard/stats")
    if not result["success"]:
        show_error(result["error"], "Failed to load dashboard statistics.")
        return

    stats = result["data"]
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Total Reports", stats["totalReports"])
    with col2:
        st.metric("Reported Numbers", stats["totalNumbers"])
    with col3:
        st.metric("Active Reports", stats["activeReports"])

    st.subheader("Most Reported Numbers")
    if stats["topNumbers"]:
        df = pd.DataFrame(stats["topNumbers"])[["number", "reportsCount", "lastReportedAt"]]
        st.dataframe(
            df,
            column_config={
                "number": st.column_config.TextColumn("Number"),
                "reportsCount": st.column_config.NumberColumn("Reports"),
                "lastReportedAt": st.column_config.DatetimeColumn("Last Reported"),
            },
            hide_index=True,
            use_container_width=True
        )
    else:
        st.info("No numbers have been reported yet.")

    st.subheader("Latest Reports")
    latest = make_api_request("/reports", params={"limit": 20})
    if latest["success"] and latest["data"]:
        st.dataframe(reports_frame(latest["data"]), hide_index=True, use_container_width=True)

    if st.button("🔄 Refresh"):
        st.rerun()


def show_safety_tips():
    st.header("🛡️ Safety Tips")

    result = make_api_request("/safety-tips")
    if not result["success"]:
        show_error(result["error"])
        return

    for tip in result["data"]:
        with st.expander(tip["title"]):
            st.write(tip["body"])


def show_account(session: Dict):
    st.header("👤 My Account")

    if session.get("authenticated"):
        profile = session.get("profile") or {}
        st.write(f"Email: {session.get('email')}")
        st.write(f"Name: {profile.get('displayName', 'N/A')}")
        st.write(f"Reports submitted: {profile.get('reportsCount', 0)}")

        reports = make_api_request("/users/me/reports")
        if reports["success"] and reports["data"]:
            st.subheader("My Reports")
            st.dataframe(reports_frame(reports["data"]), hide_index=True, use_container_width=True)

        if st.button("Sign Out"):
            make_api_request("/auth/signout", "POST")
            st.session_state.pop("access_token", None)
            st.rerun()
        return

    sign_in_tab, sign_up_tab = st.tabs(["Sign In", "Sign Up"])

    with sign_in_tab:
        with st.form("sign_in_form"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Sign In", type="primary")

        if submitted:
            handle_session_result(make_api_request("/auth/signin", "POST", data={"email": email, "password": password}))

        if st.button("Forgot password?"):
            result = make_api_request("/auth/reset-password", "POST", data={"email": email})
            if result["success"]:
                st.success(result["data"]["message"])
            else:
                show_error(result["error"])

        google = make_api_request("/auth/google")
        if google["success"]:
            st.link_button("Continue with Google", google["data"]["url"])

    with sign_up_tab:
        with st.form("sign_up_form"):
            first_name = st.text_input("First name")
            last_name = st.text_input("Last name")
            new_email = st.text_input("Email", key="sign_up_email")
            new_password = st.text_input("Password", type="password", key="sign_up_password")
            submitted = st.form_submit_button("Create Account", type="primary")

        if submitted:
            errors = validate_signup_fields(new_email, new_password, first_name, last_name)
            if errors:
                for message in errors.values():
                    st.error(f"❌ {message}")
                return
            handle_session_result(make_api_request("/auth/signup", "POST", data={
                "email": new_email,
                "password": new_password,
                "first_name": first_name,
                "last_name": last_name,
            }))


def handle_session_result(result: Dict):
    if not result["success"]:
        show_error(result["error"])
        return

    token = result["data"].get("access_token")
    if token:
        st.session_state.access_token = token
        st.success("✅ Signed in")
        st.rerun()
    else:
        st.info("Check your inbox to confirm your email address, then sign in.")


if __name__ == "__main__":
    main()
