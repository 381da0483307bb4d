"""
app.py
Streamlit Gym Membership Dashboard (owner-only).
Run: streamlit run app.py
"""

from __future__ import annotations

from datetime import date, datetime

import streamlit as st

import auth
import db
import utils
from applog import get_logger
from models import Member, SubscriptionStatus
from settings import settings
from subscriptions import compute_dashboard_metrics, filter_members, member_status

logger = get_logger("gym-dashboard.app")

st.set_page_config(page_title="Gym Management Dashboard", layout="wide")

STATUS_BADGES = {
    SubscriptionStatus.EXPIRED: "🔴",
    SubscriptionStatus.EXPIRES_TODAY: "🟠",
    SubscriptionStatus.EXPIRING_SOON: "🟡",
    SubscriptionStatus.ACTIVE: "🟢",
}


def init_once():
    # Initialize DB + default admin if needed
    default_hash = auth.hash_password(settings.DEFAULT_ADMIN_PASSWORD)
    db.init_db(default_hash)


def require_login():
    st.session_state.setdefault("logged_in", False)
    st.session_state.setdefault("username", None)
    st.session_state.setdefault("show_form", False)
    st.session_state.setdefault("editing_member_id", None)


def logout():
    st.session_state.logged_in = False
    st.session_state.username = None
    st.success("Logged out.")


def flash(message: str, error: bool = False):
    # Shown once on the next rerun
    st.session_state.flash = (message, error)


def show_flash():
    message = st.session_state.pop("flash", None)
    if not message:
        return
    text, error = message
    if error:
        st.toast(text, icon="❌")
        st.error(text)
    else:
        st.toast(text, icon="✅")


def login_screen():
    st.title("🔐 Gym Owner Login")

    col1, col2 = st.columns([1, 1])
    with col1:
        username = st.text_input("Username", value="admin")
        password = st.text_input("Password", type="password")
        if st.button("Login", type="primary"):
            if auth.login(username.strip(), password):
                st.session_state.logged_in = True
                st.session_state.username = username.strip()
                st.rerun()
            else:
                st.error("Invalid username or password.")

    with col2:
        st.info(
            "First run creates a default admin:\n\n"
            "- username: **admin**\n\n"
            "You will be forced to change its password on first login."
        )


def password_form(button_label: str) -> bool:
    new1 = st.text_input("New password", type="password")
    new2 = st.text_input("Confirm new password", type="password")
    if not st.button(button_label, type="primary"):
        return False
    errors = auth.password_problems(new1, new2)
    for e in errors:
        st.error(e)
    if errors:
        return False
    auth.change_password(st.session_state.username, new1)
    return True


def force_change_password_screen():
    st.title("⚠️ Change Password (Required)")
    st.warning("You must change the default password before using the app.")
    if password_form("Update password"):
        st.success("Password updated. You can continue.")
        st.rerun()


# ---------- Data access helpers ----------

def load_members() -> list[Member]:
    try:
        return db.list_members()
    except db.MemberStoreError as exc:
        st.error(str(exc))
        return []


# ---------- Dashboard ----------

def member_line(m: Member, badge: str):
    left, right = st.columns([3, 1])
    left.markdown(f"**{m.full_name}**")
    right.caption(badge)


def dashboard_page(members: list[Member], now: datetime):
    metrics = compute_dashboard_metrics(members, now)

    c1, c2, c3, c4 = st.columns(4)
    with c1:
        st.metric("Total Active Members", len(metrics.active_members))
        st.caption(f"{metrics.total} total members")
    with c2:
        st.metric("Renewals This Month", f"{metrics.renewal_percentage}%")
        st.caption(f"{len(metrics.renewed_this_month)} renewed this month")
    with c3:
        st.metric("Renewals Today", len(metrics.renewals_today))
        st.caption("Subscriptions ending today")
    with c4:
        st.metric("Expired This Week", len(metrics.expired_this_week))
        st.caption(f"{len(metrics.expired)} total expired")

    st.divider()

    col1, col2, col3 = st.columns(3)
    with col1:
        st.subheader("📅 Renewals Today")
        if not metrics.renewals_today:
            st.caption("No renewals today")
        for m in metrics.renewals_today:
            member_line(m, "Today")

    with col2:
        st.subheader("📅 Upcoming Renewals (7 days)")
        if not metrics.upcoming_renewals:
            st.caption("No upcoming renewals")
        for m in metrics.upcoming_renewals:
            member_line(m, utils.format_days(member_status(m, now).days))

    with col3:
        st.subheader("⚠️ Expired Subscriptions")
        limit = settings.EXPIRED_PREVIEW_LIMIT
        if not metrics.expired:
            st.caption("No expired subscriptions")
        for m in metrics.expired[:limit]:
            member_line(m, f"{utils.format_days(member_status(m, now).days)} ago")
        if len(metrics.expired) > limit:
            st.caption(f"+{len(metrics.expired) - limit} more expired")


# ---------- Members ----------

def members_page(members: list[Member], now: datetime):
    col1, col2 = st.columns([3, 1])
    with col1:
        search = st.text_input("Search members...", key="search")
    with col2:
        labels = {"all": "All Members", "active": "Active", "expired": "Expired"}
        status_filter = st.selectbox("Status", list(labels), format_func=labels.get, key="status_filter")

    shown = filter_members(members, search=search, status_filter=status_filter, now=now)
    if not shown:
        st.info("No members found matching your criteria.")
        return

    df = utils.members_frame(shown, now)
    df["status"] = df["status"].map(STATUS_BADGES) + " " + df["status_text"]
    st.dataframe(df.drop(columns=["id", "status_text"]), use_container_width=True, hide_index=True)

    st.download_button(
        "Download members.csv",
        data=utils.members_to_csv_bytes(shown, now),
        file_name="members.csv",
        mime="text/csv",
    )

    st.divider()

    options = {f"{m.full_name} ({m.email})": m for m in shown}
    chosen = st.selectbox("Select member", ["(none)"] + list(options))
    if chosen == "(none)":
        return

    m = options[chosen]
    status = member_status(m, now)
    st.write(f"{m.initials} · **{m.full_name}** · {STATUS_BADGES[status.state]} {status.text} · "
             f"Ends: {m.subscription_end_date.isoformat()}")
    if m.picture_url:
        st.image(m.picture_url, width=96)

    c1, c2 = st.columns(2)
    with c1:
        if st.button("Edit"):
            st.session_state.editing_member_id = m.id
            st.session_state.show_form = True
            st.rerun()
    with c2:
        confirm_key = utils.delete_confirm_key(m.id)
        confirm = st.checkbox("Are you sure you want to delete this member?", key=confirm_key)
        if st.button("Delete", disabled=not confirm):
            st.session_state.pop(confirm_key, None)
            try:
                db.delete_member(m.id)
            except db.MemberStoreError as exc:
                flash(str(exc), error=True)
            else:
                flash("Member deleted successfully")
            st.rerun()


# ---------- Add / edit form ----------

def close_form():
    st.session_state.show_form = False
    st.session_state.editing_member_id = None


def member_form(existing: Member | None):
    st.subheader("Edit Member" if existing else "Add New Member")

    with st.form("member_form"):
        c1, c2 = st.columns(2)
        first_name = c1.text_input("First Name", value=existing.first_name if existing else "")
        last_name = c2.text_input("Last Name", value=existing.last_name if existing else "")
        email = st.text_input("Email", value=existing.email if existing else "")
        phone = st.text_input("Phone Number", value=(existing.phone_number or "") if existing else "")
        picture = st.text_input("Picture URL", value=(existing.picture_url or "") if existing else "")
        c3, c4 = st.columns(2)
        start = c3.date_input("Start Date", value=existing.subscription_start_date if existing else date.today())
        end = c4.date_input("End Date", value=existing.subscription_end_date if existing else date.today())

        submitted = st.form_submit_button("Update" if existing else "Add Member", type="primary")

    if st.button("Cancel"):
        close_form()
        st.rerun()

    if not submitted:
        return

    form = {
        "first_name": first_name,
        "last_name": last_name,
        "email": email,
        "phone_number": phone,
        "picture_url": picture,
        "subscription_start_date": start,
        "subscription_end_date": end,
    }
    errors = utils.validate_member_inputs(form)
    if errors:
        for e in errors:
            st.error(e)
        return

    try:
        if existing:
            db.update_member(existing.id, form)
            flash("Member updated successfully")
        else:
            db.create_member(form)
            flash("Member added successfully")
    except db.MemberStoreError as exc:
        st.error(str(exc))
        return

    close_form()
    st.rerun()


# ---------- Settings ----------

def settings_page():
    st.subheader("Change password")
    if password_form("Update password"):
        st.success("Password updated.")

    st.divider()

    st.subheader("Sample data")
    st.caption("Insert 4 sample members, one per subscription status (adds new rows each run).")
    if st.button("Insert sample data"):
        try:
            utils.insert_sample_data()
        except db.MemberStoreError as exc:
            flash(str(exc), error=True)
        else:
            flash("Sample data inserted")
        st.rerun()


def main_app():
    st.sidebar.title("🏋️ Gym Dashboard")
    st.sidebar.caption(f"Logged in as: {st.session_state.username}")
    if st.sidebar.button("Logout"):
        logout()
        st.rerun()

    header, action = st.columns([4, 1])
    with header:
        st.title("Gym Management Dashboard")
        st.caption("Manage your gym members and track subscriptions")
    with action:
        if not st.session_state.show_form and st.button("➕ Add Member"):
            st.session_state.editing_member_id = None
            st.session_state.show_form = True
            st.rerun()

    show_flash()

    if st.session_state.show_form:
        existing = None
        if st.session_state.editing_member_id:
            try:
                existing = db.member_for_update(st.session_state.editing_member_id)
            except db.MemberStoreError as exc:
                flash(str(exc), error=True)
                close_form()
                st.rerun()
        member_form(existing)
        return

    members = load_members()
    now = datetime.now()

    tab_dashboard, tab_members, tab_settings = st.tabs(["Dashboard", "Members", "Settings"])
    with tab_dashboard:
        dashboard_page(members, now)
    with tab_members:
        members_page(members, now)
    with tab_settings:
        settings_page()


# --------- App entry ---------

def run():
    init_once()
    require_login()

    if not st.session_state.logged_in:
        login_screen()
        return

    # Force password change on first login after DB creation
    if db.is_force_password_change():
        force_change_password_screen()
        return

    main_app()


if __name__ == "__main__":
    run()
