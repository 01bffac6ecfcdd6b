# frontend/app.py
# Portfolio – project grid, NDA-gated project pages, sign in
#
# Run from repo root: streamlit run frontend/app.py
# Or from frontend folder: streamlit run app.py

from __future__ import annotations

import asyncio
from typing import Optional

import pandas as pd
import streamlit as st

# Import environment config (robust fallback for different run contexts)
try:
    from frontend.config import ENABLE_DEBUG_UI, IS_DEV, PROFILE
except ModuleNotFoundError:
    from config import ENABLE_DEBUG_UI, IS_DEV, PROFILE

# Import session auth
try:
    from frontend.auth import (
        get_current_user, get_forward_headers, init_auth_state, is_authenticated, login, logout,
    )
except ModuleNotFoundError:
    from auth import (
        get_current_user, get_forward_headers, init_auth_state, is_authenticated, login, logout,
    )

# Import the project store
try:
    from frontend.project_data import InitializeResult, ProjectDataStore
    from frontend.project_records import ProjectRecordType, project_requires_nda
except ModuleNotFoundError:
    from project_data import InitializeResult, ProjectDataStore
    from project_records import ProjectRecordType, project_requires_nda

# Import DEV-only observability tools
if IS_DEV:
    try:
        from frontend.dev_observability import (
            clear_debug_history, export_snapshot_json, get_recent_events, snapshot_store, track_event,
        )
    except ModuleNotFoundError:
        from dev_observability import (
            clear_debug_history, export_snapshot_json, get_recent_events, snapshot_store, track_event,
        )

GRID_COLUMNS = 3


# --------------------------------------------------------------------
# Session state
# --------------------------------------------------------------------
def init_state() -> None:
    """
    One ProjectDataStore per browser session. It may hold this visitor's
    NDA data, so it lives in session_state and never in a module global.
    """
    ss = st.session_state
    if "project_store" not in ss:
        ss["project_store"] = ProjectDataStore()
    ss.setdefault("store_loaded_for_auth", None)
    ss.setdefault("last_init_result", None)
    ss.setdefault("nav_page", "Projects")


def get_store() -> ProjectDataStore:
    return st.session_state["project_store"]


def refresh_projects(force: bool = False) -> InitializeResult:
    """
    (Re)initialize the store when it never loaded, when the auth state changed, or on demand.
    """
    ss = st.session_state
    authed = is_authenticated()
    store = get_store()

    if not force and store.is_ready and ss["store_loaded_for_auth"] == authed:
        return ss["last_init_result"]

    # Signed out: NDA records from the old session must not outlive a failed refetch
    if not authed and ss["store_loaded_for_auth"]:
        store.drop_session_records()

    result = asyncio.run(store.initialize(headers=get_forward_headers(), disable_cache=authed))
    ss["last_init_result"] = result
    if result.ok:
        ss["store_loaded_for_auth"] = authed

    if IS_DEV:
        print(f"[ProjectData] initialize ok={result.ok} version={result.version} "
              f"placeholders={result.contains_sanitized_placeholders} authenticated={authed}")
        track_event(ss, "projects_loaded", {
            "ok": result.ok,
            "version": result.version,
            "superseded": result.superseded,
            "authenticated": authed,
        })
    return result


def go_to_project(key: str) -> None:
    st.query_params["project"] = key
    st.session_state["nav_page"] = "Project"


def go_to_grid() -> None:
    st.query_params.clear()
    st.session_state["nav_page"] = "Projects"


# --------------------------------------------------------------------
# Rendering
# --------------------------------------------------------------------
def render_sidebar() -> None:
    with st.sidebar:
        st.title("Portfolio")
        if st.button("Projects", use_container_width=True):
            go_to_grid()
            st.rerun()

        st.divider()
        if is_authenticated():
            user = get_current_user() or {}
            st.caption(f"Signed in as {user.get('email', 'unknown')}")
            if st.button("Sign out", use_container_width=True):
                logout()
                go_to_grid()
                st.rerun()
        elif st.button("Sign in", use_container_width=True):
            st.session_state["nav_page"] = "Sign in"
            st.rerun()

        if ENABLE_DEBUG_UI:
            render_debug_panel()


def render_debug_panel() -> None:
    ss = st.session_state
    with st.expander("🛠 Debug", expanded=False):
        st.caption(f"Profile: {PROFILE or 'unset'}")
        st.json(snapshot_store(get_store()))
        if st.button("Refetch projects"):
            refresh_projects(force=True)
            st.rerun()
        st.write("Recent events")
        st.json(get_recent_events(ss, limit=15))
        if st.button("Clear debug history"):
            clear_debug_history(ss)
        st.download_button(
            "Export snapshot",
            export_snapshot_json(ss, get_store()),
            file_name="portfolio-debug.json",
            mime="application/json",
        )


def render_load_warning(result: Optional[InitializeResult]) -> None:
    if result is None or result.ok:
        return
    if get_store().projects_record:
        st.warning("Couldn't refresh projects. Showing the last loaded list.")
    else:
        st.warning("Couldn't load projects right now. The list may be incomplete.")


def render_card(record: ProjectRecordType) -> None:
    with st.container(border=True):
        if record.is_sanitized:
            if record.locked_thumb_url:
                st.image(record.locked_thumb_url, caption=record.locked_thumb_alt)
            st.subheader(record.title)
            st.caption("🔒 Sign in to view")
            return

        if record.thumb_url:
            st.image(record.thumb_url, caption=record.thumb_alt)
        st.subheader(record.title)
        if project_requires_nda(record):
            st.caption("🔒 Confidential")
        meta = " · ".join(x for x in (record.brand_id, record.year, record.type) if x)
        if meta:
            st.caption(meta)
        if st.button("View", key=f"view-{record.id}"):
            go_to_project(record.id)
            st.rerun()


def render_grid() -> None:
    store = get_store()
    render_load_warning(st.session_state["last_init_result"])

    listed = store.listed_projects
    if not listed:
        st.info("No projects to show yet.")
        return

    if store.contains_sanitized_placeholders and not is_authenticated():
        st.info("Some projects are confidential. Sign in to view them.")

    columns = st.columns(GRID_COLUMNS)
    for i, record in enumerate(listed):
        with columns[i % GRID_COLUMNS]:
            render_card(record)

    if is_authenticated():
        with st.expander("All projects (table)"):
            rows = [
                {"key": r.id, "title": r.title, "year": r.year, "nda": project_requires_nda(r), "listed": not r.omit_from_list}
                for r in store.active_projects
                if not r.is_sanitized
            ]
            st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)


def render_project() -> None:
    """
    One project page. Unknown keys and NDA projects the visitor cannot see
    render the same "not found" message.
    """
    store = get_store()
    key = st.query_params.get("project", "")
    record = store.get_project(key) if key else None

    if record is None or record.is_sanitized or not record.active:
        st.header("Project not found")
        if st.button("Back to projects"):
            go_to_grid()
            st.rerun()
        return

    st.header(record.title)
    meta = " · ".join(x for x in (record.brand_id, record.role, record.year, record.awards) if x)
    if meta:
        st.caption(meta)
    if record.brand_logo_light_url:
        st.image(record.brand_logo_light_url, width=120)

    laptop, phone = record.screenshot_urls.laptop, record.screenshot_urls.phone
    if laptop or phone:
        left, right = st.columns([3, 1])
        if laptop:
            left.image(laptop)
        if phone:
            right.image(phone, caption=record.mobile_orientation.value)

    for block in record.desc:
        st.write(block)
    if record.tags:
        st.caption(", ".join(record.tags))
    for label, url in record.urls.items():
        st.link_button(label, url)

    prev_col, _, next_col = st.columns([1, 3, 1])
    if store.active_keys and store.project_index(record.id) >= 0:
        if prev_col.button("← Previous"):
            go_to_project(store.prev_key(record.id))
            st.rerun()
        if next_col.button("Next →"):
            go_to_project(store.next_key(record.id))
            st.rerun()


def render_login() -> None:
    st.header("Sign in")
    with st.form("login_form"):
        email = st.text_input("Email", key="login_email")
        password = st.text_input("Password", type="password", key="login_password")
        submitted = st.form_submit_button("Sign in", type="primary")

    if submitted:
        ok, message = login(email, password)
        if IS_DEV:
            track_event(st.session_state, "login_attempt", {"ok": ok})
        if ok:
            refresh_projects(force=True)
            go_to_grid()
            st.rerun()
        st.error(message)


# --------------------------------------------------------------------
# Main
# --------------------------------------------------------------------
def main() -> None:
    st.set_page_config(page_title="Portfolio", page_icon="🗂", layout="wide")

    # MUST run first on every rerun
    init_auth_state()
    init_state()

    ss = st.session_state
    if st.query_params.get("project") and ss["nav_page"] != "Sign in":
        ss["nav_page"] = "Project"

    refresh_projects()
    render_sidebar()

    nav_page = ss.get("nav_page", "Projects")
    if nav_page == "Sign in":
        render_login()
    elif nav_page == "Project":
        render_project()
    else:
        render_grid()


if __name__ == "__main__":
    main()
