"""
frontend/auth.py
Session authentication state for the portfolio frontend.

The backend issues a `payload-token` session cookie on login. Streamlit runs
server-side, so the token is kept in st.session_state and forwarded to the
backend as that cookie on every project fetch. The backend then decides NDA
access per request.

- init_auth_state(): MUST be called at the top of main() on every rerun
- login(): POST /api/users/login and store the session on success
- logout(): best-effort backend logout, then clear_auth()
- get_forward_headers(): headers that carry the session to the backend
"""

from typing import Any, Dict, Optional, Tuple

import requests
import streamlit as st

# Import config (robust fallback for different run contexts)
try:
    from frontend.config import IS_DEV, get_api_prefix, get_backend_base_url
except ModuleNotFoundError:
    from config import IS_DEV, get_api_prefix, get_backend_base_url

SESSION_COOKIE_NAME = "payload-token"
AUTH_TIMEOUT_SECONDS = 10


def init_auth_state() -> None:
    """
    Initialize authentication-related session state keys.

    Idempotent - safe to call multiple times.
    """
    ss = st.session_state
    ss.setdefault("auth_token", None)
    ss.setdefault("auth_exp", None)
    ss.setdefault("current_user", None)
    ss.setdefault("is_authenticated", False)

    # Keep the flag in sync with the token
    ss["is_authenticated"] = bool(ss["auth_token"])


def set_auth(auth_token: str, current_user: Dict[str, Any], exp: Optional[int] = None) -> None:
    """The ONLY writer of auth keys besides clear_auth()."""
    ss = st.session_state
    ss["auth_token"] = auth_token
    ss["auth_exp"] = exp
    ss["current_user"] = current_user
    ss["is_authenticated"] = True


def clear_auth() -> None:
    """Clear all authentication state. Safe to call multiple times."""
    ss = st.session_state
    ss["auth_token"] = None
    ss["auth_exp"] = None
    ss["current_user"] = None
    ss["is_authenticated"] = False


def is_authenticated() -> bool:
    return bool(st.session_state.get("auth_token"))


def get_current_user() -> Optional[Dict[str, Any]]:
    return st.session_state.get("current_user")


def get_forward_headers() -> Dict[str, str]:
    """
    Headers that carry this browser session's identity to the backend.

    Returns:
        {"Cookie": "payload-token=<token>"} if authenticated, {} otherwise
    """
    token = st.session_state.get("auth_token")
    if token:
        return {"Cookie": f"{SESSION_COOKIE_NAME}={token}"}
    return {}


def _auth_url(action: str) -> str:
    return f"{get_backend_base_url()}{get_api_prefix()}/users/{action}"


def login(email: str, password: str) -> Tuple[bool, str]:
    """
    Exchange credentials for a session.

    Returns:
        (success, message) - message is user-facing and never contains the token
    """
    try:
        resp = requests.post(
            _auth_url("login"),
            json={"email": email, "password": password},
            timeout=AUTH_TIMEOUT_SECONDS,
        )
    except requests.exceptions.RequestException as e:
        if IS_DEV:
            print(f"[AUTH] Login request failed: {type(e).__name__}")
        return False, "Cannot reach the server. Please try again."

    if resp.status_code == 200:
        data = resp.json()
        token = data.get("token") or resp.cookies.get(SESSION_COOKIE_NAME)
        if not token:
            return False, "Login response did not include a session."
        set_auth(token, data.get("user") or {}, data.get("exp"))
        if IS_DEV:
            print(f"[AUTH] Login successful: user_id={(data.get('user') or {}).get('id')}")
        return True, "Signed in."

    if resp.status_code in (400, 401):
        return False, "Invalid email or password."

    if IS_DEV:
        print(f"[AUTH] Login failed: HTTP {resp.status_code}")
    return False, f"Login failed (HTTP {resp.status_code})."


def logout() -> None:
    """Tell the backend, then drop local state even if the backend is unreachable."""
    headers = get_forward_headers()
    if headers:
        try:
            requests.post(_auth_url("logout"), headers=headers, timeout=AUTH_TIMEOUT_SECONDS)
        except requests.exceptions.RequestException as e:
            if IS_DEV:
                print(f"[AUTH] Logout request failed: {type(e).__name__}")
    clear_auth()
