"""
Streamlit app for RentShare Orders.
Gates on a signed-in session, then shows the borrowed/hired and
lent/provided order lists.
"""

import streamlit as st

from rentshare.auth.session import (
    SessionRenewer,
    clear_session,
    create_auth_client_from_config,
    resolve_session,
)
from rentshare.core.config import get_config
from rentshare.core.logging import get_logger, setup_logging
from rentshare.orders.actions import OrderActionBus, OrderActions
from rentshare.orders.client import create_backend_client_from_config
from rentshare.orders.service import OrderService
from rentshare.ui.page import OrdersPage
from rentshare.ui.views import render_orders_page, render_sign_in

PAGE_KEY = "orders_page"
ACTIONS_KEY = "order_actions"
RENEWER_KEY = "session_renewer"

st.set_page_config(
    page_title="Orders",
    page_icon="📦",
    layout="wide",
    initial_sidebar_state="collapsed"
)

config = get_config()
setup_logging(
    log_file=config.log_path,
    level=config.get('general', 'log_level', default='INFO')
)
logger = get_logger("dashboard")


@st.cache_resource
def get_auth_client():
    return create_auth_client_from_config()


def end_session(sign_out: bool = False) -> None:
    """Drop the page and session; the next run lands on sign-in."""
    page = st.session_state.pop(PAGE_KEY, None)
    if page is not None:
        if sign_out:
            auth.sign_out(page.session.access_token)
        page.close()
    st.session_state.pop(ACTIONS_KEY, None)
    st.session_state.pop(RENEWER_KEY, None)
    clear_session(st.session_state)
    st.rerun()


def session_expired() -> bool:
    renewer = st.session_state.get(RENEWER_KEY)
    return renewer is not None and renewer.expired


auth = get_auth_client()
page = st.session_state.get(PAGE_KEY)

# ==================== AUTH GATE ====================
if page is not None and session_expired():
    logger.info(f"Session expired for {page.session.user_id}, signing in again")
    end_session()

if page is None:
    session = resolve_session(st.session_state, auth)

    if session is None:
        st.query_params["page"] = "auth"
        if render_sign_in(auth, st.session_state):
            st.query_params["page"] = "orders"
            st.rerun()
        st.stop()

    # Renewed tokens land in this same UserSession object
    renewer = SessionRenewer(session, auth)
    client = create_backend_client_from_config(session.access_token, token_refresher=renewer)
    bus = OrderActionBus()
    page = OrdersPage(session, OrderService(client), bus, config.routes)
    st.session_state[PAGE_KEY] = page
    st.session_state[RENEWER_KEY] = renewer
    st.session_state[ACTIONS_KEY] = OrderActions(
        client,
        bus,
        payment_function=config.get('backend', 'payment_function', default='create-payment')
    )
    logger.info(f"Orders page opened for {session.user_id}")

st.query_params["page"] = "orders"

# ==================== SIDEBAR ====================
st.sidebar.title("📦 RentShare")
st.sidebar.caption(page.session.email or page.session.user_id)
if st.sidebar.button("Sign out", width="stretch"):
    end_session(sign_out=True)

# ==================== ORDERS PAGE ====================
page.ensure_loaded()
if session_expired():
    end_session()

render_orders_page(page, st.session_state[ACTIONS_KEY])
