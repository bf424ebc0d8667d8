"""
Streamlit rendering for the Orders page and the sign-in view.
"""

from typing import Any, MutableMapping

import streamlit as st

from ..auth.session import AuthClient, store_session
from ..orders.actions import OrderActions
from ..orders.models import ViewType
from ..orders.permissions import Emphasis
from .formatting import OrderCardView
from .page import EmptyState, OrdersPage

EMPHASIS_COLORS = {
    Emphasis.DEFAULT: "blue",
    Emphasis.SECONDARY: "gray",
    Emphasis.OUTLINE: "green",
    Emphasis.DESTRUCTIVE: "red",
}


def render_badge(card: OrderCardView) -> None:
    color = EMPHASIS_COLORS.get(card.emphasis, "blue")
    st.markdown(f":{color}[**{card.badge}**]")


def render_actions(card: OrderCardView, actions: OrderActions) -> None:
    """Mount the action controls the viewer is allowed to use."""
    key = f"{card.order_type}_{card.order_id}"

    if card.permissions.can_accept_deny:
        col_accept, col_deny = st.columns(2)
        with col_accept:
            if st.button("✅ Accept", key=f"accept_{key}", type="primary", width="stretch"):
                if actions.accept(card.order_id, card.order_type):
                    st.rerun()
                else:
                    st.error("Could not accept this order. Please try again.")
        with col_deny:
            if st.button("❌ Deny", key=f"deny_{key}", width="stretch"):
                if actions.deny(card.order_id, card.order_type):
                    st.rerun()
                else:
                    st.error("Could not deny this order. Please try again.")

    if card.permissions.can_pay:
        label = f"💳 Pay {card.amount_text}" if card.amount_text else "💳 Pay"
        if st.button(label, key=f"pay_{key}", type="primary", width="stretch"):
            checkout_url = actions.pay(card.order_id, card.order_type, card.amount or 0.0)
            if checkout_url is None:
                st.error("Payment could not be started. Please try again.")
            elif checkout_url:
                st.link_button("Continue to checkout", checkout_url, width="stretch")
            else:
                st.rerun()


def render_order_card(card: OrderCardView, actions: OrderActions) -> None:
    with st.container(border=True):
        col_main, col_badge = st.columns([3, 1])
        with col_main:
            st.markdown(f"#### {card.title}")
            st.caption(f"{card.counterparty_label}: {card.counterparty_name}")
        with col_badge:
            render_badge(card)

        if card.image:
            st.image(card.image, width="stretch")

        if card.amount_text:
            st.markdown(f"Amount: **{card.amount_text}**")
        if card.quantity:
            st.markdown(f"Quantity: {card.quantity}")
        st.markdown(f"Ordered: {card.ordered_ago} ago")

        if card.notes:
            st.caption("Notes:")
            st.write(card.notes)

        col_details, col_message = st.columns(2)
        with col_details:
            st.link_button("View Details", card.details_url, width="stretch")
        with col_message:
            if card.message_url:
                st.link_button("💬 Message", card.message_url, width="stretch")

        render_actions(card, actions)


def render_empty_state(state: EmptyState) -> None:
    with st.container(border=True):
        st.markdown(f"## {state.icon}")
        st.markdown(f"### {state.heading}")
        st.caption(state.message)

        columns = st.columns(len(state.links))
        for column, (label, url, primary) in zip(columns, state.links):
            with column:
                st.link_button(
                    label,
                    url,
                    type="primary" if primary else "secondary",
                    width="stretch"
                )


def render_tab(page: OrdersPage, view_type: ViewType, actions: OrderActions) -> None:
    content = page.tab(view_type)
    if isinstance(content, EmptyState):
        render_empty_state(content)
        return

    # Two-column grid
    columns = st.columns(2)
    for index, card in enumerate(content):
        with columns[index % 2]:
            render_order_card(card, actions)


def render_orders_page(page: OrdersPage, actions: OrderActions) -> None:
    st.title("Orders")
    st.caption("Track your borrowing, lending, and service activity")

    if st.button("🔄 Refresh", key="refresh_orders"):
        page.refresh()

    tab_borrowed, tab_lent = st.tabs([
        f"🛍️ {page.tab_label(ViewType.BORROWED)}",
        f"📦 {page.tab_label(ViewType.LENT)}",
    ])
    with tab_borrowed:
        render_tab(page, ViewType.BORROWED, actions)
    with tab_lent:
        render_tab(page, ViewType.LENT, actions)


def render_sign_in(auth: AuthClient, state: MutableMapping[str, Any]) -> bool:
    """
    Sign-in view. Stores the session in `state` on success.

    Returns:
        True once the user has signed in
    """
    st.title("Sign in")
    st.caption("Sign in to see your orders")

    with st.form("sign_in"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in", type="primary", width="stretch")

    if not submitted:
        return False

    if not email or not password:
        st.warning("Enter your email and password")
        return False

    session = auth.sign_in(email, password)
    if session is None:
        st.error("Sign-in failed. Check your email and password.")
        return False

    store_session(state, session)
    return True
