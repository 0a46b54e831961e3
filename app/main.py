"""
Streamlit Frontend for Expense Tracker

This is the screen people open every day to jot down what they spent.

DESIGN PRINCIPLES:
1. One screen: header, chart, transactions
2. Adding an expense takes three fields and one click
3. Clear error messages next to the field that caused them
4. The screen always shows the last synced data, even when offline

The UI never computes totals itself: it renders the DashboardView built
by the orchestrator from the synced snapshot.
"""

import html
import time
from decimal import Decimal
from typing import Optional

import pandas as pd
import plotly.express as px
import streamlit as st

from src.activity import configure_logging
from src.analytics import (
    DEFAULT_DONUT_RADIUS,
    PLACEHOLDER_RING_COLOR,
    count_expenses_in_category,
    shift_reference,
)
from src.config import get_settings, validate_all_settings
from src.models.expense import (
    AVAILABLE_COLORS,
    AVAILABLE_ICONS,
    CategoryForm,
    Expense,
    ExpenseForm,
    Period,
)
from src.models.summary import DashboardView, ProgressBar, TransactionRow
from src.orchestrator import ActionResult, ExpenseTracker, create_app_components
from src.services.auth import AuthError, SessionManager
from src.validation import format_form_date, quick_date


# Page configuration
st.set_page_config(
    page_title="Expense Tracker",
    page_icon="💸",
    layout="centered",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .balance-card {
        padding: 20px;
        background-color: #2563eb;
        color: white;
        border-radius: 16px;
        margin: 10px 0;
    }
    .balance-card .big-number {
        font-size: 2.2em;
        font-weight: bold;
    }
    .warning-box {
        padding: 16px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
    .category-dot {
        display: inline-block;
        width: 12px;
        height: 12px;
        border-radius: 50%;
        margin-right: 6px;
    }
</style>
""", unsafe_allow_html=True)


# Symbolic icon names mapped to something a browser can show
ICON_EMOJI = {
    "fast-food": "🍔", "cart": "🛒", "home": "🏠", "medical": "💊", "paw": "🐾",
    "beer": "🍺", "cash": "💵", "cafe": "☕", "airplane": "✈️", "gift": "🎁",
    "musical-notes": "🎵", "book": "📚", "briefcase": "💼", "game-controller": "🎮",
    "phone-portrait": "📱", "construct": "🛠️", "star": "⭐", "car": "🚗",
    "card": "💳", "checkmark": "✅", "fitness": "🏋️", "pizza": "🍕",
    "receipt": "🧾", "pricetag": "🏷️",
}

VIEW_LABELS = {
    Period.WEEK: "Weekly",
    Period.MONTH: "Monthly",
    Period.YEAR: "Yearly",
}

# How long to wait for the first snapshot before rendering anyway
FIRST_SNAPSHOT_TIMEOUT_SECONDS = 5.0

# Inner radius of the donut, as a fraction of the outer one
DONUT_HOLE_RATIO = 0.7


@st.cache_resource
def init_logging():
    """Configure structured logging once per server process."""
    app_settings = get_settings().app
    configure_logging("DEBUG" if app_settings.debug_mode else app_settings.log_level)
    return True


def get_components() -> tuple[ExpenseTracker, SessionManager]:
    """Get or create this browser session's components."""
    if "components" not in st.session_state:
        tracker, session_manager, _ = create_app_components(use_firestore=True)
        st.session_state.components = (tracker, session_manager)
    return st.session_state.components


def icon_for(icon_name: str) -> str:
    return ICON_EMOJI.get(icon_name, ICON_EMOJI["pricetag"])


def money(amount: Decimal, symbol: str) -> str:
    return f"{symbol}{amount:,.2f}"


def category_dot(color: str) -> str:
    return f'<span class="category-dot" style="background-color:{html.escape(color)}"></span>'


def progress_label(bar: ProgressBar, symbol: str) -> str:
    """Label above a category progress bar; user text is escaped."""
    return (
        f"{category_dot(bar.color)}{icon_for(bar.icon_name)} "
        f"<b>{html.escape(bar.name)}</b> · {html.escape(money(bar.total, symbol))}"
    )


def transaction_markup(row: TransactionRow, tz) -> str:
    """Description and category line for one transaction; user text is escaped."""
    expense = row.expense
    title = html.escape(expense.description or expense.category)
    return (
        f"{category_dot(row.category.color)}{icon_for(row.category.icon_name)} <b>{title}</b>"
        f"<br/><small>{html.escape(expense.category)} · {expense.local_date(tz).strftime('%d %b %Y')}</small>"
    )


def show_result(result: ActionResult):
    if result.success:
        st.toast(result.message, icon="✅")
        for issue in result.issues:
            if issue.severity == "warning":
                st.toast(issue.message, icon="⚠️")
    else:
        st.error(result.details or result.message)


def main():
    """Main application entry point."""
    init_logging()
    tracker, session_manager = get_components()

    if session_manager.current is None:
        render_login_page(session_manager)
        return

    if "view_mode" not in st.session_state:
        st.session_state.view_mode = Period.WEEK
    if "reference" not in st.session_state:
        st.session_state.reference = tracker.today()

    render_sidebar(tracker, session_manager)

    if not tracker.state.loaded:
        with st.spinner("Connecting to cloud..."):
            deadline = time.monotonic() + FIRST_SNAPSHOT_TIMEOUT_SECONDS
            while not tracker.state.loaded and time.monotonic() < deadline:
                time.sleep(0.2)

    view = tracker.dashboard(st.session_state.view_mode, st.session_state.reference)
    symbol = tracker.settings.currency_symbol

    render_header(view, tracker, symbol)
    if view.last_error:
        st.warning("Showing the last synced data. Some changes may not be visible yet.")

    if view.view_mode == Period.WEEK:
        render_weekly_chart(view, symbol)
    else:
        render_period_summary(view, symbol)

    render_expense_form(tracker)
    render_transactions(view, tracker, symbol)


def render_login_page(session_manager: SessionManager):
    """Render the sign-in page."""
    st.title("💸 Expense Tracker")
    st.markdown("Sign in to keep your expenses in sync across devices.")

    sign_in_tab, sign_up_tab = st.tabs(["Sign in", "Create account"])

    with sign_in_tab:
        with st.form("sign_in"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            if st.form_submit_button("Sign in", type="primary"):
                try:
                    session_manager.sign_in(email, password)
                    st.rerun()
                except AuthError as e:
                    st.error(e.message)

    with sign_up_tab:
        with st.form("sign_up"):
            email = st.text_input("Email", key="sign_up_email")
            password = st.text_input("Password", type="password", key="sign_up_password")
            if st.form_submit_button("Create account", type="primary"):
                try:
                    session_manager.sign_up(email, password)
                    st.rerun()
                except AuthError as e:
                    st.error(e.message)

    st.markdown("---")
    if st.button("👤 Continue as guest"):
        if session_manager.ensure_session() is None:
            st.error("Could not sign in right now. Please check your connection and try again.")
        else:
            st.rerun()


def render_sidebar(tracker: ExpenseTracker, session_manager: SessionManager):
    """View toggle, period navigation, categories and logout."""
    st.sidebar.title("💸 Expense Tracker")

    view_mode = st.sidebar.radio(
        "View",
        options=list(VIEW_LABELS),
        format_func=lambda p: VIEW_LABELS[p],
        index=list(VIEW_LABELS).index(st.session_state.view_mode),
    )
    if view_mode != st.session_state.view_mode:
        st.session_state.view_mode = view_mode
        st.session_state.reference = tracker.today()
        st.rerun()

    if view_mode != Period.WEEK:
        col1, col2 = st.sidebar.columns(2)
        with col1:
            if st.button("◀ Previous"):
                st.session_state.reference = shift_reference(st.session_state.reference, view_mode, -1)
                st.rerun()
        with col2:
            if st.button("Next ▶"):
                st.session_state.reference = shift_reference(st.session_state.reference, view_mode, 1)
                st.rerun()

    if st.sidebar.button("🔄 Refresh"):
        st.rerun()

    st.sidebar.markdown("---")
    render_category_manager(tracker)

    st.sidebar.markdown("---")
    render_connection_status()

    st.sidebar.markdown("---")
    if st.sidebar.button("🚪 Log out"):
        session_manager.sign_out()
        for key in ("view_mode", "reference", "editing_id"):
            st.session_state.pop(key, None)
        st.rerun()


def render_connection_status():
    """Configuration checks, shown in the sidebar."""
    app_settings = get_settings().app
    status = validate_all_settings()

    with st.sidebar.expander("⚙️ Connection status"):
        st.caption(f"Environment: {app_settings.environment}")
        for name, key in (("Firebase (Firestore + Auth)", "firebase"), ("App settings", "app")):
            if status.get(key, False):
                st.success(f"✅ {name}")
            elif app_settings.debug_mode:
                st.error(f"❌ {name} - {status.get(f'{key}_error', 'Not configured')}")
            else:
                st.error(f"❌ {name} - Not configured")
        if not status.get("firebase", False):
            st.caption("Running offline: data is kept in memory for this session only.")


def render_header(view: DashboardView, tracker: ExpenseTracker, symbol: str):
    """Greeting, period title and the balance card with budget editing."""
    st.markdown(f"### {view.greeting}")
    st.caption(view.title)

    budget = view.budget
    st.markdown(f"""
    <div class="balance-card">
        <div>Balance</div>
        <div class="big-number">{money(budget.balance, symbol)}</div>
        <div>Spent this month: -{money(budget.spent, symbol)}
        · Budget: {money(budget.monthly_budget, symbol)}</div>
    </div>
    """, unsafe_allow_html=True)
    if budget.monthly_budget > 0:
        st.progress(budget.used_percent / 100)
    if budget.over_budget:
        st.warning("You are over this month's budget.")

    with st.expander("✏️ Edit monthly budget"):
        with st.form("budget"):
            text = st.text_input("Monthly budget", value=f"{budget.monthly_budget}")
            if st.form_submit_button("Save"):
                result = tracker.set_budget(text)
                show_result(result)
                if result.success:
                    st.rerun()


def render_weekly_chart(view: DashboardView, symbol: str):
    """Bar chart of the last 7 days, today highlighted."""
    st.subheader("Last 7 days")
    frame = pd.DataFrame({
        "Day": [bar.label for bar in view.bars],
        "Height": [bar.height_percent for bar in view.bars],
        "Amount": [money(bar.amount, symbol) if bar.amount else "" for bar in view.bars],
        "Today": ["Today" if bar.highlighted else "Earlier" for bar in view.bars],
    })
    fig = px.bar(
        frame,
        x="Day",
        y="Height",
        color="Today",
        text="Amount",
        color_discrete_map={"Today": "#2563eb", "Earlier": "#bfdbfe"},
        hover_data={"Height": False, "Today": False},
    )
    fig.update_layout(showlegend=False, yaxis_title=None, xaxis_title=None)
    # Heights are relative to the busiest day
    fig.update_yaxes(range=[0, 115], showticklabels=False, showgrid=False)
    st.plotly_chart(fig, use_container_width=True)
    st.metric("Total this week", money(view.weekly.total, symbol))


def donut_svg(view: DashboardView, symbol: str) -> str:
    """Donut chart markup drawn from the precomputed slice paths."""
    total = view.summary.total if view.summary else Decimal("0")
    size = 2 * DEFAULT_DONUT_RADIUS
    center = DEFAULT_DONUT_RADIUS
    if view.slices:
        shapes = "".join(
            f'<path d="{s.path}" fill="{html.escape(s.color)}"><title>{html.escape(s.name)}</title></path>'
            for s in view.slices
        )
    else:
        shapes = f'<circle cx="{center}" cy="{center}" r="{center}" fill="{PLACEHOLDER_RING_COLOR}"/>'
    return (
        f'<svg viewBox="0 0 {size} {size}" width="220" height="220" style="display:block;margin:auto">'
        f"{shapes}"
        f'<circle cx="{center}" cy="{center}" r="{center * DONUT_HOLE_RATIO}" fill="white"/>'
        f'<text x="{center}" y="{center}" text-anchor="middle" dominant-baseline="middle" '
        f'font-size="20" font-weight="bold">{html.escape(money(total, symbol))}</text>'
        f"</svg>"
    )


def render_period_summary(view: DashboardView, symbol: str):
    """Donut with the period total in the centre, then per-category bars."""
    st.subheader(view.title)
    st.markdown(donut_svg(view, symbol), unsafe_allow_html=True)

    if not view.slices:
        st.info("No expenses this period")
        return

    for bar in view.progress:
        st.markdown(progress_label(bar, symbol), unsafe_allow_html=True)
        st.progress(bar.width_percent / 100)


def _set_quick_date(days_ago: int, today):
    st.session_state.expense_date = quick_date(days_ago, today)


def _start_editing(expense: Expense, tz):
    st.session_state.editing_id = expense.id
    st.session_state.expense_amount = str(expense.amount)
    st.session_state.expense_description = expense.description
    st.session_state.expense_category = expense.category
    st.session_state.expense_date = format_form_date(expense.local_date(tz))


def _clear_form():
    st.session_state.editing_id = None
    for key in ("expense_amount", "expense_description", "expense_date"):
        st.session_state[key] = ""


def render_expense_form(tracker: ExpenseTracker):
    """Add or edit an expense."""
    if st.session_state.pop("clear_expense_form", False):
        _clear_form()

    editing_id: Optional[str] = st.session_state.get("editing_id")
    categories = [c.name for c in tracker.state.categories]
    current = st.session_state.get("expense_category")
    if current and current not in categories:
        # Editing an expense whose category was deleted
        categories.append(current)

    label = "✏️ Edit expense" if editing_id else "➕ Add expense"
    with st.expander(label, expanded=bool(editing_id)):
        st.text_input("Amount", key="expense_amount", placeholder="12,50")
        st.text_input("Description", key="expense_description", placeholder="Lunch with friends")
        if categories:
            st.selectbox("Category", options=categories, key="expense_category")
        else:
            st.caption("Loading categories...")

        st.text_input("Date (DD-MM-YYYY)", key="expense_date",
                      placeholder=format_form_date(tracker.today()))
        col1, col2 = st.columns(2)
        with col1:
            st.button("Today", on_click=_set_quick_date, args=(0, tracker.today()))
        with col2:
            st.button("Yesterday", on_click=_set_quick_date, args=(1, tracker.today()))

        form = ExpenseForm(
            amount=st.session_state.get("expense_amount", ""),
            description=st.session_state.get("expense_description", ""),
            category=st.session_state.get("expense_category") or "",
            date=st.session_state.get("expense_date") or None,
        )

        col1, col2 = st.columns([2, 1])
        with col1:
            if st.button("💾 Save", type="primary"):
                if editing_id:
                    result = tracker.update_expense(editing_id, form)
                else:
                    result = tracker.add_expense(form)
                if result.success:
                    show_result(result)
                    # Widgets are already drawn; reset them on the next run
                    st.session_state.clear_expense_form = True
                    st.rerun()
                st.error(result.details or result.message)
        with col2:
            if editing_id:
                st.button("Cancel", on_click=_clear_form)


def render_transactions(view: DashboardView, tracker: ExpenseTracker, symbol: str):
    """Transaction list, newest first."""
    st.subheader("Transactions")

    if view.is_empty:
        st.info("No expenses yet. Add your first one above.")
        return

    tz = tracker.settings.tzinfo
    for row in view.transactions:
        expense = row.expense
        col1, col2, col3, col4 = st.columns([6, 3, 1, 1])
        with col1:
            st.markdown(transaction_markup(row, tz), unsafe_allow_html=True)
        with col2:
            st.markdown(f"**-{money(expense.amount, symbol)}**")
        with col3:
            st.button("✏️", key=f"edit_{expense.id}", on_click=_start_editing, args=(expense, tz))
        with col4:
            if st.button("🗑️", key=f"delete_{expense.id}"):
                result = tracker.delete_expense(expense.id)
                show_result(result)
                if result.success:
                    st.rerun()


def render_category_manager(tracker: ExpenseTracker):
    """Category creator and deletion, in the sidebar."""
    st.sidebar.markdown("### Categories")

    with st.sidebar.expander("➕ New category"):
        with st.form("new_category"):
            name = st.text_input("Name")
            color_name = st.selectbox("Color", options=list(AVAILABLE_COLORS))
            icon_name = st.selectbox("Icon", options=list(AVAILABLE_ICONS), format_func=lambda i: f"{icon_for(i)} {i}")
            if st.form_submit_button("Create"):
                result = tracker.add_category(CategoryForm(
                    name=name,
                    color=AVAILABLE_COLORS[color_name],
                    icon_name=icon_name,
                ))
                show_result(result)

    state = tracker.state
    if not state.categories:
        return

    with st.sidebar.expander("🗑️ Delete category"):
        name = st.selectbox("Category", options=[c.name for c in state.categories], key="delete_category_name")
        in_use = count_expenses_in_category(state.expenses, name)
        if in_use:
            st.markdown(f"""
            <div class="warning-box">
                {in_use} expense(s) use this category. They will be kept and shown with default styling.
            </div>
            """, unsafe_allow_html=True)
        if st.button("Delete", key="delete_category_button"):
            show_result(tracker.delete_category(name))


if __name__ == "__main__":
    main()
