"""
Streamlit Frontend for BizFlow

The browser surface of the tracker. The only thing kept in the Streamlit
session is the logged-in user's ID; everything shown is read from the
database on each render.

DESIGN PRINCIPLES:
1. Every page is gated by the user's permissions
2. Clear error messages straight from the action layer
3. Visual feedback for all operations
4. No hidden actions
"""

import asyncio
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable

import streamlit as st

from bizflow.auth import MANAGEABLE_PATHS, USERS_PATH, Session, can_access, effective_permissions
from bizflow.config import get_settings, validate_all_settings
from bizflow.models.finance import BudgetPeriod, TransactionType
from bizflow.models.report import SummaryPeriod
from bizflow.models.user import Role, User
from bizflow.orchestrator import AppComponents, create_app_components
from bizflow.seed import SeedError, seed_initial_admin
from bizflow.services.errors import ActionError


# Page configuration
st.set_page_config(
    page_title="BizFlow",
    page_icon="💸",
    layout="wide",
    initial_sidebar_state="expanded",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    components = create_app_components()
    try:
        run_async(seed_initial_admin(components.user_storage))
    except SeedError as e:
        st.error(f"Initial admin not created: {e}")
    return components


def get_session(components: AppComponents) -> Session:
    if "session" not in st.session_state:
        st.session_state.session = components.new_session()
    return st.session_state.session


def format_currency(amount: Decimal) -> str:
    symbol = get_settings().app.currency_symbol or get_settings().app.currency
    return f"{symbol} {amount:,.2f}"


def paginate(items: list, key: str) -> list:
    """Slice a list to one page, with a page picker when needed."""
    per_page = get_settings().app.items_per_page
    pages = max(1, (len(items) + per_page - 1) // per_page)
    if pages == 1:
        return items
    page = st.number_input(
        f"Page (1-{pages})",
        min_value=1,
        max_value=pages,
        value=1,
        key=key,
    )
    start = (page - 1) * per_page
    return items[start:start + per_page]


@dataclass
class Page:
    path: str
    label: str
    render: Callable[[AppComponents, User], None]


def main():
    """Main application entry point."""
    components = get_components()
    session = get_session(components)

    current_user = run_async(session.resolve())
    if current_user is None:
        render_login_page(components, session)
        return

    pages = [page for page in PAGES if can_access(current_user, page.path)]
    if current_user.is_superadmin:
        pages.append(Page("/settings", "⚙️ Settings", render_settings_page))

    # Sidebar navigation
    st.sidebar.title("💸 BizFlow")
    st.sidebar.markdown(f"Logged in as **{current_user.username}** ({current_user.role.value})")
    st.sidebar.markdown("---")

    selected = st.sidebar.radio(
        "Navigate to:",
        pages,
        format_func=lambda page: page.label,
        index=0,
    )

    st.sidebar.markdown("---")
    if st.sidebar.button("🚪 Log out"):
        session.end()
        st.rerun()

    selected.render(components, current_user)


def render_login_page(components: AppComponents, session: Session):
    """Render the login form."""
    st.title("💸 BizFlow")
    st.markdown("Log in to manage your cash flow and budgets.")

    with st.form("login_form"):
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Log in", type="primary")

    if submitted:
        try:
            user = run_async(components.auth.login(username, password))
        except ActionError as e:
            st.error(str(e))
            return
        session.start(user)
        st.rerun()


def render_dashboard_page(components: AppComponents, user: User):
    """Render the cash-flow dashboard."""
    st.title("🏠 Dashboard")

    transactions = run_async(components.transactions.get_transactions(user.id))
    budgets = run_async(components.budgets.get_budgets(user.id))

    period = st.selectbox(
        "Summary period",
        options=list(SummaryPeriod),
        index=2,
        format_func=lambda p: p.value.title(),
    )
    summary = components.reports.cash_flow_summary(transactions, period)

    st.caption(f"{summary.date_range.start:%d %b %Y} - {summary.date_range.end:%d %b %Y}")
    col1, col2, col3 = st.columns(3)
    col1.metric("Income", format_currency(summary.total_income))
    col2.metric("Expenses", format_currency(summary.total_expenses))
    col3.metric("Net cash flow", format_currency(summary.net_cash_flow))

    if not summary.has_data:
        st.info("No transactions in this period yet.")

    st.markdown("---")
    st.markdown("### This Month's Expenses")
    split = components.reports.budgeted_vs_non_budgeted(transactions, budgets)
    left, right = st.columns(2)
    for column, title, rows, total in (
        (left, "Budgeted", split.budgeted, split.total_budgeted),
        (right, "Non-budgeted", split.non_budgeted, split.total_non_budgeted),
    ):
        with column:
            st.markdown(f"**{title}** - {format_currency(total)}")
            if rows:
                st.dataframe(
                    [
                        {
                            "Date": t.date.isoformat(),
                            "Category": t.description,
                            "Amount": format_currency(t.amount),
                        }
                        for t in rows
                    ],
                    use_container_width=True,
                    hide_index=True,
                )
            else:
                st.caption("Nothing here this month.")


def render_transactions_page(components: AppComponents, user: User):
    """Render the transaction form and list."""
    st.title("🧾 Transactions")

    with st.form("transaction_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            kind = st.radio(
                "Type",
                options=list(TransactionType),
                format_func=lambda t: t.value.title(),
                horizontal=True,
            )
            description = st.text_input(
                "Description",
                help="Source for income, category for expenses",
            )
        with col2:
            amount = st.number_input("Amount", min_value=0.0, step=1000.0, format="%.2f")
            when = st.date_input("Date", value=date.today())
        submitted = st.form_submit_button("💾 Add Transaction", type="primary")

    if submitted:
        try:
            run_async(components.transactions.add_transaction(
                user_id=user.id,
                type=kind,
                description=description,
                amount=Decimal(str(amount)),
                date=when,
            ))
            st.success("Transaction added.")
        except ActionError as e:
            st.error(str(e))

    st.markdown("---")
    transactions = run_async(components.transactions.get_transactions(user.id))
    if not transactions:
        st.info("No transactions yet. Add your first one above.")
        return

    for transaction in paginate(transactions, "transactions_page"):
        col1, col2, col3, col4 = st.columns([2, 4, 2, 1])
        col1.write(transaction.date.strftime("%d %b %Y"))
        col2.write(f"{transaction.description} ({transaction.type.value})")
        col3.write(format_currency(transaction.signed_amount))
        if col4.button("🗑️", key=f"delete_transaction_{transaction.id}"):
            try:
                run_async(components.transactions.delete_transaction(transaction.id, user.id))
                st.rerun()
            except ActionError as e:
                st.error(str(e))


def render_budgets_page(components: AppComponents, user: User):
    """Render the budget form and list."""
    st.title("📒 Budgets")
    st.markdown(
        "Saving a budget for a category and period you already have "
        "updates it instead of adding a second one."
    )

    with st.form("budget_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            category = st.text_input("Category")
            period = st.selectbox(
                "Period",
                options=list(BudgetPeriod),
                format_func=lambda p: p.value.title(),
            )
        with col2:
            amount = st.number_input("Amount", min_value=0.0, step=1000.0, format="%.2f")
            has_due_date = st.checkbox("Set a due date")
            due_date = st.date_input("Due date", value=date.today())
        submitted = st.form_submit_button("💾 Save Budget", type="primary")

    if submitted:
        try:
            _, created = run_async(components.budgets.add_or_update_budget(
                user_id=user.id,
                category=category,
                amount=Decimal(str(amount)),
                period=period,
                due_date=due_date if has_due_date else None,
            ))
            st.success("Budget created." if created else "Budget updated.")
        except ActionError as e:
            st.error(str(e))

    st.markdown("---")
    budgets = run_async(components.budgets.get_budgets(user.id))
    if not budgets:
        st.info("No budgets yet.")
        return

    for budget in paginate(budgets, "budgets_page"):
        col1, col2, col3, col4 = st.columns([3, 2, 2, 1])
        col1.write(f"**{budget.category}** ({budget.period.value})")
        col2.write(format_currency(budget.amount))
        col3.write(f"Due {budget.due_date:%d %b %Y}" if budget.due_date else "")
        if col4.button("🗑️", key=f"delete_budget_{budget.id}"):
            try:
                run_async(components.budgets.delete_budget(budget.id, user.id))
                st.rerun()
            except ActionError as e:
                st.error(str(e))


def render_reports_page(components: AppComponents, user: User):
    """Render the budget versus actual report."""
    st.title("📊 Expense Report")

    period = st.selectbox(
        "Period",
        options=list(BudgetPeriod),
        format_func=lambda p: p.value.title(),
    )
    transactions = run_async(components.transactions.get_transactions(user.id))
    budgets = run_async(components.budgets.get_budgets(user.id))
    report = components.reports.expense_report(transactions, budgets, period)

    st.caption(f"{report.date_range.start:%d %b %Y} - {report.date_range.end:%d %b %Y}")
    if not report.has_data:
        st.info("No budgets or expenses for this period.")
        return

    st.markdown("### Top Categories")
    st.dataframe(
        [
            {
                "Category": line.category,
                "Budget": format_currency(line.budget),
                "Actual": format_currency(line.actual),
            }
            for line in report.top()
        ],
        use_container_width=True,
        hide_index=True,
    )

    st.markdown("### All Categories")
    for line in report.lines:
        marker = "🔴" if line.is_over_budget else "🟢"
        if line.has_budget:
            st.markdown(
                f"{marker} **{line.category}**: {format_currency(line.actual)} "
                f"of {format_currency(line.budget)} ({line.percentage}%)"
            )
            st.progress(min(line.percentage, 100) / 100)
        else:
            st.markdown(
                f"{marker} **{line.category}**: {format_currency(line.actual)} (no budget)"
            )


def render_calendar_page(components: AppComponents, user: User):
    """Render budget due dates for a month."""
    st.title("📅 Calendar")

    selected_day = st.date_input("Show month of", value=date.today())
    budgets = run_async(components.budgets.get_budgets(user.id))
    budget_calendar = components.reports.budget_calendar(budgets, selected_day)

    st.markdown(f"### {budget_calendar.month_start:%B %Y}")
    if not budget_calendar.event_days:
        st.info("No budgets are due this month.")

    for day in budget_calendar.event_days:
        st.markdown(f"**{day:%A, %d %B}**")
        for budget_event in budget_calendar.events_on(day):
            st.markdown(f"- {budget_event.title}: {format_currency(budget_event.amount)}")

    st.markdown("---")
    st.markdown(f"### Due on {selected_day:%d %B %Y}")
    due_today = budget_calendar.events_on(selected_day)
    if not due_today:
        st.caption("Nothing due on this day.")
    for budget_event in due_today:
        st.markdown(f"- {budget_event.title}: {format_currency(budget_event.amount)}")


def render_users_page(components: AppComponents, user: User):
    """Render user management (superadmins only)."""
    st.title("👥 Users")

    with st.expander("➕ Add User"):
        with st.form("add_user_form", clear_on_submit=True):
            username = st.text_input("Username")
            password = st.text_input("Password", type="password")
            role = st.selectbox("Role", options=list(Role), format_func=lambda r: r.value.title())
            submitted = st.form_submit_button("Add User", type="primary")
        if submitted:
            try:
                created = run_async(components.users.add_user(user, username, password, role))
                st.success(f"User '{created.username}' created.")
            except ActionError as e:
                st.error(str(e))

    try:
        users = run_async(components.users.list_users(user))
    except ActionError as e:
        st.error(str(e))
        return

    for account in paginate(users, "users_page"):
        with st.expander(f"{account.username} ({account.role.value})"):
            st.caption("Pages: " + ", ".join(
                MANAGEABLE_PATHS[path] for path in effective_permissions(account)
            ))

            with st.form(f"edit_user_{account.id}"):
                new_username = st.text_input(
                    "Username",
                    value=account.username,
                    key=f"username_{account.id}",
                )
                new_password = st.text_input(
                    "New password",
                    type="password",
                    help="Leave empty to keep the current password",
                    key=f"password_{account.id}",
                )
                new_role = st.selectbox(
                    "Role",
                    options=list(Role),
                    index=list(Role).index(account.role),
                    format_func=lambda r: r.value.title(),
                    key=f"role_{account.id}",
                )
                if st.form_submit_button("Save changes"):
                    try:
                        run_async(components.users.update_user(
                            user,
                            account.id,
                            username=new_username,
                            password=new_password,
                            role=new_role,
                        ))
                        st.success("User updated.")
                        st.rerun()
                    except ActionError as e:
                        st.error(str(e))

            if not account.is_superadmin:
                with st.form(f"permissions_{account.id}"):
                    selected = st.multiselect(
                        "Allowed pages",
                        options=list(MANAGEABLE_PATHS),
                        default=account.permissions,
                        format_func=lambda path: MANAGEABLE_PATHS[path],
                        help="Dashboard is always included",
                        key=f"pages_{account.id}",
                    )
                    if st.form_submit_button("Save permissions"):
                        try:
                            run_async(components.users.update_permissions(
                                user, account.id, selected
                            ))
                            st.success("Permissions updated.")
                            st.rerun()
                        except ActionError as e:
                            st.error(str(e))

            if st.button("🗑️ Delete user", key=f"delete_user_{account.id}"):
                try:
                    run_async(components.users.delete_user(user, account.id))
                    st.rerun()
                except ActionError as e:
                    st.error(str(e))


def render_settings_page(components: AppComponents, user: User):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")
    status = validate_all_settings()

    sections = [
        ("Database", "database"),
        ("Authentication", "auth"),
        ("Initial admin", "seed"),
        ("Application", "app"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Recent Activity")
    events = run_async(components.audit_logger.get_recent_events(limit=50))
    if not events:
        st.caption("No audit events recorded.")
    else:
        st.dataframe(
            [
                {
                    "Time": event.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                    "Event": event.event_type.value,
                    "Severity": event.severity.value,
                    "Description": event.description,
                    "Error": event.error_message or "",
                }
                for event in events
            ],
            use_container_width=True,
            hide_index=True,
        )

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


PAGES = [
    Page("/", "🏠 Dashboard", render_dashboard_page),
    Page("/transactions", "🧾 Transactions", render_transactions_page),
    Page("/budgets", "📒 Budgets", render_budgets_page),
    Page("/reports", "📊 Reports", render_reports_page),
    Page("/calendar", "📅 Calendar", render_calendar_page),
    Page(USERS_PATH, "👥 Users", render_users_page),
]


if __name__ == "__main__":
    main()
