"""
Streamlit Frontend for Expense Tracker

The screens people use day to day: record an expense, check a budget,
see where the money went this month.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Every number is recomputed from stored records on each load
3. Clear error messages in simple language
4. Visual feedback for all operations
5. No hidden actions

The UI holds no business logic. Every button calls one flow in
expense_tracker.orchestrator and shows the FlowResult it gets back.
"""

import asyncio
from datetime import date

import streamlit as st

from expense_tracker.analytics import currency_symbol, format_currency, format_percentage
from expense_tracker.audit import configure_logging
from expense_tracker.config import get_settings, validate_all_settings
from expense_tracker.models.records import (
    CATEGORY_COLORS,
    CATEGORY_ICONS,
    CURRENCY_SYMBOLS,
    UNCATEGORIZED,
    BudgetPeriod,
    IncomeFrequency,
    IncomeType,
    OverallBudgetPeriod,
    Theme,
)
from expense_tracker.orchestrator import AppComponents, FlowResult, create_app_components


# Page configuration
st.set_page_config(
    page_title="Expense Tracker",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
    .category-badge {
        display: inline-block;
        padding: 2px 10px;
        border-radius: 10px;
        color: white;
    }
</style>
""", unsafe_allow_html=True)


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
    configure_logging(get_settings().app.debug_mode)
    return create_app_components(use_storage=True)


def notify(result: FlowResult) -> bool:
    """Show a flow's message as a toast or an error. Returns success."""
    if result.success:
        if result.message:
            st.success(result.message)
    else:
        st.error(result.message)
    return result.success


def load(result: FlowResult, empty=None):
    """Data from a read flow, or `empty` (after showing the error) on failure."""
    if result.success:
        return result.data
    st.error(result.message)
    return empty


def main():
    """Main application entry point."""
    components = get_components()
    owner_id = get_settings().app.default_owner_id
    currency = components.preferences.current.currency

    # Sidebar navigation
    st.sidebar.title("💰 Expense Tracker")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        [
            "🏠 Dashboard",
            "🧾 Expenses",
            "🏷️ Categories",
            "🎯 Budgets",
            "💵 Income",
            "📊 Analytics",
            "⚙️ Settings",
        ],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.caption(f"Currency: {currency} ({currency_symbol(currency)})")
    st.sidebar.caption(f"Storage: {components.storage_backend}")

    # Route to appropriate page
    if page == "🏠 Dashboard":
        render_dashboard_page(components, owner_id, currency)
    elif page == "🧾 Expenses":
        render_expenses_page(components, owner_id, currency)
    elif page == "🏷️ Categories":
        render_categories_page(components, owner_id)
    elif page == "🎯 Budgets":
        render_budgets_page(components, owner_id, currency)
    elif page == "💵 Income":
        render_income_page(components, owner_id, currency)
    elif page == "📊 Analytics":
        render_analytics_page(components, owner_id, currency)
    elif page == "⚙️ Settings":
        render_settings_page(components)


def render_dashboard_page(components: AppComponents, owner_id: str, currency: str):
    """Headline numbers and the most recent expenses."""
    st.title("🏠 Dashboard")

    stats = load(run_async(components.dashboard.stats(owner_id)))
    income = load(run_async(components.income.monthly_total(owner_id)))

    if stats is not None:
        col1, col2, col3, col4 = st.columns(4)
        col1.metric("Total Expenses", format_currency(stats.total_expenses, currency))
        col2.metric("This Month", format_currency(stats.monthly_expenses, currency))
        col3.metric("Total Budget", format_currency(stats.total_budget, currency))
        col4.metric("Transactions", stats.expense_count)

    if income is not None:
        st.markdown(f"**Monthly income:** {format_currency(income, currency)}")

    st.markdown("---")
    st.subheader("Recent Expenses")
    render_expense_list(components, owner_id, currency, allow_delete=False)


def render_expense_list(
    components: AppComponents,
    owner_id: str,
    currency: str,
    allow_delete: bool = True,
):
    expenses = load(run_async(components.expenses.recent(owner_id)), [])
    categories = load(run_async(components.categories.list(owner_id)), [])
    names = {category.id: category.name for category in categories}

    if not expenses:
        st.info("No expenses yet. Add your first one on the Expenses page.")
        return

    for expense in expenses:
        col1, col2, col3, col4 = st.columns([3, 2, 2, 1])
        col1.markdown(f"**{expense.description or 'No description'}**")
        col2.markdown(names.get(expense.category_id, UNCATEGORIZED))
        col3.markdown(
            f"{format_currency(expense.amount, expense.currency or currency)} · "
            f"{expense.expense_date.strftime('%d %b %Y')}"
        )
        if allow_delete and col4.button("🗑️", key=f"del-expense-{expense.id}"):
            if notify(run_async(components.expenses.delete(owner_id, expense.id))):
                st.rerun()


def render_expenses_page(components: AppComponents, owner_id: str, currency: str):
    """Add an expense and list the latest ones."""
    st.title("🧾 Expenses")

    categories = load(run_async(components.categories.list(owner_id)), [])
    currencies = list(CURRENCY_SYMBOLS)

    with st.form("add-expense", clear_on_submit=True):
        st.markdown("### Add Expense")
        col1, col2 = st.columns(2)
        with col1:
            amount = st.text_input("Amount *", placeholder="0.00")
            description = st.text_input("Description", placeholder="What was it for?")
        with col2:
            expense_date = st.date_input("Date", value=date.today())
            category = st.selectbox(
                "Category",
                options=[None] + categories,
                format_func=lambda c: "No category" if c is None else c.name,
            )
            expense_currency = st.selectbox(
                "Currency",
                options=currencies,
                index=currencies.index(currency) if currency in currencies else 0,
            )

        if st.form_submit_button("➕ Add Expense", type="primary"):
            notify(run_async(components.expenses.add(owner_id, {
                "amount": amount,
                "description": description,
                "expense_date": expense_date,
                "category_id": category.id if category else None,
                "currency": expense_currency,
            })))

    st.markdown("---")
    st.subheader("Recent Expenses")
    render_expense_list(components, owner_id, currency)


def render_categories_page(components: AppComponents, owner_id: str):
    """Create, edit and delete categories."""
    st.title("🏷️ Categories")

    with st.form("add-category", clear_on_submit=True):
        st.markdown("### New Category")
        name = st.text_input("Name *")
        col1, col2 = st.columns(2)
        color = col1.selectbox("Colour", options=list(CATEGORY_COLORS))
        icon = col2.selectbox("Icon", options=list(CATEGORY_ICONS))
        if st.form_submit_button("➕ Create Category", type="primary"):
            notify(run_async(components.categories.create(owner_id, {
                "name": name,
                "color": color,
                "icon": icon,
            })))

    st.markdown("---")
    categories = load(run_async(components.categories.list(owner_id)), [])
    if not categories:
        st.info("No categories yet.")
        return

    for category in categories:
        with st.expander(f"{category.name}"):
            st.markdown(
                f'<span class="category-badge" style="background:{category.color}">'
                f"{category.icon}</span>",
                unsafe_allow_html=True,
            )
            new_name = st.text_input("Name", value=category.name, key=f"name-{category.id}")
            colors = list(CATEGORY_COLORS)
            new_color = st.selectbox(
                "Colour",
                options=colors,
                index=colors.index(category.color) if category.color in colors else 0,
                key=f"color-{category.id}",
            )
            icons = list(CATEGORY_ICONS)
            new_icon = st.selectbox(
                "Icon",
                options=icons,
                index=icons.index(category.icon),
                key=f"icon-{category.id}",
            )
            col1, col2 = st.columns(2)
            if col1.button("💾 Save", key=f"save-{category.id}"):
                if notify(run_async(components.categories.update(owner_id, category.id, {
                    "name": new_name,
                    "color": new_color,
                    "icon": new_icon,
                }))):
                    st.rerun()
            if col2.button("🗑️ Delete", key=f"delete-{category.id}"):
                if notify(run_async(components.categories.delete(owner_id, category.id))):
                    st.rerun()


def render_budget_progress(status, currency: str):
    st.progress(status.progress / 100)
    text = (
        f"{format_currency(status.spent, currency)} of "
        f"{format_currency(status.amount, currency)} "
        f"({format_percentage(status.percentage)})"
    )
    if status.is_over_budget:
        st.error(f"Over budget: {text}")
    else:
        st.caption(text)


def render_budgets_page(components: AppComponents, owner_id: str, currency: str):
    """Category budgets (this month) and overall budgets (their own window)."""
    st.title("🎯 Budgets")

    tab_category, tab_overall = st.tabs(["By Category", "Overall"])

    with tab_category:
        categories = load(run_async(components.categories.list(owner_id)), [])
        with st.form("add-budget", clear_on_submit=True):
            st.markdown("### New Category Budget")
            category = st.selectbox(
                "Category *",
                options=categories,
                format_func=lambda c: c.name,
            )
            col1, col2 = st.columns(2)
            amount = col1.text_input("Amount *", placeholder="0.00")
            period = col2.selectbox("Period", options=[p.value for p in BudgetPeriod], index=1)
            if st.form_submit_button("➕ Create Budget", type="primary"):
                notify(run_async(components.budgets.create(owner_id, {
                    "category_id": category.id if category else None,
                    "amount": amount,
                    "period": period,
                    "currency": currency,
                })))

        st.caption("Spending is measured over the current month.")
        for view in load(run_async(components.budgets.list(owner_id)), []):
            st.markdown(f"**{view.category_name}** · {view.budget.period.value}")
            render_budget_progress(view.status, view.budget.currency)
            if st.button("🗑️ Delete", key=f"delete-budget-{view.budget.id}"):
                if notify(run_async(components.budgets.delete(owner_id, view.budget.id))):
                    st.rerun()

    with tab_overall:
        with st.form("add-overall-budget", clear_on_submit=True):
            st.markdown("### New Overall Budget")
            col1, col2, col3 = st.columns(3)
            amount = col1.text_input("Amount *", placeholder="0.00")
            period = col2.selectbox("Period", options=[p.value for p in OverallBudgetPeriod], index=1)
            budget_date = col3.date_input("Starting from *", value=date.today())
            if st.form_submit_button("➕ Create Overall Budget", type="primary"):
                notify(run_async(components.overall_budgets.create(owner_id, {
                    "amount": amount,
                    "period": period,
                    "budget_date": budget_date,
                    "currency": currency,
                })))

        for view in load(run_async(components.overall_budgets.list(owner_id)), []):
            budget = view.budget
            st.markdown(
                f"**{budget.period.value.capitalize()}** · "
                f"{view.window.start.strftime('%d %b')} to {view.window.end.strftime('%d %b %Y')}"
            )
            render_budget_progress(view.status, budget.currency)

            with st.expander("Edit"):
                new_amount = st.text_input(
                    "Amount", value=str(budget.amount), key=f"amount-{budget.id}"
                )
                new_date = st.date_input(
                    "Starting from", value=budget.budget_date, key=f"date-{budget.id}"
                )
                col1, col2 = st.columns(2)
                if col1.button("💾 Save", key=f"save-overall-{budget.id}"):
                    if notify(run_async(components.overall_budgets.update(owner_id, budget.id, {
                        "amount": new_amount,
                        "budget_date": new_date,
                        "period": budget.period.value,
                    }))):
                        st.rerun()
                if col2.button("🗑️ Delete", key=f"delete-overall-{budget.id}"):
                    if notify(run_async(components.overall_budgets.delete(owner_id, budget.id))):
                        st.rerun()


def render_income_page(components: AppComponents, owner_id: str, currency: str):
    """Income sources and the monthly total of the active ones."""
    st.title("💵 Income")

    total = load(run_async(components.income.monthly_total(owner_id)))
    if total is not None:
        st.markdown(
            f'<div class="big-number">{format_currency(total, currency)}</div>'
            "<p>per month from active sources</p>",
            unsafe_allow_html=True,
        )

    with st.form("add-income", clear_on_submit=True):
        st.markdown("### Add Income Source")
        col1, col2 = st.columns(2)
        with col1:
            amount = st.text_input("Amount *", placeholder="0.00")
            income_type = st.selectbox("Type", options=[t.value for t in IncomeType])
        with col2:
            frequency = st.selectbox("Frequency", options=[f.value for f in IncomeFrequency])
            description = st.text_input("Description")
        if st.form_submit_button("➕ Add Income", type="primary"):
            notify(run_async(components.income.create(owner_id, {
                "amount": amount,
                "income_type": income_type,
                "frequency": frequency,
                "description": description,
                "currency": currency,
            })))

    st.markdown("---")
    for source in load(run_async(components.income.list(owner_id)), []):
        col1, col2, col3, col4 = st.columns([3, 2, 1, 1])
        col1.markdown(f"**{source.description or source.income_type.value.capitalize()}**")
        col2.markdown(f"{format_currency(source.amount, source.currency)} · {source.frequency.value}")
        label = "⏸️ Pause" if source.is_active else "▶️ Resume"
        if col3.button(label, key=f"toggle-{source.id}"):
            if notify(run_async(components.income.toggle(owner_id, source))):
                st.rerun()
        if col4.button("🗑️", key=f"delete-income-{source.id}"):
            if notify(run_async(components.income.delete(owner_id, source.id))):
                st.rerun()


def render_analytics_page(components: AppComponents, owner_id: str, currency: str):
    """Category breakdown and monthly trend for a chosen range."""
    st.title("📊 Analytics")

    range_kind = st.selectbox(
        "Period",
        options=["week", "month", "year", "custom"],
        index=1,
        format_func=lambda k: {
            "week": "Last 7 days",
            "month": "This month",
            "year": "This year",
            "custom": "Custom range",
        }[k],
    )
    custom_start = custom_end = None
    if range_kind == "custom":
        col1, col2 = st.columns(2)
        custom_start = col1.date_input("From", value=date.today().replace(day=1))
        custom_end = col2.date_input("To", value=date.today())

    summary = load(run_async(components.analytics.summarize(
        owner_id,
        range_kind=range_kind,
        custom_start=custom_start,
        custom_end=custom_end,
    )))
    if summary is None:
        return

    col1, col2, col3 = st.columns(3)
    col1.metric("Total Spent", format_currency(summary.total_spent, currency))
    col2.metric("Transactions", summary.transaction_count)
    col3.metric("Average per Day", format_currency(summary.average_per_day, currency))

    if not summary.categories:
        st.info("No expenses in this period.")
        return

    st.subheader("By Category")
    for group in summary.categories:
        share = float(group.total_amount / summary.total_spent * 100) if summary.total_spent else 0.0
        st.markdown(
            f'<span class="category-badge" style="background:{group.color}">{group.name}</span> '
            f"{format_currency(group.total_amount, currency)} · "
            f"{group.transaction_count} transactions · {format_percentage(share)}",
            unsafe_allow_html=True,
        )

    st.subheader("Monthly Trend")
    st.bar_chart(
        {
            "Month": [m.month for m in summary.monthly],
            "Spent": [float(m.total_amount) for m in summary.monthly],
        },
        x="Month",
        y="Spent",
    )


def render_settings_page(components: AppComponents):
    """Preferences and connection status."""
    st.title("⚙️ Settings")

    for result in st.session_state.pop("preference_results", []):
        notify(result)

    preferences = components.preferences.current

    st.markdown("### Preferences")
    currencies = list(CURRENCY_SYMBOLS)
    new_currency = st.selectbox(
        "Currency",
        options=currencies,
        index=currencies.index(preferences.currency) if preferences.currency in currencies else 0,
        format_func=lambda c: f"{c} ({CURRENCY_SYMBOLS[c]})",
    )
    themes = [t.value for t in Theme]
    new_theme = st.radio(
        "Theme",
        options=themes,
        index=themes.index(preferences.theme.value),
        horizontal=True,
    )

    if st.button("💾 Save Preferences", type="primary"):
        results = []
        if new_currency != preferences.currency:
            results.append(run_async(components.preferences.set_currency(new_currency)))
        if new_theme != preferences.theme.value:
            results.append(run_async(components.preferences.set_theme(new_theme)))
        # Shown on the next run, after the page picks up the new preferences
        st.session_state["preference_results"] = results
        st.rerun()

    st.markdown("---")
    st.markdown("### Connection Status")

    status = validate_all_settings()
    for name, key in [("Application", "app"), ("Google Sheets (Storage)", "google_sheets")]:
        if key not in status:
            continue
        if status[key]:
            st.success(f"✅ {name} - Configured")
        else:
            st.error(f"❌ {name} - {status.get(f'{key}_error', 'Not configured')}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "Set `STORAGE_BACKEND=google_sheets` together with "
        "`GOOGLE_SHEETS_CREDENTIALS_PATH` and `GOOGLE_SHEETS_SPREADSHEET_ID` "
        "to keep your records in Google Sheets."
    )


if __name__ == "__main__":
    main()
