"""
Streamlit Frontend for Brewery Ledger

Dashboard, data entry and reports for the brewery owner.

The UI is a thin layer over the record store:
- Forms call the store's add/update/delete operations, then persist()
- Every figure on screen comes from the pure engine functions
- Nothing is computed here that a test could not reproduce from a snapshot
"""

import asyncio
import json
from datetime import date

import streamlit as st

from brewery_ledger.config import get_settings, validate_all_settings
from brewery_ledger.engine import (
    Period,
    available_years,
    compute_cost_per_unit_by_product,
    monthly_series,
    summarize,
    total_expenses,
)
from brewery_ledger.models import (
    CollectionName,
    MultiplierMargin,
    PercentageMargin,
    TransactionKind,
)
from brewery_ledger.orchestrator import create_app_components, open_ledger
from brewery_ledger.reports import (
    CATEGORY_DISPLAY_NAMES,
    build_profit_and_loss,
    category_display_name,
    format_currency,
    render_text,
)


# Page configuration
st.set_page_config(
    page_title="Brewery Ledger",
    page_icon="🍺",
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
def get_components():
    """Get or create the record store and sync (cached), loaded once."""
    store, sync = create_app_components()
    run_async(open_ledger(store, sync))
    return store, sync


def money(amount: float) -> str:
    return format_currency(amount, get_settings().app.currency_label)


def save_changes(store, message: str) -> bool:
    """Persist and report the outcome."""
    result = run_async(store.persist(message))
    if result.success:
        st.success("✅ Saved")
    else:
        st.error(f"❌ Could not save: {result.error_message}")
    return result.success


def period_picker(snapshot, key: str) -> Period:
    """Month/year selectors shared by dashboard and reports."""
    years = available_years(snapshot) or [date.today().year]
    col1, col2 = st.columns(2)
    with col1:
        year = st.selectbox("Year", options=[None] + years, key=f"{key}_year",
                            format_func=lambda y: "All years" if y is None else str(y))
    with col2:
        month = st.selectbox("Month", options=[None] + list(range(1, 13)), key=f"{key}_month",
                             format_func=lambda m: "All months" if m is None else Period(month=m).label())
    return Period(month=month, year=year)


def main():
    """Main application entry point."""
    store, sync = get_components()

    st.sidebar.title("🍺 Brewery Ledger")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "🏭 Production", "💵 Transactions", "🛒 Sales", "📄 Report", "⚙️ Settings"],
        index=0,
    )

    if page == "📊 Dashboard":
        render_dashboard(store)
    elif page == "🏭 Production":
        render_production_page(store)
    elif page == "💵 Transactions":
        render_transactions_page(store)
    elif page == "🛒 Sales":
        render_sales_page(store)
    elif page == "📄 Report":
        render_report_page(store)
    elif page == "⚙️ Settings":
        render_settings_page(store, sync)


def render_dashboard(store):
    """KPIs and charts."""
    st.title("📊 Dashboard")
    snapshot = store.snapshot
    period = period_picker(snapshot, "dashboard")

    summary = summarize(snapshot, period)
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Revenue", money(summary.revenue))
    col2.metric("Expenses", money(summary.expenses))
    col3.metric("Profit", money(summary.profit), f"{summary.profit_margin:.1f}%")
    col4.metric("Cost per unit", money(summary.cost_per_unit))

    col1, col2, col3 = st.columns(3)
    col1.metric("Units produced", f"{summary.units_produced:,.0f}")
    col2.metric("Units sold", f"{summary.units_sold:,.0f}")
    col3.metric("Average price", money(summary.average_price_per_unit))

    year = period.year or date.today().year
    series = monthly_series(snapshot, year)
    chart_rows = {
        f"{figures.month:02d} {figures.month_name[:3]}": figures for figures in series
    }

    st.markdown(f"### {year} by month")
    st.bar_chart({
        "Revenue": {name: f.revenue for name, f in chart_rows.items()},
        "Expenses": {name: f.expenses for name, f in chart_rows.items()},
    })
    col1, col2 = st.columns(2)
    with col1:
        st.markdown("**Units produced**")
        st.line_chart({"Units": {name: f.units_produced for name, f in chart_rows.items()}})
    with col2:
        st.markdown("**Cost per unit**")
        st.line_chart({"Cost per unit": {name: f.cost_per_unit for name, f in chart_rows.items()}})

    breakdown = total_expenses(snapshot, period).breakdown
    if breakdown:
        st.markdown("**Expenses by category**")
        st.bar_chart({
            "Amount": {category_display_name(k): v for k, v in breakdown.items()}
        })


def record_label(records, record_id: str) -> str:
    return next(f"{r.date} - {r.id[:8]}" for r in records if r.id == record_id)


def edit_fields(collection: CollectionName, record) -> dict:
    """Form inputs pre-filled from a record; returns the changed values."""
    key = f"edit_{collection.value}_{record.id}"
    changes = {"date": st.date_input("Date", value=record.record_date or date.today(), key=f"{key}_date")}
    if collection == CollectionName.PRODUCTION:
        changes["product_name"] = st.text_input("Product", value=record.product_name, key=f"{key}_product")
        changes["volume_produced"] = st.number_input(
            "Units produced", min_value=0.0, step=1.0, value=record.volume_produced, key=f"{key}_volume")
        changes["labor_hours"] = st.number_input(
            "Labor hours", min_value=0.0, step=0.5, value=record.labor_hours, key=f"{key}_hours")
        changes["ingredient_cost"] = st.number_input(
            "Ingredient cost", min_value=0.0, step=10.0, value=record.ingredient_cost, key=f"{key}_cost")
    elif collection == CollectionName.TRANSACTIONS:
        categories = list(CATEGORY_DISPLAY_NAMES)
        if record.category not in categories:
            categories.append(record.category)
        kinds = list(TransactionKind)
        changes["description"] = st.text_input("Description", value=record.description, key=f"{key}_description")
        changes["amount"] = st.number_input(
            "Amount", min_value=0.0, step=10.0, value=record.amount, key=f"{key}_amount")
        changes["kind"] = st.selectbox("Type", options=kinds, index=kinds.index(record.kind),
                                       format_func=lambda k: k.value.title(), key=f"{key}_kind")
        changes["category"] = st.selectbox("Category", options=categories,
                                           index=categories.index(record.category),
                                           format_func=category_display_name, key=f"{key}_category")
    else:
        changes["revenue"] = st.number_input(
            "Revenue", min_value=0.0, step=10.0, value=max(record.revenue, 0.0), key=f"{key}_revenue")
        changes["volume_sold"] = st.number_input(
            "Units sold", min_value=0.0, step=1.0, value=record.volume_sold, key=f"{key}_volume")
    return changes


def render_records(store, collection: CollectionName, columns: list[str]):
    """Table of records with edit and delete controls."""
    records = store.list_records(collection)
    if not records:
        st.info("No records yet.")
        return
    st.dataframe(
        [{column: record.to_document().get(column) for column in columns} for record in records],
        use_container_width=True,
    )
    with st.expander("✏️ Edit a record"):
        record_id = st.selectbox(
            "Record",
            options=[record.id for record in records],
            format_func=lambda rid: record_label(records, rid),
            key=f"edit_{collection.value}",
        )
        record = store.get(collection, record_id)
        with st.form(f"edit_form_{collection.value}"):
            changes = edit_fields(collection, record)
            if st.form_submit_button("💾 Save changes", type="primary"):
                try:
                    store.update(collection, record.id, **changes)
                    if save_changes(store, f"Edit {collection.value} record"):
                        st.rerun()
                except (ValueError, LookupError) as e:
                    st.error(f"❌ {e}")
    with st.expander("🗑️ Delete a record"):
        record_id = st.selectbox(
            "Record",
            options=[record.id for record in records],
            format_func=lambda rid: record_label(records, rid),
            key=f"delete_{collection.value}",
        )
        if st.button("Delete", key=f"delete_btn_{collection.value}"):
            store.delete(collection, record_id)
            if save_changes(store, f"Delete {collection.value} record"):
                st.rerun()


def render_production_page(store):
    st.title("🏭 Production")
    with st.form("production_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            batch_date = st.date_input("Date", value=date.today())
            product_name = st.text_input("Product")
            volume = st.number_input("Units produced", min_value=0.0, step=1.0)
        with col2:
            labor_hours = st.number_input("Labor hours", min_value=0.0, step=0.5)
            ingredient_cost = st.number_input("Ingredient cost", min_value=0.0, step=10.0)
        if st.form_submit_button("➕ Add batch", type="primary"):
            try:
                store.add_production(batch_date, product_name, volume, labor_hours, ingredient_cost)
                save_changes(store, "Add production batch")
            except ValueError as e:
                st.error(f"❌ {e}")

    render_records(store, CollectionName.PRODUCTION,
                   ["date", "productName", "volumeProduced", "laborHours", "ingredientCost"])

    st.markdown("### Cost per product")
    products = compute_cost_per_unit_by_product(store.snapshot)
    if products:
        st.dataframe([
            {
                "Product": p.product_name,
                "Batches": p.batches,
                "Units": p.units_produced,
                "Cost per unit": round(p.cost_per_unit, 2),
                "Recommended price": round(p.recommended_price, 2),
            }
            for p in products
        ], use_container_width=True)


def render_transactions_page(store):
    st.title("💵 Transactions")
    with st.form("transaction_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            tx_date = st.date_input("Date", value=date.today())
            description = st.text_input("Description")
            amount = st.number_input("Amount", min_value=0.0, step=10.0)
        with col2:
            kind = st.selectbox("Type", options=list(TransactionKind),
                                format_func=lambda k: k.value.title())
            category = st.selectbox("Category", options=list(CATEGORY_DISPLAY_NAMES),
                                    format_func=category_display_name)
        if st.form_submit_button("➕ Add transaction", type="primary"):
            try:
                store.add_transaction(tx_date, description, amount, kind, category)
                save_changes(store, "Add transaction")
            except ValueError as e:
                st.error(f"❌ {e}")

    render_records(store, CollectionName.TRANSACTIONS,
                   ["date", "description", "kind", "category", "amount"])


def render_sales_page(store):
    st.title("🛒 Sales")
    with st.form("sales_form", clear_on_submit=True):
        sale_date = st.date_input("Date", value=date.today())
        revenue = st.number_input("Revenue", min_value=0.0, step=10.0)
        volume_sold = st.number_input("Units sold", min_value=0.0, step=1.0)
        if st.form_submit_button("➕ Add sales", type="primary"):
            try:
                store.add_sale(sale_date, revenue, volume_sold)
                save_changes(store, "Add sales")
            except ValueError as e:
                st.error(f"❌ {e}")

    render_records(store, CollectionName.SALES, ["date", "revenue", "volumeSold"])


def render_report_page(store):
    st.title("📄 Profit and Loss")
    period = period_picker(store.snapshot, "report")
    report = build_profit_and_loss(store.snapshot, period)
    text = render_text(report, get_settings().app.currency_label)
    st.code(text)
    st.download_button(
        "⬇️ Download report",
        data=text,
        file_name=f"pnl_{report.period_label.replace(' ', '_').lower()}.txt",
    )


def render_settings_page(store, sync):
    """Business configuration, sync and backup."""
    st.title("⚙️ Settings")
    config = store.config

    st.markdown("### Costs and pricing")
    with st.form("config_form"):
        labor_rate = st.number_input("Labor rate (per hour)", min_value=0.0, value=config.labor_rate)
        col1, col2, col3 = st.columns(3)
        rent = col1.number_input("Monthly rent", min_value=0.0, value=config.monthly_rent)
        salaries = col2.number_input("Monthly salaries", min_value=0.0, value=config.monthly_salaries)
        utilities = col3.number_input("Monthly utilities", min_value=0.0, value=config.monthly_utilities)
        margin_kind = st.radio("Pricing", ["multiplier", "percentage"],
                               index=0 if config.margin.kind == "multiplier" else 1, horizontal=True)
        margin_value = st.number_input(
            "Multiplier" if margin_kind == "multiplier" else "Margin %",
            min_value=0.0,
            value=float(getattr(config.margin, "multiplier", None) or getattr(config.margin, "percentage", 0.0)),
        )
        if st.form_submit_button("💾 Save configuration", type="primary"):
            margin = (
                MultiplierMargin(multiplier=margin_value)
                if margin_kind == "multiplier"
                else PercentageMargin(percentage=margin_value)
            )
            store.update_config(
                labor_rate=labor_rate,
                monthly_rent=rent,
                monthly_salaries=salaries,
                monthly_utilities=utilities,
                margin=margin,
            )
            save_changes(store, "Update configuration")

    st.markdown("---")
    st.markdown("### Sync")
    if sync is None:
        status = validate_all_settings()
        st.info(f"Remote sync is off. Google Sheets: {status.get('google_sheets_error', 'configured')}")
    else:
        if sync.last_sync_at:
            st.caption(f"Last sync: {sync.last_sync_at:%Y-%m-%d %H:%M} UTC")
        if st.button("🔄 Sync now"):
            result = run_async(sync.synchronize())
            if result.success:
                st.success(f"✅ Synced {result.records} records")
            else:
                st.error(f"❌ Sync failed: {result.error_message}")

    st.markdown("---")
    st.markdown("### Backup")
    st.download_button(
        "⬇️ Export data",
        data=json.dumps(store.export_data(), indent=2, ensure_ascii=False),
        file_name=f"ledger_export_{date.today().isoformat()}.json",
        mime="application/json",
    )
    uploaded = st.file_uploader("Import data (replaces everything)", type=["json"])
    if uploaded and st.button("📥 Import", type="primary"):
        try:
            store.import_data(json.loads(uploaded.read()))
            save_changes(store, "Import data")
        except ValueError as e:
            st.error(f"❌ Could not import: {e}")


if __name__ == "__main__":
    main()
