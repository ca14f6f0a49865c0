"""
Streamlit Frontend for Liquid Bills

The screen a single user opens to see what is due this month, tick bills
off as paid and keep recurring bills up to date.

DESIGN PRINCIPLES:
1. Paint immediately from the local cache, refresh in the background
2. Every failed write is shown to the user, never swallowed
3. Destructive series changes need an explicit tick in the form
4. A full-screen error only when there is nothing at all to show
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Optional

import streamlit as st
from pydantic import ValidationError

from liquid_bills.config import validate_all_settings
from liquid_bills.export import export_bills_csv, export_filename
from liquid_bills.models import (
    CATEGORY_ICONS,
    FREQUENCY_LABELS,
    Bill,
    BillCategory,
    BillFrequency,
    SyncResult,
)
from liquid_bills.orchestrator import AppComponents, create_app_components
from liquid_bills.queries import bills_for_month, monthly_stats, shift_period, yearly_summary
from liquid_bills.services.storage import MissingConfigurationError, StorageError
from liquid_bills.validation import DuplicateBillError


MONTH_NAMES = [
    "Styczeń", "Luty", "Marzec", "Kwiecień", "Maj", "Czerwiec",
    "Lipiec", "Sierpień", "Wrzesień", "Październik", "Listopad", "Grudzień",
]


# Page configuration
st.set_page_config(
    page_title="Liquid Bills",
    page_icon="💧",
    layout="centered",
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
    return create_app_components(use_storage=True)


def format_amount(amount: Decimal, currency: str) -> str:
    return f"{amount:,.2f} {currency}".replace(",", " ")


def main():
    """Main application entry point."""
    components = get_components()
    controller = components.controller

    # Stale-while-revalidate: cache first, then one refresh per session
    if "sync_result" not in st.session_state:
        controller.load_cached()
        st.session_state.sync_result = run_async(controller.refresh())
    if "period" not in st.session_state:
        today = date.today()
        st.session_state.period = (today.year, today.month)
    if "editing_id" not in st.session_state:
        st.session_state.editing_id = None

    render_sidebar(components)

    result: SyncResult = st.session_state.sync_result
    if result.blocking:
        render_blocking_error(result)
        st.stop()

    view = st.radio(
        "Widok",
        options=["month", "year"],
        format_func=lambda v: "Miesiąc" if v == "month" else "Rok",
        horizontal=True,
        label_visibility="collapsed",
    )
    render_period_navigation(view)

    if view == "month":
        render_month_view(components)
    else:
        render_year_view(components)


def render_sidebar(components: AppComponents):
    """Sync indicator, export and configuration status."""
    controller = components.controller
    result: SyncResult = st.session_state.sync_result

    st.sidebar.title("💧 Liquid Bills")
    st.sidebar.markdown("---")

    if result.success:
        st.sidebar.success(f"✅ Zsynchronizowano ({result.bill_count} rachunków)")
    elif not controller.is_configured:
        st.sidebar.warning("⚠️ Brak połączenia z bazą - dane z pamięci podręcznej")
    else:
        st.sidebar.warning(f"⚠️ Tryb offline - {result.error_message}")

    if st.sidebar.button("🔄 Odśwież"):
        st.session_state.sync_result = run_async(controller.refresh())
        st.rerun()

    st.sidebar.markdown("---")
    bills = controller.bills
    if bills:
        filename = export_filename(date.today(), components.app_settings.export_filename_prefix)
        if st.sidebar.download_button(
            "📥 Eksportuj CSV",
            data=export_bills_csv(bills).encode("utf-8"),
            file_name=filename,
            mime="text/csv",
        ):
            run_async(components.audit_logger.log_export_generated(len(bills), filename))
    else:
        st.sidebar.button("📥 Eksportuj CSV", disabled=True, help="Brak danych do eksportu.")

    with st.sidebar.expander("⚙️ Konfiguracja"):
        status = validate_all_settings()
        for name, key in [("Google Sheets", "google_sheets"), ("Aplikacja", "app")]:
            if status.get(key, False):
                st.success(f"✅ {name}")
            else:
                st.error(f"❌ {name} - {status.get(f'{key}_error', 'Brak konfiguracji')}")


def render_blocking_error(result: SyncResult):
    """Full-screen error: the refresh failed and nothing is cached."""
    st.title("😕 Nie udało się pobrać rachunków")
    st.error(result.error_message or "Nieznany błąd")
    if result.error_kind == MissingConfigurationError.kind:
        st.markdown(
            "Skonfiguruj połączenie z Google Sheets w pliku `.env` "
            "(zobacz `.env.example`)."
        )
    if st.button("Spróbuj ponownie", type="primary"):
        del st.session_state["sync_result"]
        st.rerun()


def render_period_navigation(view: str):
    year, month = st.session_state.period
    col1, col2, col3 = st.columns([1, 4, 1])

    with col1:
        if st.button("◀", key="prev_period"):
            st.session_state.period = shift_period(year, month, view, -1)
            st.rerun()
    with col2:
        label = f"{MONTH_NAMES[month - 1]} {year}" if view == "month" else str(year)
        st.markdown(f"<h3 style='text-align:center'>{label}</h3>", unsafe_allow_html=True)
    with col3:
        if st.button("▶", key="next_period"):
            st.session_state.period = shift_period(year, month, view, 1)
            st.rerun()


def render_month_view(components: AppComponents):
    """Stats cards, the month's bills and the add/edit form."""
    controller = components.controller
    currency = components.app_settings.currency_symbol
    year, month = st.session_state.period

    bills = bills_for_month(controller.bills, year, month)
    stats = monthly_stats(bills)

    col1, col2, col3 = st.columns(3)
    col1.metric("Razem", format_amount(stats.total, currency))
    col2.metric("Zapłacone", format_amount(stats.paid, currency))
    col3.metric("Do zapłaty", format_amount(stats.pending, currency))
    st.progress(stats.percentage_paid / 100, text=f"Opłacono {stats.percentage_paid}%")

    st.markdown("---")

    if not bills:
        st.info("Brak rachunków w tym miesiącu.")

    for bill in bills:
        render_bill_row(components, bill)

    st.markdown("---")
    editing = controller.find(st.session_state.editing_id) if st.session_state.editing_id else None
    if editing:
        st.subheader(f"✏️ Edytuj: {editing.name}")
        if st.button("Anuluj edycję"):
            st.session_state.editing_id = None
            st.rerun()
    else:
        st.subheader("➕ Dodaj rachunek")
    render_bill_form(components, editing)


def render_bill_row(components: AppComponents, bill: Bill):
    controller = components.controller
    currency = components.app_settings.currency_symbol

    col1, col2, col3, col4 = st.columns([5, 1, 1, 1])
    with col1:
        recurring = " 🔁" if bill.is_recurring else ""
        status = "✅" if bill.is_paid else "⏳"
        st.markdown(
            f"{status} {CATEGORY_ICONS[bill.category]} **{bill.name}**{recurring}  \n"
            f"{format_amount(bill.amount, currency)} · {bill.due_date.strftime('%d.%m.%Y')}"
        )
    with col2:
        if st.button("💰", key=f"toggle_{bill.id}", help="Zmień status płatności"):
            try:
                run_async(controller.toggle_paid(bill.id))
            except StorageError as e:
                st.error(f"Nie udało się zmienić statusu: {e}")
            else:
                st.rerun()
    with col3:
        if st.button("✏️", key=f"edit_{bill.id}", help="Edytuj"):
            st.session_state.editing_id = bill.id
            st.rerun()
    with col4:
        if st.button("🗑️", key=f"delete_{bill.id}", help="Usuń"):
            try:
                run_async(controller.delete_bill(bill.id))
            except StorageError as e:
                st.error(f"Nie udało się usunąć rachunku: {e}")
            else:
                if st.session_state.editing_id == bill.id:
                    st.session_state.editing_id = None
                st.rerun()


def render_bill_form(components: AppComponents, editing: Optional[Bill]):
    """Add or edit form, including the series prompts for recurring bills."""
    controller = components.controller
    key = editing.id if editing else "new"

    with st.form(key=f"bill_form_{key}", clear_on_submit=editing is None):
        name = st.text_input("Nazwa *", value=editing.name if editing else "")
        amount = st.number_input(
            "Kwota *",
            value=float(editing.amount) if editing else 0.0,
            min_value=0.0,
            step=0.01,
            format="%.2f",
        )
        due_date = st.date_input(
            "Termin płatności *",
            value=editing.due_date if editing else date.today(),
        )
        category = st.selectbox(
            "Kategoria",
            options=list(BillCategory),
            index=list(BillCategory).index(editing.category) if editing else len(BillCategory) - 1,
            format_func=lambda c: f"{c.icon} {c.label}",
        )
        is_paid = st.checkbox("Zapłacone", value=editing.is_paid if editing else False)
        is_recurring = st.checkbox("Powtarzalny", value=editing.is_recurring if editing else False)
        frequency = st.selectbox(
            "Częstotliwość",
            options=list(BillFrequency),
            index=list(BillFrequency).index(editing.effective_frequency) if editing else 0,
            format_func=lambda f: FREQUENCY_LABELS[f],
        )

        update_future = False
        confirm_stop_series = False
        if editing and editing.is_recurring:
            if editing.series_id:
                update_future = st.checkbox(
                    "Zaktualizuj również przyszłe rachunki z tej serii",
                    help="Przyszłe rachunki zostaną wygenerowane ponownie z nową kwotą i częstotliwością.",
                )
            confirm_stop_series = st.checkbox(
                "Po wyłączeniu opcji 'Powtarzalny' usuń przyszłe rachunki z tej serii",
            )

        submitted = st.form_submit_button("Zapisz", type="primary")

    if not submitted:
        return

    try:
        bill = Bill(
            id=editing.id if editing else None,
            name=name,
            amount=Decimal(str(amount)).quantize(Decimal("0.01")),
            due_date=due_date,
            is_paid=is_paid,
            is_recurring=is_recurring,
            frequency=frequency if is_recurring else None,
            category=category,
            series_id=editing.series_id if editing and is_recurring else None,
        )
    except ValidationError as e:
        st.error(f"Nieprawidłowe dane: {e.errors()[0]['msg']}")
        return

    try:
        if editing:
            run_async(
                controller.save_bill(
                    bill,
                    update_future=update_future,
                    confirm_stop_series=confirm_stop_series,
                )
            )
            st.session_state.editing_id = None
            if controller.last_sync is not None:
                st.session_state.sync_result = controller.last_sync
        else:
            run_async(controller.create_bill(bill))
    except DuplicateBillError as e:
        st.error(
            f'Rachunek "{e.name}" już istnieje w {MONTH_NAMES[e.due_date.month - 1].lower()} {e.due_date.year}.'
        )
        return
    except MissingConfigurationError:
        st.error("Brak połączenia z bazą. Nie można zapisać.")
        return
    except StorageError as e:
        st.error(f"Wystąpił błąd podczas zapisywania: {e}")
        return

    st.rerun()


def render_year_view(components: AppComponents):
    """Monthly chart and category breakdown for the selected year."""
    currency = components.app_settings.currency_symbol
    year, _ = st.session_state.period
    summary = yearly_summary(components.controller.bills, year)

    col1, col2 = st.columns(2)
    col1.metric(f"Wydatki {year}", format_amount(summary.total, currency))
    col2.metric("Średnio / msc", format_amount(summary.average_per_month, currency))

    st.bar_chart(
        [{"Miesiąc": i + 1, "Kwota": float(total)} for i, total in enumerate(summary.monthly_totals)],
        x="Miesiąc",
        y="Kwota",
    )

    st.markdown("### Kategorie")
    if not summary.categories:
        st.info("Brak rachunków w tym roku.")
    for share in summary.categories:
        st.markdown(
            f"{share.category.icon} **{share.category.label}** · "
            f"{format_amount(share.amount, currency)} ({share.percentage:.0f}%)"
        )
        st.progress(share.percentage / 100)


if __name__ == "__main__":
    main()
