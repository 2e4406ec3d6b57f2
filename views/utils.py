import re
import streamlit as st
from datetime import date, timedelta
from dateutil.relativedelta import relativedelta

import config
from coercers import to_num

TONE_COLORS = {'debt': 'red', 'pending': 'orange', 'settled': 'green'}

DATE_SHORTCUTS = [
    "Todas las fechas (All)",
    "Hoy (Today)",
    "Mañana (Tomorrow)",
    "Esta semana (This Week)",
    "Este mes (This Month)",
    "Mes pasado (Last Month)",
    "Personalizado (Custom)",
]


def money(n):
    return f"{config.CURRENCY_PREFIX} {to_num(n):.2f}"


def format_int(n):
    # es-PE groups thousands with a comma
    return f"{to_num(n):,.0f}"


def card_tone(group):
    if group['debt'] > 0: return 'debt'
    if config.PENDING_TONE_KEYWORD in group['status']: return 'pending'
    return 'settled'


def whatsapp_link(phone):
    digits = re.sub(r'\D', '', str(phone))
    return f"https://wa.me/{config.WHATSAPP_COUNTRY_CODE}{digits}"


def map_markdown(map_link):
    if not map_link:
        return "Ubicación no registrada"
    if map_link.startswith('http'):
        return f"[Ver ubicación]({map_link})"
    return map_link


def get_date_range_shortcut(shortcut_name, today=None):
    """Returns (start_date, end_date) for a shortcut, (None, None) when unbounded or custom."""
    today = today or date.today()
    if shortcut_name == "Hoy (Today)":
        return today, today
    if shortcut_name == "Mañana (Tomorrow)":
        tomorrow = today + timedelta(days=1)
        return tomorrow, tomorrow
    if shortcut_name == "Esta semana (This Week)":
        start = today - timedelta(days=today.weekday())
        return start, start + timedelta(days=6)
    if shortcut_name == "Este mes (This Month)":
        start = today.replace(day=1)
        return start, start + relativedelta(months=1) - timedelta(days=1)
    if shortcut_name == "Mes pasado (Last Month)":
        end = today.replace(day=1) - timedelta(days=1)
        return end.replace(day=1), end
    return None, None


def render_filters(key_prefix="orders"):
    """Renders the sidebar filters and returns them as ledger.run_pipeline settings."""
    st.sidebar.header("🔎 Filtros")
    query = st.sidebar.text_input("Buscar (cliente, producto…)", "", placeholder="Ej.: Rosa, miel, tortillas…",
                                  key=f"{key_prefix}_query")
    status = st.sidebar.selectbox("Estado", config.STATUS_OPTIONS, index=0, key=f"{key_prefix}_status")
    closure = st.sidebar.selectbox("Cierre", config.CLOSURE_OPTIONS, index=0, key=f"{key_prefix}_closure")

    st.sidebar.subheader("📅 Fecha de entrega")
    shortcut = st.sidebar.selectbox("Rango", DATE_SHORTCUTS, index=0, key=f"{key_prefix}_shortcut")
    date_from, date_to = get_date_range_shortcut(shortcut)
    if shortcut == "Personalizado (Custom)":
        date_from = st.sidebar.date_input("Desde", value=None, key=f"{key_prefix}_from")
        date_to = st.sidebar.date_input("Hasta", value=None, key=f"{key_prefix}_to")
    elif date_from:
        st.sidebar.caption(f"{date_from} ~ {date_to}")

    return {
        'query': query,
        'date_from': date_from,
        'date_to': date_to,
        'status': status,
        'closure': closure,
    }
