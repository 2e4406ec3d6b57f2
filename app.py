import atexit
import streamlit as st
from datetime import datetime

import config
from config import APP_VERSION
from ledger import run_pipeline
from poller import SheetPoller
from sheet_api import build_csv_url, fetch_csv
from views import orders, system
from views.utils import render_filters

# --- 1. Config ---
st.set_page_config(
    page_title=f"Luz del Camino — Pedidos v{APP_VERSION}",
    page_icon="📦",
    layout="wide"
)


# --- 2. Data Polling (one poller per server process) ---
@st.cache_resource
def get_poller():
    url = build_csv_url(config.SHEET_ID, config.SHEET_NAME)
    poller = SheetPoller(lambda: fetch_csv(url), interval=config.REFRESH_SECONDS)
    poller.start()
    atexit.register(poller.stop)
    return poller


@st.fragment(run_every=config.REFRESH_SECONDS)
def render_live_orders(poller, filters):
    snap = poller.snapshot
    if snap.error:
        st.error(snap.error)
        return
    if snap.records is None:
        st.info("Cargando…")
        return

    groups, totals = run_pipeline(snap.records, filters)
    orders.render_orders_view(groups, totals)


# --- 3. Main App ---
def main():
    st.sidebar.title(f"📦 Pedidos v{APP_VERSION}")
    poller = get_poller()

    view_mode = st.sidebar.radio("Vista", ["📋 Pedidos (Orders)", "🔧 Diagnóstico (System)"])
    st.sidebar.divider()

    if view_mode == "📋 Pedidos (Orders)":
        filters = render_filters("orders")
        st.sidebar.divider()
        st.sidebar.caption(f"Actualización cada {config.REFRESH_SECONDS:g}s · abierto {datetime.now().strftime('%H:%M:%S')}")
        render_live_orders(poller, filters)

    elif view_mode == "🔧 Diagnóstico (System)":
        system.render_system_check(poller)


if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        st.error(f"Error del sistema: {e}")
