import streamlit as st
import pandas as pd
from datetime import datetime

import config


def render_system_check(poller):
    st.title("🔧 Diagnóstico del sistema (System Diagnostics)")
    snap = poller.snapshot
    loader = poller.loader

    st.subheader("1. Estado de sincronización (Poll State)")
    c1, c2, c3 = st.columns(3)
    c1.metric("Generación publicada", snap.generation)
    c2.metric("Filas", 0 if snap.records is None else len(snap.records))
    fetched = datetime.fromtimestamp(snap.fetched_at).strftime('%H:%M:%S') if snap.fetched_at else '-'
    c3.metric("Última lectura", fetched)
    st.caption(f"Intervalo: {poller.interval:g}s · Activo: {'sí' if poller.running else 'no'}")
    if snap.error:
        st.error(snap.error)

    st.subheader("2. Columnas reconocidas (Header Mapping)")
    mapping_rows = []
    for std_col, aliases in config.COLUMN_MAPPING.items():
        found = loader.last_resolution.get(std_col, [])
        mapping_rows.append({
            'Campo': std_col,
            'Alias aceptados': ', '.join(aliases),
            'Encontrado en cabecera': ', '.join(found) if found else '❌',
        })
    st.dataframe(pd.DataFrame(mapping_rows), use_container_width=True, hide_index=True)

    st.subheader("3. Registro del cargador (Loader Logs)")
    if loader.debug_logs:
        st.text_area("Loader Logs", "\n".join(loader.debug_logs[-200:]), height=300)
    else:
        st.info("Sin registros (No logs available)")

    if snap.records is not None and not snap.records.empty:
        st.subheader("4. Vista previa (Canonical Preview)")
        st.dataframe(snap.records.drop(columns=['search_text']).head(50), use_container_width=True)
