import streamlit as st
import pandas as pd
import plotly.express as px

import config
from sheet_api import MutationFailed, post_mark_delivered
from views.utils import TONE_COLORS, card_tone, format_int, map_markdown, money, whatsapp_link


def render_totals_gate():
    """Totals stay hidden until the passcode is entered. Returns True when unlocked."""
    if st.session_state.get('show_totals'):
        if st.button("🔐 Ocultar totales", key="hide_totals"):
            st.session_state['show_totals'] = False
            st.rerun()
        return True

    with st.expander("🔒 Mostrar totales"):
        code = st.text_input("Ingrese la clave para ver totales:", type="password", key="totals_code")
        if st.button("Ver totales", key="unlock_totals"):
            if code == config.TOTALS_PASSCODE:
                st.session_state['show_totals'] = True
                st.rerun()
            else:
                st.error("❌ Clave incorrecta")
    return False


def render_totals(groups, totals):
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total pedidos (clientes)", f"{totals['clients']}")
    c2.metric("Total Cantidad", format_int(totals['quantity_total']))
    c3.metric("Total Monto Descontado", money(totals['total']))
    c4.metric("Total Debe / Pagado", f"{money(totals['debt'])} / {money(totals['paid'])}")

    debtors = [g for g in groups if g['debt'] > 0][:15]
    if debtors:
        df_debt = pd.DataFrame({'Cliente': [g['client'] for g in debtors], 'Debe': [g['debt'] for g in debtors]})
        fig = px.bar(df_debt, x='Cliente', y='Debe', title="💸 Mayores saldos pendientes")
        fig.update_traces(hovertemplate="%{x}<br>Debe: " + config.CURRENCY_PREFIX + " %{y:,.2f}")
        st.plotly_chart(fig, use_container_width=True)


def _items_frame(group):
    rows = [{
        'Producto': it['product'],
        'Cant.': it['quantity'],
        'Unidad': it['unit'],
        'Monto Desc.': it['discounted_amount'],
        'Debe': it['owed'],
        'Pagó': it['paid'],
    } for it in group['items']]
    return pd.DataFrame(rows, columns=['Producto', 'Cant.', 'Unidad', 'Monto Desc.', 'Debe', 'Pagó'])


def _mark_delivered(client):
    # One attempt, no local update: the next poll shows the new state
    try:
        st.toast(post_mark_delivered(client), icon="✅")
    except MutationFailed as e:
        st.error(str(e))


def render_client_card(group):
    tone = TONE_COLORS[card_tone(group)]
    with st.container(border=True):
        left, right = st.columns([3, 2])
        with left:
            st.markdown(f"### :{tone}[{group['client']}]")
            st.write(f"🏡 {group['address'] or 'Zona no especificada'}")
            st.markdown(f"📍 {map_markdown(group['map_link'])}")
            if group['phone']:
                st.markdown(f"📞 [{group['phone']}]({whatsapp_link(group['phone'])})")
        with right:
            st.markdown(f":red[Debe: **{money(group['debt'])}**]  \n:green[Pagó: **{money(group['paid'])}**]")
            if st.button("✅ Marcar como Entregado", key=f"deliver_{group['client']}"):
                _mark_delivered(group['client'])

        st.dataframe(_items_frame(group).style.format({
            'Cant.': format_int,
            'Monto Desc.': money,
            'Debe': money,
            'Pagó': money,
        }), use_container_width=True, hide_index=True)

        st.caption(
            f"Cantidad: {format_int(group['quantity_total'])} · Total: {money(group['total'])} · "
            f"Pagado: {money(group['paid'])} · Debe: {money(group['debt'])}"
        )


def render_orders_view(groups, totals):
    st.title("📋 Luz del Camino — Pedidos")
    st.caption("Filtra por texto, estado, cierre o fecha de entrega.")

    if render_totals_gate():
        render_totals(groups, totals)
    st.divider()

    if not groups:
        st.info("No hay pedidos para los filtros seleccionados")
        return

    for group in groups:
        render_client_card(group)
