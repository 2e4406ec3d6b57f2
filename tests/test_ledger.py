from datetime import date

import pandas as pd
import pytest

import config
from data_loader import OrderLoader
from ledger import (aggregate_clients, build_line_item, filter_orders, normalize_status,
                    run_pipeline, sum_totals)

HEADER = "Nombre,Pedido,Unidad,Cantidad,Monto Descontado,Debe,Estado,Cierre"


def make_frame(*rows, header=HEADER):
    return OrderLoader().load_text("\n".join([header, *rows]))


@pytest.fixture
def ledger_frame():
    return make_frame(
        "Luis,Queso,kg,1,15.00,0.00,1,",
        "Ana,Pan,kg,2,10.00,5.00,0,",
        "Ana,Miel,frasco,3,20.00,0.00,1,",
    )


def test_end_to_end_client_totals(ledger_frame):
    groups, totals = run_pipeline(ledger_frame)

    assert [g['client'] for g in groups] == ['Ana', 'Luis']
    ana = groups[0]
    assert ana['total'] == pytest.approx(30.0)
    assert ana['debt'] == pytest.approx(5.0)
    assert ana['paid'] == pytest.approx(25.0)
    assert ana['quantity_total'] == 5
    assert [it['product'] for it in ana['items']] == ['Pan', 'Miel']
    assert totals['clients'] == 2


def test_paid_never_negative():
    item = build_line_item({'discounted_amount': '10.00', 'owed': '15.00', 'quantity': '1'})
    assert item['paid'] == 0
    assert item['owed'] == 15.0


def test_line_item_defaults():
    item = build_line_item({'product': '  ', 'unit': ' kg ', 'quantity': '', 'discounted_amount': '', 'owed': ''})
    assert item == {
        'product': config.NO_PRODUCT,
        'unit': 'kg',
        'quantity': 0,
        'discounted_amount': 0,
        'owed': 0,
        'paid': 0,
    }


def test_line_item_uses_money_coercion_for_amounts():
    item = build_line_item({'discounted_amount': 'S/ 12,50', 'owed': 'S/ 2.50', 'quantity': '1.500'})
    assert item['discounted_amount'] == pytest.approx(12.5)
    assert item['owed'] == pytest.approx(2.5)
    assert item['quantity'] == 1500


def test_blank_name_groups_under_placeholder():
    groups = aggregate_clients(make_frame(",Pan,kg,1,5,0,,", "  ,Miel,kg,1,5,0,,"))
    assert len(groups) == 1
    assert groups[0]['client'] == config.NO_NAME
    assert len(groups[0]['items']) == 2


def test_ties_keep_first_appearance_order():
    groups = aggregate_clients(make_frame(
        "Carla,Pan,kg,1,5,0,,",
        "Beto,Pan,kg,1,5,0,,",
        "Ana,Pan,kg,1,5,0,,",
    ))
    assert [g['client'] for g in groups] == ['Carla', 'Beto', 'Ana']


def test_sorted_by_descending_debt():
    groups = aggregate_clients(make_frame(
        "A,Pan,kg,1,10,1,,",
        "B,Pan,kg,1,10,7,,",
        "C,Pan,kg,1,10,3,,",
    ))
    assert [g['client'] for g in groups] == ['B', 'C', 'A']


CONTACT_HEADER = "Nombre,Dirección,Ubicación de Maps,Celular,Estado,Monto Descontado,Debe"


@pytest.mark.parametrize("field, column_values, expected", [
    ('address', ['', 'Av. Sol 1', 'Av. Luna 2'], 'Av. Sol 1'),
    ('map_link', ['', 'http://maps/a', 'http://maps/b'], 'http://maps/a'),
    ('phone', ['', '987654321', '912345678'], '987654321'),
    ('status', ['', 'Pendiente', 'Entregado'], 'pendiente'),
])
def test_first_non_empty_contact_field_wins(field, column_values, expected):
    position = ['address', 'map_link', 'phone', 'status'].index(field)
    rows = []
    for value in column_values:
        cells = ['', '', '', '']
        cells[position] = value
        rows.append(",".join(['Ana', *cells, '1', '0']))
    groups = aggregate_clients(make_frame(*rows, header=CONTACT_HEADER))

    assert groups[0][field] == expected


def test_backfill_is_per_field():
    groups = aggregate_clients(make_frame(
        "Ana,Av. Sol 1,,,,1,0",
        "Ana,,,987654321,,1,0",
        header=CONTACT_HEADER,
    ))
    assert groups[0]['address'] == 'Av. Sol 1'
    assert groups[0]['phone'] == '987654321'
    assert groups[0]['map_link'] == ''


def test_totals_match_line_items(ledger_frame):
    groups = aggregate_clients(ledger_frame)
    totals = sum_totals(groups)
    items = [it for g in groups for it in g['items']]

    assert totals['total'] == pytest.approx(sum(it['discounted_amount'] for it in items))
    assert totals['paid'] == pytest.approx(sum(it['paid'] for it in items))
    assert totals['debt'] == pytest.approx(sum(it['owed'] for it in items))
    assert totals['quantity_total'] == pytest.approx(sum(it['quantity'] for it in items))
    for g in groups:
        assert g['total'] == pytest.approx(sum(it['discounted_amount'] for it in g['items']))
        assert g['debt'] == pytest.approx(sum(it['owed'] for it in g['items']))
        assert g['paid'] == pytest.approx(sum(it['paid'] for it in g['items']))


def test_pipeline_is_idempotent(ledger_frame):
    first = run_pipeline(ledger_frame, {'status': 'Todos'})
    second = run_pipeline(ledger_frame, {'status': 'Todos'})
    assert first == second


def test_empty_frame_gives_zero_totals():
    groups, totals = run_pipeline(OrderLoader().load_text(''))
    assert groups == []
    assert totals == {'clients': 0, 'total': 0.0, 'paid': 0.0, 'debt': 0.0, 'quantity_total': 0.0}


# --- filters ---

def test_normalize_status():
    raw = pd.Series(['1', '0 ', 'Entregado parcial', 'POR ENTREGAR', 'Pendiente', '', 'delivered'])
    assert list(normalize_status(raw)) == [
        'entregado', 'por entregar', 'entregado', 'por entregar', 'pendiente', '', 'entregado',
    ]


def test_status_filter_delivered_matches_one():
    frame = make_frame("Ana,Pan,kg,1,5,0,1,", "Luis,Pan,kg,1,5,0,0,")
    assert list(filter_orders(frame, status='Entregado')['client_name']) == ['Ana']
    assert list(filter_orders(frame, status='Por Entregar')['client_name']) == ['Luis']
    assert list(filter_orders(frame, status='delivered')['client_name']) == ['Ana']
    assert len(filter_orders(frame, status='Todos')) == 2


def test_status_filter_unmapped_value_uses_substring():
    frame = make_frame("Ana,Pan,kg,1,5,0,Pendiente,")
    assert len(filter_orders(frame, status='Por Entregar')) == 0
    assert len(filter_orders(frame, status='pendiente')) == 1


def test_closure_filter():
    frame = make_frame("Ana,Pan,kg,1,5,0,1, Cancelado ", "Luis,Pan,kg,1,5,0,1,")
    assert list(filter_orders(frame, closure='Cancelado')['client_name']) == ['Ana']
    assert list(filter_orders(frame, closure='Activo')['client_name']) == ['Luis']
    assert len(filter_orders(frame, closure='Todos')) == 2


def test_text_filter_is_case_insensitive_over_all_cells():
    frame = make_frame(
        "Ana,Miel de abeja,kg,1,5,0,1,,Tocar timbre",
        "Luis,Pan,kg,1,5,0,1,,",
        header=HEADER + ",Notas",
    )
    assert list(filter_orders(frame, query='MIEL')['client_name']) == ['Ana']
    assert list(filter_orders(frame, query='timbre')['client_name']) == ['Ana']
    assert len(filter_orders(frame, query='')) == 2


DATE_HEADER = "Nombre,Fecha de entrega,Fecha,Monto Descontado,Debe"


@pytest.fixture
def dated_frame():
    return make_frame(
        "Ana,2024-05-01T23:30:00,,1,0",
        "Luis,,02/05/2024,1,0",
        "Rosa,,,1,0",
        "Beto,garbage,,1,0",
        header=DATE_HEADER,
    )


def test_date_range_inclusive_end_of_day(dated_frame):
    out = filter_orders(dated_frame, date_from=date(2024, 5, 1), date_to=date(2024, 5, 1))
    assert list(out['client_name']) == ['Ana']


def test_date_falls_back_to_generic_column(dated_frame):
    out = filter_orders(dated_frame, date_from='2024-05-02')
    assert list(out['client_name']) == ['Luis']


def test_undated_rows_fail_only_when_bounded(dated_frame):
    assert len(filter_orders(dated_frame)) == 4
    out = filter_orders(dated_frame, date_to=date(2030, 1, 1))
    assert list(out['client_name']) == ['Ana', 'Luis']


def test_filters_combine_with_and(ledger_frame):
    out = filter_orders(ledger_frame, query='ana', status='Entregado')
    assert list(out['product']) == ['Miel']


def test_stray_digit_in_date_column_stays_out_of_a_month_range():
    frame = make_frame("Ana,,1,1,0", "Luis,,2026-10-15,1,0", header=DATE_HEADER)
    out = filter_orders(frame, date_from=date(2026, 10, 1), date_to=date(2026, 10, 31))
    assert list(out['client_name']) == ['Luis']
