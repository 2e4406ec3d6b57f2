"""Filtering and per-client aggregation of the canonical order frame."""
from datetime import date, datetime, time

import numpy as np
import pandas as pd

import config
from coercers import parse_date_any, parse_money, to_num

DEFAULT_FILTERS = {
    'query': '',
    'date_from': None,
    'date_to': None,
    'status': config.FILTER_ALL,
    'closure': config.FILTER_ALL,
}

_END_OF_DAY = time(23, 59, 59, 999000)


# --- Filter Pipeline ---

def normalize_status(series):
    """Maps raw Estado values onto 'entregado' / 'por entregar', else the cleaned value."""
    raw = series.fillna('').astype(str).str.strip().str.lower()
    if raw.empty:
        return raw
    delivered_kw = '|'.join(config.STATUS_KEYWORDS[config.STATUS_DELIVERED])
    pending_kw = '|'.join(config.STATUS_KEYWORDS[config.STATUS_PENDING])
    conditions = [
        raw.str.startswith('1'),
        raw.str.startswith('0'),
        raw.str.contains(delivered_kw, regex=True),
        raw.str.contains(pending_kw, regex=True),
    ]
    choices = [config.STATUS_DELIVERED, config.STATUS_PENDING, config.STATUS_DELIVERED, config.STATUS_PENDING]
    return pd.Series(np.select(conditions, choices, default=raw), index=series.index, dtype=object)


def _as_bound(value, end_of_day=False):
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        day = value.date()
    elif isinstance(value, date):
        day = value
    else:
        parsed = parse_date_any(value)
        if parsed is None:
            return None
        day = parsed.date()
    return datetime.combine(day, _END_OF_DAY if end_of_day else time.min)


def text_mask(frame, query):
    if not query:
        return pd.Series(True, index=frame.index)
    return frame['search_text'].str.contains(str(query).lower(), regex=False)


def date_mask(frame, date_from=None, date_to=None):
    lower = _as_bound(date_from)
    upper = _as_bound(date_to, end_of_day=True)
    if lower is None and upper is None:
        return pd.Series(True, index=frame.index)

    raw = frame['delivery_date'].where(frame['delivery_date'] != '', frame['date'])

    def in_range(d):
        if d is None:
            return False
        if lower is not None and d < lower:
            return False
        if upper is not None and d > upper:
            return False
        return True

    return pd.Series([in_range(parse_date_any(v)) for v in raw], index=frame.index, dtype=bool)


def status_mask(frame, status):
    selected = str(status or config.FILTER_ALL).strip().lower()
    if selected in config.ALL_ALIASES:
        return pd.Series(True, index=frame.index)

    # "Delivered" selects the same category as "Entregado"
    for category, keywords in config.STATUS_KEYWORDS.items():
        if selected in keywords:
            selected = category
            break
    return normalize_status(frame['status']).str.contains(selected, regex=False).astype(bool)


def closure_mask(frame, closure):
    mode = str(closure or config.FILTER_ALL).strip().lower()
    if mode in config.ALL_ALIASES:
        return pd.Series(True, index=frame.index)

    cierre = frame['closure'].fillna('').astype(str).str.strip().str.lower()
    if mode in config.CANCELLED_ALIASES:
        return cierre.isin(config.CLOSURE_CANCELLED)
    if mode in config.ACTIVE_ALIASES:
        return cierre == ''
    return pd.Series(False, index=frame.index)


def filter_orders(frame, query='', date_from=None, date_to=None,
                  status=config.FILTER_ALL, closure=config.FILTER_ALL):
    """Returns the rows passing every configured filter, in their original order."""
    if frame.empty:
        return frame
    mask = (
        text_mask(frame, query)
        & date_mask(frame, date_from, date_to)
        & status_mask(frame, status)
        & closure_mask(frame, closure)
    )
    return frame.loc[mask]


# --- Aggregator ---

def build_line_item(row):
    discounted = parse_money(row.get('discounted_amount', ''))
    owed = parse_money(row.get('owed', ''))
    return {
        'product': str(row.get('product', '')).strip() or config.NO_PRODUCT,
        'unit': str(row.get('unit', '')).strip(),
        'quantity': to_num(row.get('quantity')),
        'discounted_amount': discounted,
        'owed': owed,
        # Overpaid debt never shows up as a negative payment
        'paid': max(0.0, discounted - owed),
    }


def aggregate_clients(frame):
    """Folds line items into client groups, most outstanding debt first."""
    groups = {}
    for row in frame.to_dict('records'):
        client = str(row.get('client_name', '')).strip() or config.NO_NAME
        item = build_line_item(row)
        contact = {
            'address': str(row.get('address', '')),
            'map_link': str(row.get('map_link', '')).strip(),
            'phone': str(row.get('phone', '')),
            'status': str(row.get('status', '')).lower(),
        }

        if client not in groups:
            groups[client] = {
                'client': client,
                **contact,
                'items': [],
                'total': 0.0,
                'paid': 0.0,
                'debt': 0.0,
                'quantity_total': 0.0,
            }

        g = groups[client]
        g['items'].append(item)
        g['total'] += item['discounted_amount']
        g['debt'] += item['owed']
        g['paid'] += item['paid']
        g['quantity_total'] += item['quantity']

        for field, value in contact.items():
            if not g[field] and value:
                g[field] = value

    # sorted() is stable, ties keep first-appearance order
    return sorted(groups.values(), key=lambda g: g['debt'], reverse=True)


def sum_totals(groups):
    totals = {'clients': len(groups), 'total': 0.0, 'paid': 0.0, 'debt': 0.0, 'quantity_total': 0.0}
    for g in groups:
        totals['total'] += g['total']
        totals['paid'] += g['paid']
        totals['debt'] += g['debt']
        totals['quantity_total'] += g['quantity_total']
    return totals


def run_pipeline(frame, filters=None):
    """(canonical frame, filter settings) -> (client groups, totals)."""
    settings = dict(DEFAULT_FILTERS)
    if filters:
        settings.update(filters)
    filtered = filter_orders(frame, **settings)
    groups = aggregate_clients(filtered)
    return groups, sum_totals(groups)
