"""HTTP boundary: spreadsheet CSV export (read) and the mark-as-delivered script (write)."""
import json
import time
from urllib.parse import quote

import requests

import config


class SourceUnavailable(Exception):
    """The spreadsheet export could not be fetched."""


class MutationFailed(Exception):
    """The mark-as-delivered call failed. Nothing local was changed."""


def build_csv_url(sheet_id, sheet_name=None):
    base = f"https://docs.google.com/spreadsheets/d/{sheet_id}/gviz/tq?tqx=out:csv"
    if sheet_name:
        return f"{base}&sheet={quote(sheet_name, safe='')}"
    return base


def fetch_csv(url, timeout=None):
    """GET the CSV export, defeating intermediary caches with a changing query value."""
    sep = '&' if '?' in url else '?'
    busted = f"{url}{sep}cacheBust={int(time.time() * 1000)}"
    try:
        res = requests.get(busted, timeout=timeout or config.HTTP_TIMEOUT)
    except requests.RequestException as e:
        raise SourceUnavailable(f"No se pudo acceder al Google Sheet: {e}") from e

    if not res.ok:
        raise SourceUnavailable(f"No se pudo acceder al Google Sheet (HTTP {res.status_code})")
    return res.text


def post_mark_delivered(client_name, url=None):
    """Asks the Apps Script endpoint to flag a client's orders as delivered.

    Returns the human-readable message from the response. One attempt only;
    the order list picks up the change on the next poll.
    """
    try:
        # Plain-text body, the script reads the raw post contents
        res = requests.post(url or config.SCRIPT_URL, data=json.dumps({'nombre': client_name}))
        res.raise_for_status()
        data = res.json()
    except (requests.RequestException, ValueError) as e:
        raise MutationFailed(f"Error al actualizar: {e}") from e

    message = data.get('message') if isinstance(data, dict) else None
    return message or 'Actualizado'
