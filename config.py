import os

# System Version
APP_VERSION = "1.4.0"

# --- Source Spreadsheet ---
SHEET_ID = os.environ.get("ORDERS_SHEET_ID", "1_e3KhpynZI5jCDn4GBZqXwe-IpZkiE9G1L4CQ7v8HU0")
SHEET_NAME = os.environ.get("ORDERS_SHEET_NAME", "Hoja1")

# Apps Script endpoint that flags a client's orders as delivered
SCRIPT_URL = os.environ.get(
    "ORDERS_SCRIPT_URL",
    "https://script.google.com/macros/s/AKfycbxtrlmsY8GPi8js1sRy87GgRfc6k5as24G5_fO2FV8GxQS7necn7vENVx1TVHnf2DUO/exec",
)

# --- Polling ---
REFRESH_SECONDS = float(os.environ.get("ORDERS_REFRESH_SECONDS", "5"))
HTTP_TIMEOUT = float(os.environ.get("ORDERS_HTTP_TIMEOUT", "15"))

# Totals panel is hidden until this code is entered
TOTALS_PASSCODE = os.environ.get("ORDERS_TOTALS_PASSCODE", "2727")

# --- Column Synonym Dictionary (The "Universal Mapper") ---
# Format: 'Standard_Internal_Name': ['Alias1', 'Alias2', ...]
# Aliases are matched exactly against the header text, first non-empty value wins.

COLUMN_MAPPING = {
    'client_name': ['Nombre'],
    'product': ['Pedido'],
    'unit': ['Unidad'],
    'quantity': ['Cantidad'],
    'discounted_amount': ['Monto Descontado'],
    'owed': ['Debe'],
    'delivery_date': ['Fecha de entrega'],
    'date': ['Fecha'],
    'status': ['Estado'],
    'closure': ['Cierre'],
    'phone': ['Celular'],
    # The export sometimes arrives double-encoded (UTF-8 read as Latin-1)
    'address': ['DirecciÃ³n', 'Dirección'],
    'map_link': ['Ubicación de Maps', 'UbicaciÃ³n de Maps', 'Ubicacion de Maps'],
}

CANONICAL_FIELDS = list(COLUMN_MAPPING.keys())

# --- Vocabulary ---
NO_NAME = "(Sin nombre)"
NO_PRODUCT = "-"

STATUS_DELIVERED = "entregado"
STATUS_PENDING = "por entregar"
STATUS_KEYWORDS = {
    STATUS_DELIVERED: ['entregado', 'delivered'],
    STATUS_PENDING: ['por entregar', 'pending'],
}
CLOSURE_CANCELLED = ['cancelado', 'cancelled']

# Filter options as shown in the sidebar
FILTER_ALL = "Todos"
STATUS_OPTIONS = [FILTER_ALL, "Por Entregar", "Entregado"]
CLOSURE_ACTIVE = "Activo"
CLOSURE_CANCELLED_OPTION = "Cancelado"
CLOSURE_OPTIONS = [FILTER_ALL, CLOSURE_ACTIVE, CLOSURE_CANCELLED_OPTION]

# English spellings accepted by the filter pipeline as well
ALL_ALIASES = {'todos', 'all'}
ACTIVE_ALIASES = {'activo', 'active'}
CANCELLED_ALIASES = {'cancelado', 'cancelled'}

# --- Display ---
CURRENCY_PREFIX = "S/"
WHATSAPP_COUNTRY_CODE = "51"
PENDING_TONE_KEYWORD = "pendiente"
