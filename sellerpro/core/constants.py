PRODUCT_STATUSES = ("instock", "shipping", "sold")
STATUS_INSTOCK = "instock"
STATUS_SHIPPING = "shipping"
STATUS_SOLD = "sold"

ACTIVITY_TYPES = ("inbound", "outbound", "pending")
ACTIVITY_INBOUND = "inbound"
ACTIVITY_OUTBOUND = "outbound"
ACTIVITY_PENDING = "pending"

DEFAULT_SIZE = "OS"
DEFAULT_SKU = "N/A"
DEFAULT_LOCATION = "Unassigned"
OTHER_BRAND = "Other"

TREND_DAYS = 30
TOP_LIMIT = 5

WIDGET_STORAGE_KEY = "widget_data"
