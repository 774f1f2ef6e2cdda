"""Linak desk BLE constants."""

# === LINAK BLE UUIDS ===
SERVICE_CONTROL = "99fa0001-338a-1024-8a49-009c0215f78a"
UUID_CONTROL = "99fa0002-338a-1024-8a49-009c0215f78a"

SERVICE_POSITION = "99fa0020-338a-1024-8a49-009c0215f78a"
UUID_POSITION = "99fa0021-338a-1024-8a49-009c0215f78a"

# Every Linak service UUID shares this prefix
LINAK_UUID_PREFIX = "99fa"

# === HEIGHT CALIBRATION ===
# Raw position units per 381 mm of travel
RAW_UNITS_PER_SPAN = 3815
SPAN_MM = 381

# === TIMEOUTS (seconds) ===
DEFAULT_SCAN_DURATION = 10.0
DEFAULT_FIND_TIMEOUT = 10.0
DEFAULT_CONNECT_TIMEOUT = 20.0
DEFAULT_READ_TIMEOUT = 10.0

# === CONFIG KEYS ===
KEY_DEVICE_ID = "device_id"
KEY_LOWEST_POS_MM = "lowest_pos_mm"
KEY_POSITIONS = "positions"

DEFAULT_CONFIG_FILENAME = ".linak_desk.json"
ENV_CONFIG_PATH = "LINAK_DESK_CONFIG"
ENV_LOG_LEVEL = "LINAK_DESK_LOG_LEVEL"
