"""Constants for the WhatsApp panel."""

# Remote API endpoints (relative to Settings.api_base_url)
LOGIN_PATH = "api/auth/login"
CONTACTS_PATH = "api/general/contacto"
CONTACT_NAME_PATH = "api/general/contacto/{contact_id}/nombre"
CONVERSATIONS_PATH = "api/general/conversacion"
CONVERSATION_UPSERT_PATH = "api/general/conversacion/upsert"
MESSAGES_PATH = "api/general/mensaje"
USERS_PATH = "api/seguridad/usuario"
USER_PATH = "api/seguridad/usuario/{user_id}"
USER_NAME_PATH = "api/seguridad/usuario/{user_id}/nombre"
USERS_BY_ROLE_PATH = "api/seguridad/usuario/by-perfil-id/{role_id}"
SEND_TEXT_PATH = "api/integraciones/whatsapp/send/text"

# Inbound routes
LOGIN_ROUTE = "/account/login"
DASHBOARD_ROUTE = "/dashboard"
ACCOUNT_PREFIX = "/account"

# Dashboard windows
NEW_CONTACT_WINDOW_HOURS = 24
ACTIVITY_WINDOW_DAYS = 7
ACTIVITY_FEED_LIMIT = 10
HISTOGRAM_MONTHS = 12

# Reports
DEFAULT_REPORT_DAYS = 30
DEFAULT_TOP_CLIENTS = 10

SPANISH_MONTH_ABBR = (
    "ene",
    "feb",
    "mar",
    "abr",
    "may",
    "jun",
    "jul",
    "ago",
    "sept",
    "oct",
    "nov",
    "dic",
)
