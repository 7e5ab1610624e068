"""User-facing messages for the panel.

All messages in Spanish, the language of the operators using the panel.
"""


class ErrorMessages:
    """Error messages shown in pages and JSON results."""

    # Login
    LOGIN_REQUIRED_FIELDS = "Usuario y contraseña son obligatorios."
    LOGIN_API_UNREACHABLE = "No se pudo contactar la API: {error}"
    LOGIN_REJECTED = "Credenciales inválidas o error en API. ({status}) {reason}"
    LOGIN_NO_TOKEN = "La API no devolvió un token válido."

    # Remote API
    API_UNAVAILABLE = "No se pudo contactar la API."
    API_UNAUTHORIZED = "La API rechazó las credenciales de la sesión."

    # Chat relay guards
    PHONE_REQUIRED = "phone requerido"
    CONVERSATION_ID_INVALID = "conversationId inválido"
    CONVERSATION_ID_REQUIRED = "conversationId requerido"
    MESSAGE_REQUIRED = "message requerido"
    CONVERSATION_CLOSED = "La conversación está cerrada. No se puede enviar."
    CONVERSATION_ALREADY_CLOSED = "La conversación ya está cerrada."
    CONVERSATION_NOT_FOUND = "La conversación no existe."
    REOPEN_FORBIDDEN = "No se permite reabrir conversaciones cerradas."
    PHONE_UNRESOLVED = "No se pudo resolver el teléfono del contacto"
    INVALID_PAYLOAD = "payload inválido"
    STATUS_UPDATE_FAILED = "No se pudo actualizar el estado de la conversación."
    SEND_FAILED = "API {status}: {message}"

    # Name updates
    INVALID_PARAMETERS = "Parámetros inválidos."
    NAME_UPDATE_FAILED = "No se pudo actualizar el nombre."

    # Validation
    INVALID_DATE_FORMAT = "Formato de fecha inválido: {value}"


class SuccessMessages:
    """Success messages."""

    NAME_UPDATED = "Actualizado"


class ActivityMessages:
    """Titles for the dashboard activity feed."""

    NEW_CLIENT = "Nuevo cliente: {name}"
    CONVERSATION_CLOSED = "Conversación #{conversation_id} cerrada"
    DEFAULT_CLIENT_NAME = "Cliente"


class ReportLabels:
    """Bucket labels used by report aggregations."""

    NO_AGENT = "Sin agente"
    NO_CLIENT = "Sin cliente"
    AGENT = "Agente #{agent_id}"
    CLIENT = "Cliente #{contact_id}"
