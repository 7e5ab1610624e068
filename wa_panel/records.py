"""View-side projections of records owned by the remote API.

Each model is built from a raw JSON record through the flexible accessors,
so every alias the upstream has used for a field lives in exactly one place.
"""

from datetime import datetime

from pydantic import Field

from wa_panel.auth.session import normalize_role
from wa_panel.core.flexjson import Record, get_bool, get_date, get_int, get_string
from wa_panel.core.models import BaseViewModel

STATUS_OPEN = "open"
STATUS_CLOSED = "closed"

CLOSED_STATUS_WORDS = frozenset(
    {
        "closed",
        "cerrada",
        "cerrado",
        "finalizada",
        "finalizado",
        "terminada",
        "terminated",
        "ended",
        "finalized",
    }
)


def is_open_status(status: str | None) -> bool:
    return (status or "").strip().lower() == STATUS_OPEN


class Contact(BaseViewModel):
    """A WhatsApp contact."""

    id: int = 0
    name: str | None = None
    phone_number: str | None = None
    country: str | None = None
    ip_address: str | None = None
    created_at: datetime | None = None
    last_message_at: datetime | None = None
    profile_picture: str | None = None
    status: str | None = None
    welcome_sent: bool = False

    @classmethod
    def from_record(cls, record: Record) -> "Contact":
        return cls(
            id=get_int(record, "id", "contactId", "contactoId") or 0,
            name=get_string(record, "name", "nombre", "full_name", "fullName"),
            phone_number=get_string(
                record, "phone_number", "phoneNumber", "telefono", "celular"
            ),
            country=get_string(record, "country", "pais"),
            ip_address=get_string(record, "ip_address", "ipAddress"),
            created_at=get_date(
                record, "created_at", "createdAt", "fechaCreacion", "created", "createdDate"
            ),
            last_message_at=get_date(record, "last_message_at", "lastMessageAt"),
            profile_picture=get_string(
                record, "profile_pic", "profilePic", "profilePicture", "profile_picture"
            ),
            status=get_string(record, "status", "estado"),
            welcome_sent=get_bool(record, "welcome_sent", "welcomeSent") or False,
        )

    @property
    def display_name(self) -> str | None:
        """Name when present, phone number otherwise."""
        if self.name and self.name.strip():
            return self.name
        if self.phone_number and self.phone_number.strip():
            return self.phone_number
        return None


class Conversation(BaseViewModel):
    """A conversation session between a contact and the business."""

    id: int = 0
    contact_id: int = 0
    started_at: datetime | None = None
    last_activity_at: datetime | None = None
    greeting_sent: bool = False
    status: str | None = None
    status_id: int | None = None
    ended_at: datetime | None = None
    closed_by_user_id: int | None = None
    agent_id: int | None = None
    agent_requested_at: datetime | None = None
    total_messages: int = 0
    first_response_seconds: int | None = Field(
        default=None, description="Only present if the upstream ever supplies it"
    )
    closed_flag: bool | None = None

    @classmethod
    def from_record(cls, record: Record) -> "Conversation":
        return cls(
            id=get_int(record, "id", "conversationId", "idConversacion") or 0,
            contact_id=get_int(record, "contact_id", "contactId", "contactoId") or 0,
            started_at=get_date(record, "started_at", "startedAt"),
            last_activity_at=get_date(
                record, "last_activity_at", "lastActivityAt", "updatedAt", "modifiedAt"
            ),
            greeting_sent=get_bool(record, "greeting_sent", "greetingSent") or False,
            status=get_string(record, "status", "estado", "state"),
            status_id=get_int(record, "status_id", "statusId", "estadoId", "stateId"),
            ended_at=get_date(record, "ended_at", "endedAt", "fechaCierre", "closedAt"),
            closed_by_user_id=get_int(
                record, "closed_by_user_id", "closedByUserId", "closedById"
            ),
            agent_id=get_int(
                record, "agent_id", "agentId", "agenteId", "usuarioId", "userId"
            ),
            agent_requested_at=get_date(
                record, "agent_requested_at", "agentRequestedAt"
            ),
            total_messages=get_int(record, "total_messages", "totalMessages") or 0,
            first_response_seconds=get_int(
                record,
                "firstResponseTime",
                "firstReplySeconds",
                "tiempoPrimeraRespuesta",
            ),
            closed_flag=get_bool(
                record, "closedByAgent", "cerradoPorAgente", "isClosed", "closed"
            ),
        )

    @property
    def is_open(self) -> bool:
        return is_open_status(self.status)

    @property
    def is_closed(self) -> bool:
        """Closed by status word, flag, status id, or end date."""
        if (self.status or "").strip().lower() in CLOSED_STATUS_WORDS:
            return True
        if self.closed_flag:
            return True
        if self.status_id is not None and self.status_id >= 2:
            return True
        return self.ended_at is not None

    @property
    def closed_at(self) -> datetime | None:
        """Best known closing time."""
        return self.ended_at or self.last_activity_at or self.started_at

    @property
    def closing_agent_id(self) -> int:
        """Agent credited with the closure; 0 when unknown."""
        return self.closed_by_user_id or self.agent_id or 0


class Message(BaseViewModel):
    """A single WhatsApp message."""

    id: int = 0
    conversation_id: int = 0
    contact_id: int = 0
    agent_id: int | None = None
    sender: str = "contact"
    body: str = ""
    type: str = "text"
    media_path: str | None = None
    sent_at: datetime | None = None

    @classmethod
    def from_record(cls, record: Record) -> "Message":
        return cls(
            id=get_int(record, "id", "messageId") or 0,
            conversation_id=get_int(
                record, "conversation_id", "conversationId", "conversationSessionId"
            )
            or 0,
            contact_id=get_int(
                record, "contact_id", "contactId", "contactoId", "clienteId", "customerId"
            )
            or 0,
            agent_id=get_int(record, "agent_id", "agentId"),
            sender=get_string(record, "sender") or "contact",
            body=get_string(record, "message", "body", "contenido", "text") or "",
            type=get_string(record, "type") or "text",
            media_path=get_string(record, "media_path", "mediaPath", "media"),
            sent_at=get_date(
                record, "sent_at", "sentAt", "timestamp", "createdAt", "fecha", "date"
            ),
        )


class Agent(BaseViewModel):
    """A panel user; agents are users with the agent profile."""

    id: int = 0
    name: str | None = None
    email: str | None = None
    cedula: str | None = None
    phone: str | None = None
    active: bool | None = None
    profile_id: int | None = None
    role: str = "Usuario"
    tenant_id: int | None = None
    tenant_name: str | None = None
    last_login: datetime | None = None
    last_activity: datetime | None = None
    is_online: bool = False
    conversation_count: int = 0

    @classmethod
    def from_record(cls, record: Record) -> "Agent | None":
        """Map a user record; records without id, email and name are skipped."""
        profile_id = get_int(record, "idPerfil", "perfilId", "profileId")
        agent = cls(
            id=get_int(record, "id", "usuarioId", "userId") or 0,
            name=get_string(
                record, "nombre", "name", "nombreUsuario", "usuario"
            ),
            email=get_string(record, "correo", "email"),
            cedula=get_string(record, "cedula", "dni"),
            phone=get_string(record, "telefono", "phone"),
            active=get_bool(record, "estado", "activo", "isActive"),
            profile_id=profile_id,
            role=normalize_role(get_string(record, "role", "perfil"), profile_id),
            tenant_id=get_int(record, "empresaId", "empresa_id"),
            tenant_name=get_string(record, "empresa"),
            last_login=get_date(record, "lastLogin", "last_login", "ultimoAcceso"),
            last_activity=get_date(
                record, "lastActivity", "last_activity", "ultimoMovimiento"
            ),
            is_online=get_bool(record, "isOnline", "online", "conectado") or False,
            conversation_count=get_int(
                record, "conversationCount", "totalConversaciones"
            )
            or 0,
        )
        if agent.id == 0 and not (agent.email or "").strip() and not (agent.name or "").strip():
            return None
        return agent
