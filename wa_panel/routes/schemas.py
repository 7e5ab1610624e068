"""Request bodies of the JSON actions.

Field names are accepted in the casings the browser scripts have used.
"""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field

from wa_panel.core.messages import ErrorMessages, SuccessMessages


class NameUpdateRequest(BaseModel):
    id: int = Field(default=0, validation_alias=AliasChoices("id", "Id"))
    nombre: str | None = Field(
        default=None, validation_alias=AliasChoices("nombre", "Nombre", "name")
    )

    @property
    def is_valid(self) -> bool:
        return self.id > 0 and bool(self.nombre and self.nombre.strip())


class SendMessageRequest(BaseModel):
    conversation_id: int = Field(
        default=0, validation_alias=AliasChoices("conversationId", "ConversationId")
    )
    message: str | None = Field(
        default=None, validation_alias=AliasChoices("message", "Message")
    )
    contact_id: int | None = Field(
        default=None, validation_alias=AliasChoices("contactId", "ContactId")
    )
    contact_phone: str | None = Field(
        default=None, validation_alias=AliasChoices("contactPhone", "ContactPhone")
    )


class UpdateStatusRequest(BaseModel):
    conversation_id: int = Field(
        default=0, validation_alias=AliasChoices("conversationId", "ConversationId")
    )
    status: str | None = Field(default=None, validation_alias=AliasChoices("status", "Status"))
    contact_id: int | None = Field(
        default=None, validation_alias=AliasChoices("contactId", "ContactId")
    )
    started_at: datetime | None = Field(
        default=None, validation_alias=AliasChoices("startedAt", "StartedAt")
    )


NAME_UPDATED_RESPONSE = {"mensaje": SuccessMessages.NAME_UPDATED}
INVALID_PARAMETERS = ErrorMessages.INVALID_PARAMETERS
