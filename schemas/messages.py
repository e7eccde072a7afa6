from pydantic import Field

from schemas.common import MAX_ROW_ID, CamelModel


class MessageCreate(CamelModel):
    text: str


class MessageSent(CamelModel):
    message_id: int
    status: str = "sent"


class DirectMessageCreate(CamelModel):
    to_user_id: str
    text: str


class DirectMessageSent(CamelModel):
    conversation_id: int
    message_id: int
    status: str = "sent"


class ForwardRequest(CamelModel):
    conversation_id: int = Field(le=MAX_ROW_ID)


class Forwarded(CamelModel):
    message_id: int
    status: str = "Forwarded"


class CommentCreate(CamelModel):
    comment: str


class CommentSaved(CamelModel):
    comment_id: int
    status: str = "ok"
