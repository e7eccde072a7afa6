from datetime import datetime
from typing import List, Optional

from schemas.common import CamelModel


class ConversationCreate(CamelModel):
    name: Optional[str] = None
    is_group: bool = False


class ConversationCreated(CamelModel):
    conversation_id: int


class MemberAdd(CamelModel):
    user_id: str


class GroupRename(CamelModel):
    name: str


class GroupRenamed(CamelModel):
    name: str


class CommentOut(CamelModel):
    user_id: str
    username: str
    comment: str
    timestamp: datetime


class MessageOut(CamelModel):
    id: int
    sender_id: str
    sender: str  # display name of the sender
    text: str
    timestamp: datetime
    comments: List[CommentOut]


class ConversationDetail(CamelModel):
    id: int
    name: Optional[str]
    is_group: bool
    photo_url: Optional[str]
    participants: List[str]
    messages: List[MessageOut]  # newest first


class ConversationSummary(CamelModel):
    id: int
    name: Optional[str]
    is_group: bool
    last_message_text: Optional[str] = None
    last_message_at: Optional[datetime] = None
    photo_url: Optional[str] = None
