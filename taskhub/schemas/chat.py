# taskhub/schemas/chat.py
from typing import Optional, List
from datetime import datetime

from taskhub.schemas.notification import CamelModel

class ChatMessageIn(CamelModel):
    message: Optional[str] = None

class AdminMessageIn(CamelModel):
    receiver_email: Optional[str] = None
    message: Optional[str] = None
    channel: Optional[str] = None

class TeamMessageOut(CamelModel):
    id: int
    team_name: str
    sender_email: str
    message: str
    is_edited: bool
    edited_at: Optional[datetime] = None
    created_at: datetime

class AdminMessageOut(CamelModel):
    id: int
    sender_email: str
    receiver_email: str
    message: str
    is_edited: bool
    edited_at: Optional[datetime] = None
    created_at: datetime

class TeamMember(CamelModel):
    email: str
    name: str

class ChatTeam(CamelModel):
    id: int
    name: str

class ChatTeamsResponse(CamelModel):
    teams: List[ChatTeam]

class TeamHistory(CamelModel):
    messages: List[TeamMessageOut]
    members: List[TeamMember]

class AdminHistory(CamelModel):
    messages: List[AdminMessageOut]

class TeamMessageResponse(CamelModel):
    message: TeamMessageOut

class AdminMessageResponse(CamelModel):
    message: AdminMessageOut
