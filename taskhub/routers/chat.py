# taskhub/routers/chat.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from taskhub.database import get_db
from taskhub.models.user import User
from taskhub.schemas import chat as chat_schema
from taskhub.services.chat_service import ChatService
from taskhub.utils.auth import get_current_user

router = APIRouter()

@router.get("/teams", response_model=chat_schema.ChatTeamsResponse)
def get_chat_teams(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    teams = ChatService(db).get_employee_teams(current_user)
    return chat_schema.ChatTeamsResponse(teams=[chat_schema.ChatTeam.model_validate(t) for t in teams])

@router.get("/team/{team_name}", response_model=chat_schema.TeamHistory)
def get_team_messages(
    team_name: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    messages, members = ChatService(db).get_team_history(current_user, team_name)
    return chat_schema.TeamHistory(
        messages=[chat_schema.TeamMessageOut.model_validate(m) for m in messages],
        members=members,
    )

@router.post("/team/{team_name}", response_model=chat_schema.TeamMessageResponse, status_code=status.HTTP_201_CREATED)
async def send_team_message(
    team_name: str,
    payload: chat_schema.ChatMessageIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    message = await ChatService(db).send_team_message(current_user, team_name, payload.message)
    return chat_schema.TeamMessageResponse(message=chat_schema.TeamMessageOut.model_validate(message))

@router.put("/team/{team_name}/messages/{message_id}", response_model=chat_schema.TeamMessageResponse)
async def edit_team_message(
    team_name: str,
    message_id: int,
    payload: chat_schema.ChatMessageIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    message = await ChatService(db).edit_team_message(current_user, team_name, message_id, payload.message)
    return chat_schema.TeamMessageResponse(message=chat_schema.TeamMessageOut.model_validate(message))

@router.get("/admin", response_model=chat_schema.AdminHistory)
def get_admin_messages(
    channel: Optional[str] = Query("general"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    messages = ChatService(db).get_admin_history(current_user, channel)
    return chat_schema.AdminHistory(messages=[chat_schema.AdminMessageOut.model_validate(m) for m in messages])

@router.post("/admin", response_model=chat_schema.AdminMessageResponse, status_code=status.HTTP_201_CREATED)
async def send_admin_message(
    payload: chat_schema.AdminMessageIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    message = await ChatService(db).send_admin_message(
        current_user,
        payload.message,
        receiver_email=payload.receiver_email,
        channel=payload.channel,
    )
    return chat_schema.AdminMessageResponse(message=chat_schema.AdminMessageOut.model_validate(message))

@router.put("/admin/messages/{message_id}", response_model=chat_schema.AdminMessageResponse)
async def edit_admin_message(
    message_id: int,
    payload: chat_schema.ChatMessageIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    message = await ChatService(db).edit_admin_message(current_user, message_id, payload.message)
    return chat_schema.AdminMessageResponse(message=chat_schema.AdminMessageOut.model_validate(message))
