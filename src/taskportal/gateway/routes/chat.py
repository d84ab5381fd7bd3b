"""聊天路由

POST   /api/chat/team: 发送群聊消息，201
GET    /api/chat/team: 最近的群聊消息（最早在前）
DELETE /api/chat/team/{message_id}: 删除群聊消息（发送者或管理员）
GET    /api/chats: 当前用户的私聊会话列表
GET    /api/chats/{user_id}/messages: 与某用户的私聊消息
POST   /api/chats/{user_id}/messages: 发送私聊消息，201
POST   /api/chats/{user_id}/read: 将对方消息标记为已读
DELETE /api/chat/messages/{message_id}: 删除自己发送的私聊消息
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from starlette.responses import Response
from taskportal.core.models import Actor, PersonalChat, PersonalMessage, TeamChatMessage

from ..deps import get_actor, get_store_group
from ..services.chat_service import ChatService

router = APIRouter()


class MessageRequest(BaseModel):
    text: str = ""


class TeamMessagesResponse(BaseModel):
    messages: list[TeamChatMessage]


class PersonalMessagesResponse(BaseModel):
    messages: list[PersonalMessage]


class ChatListResponse(BaseModel):
    chats: list[PersonalChat]


class MarkReadResponse(BaseModel):
    marked: int


def get_chat_service(store_group=Depends(get_store_group)) -> ChatService:
    return ChatService(store_group)


@router.post("/api/chat/team", status_code=201, response_model=TeamChatMessage)
async def post_team_message(
    body: MessageRequest,
    actor: Actor = Depends(get_actor),
    service: ChatService = Depends(get_chat_service),
):
    return await service.post_team_message(body.text, actor)


@router.get("/api/chat/team", response_model=TeamMessagesResponse)
async def team_messages(service: ChatService = Depends(get_chat_service)):
    return TeamMessagesResponse(messages=await service.team_messages())


@router.delete("/api/chat/team/{message_id}", status_code=204)
async def delete_team_message(
    message_id: str,
    actor: Actor = Depends(get_actor),
    service: ChatService = Depends(get_chat_service),
):
    await service.delete_team_message(message_id, actor)
    return Response(status_code=204)


@router.get("/api/chats", response_model=ChatListResponse)
async def personal_chats(
    actor: Actor = Depends(get_actor),
    service: ChatService = Depends(get_chat_service),
):
    return ChatListResponse(chats=await service.personal_chats(actor))


@router.get("/api/chats/{user_id}/messages", response_model=PersonalMessagesResponse)
async def personal_messages(
    user_id: str,
    actor: Actor = Depends(get_actor),
    service: ChatService = Depends(get_chat_service),
):
    messages = await service.personal_messages(user_id, actor)
    return PersonalMessagesResponse(messages=messages)


@router.post(
    "/api/chats/{user_id}/messages", status_code=201, response_model=PersonalMessage
)
async def send_personal_message(
    user_id: str,
    body: MessageRequest,
    actor: Actor = Depends(get_actor),
    service: ChatService = Depends(get_chat_service),
):
    return await service.send_personal_message(user_id, body.text, actor)


@router.post("/api/chats/{user_id}/read", response_model=MarkReadResponse)
async def mark_chat_read(
    user_id: str,
    actor: Actor = Depends(get_actor),
    service: ChatService = Depends(get_chat_service),
):
    return MarkReadResponse(marked=await service.mark_chat_read(user_id, actor))


@router.delete("/api/chat/messages/{message_id}", status_code=204)
async def delete_personal_message(
    message_id: str,
    actor: Actor = Depends(get_actor),
    service: ChatService = Depends(get_chat_service),
):
    await service.delete_personal_message(message_id, actor)
    return Response(status_code=204)
