"""客户路由

POST /api/clients: 创建客户，201
GET  /api/clients: 客户列表
GET  /api/clients/{client_id}: 客户详情（含任务与完成历史）
POST /api/clients/{client_id}/notes: 添加客户备注，201
GET  /api/clients/{client_id}/notes: 客户备注（最新在前）
DELETE /api/clients/{client_id}/notes/{note_id}: 删除客户备注
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from starlette.responses import Response
from taskportal.core.models import Actor, Client, ClientNote

from ..deps import get_actor, get_store_group
from ..services.client_service import ClientDetail, ClientDraft, ClientService

router = APIRouter()


class ClientListResponse(BaseModel):
    clients: list[Client]


class NoteRequest(BaseModel):
    note: str = ""


class NoteListResponse(BaseModel):
    notes: list[ClientNote]


def get_client_service(store_group=Depends(get_store_group)) -> ClientService:
    return ClientService(store_group)


@router.post("/api/clients", status_code=201, response_model=Client)
async def create_client(
    body: ClientDraft,
    actor: Actor = Depends(get_actor),
    service: ClientService = Depends(get_client_service),
):
    return await service.create_client(body, actor)


@router.get("/api/clients", response_model=ClientListResponse)
async def list_clients(service: ClientService = Depends(get_client_service)):
    return ClientListResponse(clients=await service.list_clients())


@router.get("/api/clients/{client_id}", response_model=ClientDetail)
async def client_detail(
    client_id: str,
    service: ClientService = Depends(get_client_service),
):
    return await service.client_detail(client_id)


@router.post(
    "/api/clients/{client_id}/notes", status_code=201, response_model=ClientNote
)
async def add_note(
    client_id: str,
    body: NoteRequest,
    actor: Actor = Depends(get_actor),
    service: ClientService = Depends(get_client_service),
):
    return await service.add_note(client_id, body.note, actor)


@router.get("/api/clients/{client_id}/notes", response_model=NoteListResponse)
async def list_notes(
    client_id: str,
    service: ClientService = Depends(get_client_service),
):
    return NoteListResponse(notes=await service.list_notes(client_id))


@router.delete("/api/clients/{client_id}/notes/{note_id}", status_code=204)
async def delete_note(
    client_id: str,
    note_id: str,
    service: ClientService = Depends(get_client_service),
):
    await service.delete_note(client_id, note_id)
    return Response(status_code=204)
