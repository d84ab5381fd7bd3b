"""ClientService -- 客户创建、列表、详情与客户备注"""

from datetime import UTC, datetime

import structlog
from pydantic import BaseModel
from taskportal.core.exceptions import DocumentNotFoundError, TaskValidationError
from taskportal.core.models import Actor, Client, ClientNote, Task, TaskCompletion, where
from taskportal.core.store import StoreGroup
from taskportal.core.store.collections import CLIENT_NOTES, CLIENTS

log = structlog.get_logger()


class ClientDraft(BaseModel):
    name: str = ""
    company: str = ""
    email: str = ""
    phone: str = ""
    notes: str = ""


class ClientDetail(BaseModel):
    """客户详情：客户记录 + 当前任务 + 完成历史"""

    client: Client
    tasks: list[Task]
    completions: list[TaskCompletion]


class ClientService:
    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    async def create_client(self, draft: ClientDraft, actor: Actor) -> Client:
        if not draft.name.strip():
            raise TaskValidationError(["client name is required"])
        client = Client(
            **{**draft.model_dump(), "name": draft.name.strip()},
            created_by=actor.user_id,
            created_at=datetime.now(UTC),
        )
        client_id = await self._stores.documents.create(
            CLIENTS, client.model_dump(mode="json", exclude={"client_id"})
        )
        await log.ainfo("client_created", client_id=client_id, actor_id=actor.user_id)
        return client.model_copy(update={"client_id": client_id})

    async def list_clients(self) -> list[Client]:
        docs = await self._stores.documents.query(
            CLIENTS, order_by="created_at", descending=True
        )
        return [Client.model_validate({**d.data, "client_id": d.doc_id}) for d in docs]

    async def get_client(self, client_id: str) -> Client:
        doc = await self._stores.documents.get(CLIENTS, client_id)
        if doc is None:
            raise DocumentNotFoundError(CLIENTS, client_id)
        return Client.model_validate({**doc.data, "client_id": doc.doc_id})

    async def client_detail(self, client_id: str) -> ClientDetail:
        client = await self.get_client(client_id)
        tasks = await self._stores.task_store.list_tasks(client_id=client_id)
        completions = await self._stores.completion_store.list_for_client(client_id)
        return ClientDetail(client=client, tasks=tasks, completions=completions)

    async def add_note(self, client_id: str, note: str, actor: Actor) -> ClientNote:
        note = note.strip()
        if not note:
            raise TaskValidationError(["note must not be empty"])
        await self.get_client(client_id)

        record = ClientNote(
            client_id=client_id,
            note=note,
            created_by=actor.user_id,
            created_by_name=actor.name,
            created_at=datetime.now(UTC),
        )
        note_id = await self._stores.documents.create(
            CLIENT_NOTES, record.model_dump(mode="json", exclude={"note_id"})
        )
        await log.ainfo(
            "client_note_added",
            client_id=client_id,
            note_id=note_id,
            actor_id=actor.user_id,
        )
        return record.model_copy(update={"note_id": note_id})

    async def list_notes(self, client_id: str) -> list[ClientNote]:
        """客户备注（最新在前）"""
        await self.get_client(client_id)
        docs = await self._stores.documents.query(
            CLIENT_NOTES,
            [where("client_id", "==", client_id)],
            order_by="created_at",
            descending=True,
        )
        return [ClientNote.model_validate({**d.data, "note_id": d.doc_id}) for d in docs]

    async def delete_note(self, client_id: str, note_id: str) -> None:
        doc = await self._stores.documents.get(CLIENT_NOTES, note_id)
        if doc is None or doc.data.get("client_id") != client_id:
            raise DocumentNotFoundError(CLIENT_NOTES, note_id)
        await self._stores.documents.delete(CLIENT_NOTES, note_id)
