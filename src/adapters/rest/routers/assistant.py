"""Natural-language admin assistant endpoints."""

from fastapi import APIRouter, Depends

from factory import ServiceFactory
from adapters.rest.dependencies import enforce_rate_limit, get_factory
from adapters.rest.schemas import AssistantBody, AssistantOut, SessionClearedOut
from application.context import SessionContext

router = APIRouter(tags=["assistant"])


@router.post("/assistant", response_model=AssistantOut, response_model_exclude_none=True)
async def ask_assistant(
    body: AssistantBody,
    ip: str = Depends(enforce_rate_limit),
    factory: ServiceFactory = Depends(get_factory),
):
    service = factory.create_assistant_service()
    ctx = SessionContext(client_id=body.client_id, ip=ip, image_attachment=body.image_attachment)
    reply = await service.handle(ctx, body.text)
    return reply.to_dict()


@router.delete("/assistant/sessions/{client_id}", response_model=SessionClearedOut)
async def clear_session(
    client_id: str,
    ip: str = Depends(enforce_rate_limit),
    factory: ServiceFactory = Depends(get_factory),
):
    await factory.sessions.clear(client_id)
    return SessionClearedOut(client_id=client_id)
