"""
Conversation session endpoints.

A session wraps one ShopAgent. Turns for the same session are serialized
by the session lock; different sessions run independently.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Response

from ...errors import ProviderTransportError
from ...tracing import TracingContext, get_tracing_client
from ..schemas import (
    CreateSessionRequest,
    PoliciesResponse,
    PolicyModel,
    SessionResponse,
    TurnRequest,
    TurnResponse,
    UpdatePoliciesRequest,
)
from ..sessions import Session, SessionManager, get_session_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/sessions")


def _get_session(session_id: str, manager: SessionManager) -> Session:
    session = manager.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found.")
    return session


def _session_response(session: Session) -> SessionResponse:
    return SessionResponse(
        session_id=session.session_id,
        provider=session.agent.provider.value,
        has_credential=session.agent.has_credential,
    )


@router.post(
    "",
    response_model=SessionResponse,
    status_code=201,
    summary="Create session",
    description="Start a new conversation bound to one provider.",
)
def create_session(
    request: CreateSessionRequest,
    manager: SessionManager = Depends(get_session_manager),
) -> SessionResponse:
    session = manager.create(provider=request.provider, api_key=request.api_key)
    return _session_response(session)


@router.get("/{session_id}", response_model=SessionResponse, summary="Get session")
def get_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
) -> SessionResponse:
    return _session_response(_get_session(session_id, manager))


@router.post(
    "/{session_id}/turns",
    response_model=TurnResponse,
    responses={502: {"description": "Provider request failed"}},
    summary="Send a message",
    description=(
        "Run one user turn through the agent loop. Tool progress updates are "
        "returned in the order they were emitted."
    ),
)
async def create_turn(
    session_id: str,
    request: TurnRequest,
    manager: SessionManager = Depends(get_session_manager),
) -> TurnResponse:
    session = _get_session(session_id, manager)
    statuses: list[str] = []

    async with session.lock:
        agent = session.agent
        execution_id = f"exec-{uuid.uuid4().hex[:8]}"
        tracing_context = TracingContext(execution_id=execution_id, session_id=session_id)
        tracing_context.start_trace(
            name="session_turn",
            query=request.message,
            metadata={"provider": agent.provider.value},
        )
        agent.tracing_context = tracing_context

        try:
            reply = await agent.handle_turn(request.message, on_status=statuses.append)
        except ProviderTransportError as e:
            logger.error(f"[{session_id}] Provider request failed: {e}")
            tracing_context.end_trace(output=str(e), status="error")
            _flush_tracing()
            raise HTTPException(status_code=502, detail=str(e))
        except Exception as e:
            logger.exception(f"[{session_id}] Turn failed: {e}")
            tracing_context.end_trace(output=str(e), status="error")
            _flush_tracing()
            raise
        finally:
            agent.tracing_context = None

        trace = agent.last_turn
        tracing_context.end_trace(
            output=reply,
            status="success",
            metadata={"dispatches": trace.dispatches, "tools_used": trace.tools_used},
        )
        _flush_tracing()

    return TurnResponse(
        session_id=session_id,
        reply=reply,
        statuses=statuses,
        dispatches=trace.dispatches,
        tools_used=list(trace.tools_used),
        budget_exhausted=trace.budget_exhausted,
    )


@router.get("/{session_id}/policies", response_model=PoliciesResponse, summary="Get policies")
def get_policies(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
) -> PoliciesResponse:
    session = _get_session(session_id, manager)
    return PoliciesResponse(
        policies=[PolicyModel.from_policy(p) for p in session.agent.snapshot.policies]
    )


@router.put(
    "/{session_id}/policies",
    response_model=PoliciesResponse,
    summary="Replace policies",
    description="Replace the session's policy set. Takes effect from the next turn.",
)
async def update_policies(
    session_id: str,
    request: UpdatePoliciesRequest,
    manager: SessionManager = Depends(get_session_manager),
) -> PoliciesResponse:
    session = _get_session(session_id, manager)
    async with session.lock:
        session.agent.update_policies(p.to_policy() for p in request.policies)
    return PoliciesResponse(
        policies=[PolicyModel.from_policy(p) for p in session.agent.snapshot.policies]
    )


@router.delete("/{session_id}", status_code=204, summary="Delete session")
async def delete_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
) -> Response:
    if not await manager.delete(session_id):
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found.")
    return Response(status_code=204)


def _flush_tracing() -> None:
    """Flush tracing client if available."""
    client = get_tracing_client()
    if client:
        client.flush()
