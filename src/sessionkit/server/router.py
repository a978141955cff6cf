from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, HTTPException, status

from ..manager import Manager
from .dependencies import get_session
from .schemas import (
    DeleteResponse,
    KeepResponse,
    RotateResponse,
    SessionState,
    SessionValue,
    SessionValueWriteRequest,
)

router = APIRouter(prefix="/api/session", tags=["session"])


@router.get("", response_model=SessionState)
async def get_state(session: Manager = Depends(get_session)) -> SessionState:
    return _to_state(session)


@router.delete("", response_model=DeleteResponse)
async def destroy_session(session: Manager = Depends(get_session)) -> DeleteResponse:
    success = await asyncio.to_thread(session.destroy)
    return DeleteResponse(success=success)


@router.post("/rotate", response_model=RotateResponse)
async def rotate_session(session: Manager = Depends(get_session)) -> RotateResponse:
    await asyncio.to_thread(session.rotate)
    return RotateResponse(id=session.id)


@router.get("/values/{key}", response_model=SessionValue)
async def get_value(key: str, session: Manager = Depends(get_session)) -> SessionValue:
    present = session.data.has(key)
    return SessionValue(key=key, value=session.data.get(key), present=present)


@router.put("/values/{key}", response_model=SessionValue)
async def set_value(
    key: str,
    payload: SessionValueWriteRequest,
    session: Manager = Depends(get_session),
) -> SessionValue:
    session.data.set(key, payload.value, payload.expiry)
    return SessionValue(key=key, value=payload.value, present=True)


@router.delete("/values/{key}", response_model=DeleteResponse)
async def delete_value(key: str, session: Manager = Depends(get_session)) -> DeleteResponse:
    session.data.delete(key)
    return DeleteResponse(success=True)


@router.post("/values/{key}/keep", response_model=KeepResponse)
async def keep_value(key: str, session: Manager = Depends(get_session)) -> KeepResponse:
    if not session.data.keep(key):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No flash value under this key")
    return KeepResponse(key=key, kept=True)


def _to_state(session: Manager) -> SessionState:
    return SessionState(
        id=session.id,
        name=session.name,
        status=session.status,
        namespace=session.namespace,
        keys=session.data.keys(),
    )
