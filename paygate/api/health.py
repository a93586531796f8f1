"""Liveness endpoint."""

from fastapi import APIRouter

from paygate.providers.registry import list_providers

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    return {"status": "ok", "providers": list_providers()}
