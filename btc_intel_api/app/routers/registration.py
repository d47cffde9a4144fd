"""Registration document and icon routes."""

from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse, PlainTextResponse

router = APIRouter()

REGISTRATION_TYPE = "https://eips.ethereum.org/EIPS/eip-8004#registration-v1"
A2A_VERSION = "0.3.0"


def build_registration(settings, paid_count: int, free_count: int) -> dict:
    """Static registration document for the deployment."""
    base_url = settings.base_url
    return {
        "type": REGISTRATION_TYPE,
        "name": settings.agent_name,
        "description": (
            "Bitcoin blockchain intelligence - wallet lookups, transaction details, "
            f"fee estimates, and network stats. {free_count} free + {paid_count} paid x402 endpoints."
        ),
        "image": f"{base_url}/icon.png",
        "services": [
            {"name": "web", "endpoint": base_url},
            {"name": "A2A", "endpoint": f"{base_url}/.well-known/agent.json", "version": A2A_VERSION},
        ],
        "x402Support": True,
        "active": True,
        "registrations": [],
        "supportedTrust": ["reputation"],
    }


@router.get("/.well-known/erc8004.json")
async def registration(request: Request):
    runtime = request.app.state.runtime
    query_entrypoints = [
        e for e in runtime.registry.list() if not e.key.startswith("analytics")
    ]
    paid = sum(1 for e in query_entrypoints if e.price > 0)
    return build_registration(runtime.settings, paid_count=paid,
                              free_count=len(query_entrypoints) - paid)


@router.get("/icon.png")
async def icon(request: Request):
    icon_path = Path(request.app.state.runtime.settings.icon_path)
    if not icon_path.is_file():
        return PlainTextResponse("Icon not found", status_code=404)
    return FileResponse(icon_path, media_type="image/png")
