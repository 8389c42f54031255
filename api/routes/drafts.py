from __future__ import annotations

from typing import Any, Dict

import anyio
from fastapi import APIRouter, Body, Depends

from api.models import SnapshotBody
from api.supabase_client import get_draft_store, get_identity_provider, get_settings
from mea_form.config import Settings
from mea_form.drafts import encode_draft
from mea_form.errors import AuthenticationMissingError
from mea_form.levels import get_level_config
from mea_form.ports import DraftStore, IdentityProvider, draft_key, never_confirm
from mea_form.schemas import Respondent
from mea_form.wizard import WizardController

router = APIRouter(prefix="/v1/api", tags=["drafts"])


async def _respondent(identity: IdentityProvider) -> Respondent:
    respondent = await anyio.to_thread.run_sync(identity.get_current_user)
    if respondent is None:
        raise AuthenticationMissingError()
    return respondent


@router.get("/drafts/{level}")
async def read_draft(
    level: str,
    store: DraftStore = Depends(get_draft_store),
    identity: IdentityProvider = Depends(get_identity_provider),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    config = get_level_config(level)
    respondent = await _respondent(identity)
    wizard = WizardController(
        config,
        drafts=store,
        confirm=never_confirm,
        respondent_id=respondent.id,
        settings=settings,
    )
    found = await wizard.mount()
    return {
        "ok": True,
        "found": found,
        "key": wizard.draft_key,
        "answers": wizard.answers,
        "selection": wizard.subjects.state.model_dump(by_alias=True),
    }


@router.put("/drafts/{level}")
async def write_draft(
    level: str,
    body: SnapshotBody = Body(...),
    store: DraftStore = Depends(get_draft_store),
    identity: IdentityProvider = Depends(get_identity_provider),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    config = get_level_config(level)
    respondent = await _respondent(identity)
    key = draft_key(config.id, respondent.id, prefix=settings.draft_key_prefix)
    await anyio.to_thread.run_sync(store.save, key, encode_draft(body.to_snapshot(config.id)))
    return {"ok": True, "key": key}


@router.delete("/drafts/{level}")
async def delete_draft(
    level: str,
    store: DraftStore = Depends(get_draft_store),
    identity: IdentityProvider = Depends(get_identity_provider),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    config = get_level_config(level)
    respondent = await _respondent(identity)
    key = draft_key(config.id, respondent.id, prefix=settings.draft_key_prefix)
    await anyio.to_thread.run_sync(store.delete, key)
    return {"ok": True, "key": key}
