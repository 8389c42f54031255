from __future__ import annotations

from typing import Any

import anyio
from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_502_BAD_GATEWAY

from api.models import SnapshotBody, SubmissionResponse
from api.supabase_client import get_draft_store, get_identity_provider, get_settings, get_submission_store
from api.utils import error_body
from mea_form.config import Settings
from mea_form.errors import AuthenticationMissingError, StepValidationError
from mea_form.levels import get_level_config
from mea_form.ports import DraftStore, IdentityProvider, StaticIdentityProvider, SubmissionStore, never_confirm
from mea_form.wizard import WizardController

router = APIRouter(prefix="/v1/api", tags=["submissions"])

_FAILURE_STATUS = {
    "authentication_missing": HTTP_401_UNAUTHORIZED,
    "persistence_error": HTTP_502_BAD_GATEWAY,
}


@router.post("/levels/{level}/submissions")
async def submit_report(
    level: str,
    body: SnapshotBody = Body(...),
    drafts: DraftStore = Depends(get_draft_store),
    submissions: SubmissionStore = Depends(get_submission_store),
    identity: IdentityProvider = Depends(get_identity_provider),
    settings: Settings = Depends(get_settings),
) -> Any:
    """
    Submit a whole snapshot in one call.

    Runs the same gates as stepping through the wizard, then assembles and
    persists. On success the respondent's draft for this level is deleted.
    """
    config = get_level_config(level)
    respondent = await anyio.to_thread.run_sync(identity.get_current_user)
    if respondent is None:
        raise AuthenticationMissingError()

    wizard = WizardController(
        config,
        drafts=drafts,
        confirm=never_confirm,
        respondent_id=respondent.id,
        submissions=submissions,
        identity=StaticIdentityProvider(respondent),
        settings=settings,
    )
    wizard.restore(body.to_snapshot(config.id))

    blocked = wizard.first_blocked_step()
    if blocked is not None:
        step, message = blocked
        raise StepValidationError(message, step=step)

    wizard.jump_to(len(wizard.sections) - 1)
    result = await wizard.submit()
    if not result.ok:
        status = _FAILURE_STATUS.get(result.error or "", HTTP_502_BAD_GATEWAY)
        return JSONResponse(status_code=status, content=error_body(result.error or "submission_failed", result.message or ""))

    return SubmissionResponse(
        record=wizard.record.model_dump(by_alias=True, mode="json"),
        summary=wizard.summary(),
    ).model_dump()
