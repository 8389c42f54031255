from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Query

from api.models import LevelSummary
from mea_form.levels import get_level_config, level_configs
from mea_form.resolver import resolve
from mea_form.schemas import SchemaToggles, SubjectStrategy
from mea_form.subjects import SubjectSelectionEngine, curriculum_subjects
from mea_form.utils import period_ranges

router = APIRouter(prefix="/v1/api", tags=["levels"])


@router.get("/levels")
async def list_levels() -> List[Dict[str, Any]]:
    return [
        LevelSummary(
            id=cfg.id,
            label=cfg.label,
            subject_strategy=cfg.subject_strategy,
            has_movement=bool(cfg.movement_sections),
        ).model_dump(by_alias=True, mode="json")
        for cfg in level_configs().values()
    ]


@router.get("/levels/{level}/schema")
async def level_schema(
    level: str,
    period: str = Query(default="Q1"),
    subject_failures: Optional[bool] = Query(default=None, alias="subjectFailures"),
) -> Dict[str, Any]:
    config = get_level_config(level)
    sections = resolve(config, period, SchemaToggles(subject_failures=subject_failures))
    return {
        "ok": True,
        "level": config.id,
        "label": config.label,
        "period": period,
        "ranges": period_ranges(period),
        "subjectStrategy": config.subject_strategy.value,
        "sections": [s.model_dump(by_alias=True, mode="json", exclude_none=True) for s in sections],
    }


@router.get("/levels/{level}/subjects")
async def level_subjects(
    level: str,
    search: str = Query(default=""),
    split: bool = Query(default=False),
) -> Dict[str, Any]:
    config = get_level_config(level)
    if config.subject_strategy == SubjectStrategy.LIBRARY:
        subjects = SubjectSelectionEngine(config).search_library(search)
    elif config.subject_strategy == SubjectStrategy.CURRICULUM:
        subjects = curriculum_subjects(config, split)
    else:
        subjects = []
    return {"ok": True, "level": config.id, "strategy": config.subject_strategy.value, "subjects": subjects}
