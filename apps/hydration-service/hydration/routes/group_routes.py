"""Dashboard data layer: upstream group data with every measurement decrypted."""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..auth import CurrentUser, get_current_user
from ..dependencies import get_decrypt_strategy, get_upstream_client
from ..errors import UpstreamError
from ..metrics import all_nurses, count_dehydrated, nurse_rosters, summarize_patients
from ..orchestrator import DecryptedTree, DecryptStrategy, decrypt_tree
from ..schemas import (
    GroupDataOut,
    LeafFailureOut,
    NurseOut,
    PatientListOut,
    PatientSummaryOut,
    RosterPatientOut,
    UserGroupOut,
)
from ..upstream_client import UpstreamClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/groups", tags=["groups"])


def _upstream_failed(e: UpstreamError) -> HTTPException:
    return HTTPException(status_code=502, detail=f"Upstream API error: {e}")


async def _decrypted_group_data(
    group: str, upstream: UpstreamClient, strategy: DecryptStrategy
) -> DecryptedTree:
    try:
        raw = await upstream.get_group_data(group)
    except UpstreamError as e:
        raise _upstream_failed(e)
    result = await decrypt_tree(raw, strategy)
    if result.degraded:
        raise HTTPException(
            status_code=503, detail="Decryption service unavailable, try again later"
        )
    return result


def _failures_out(result: DecryptedTree) -> List[LeafFailureOut]:
    return [LeafFailureOut.model_validate(f) for f in result.failures]


@router.get("/mine", response_model=UserGroupOut)
async def get_my_group(
    user: CurrentUser = Depends(get_current_user),
    upstream: UpstreamClient = Depends(get_upstream_client),
):
    try:
        group = await upstream.get_user_group(user.id)
    except UpstreamError as e:
        raise _upstream_failed(e)
    if not group:
        raise HTTPException(status_code=404, detail="User has no group")
    return UserGroupOut(group=group)


@router.get("/{group}/data", response_model=GroupDataOut)
async def get_group_data(
    group: str,
    _user: CurrentUser = Depends(get_current_user),
    upstream: UpstreamClient = Depends(get_upstream_client),
    strategy: DecryptStrategy = Depends(get_decrypt_strategy),
):
    result = await _decrypted_group_data(group, upstream, strategy)
    return GroupDataOut(group=group, data=result.tree, failures=_failures_out(result))


async def _summaries(group: str, upstream: UpstreamClient, strategy: DecryptStrategy):
    try:
        result, names, nurses, rooms = await asyncio.gather(
            _decrypted_group_data(group, upstream, strategy),
            upstream.get_names(group),
            upstream.get_nurses(group),
            upstream.get_rooms(group),
        )
    except UpstreamError as e:
        raise _upstream_failed(e)
    summaries = summarize_patients(result.tree, names, nurses, rooms, result.failures)
    return result, nurses, summaries


@router.get("/{group}/patients", response_model=PatientListOut)
async def list_patients(
    group: str,
    _user: CurrentUser = Depends(get_current_user),
    upstream: UpstreamClient = Depends(get_upstream_client),
    strategy: DecryptStrategy = Depends(get_decrypt_strategy),
):
    result, nurses, summaries = await _summaries(group, upstream, strategy)
    return PatientListOut(
        group=group,
        patients=[PatientSummaryOut.model_validate(s) for s in summaries],
        dehydrated_count=count_dehydrated(summaries),
        nurses=all_nurses(nurses),
        failures=_failures_out(result),
    )


@router.get("/{group}/nurses", response_model=List[NurseOut])
async def list_nurses(
    group: str,
    _user: CurrentUser = Depends(get_current_user),
    upstream: UpstreamClient = Depends(get_upstream_client),
    strategy: DecryptStrategy = Depends(get_decrypt_strategy),
):
    _result, _nurses, summaries = await _summaries(group, upstream, strategy)
    return [
        NurseOut(
            name=name,
            patient_count=len(patients),
            patients=[
                RosterPatientOut(
                    id=p.patient_id,
                    name=p.name,
                    room=p.room,
                    hydration_status=p.hydration_status,
                )
                for p in patients
            ],
        )
        for name, patients in sorted(nurse_rosters(summaries).items())
    ]
