# app/routers/proposal_router.py

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.broadcast import BroadcastHub, get_broadcast_hub
from app.core.config import settings
from app.core.database import get_db
from app.core.security import Actor, get_current_actor
from app.services.notification_service import NotificationService
from app.services.proposal_service import ProposalService
from app.schemas.proposal_schema import ProposalAcceptOut, ProposalCreate, ProposalOut

# 建立 API Router
router = APIRouter(
    prefix="/proposals",
    tags=["Proposals"],
    dependencies=[Depends(get_current_actor)] # 此 router 下所有 API 都需要登入
)

# 提交 / 列出提案掛在 /projects/{project_id}/proposals 下，語意較清楚
project_proposal_router = APIRouter(
    prefix="/projects",
    tags=["Proposals"],
    dependencies=[Depends(get_current_actor)]
)


def build_proposal_service(
    db: AsyncSession = Depends(get_db),
    hub: BroadcastHub = Depends(get_broadcast_hub),
) -> ProposalService:
    """
    依設定組裝 ProposalService；開啟 NOTIFY_ON_PROPOSAL_ACCEPT 時
    掛上「接受後通知工作者」的 hook
    """
    service = ProposalService(db)
    if settings.NOTIFY_ON_PROPOSAL_ACCEPT:
        notification_service = NotificationService(db, hub)
        service.add_after_accept_hook(notification_service.notify_proposal_accepted)
    return service


# -----------------------------------------------------------------
# 1. (工作者) 提交提案
# -----------------------------------------------------------------
@project_proposal_router.post(
    "/{project_id}/proposals",
    response_model=ProposalOut,
    status_code=status.HTTP_201_CREATED
)
async def submit_proposal(
    project_id: str,
    proposal_data: ProposalCreate,
    service: ProposalService = Depends(build_proposal_service),
    actor: Actor = Depends(get_current_actor)
):
    return await service.create_proposal(project_id, proposal_data, actor)

# -----------------------------------------------------------------
# 2. 檢視特定案件的所有提案
# -----------------------------------------------------------------
@project_proposal_router.get("/{project_id}/proposals", response_model=List[ProposalOut])
async def list_project_proposals(
    project_id: str,
    service: ProposalService = Depends(build_proposal_service)
):
    return await service.list_proposals_by_project(project_id)

# -----------------------------------------------------------------
# 3. (工作者) 檢視自己提交的所有提案
# -----------------------------------------------------------------
@router.get("/my", response_model=List[ProposalOut])
async def get_my_proposals(
    service: ProposalService = Depends(build_proposal_service),
    actor: Actor = Depends(get_current_actor)
):
    return await service.list_my_proposals(actor)

@router.get("/{proposal_id}", response_model=ProposalOut)
async def get_proposal(
    proposal_id: str,
    service: ProposalService = Depends(build_proposal_service)
):
    return await service.get_proposal(proposal_id)

# -----------------------------------------------------------------
# 4. 接受提案 (指派工作者 + 案件改為進行中)
# -----------------------------------------------------------------
@router.post("/{proposal_id}/accept", response_model=ProposalAcceptOut)
async def accept_proposal(
    proposal_id: str,
    service: ProposalService = Depends(build_proposal_service)
):
    """
    - 404：提案不存在，或提案所屬案件不存在
    - 409：嚴格模式 (STRICT_PROPOSAL_ACCEPTANCE) 下提案已處理或案件不在招募中
    """
    proposal = await service.accept_proposal(proposal_id)
    return {"message": "Proposal accepted successfully", "proposal": proposal}

# -----------------------------------------------------------------
# 5. 拒絕提案
# -----------------------------------------------------------------
@router.post("/{proposal_id}/reject", response_model=ProposalOut)
async def reject_proposal(
    proposal_id: str,
    service: ProposalService = Depends(build_proposal_service)
):
    return await service.reject_proposal(proposal_id)
