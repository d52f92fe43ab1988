# app/services/proposal_service.py

import logging
from typing import Awaitable, Callable, Iterable, List, Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from app.core.security import Actor
from app.models.user import UserRoleEnum
from app.models.project import Project, ProjectStatusEnum
from app.models.proposal import Proposal, ProposalStatusEnum
from app.repositories.base_repo import Repository
from app.schemas.proposal_schema import ProposalCreate

logger = logging.getLogger(__name__)

# 接受成功 (已 commit) 之後執行，例如發送通知
AfterAcceptHook = Callable[[Proposal, Project], Awaitable[None]]


class AcceptancePolicy:
    """
    接受提案的規則，分兩段：

    - __call__：讀到提案 / 案件後先檢查，不合規則時拋出 ConflictError
    - proposal_guard / project_guard：寫回時附加的 WHERE 條件，
      在讀取之後才被別的請求改掉的列會更新不到 (rowcount == 0)，
      不依賴資料庫是否支援 FOR UPDATE
    """

    def __call__(self, proposal: Proposal, project: Project) -> None:
        return None

    def proposal_guard(self) -> list:
        return []

    def project_guard(self) -> list:
        return []


class LastAcceptWins(AcceptancePolicy):
    """
    預設政策：不做任何檢查。
    重複接受同一提案、或接受同案件的第二個提案都會成功，後者覆蓋前者的指派。
    """


class StrictAcceptance(AcceptancePolicy):
    """嚴格政策：只能接受 pending 的提案，且案件必須仍在 open"""

    def __call__(self, proposal: Proposal, project: Project) -> None:
        if proposal.status != ProposalStatusEnum.pending:
            raise ConflictError(f"此提案已被處理 (目前狀態: {proposal.status.value})")
        if project.status != ProjectStatusEnum.open:
            raise ConflictError(f"此案件已不在招募中 (目前狀態: {project.status.value})")

    def proposal_guard(self) -> list:
        return [Proposal.status == ProposalStatusEnum.pending]

    def project_guard(self) -> list:
        return [Project.status == ProjectStatusEnum.open]


last_accept_wins = LastAcceptWins()
strict_acceptance = StrictAcceptance()


def default_acceptance_policy() -> AcceptancePolicy:
    return strict_acceptance if settings.STRICT_PROPOSAL_ACCEPTANCE else last_accept_wins


class ProposalService:
    def __init__(
        self,
        db: AsyncSession,
        policy: Optional[AcceptancePolicy] = None,
        after_accept: Optional[Iterable[AfterAcceptHook]] = None,
    ):
        self.db = db
        self.proposal_repo = Repository(db, Proposal)
        self.project_repo = Repository(db, Project)
        self.policy = policy or default_acceptance_policy()
        self.after_accept_hooks: List[AfterAcceptHook] = list(after_accept or [])

    def add_after_accept_hook(self, hook: AfterAcceptHook) -> None:
        self.after_accept_hooks.append(hook)

    async def create_proposal(self, project_id: str, data: ProposalCreate, actor: Actor) -> Proposal:
        """
        (工作者) 對案件提案
        """
        if actor.role != UserRoleEnum.freelancer:
            raise ForbiddenError("只有自由工作者可以提案")

        project = await self.project_repo.get(project_id)
        if not project:
            raise NotFoundError("案件不存在")

        proposal = Proposal(
            project_id=project_id,
            freelancer_id=actor.user_id,
            proposal_text=data.proposal_text,
            bid_amount=data.bid_amount,
            estimated_duration=data.estimated_duration,
            status=ProposalStatusEnum.pending,
        )
        return await self.proposal_repo.create(proposal)

    async def get_proposal(self, proposal_id: str) -> Proposal:
        proposal = await self.proposal_repo.get(proposal_id)
        if not proposal:
            raise NotFoundError("提案不存在")
        return proposal

    async def list_proposals_by_project(self, project_id: str) -> List[Proposal]:
        return await self.proposal_repo.list_by(project_id=project_id)

    async def list_my_proposals(self, actor: Actor) -> List[Proposal]:
        return await self.proposal_repo.list_by(freelancer_id=actor.user_id)

    async def accept_proposal(self, proposal_id: str) -> Proposal:
        """
        接受提案並把得標工作者指派到案件：

        1. proposal.status = accepted
        2. project.freelancer_id = proposal.freelancer_id, project.status = in_progress

        兩筆寫入在同一個資料庫交易內完成，任何一步失敗都整筆 rollback，
        不會出現「提案已接受、案件卻沒指派」的半套狀態。
        提案與案件列以 FOR UPDATE 鎖定；寫回時再帶上政策的 WHERE 條件，
        嚴格模式下同時接受同案件的兩個提案只會有一個成功。
        """
        try:
            proposal = await self.proposal_repo.get(proposal_id, for_update=True)
            if not proposal:
                raise NotFoundError("提案不存在")

            project = await self.project_repo.get(proposal.project_id, for_update=True)
            if not project:
                raise NotFoundError("提案所屬的案件不存在")

            self.policy(proposal, project)
            previous_freelancer_id = project.freelancer_id

            # 步驟 1: 更新提案狀態
            result = await self.db.execute(
                update(Proposal)
                .where(Proposal.proposal_id == proposal.proposal_id, *self.policy.proposal_guard())
                .values(status=ProposalStatusEnum.accepted)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise ConflictError("此提案已被其他請求處理")

            # 步驟 2: 指派工作者並將案件改為進行中
            result = await self.db.execute(
                update(Project)
                .where(Project.project_id == project.project_id, *self.policy.project_guard())
                .values(freelancer_id=proposal.freelancer_id, status=ProjectStatusEnum.in_progress)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise ConflictError("此案件已由其他提案得標")

            # 步驟 3: 兩筆一起提交
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(proposal)
        await self.db.refresh(project)

        if previous_freelancer_id and previous_freelancer_id != project.freelancer_id:
            logger.info(
                f"案件 {project.project_id} 改派：{previous_freelancer_id} -> {project.freelancer_id}"
            )
        logger.info(
            f"提案 {proposal.proposal_id} 已接受，案件 {project.project_id} 指派給 {project.freelancer_id}"
        )

        # 指派已生效，hook 失敗只記錄，不影響結果
        for hook in self.after_accept_hooks:
            try:
                await hook(proposal, project)
            except Exception:
                logger.exception(f"提案 {proposal.proposal_id} 的接受後 hook 執行失敗")

        return proposal

    async def reject_proposal(self, proposal_id: str) -> Proposal:
        proposal = await self.get_proposal(proposal_id)
        if proposal.status != ProposalStatusEnum.pending:
            raise ConflictError("只能拒絕尚未處理的提案")
        proposal.status = ProposalStatusEnum.rejected
        return await self.proposal_repo.save(proposal)
