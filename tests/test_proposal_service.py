import asyncio

import pytest
from sqlalchemy import update
from sqlalchemy.exc import OperationalError
from sqlalchemy.sql.dml import Update

from app.core.exceptions import ConflictError, NotFoundError
from app.models.user import UserRoleEnum
from app.models.project import Project, ProjectStatusEnum
from app.models.proposal import Proposal, ProposalStatusEnum
from app.services.proposal_service import ProposalService, last_accept_wins, strict_acceptance


async def reload(session_factory, model, obj_id):
    async with session_factory() as session:
        return await session.get(model, obj_id)


@pytest.fixture
async def marketplace(make_user, make_project, make_proposal):
    """Client 1 owns open project 3; freelancer 9 bid on it with proposal 7."""
    await make_user("1", UserRoleEnum.client)
    await make_user("9", UserRoleEnum.freelancer)
    await make_project("3", client_id="1")
    await make_proposal("7", project_id="3", freelancer_id="9", bid="800.00")


async def test_accept_assigns_freelancer_and_starts_project(db, session_factory, marketplace):
    service = ProposalService(db, policy=last_accept_wins)

    proposal = await service.accept_proposal("7")

    assert proposal.status == ProposalStatusEnum.accepted
    project = await reload(session_factory, Project, "3")
    assert project.freelancer_id == "9"
    assert project.status == ProjectStatusEnum.in_progress
    stored = await reload(session_factory, Proposal, "7")
    assert stored.status == ProposalStatusEnum.accepted


async def test_accept_unknown_proposal_is_not_found(db, marketplace):
    with pytest.raises(NotFoundError):
        await ProposalService(db).accept_proposal("does-not-exist")


async def test_accept_orphaned_proposal_is_not_found_and_changes_nothing(
    db, session_factory, make_user, make_proposal
):
    await make_user("9", UserRoleEnum.freelancer)
    # sqlite does not enforce foreign keys here, so the parent can be missing
    await make_proposal("8", project_id="gone", freelancer_id="9")

    with pytest.raises(NotFoundError):
        await ProposalService(db).accept_proposal("8")

    stored = await reload(session_factory, Proposal, "8")
    assert stored.status == ProposalStatusEnum.pending


async def test_second_accept_reassigns_project_by_default(
    db, session_factory, marketplace, make_user, make_proposal
):
    await make_user("10", UserRoleEnum.freelancer)
    await make_proposal("11", project_id="3", freelancer_id="10")
    service = ProposalService(db, policy=last_accept_wins)

    await service.accept_proposal("7")
    await service.accept_proposal("11")

    project = await reload(session_factory, Project, "3")
    assert project.freelancer_id == "10"
    assert project.status == ProjectStatusEnum.in_progress


async def test_reaccepting_rejected_proposal_is_allowed_by_default(
    db, session_factory, make_user, make_project, make_proposal
):
    await make_user("1", UserRoleEnum.client)
    await make_user("9", UserRoleEnum.freelancer)
    await make_project("3", client_id="1")
    await make_proposal("7", project_id="3", freelancer_id="9", status=ProposalStatusEnum.rejected)

    proposal = await ProposalService(db, policy=last_accept_wins).accept_proposal("7")

    assert proposal.status == ProposalStatusEnum.accepted


async def test_strict_policy_rejects_second_accept(
    db, session_factory, marketplace, make_user, make_proposal
):
    await make_user("10", UserRoleEnum.freelancer)
    await make_proposal("11", project_id="3", freelancer_id="10")
    service = ProposalService(db, policy=strict_acceptance)

    await service.accept_proposal("7")
    with pytest.raises(ConflictError):
        await service.accept_proposal("11")

    project = await reload(session_factory, Project, "3")
    assert project.freelancer_id == "9"
    loser = await reload(session_factory, Proposal, "11")
    assert loser.status == ProposalStatusEnum.pending


async def test_strict_policy_rejects_already_processed_proposal(
    db, make_user, make_project, make_proposal
):
    await make_user("1", UserRoleEnum.client)
    await make_user("9", UserRoleEnum.freelancer)
    await make_project("3", client_id="1")
    await make_proposal("7", project_id="3", freelancer_id="9", status=ProposalStatusEnum.rejected)

    with pytest.raises(ConflictError):
        await ProposalService(db, policy=strict_acceptance).accept_proposal("7")


async def test_failed_project_write_rolls_back_proposal(db, session_factory, marketplace, monkeypatch):
    service = ProposalService(db, policy=last_accept_wins)
    real_execute = db.execute

    async def broken_execute(statement, *args, **kwargs):
        if isinstance(statement, Update) and statement.table.name == "projects":
            raise OperationalError("UPDATE projects", {}, Exception("disk I/O error"))
        return await real_execute(statement, *args, **kwargs)

    monkeypatch.setattr(db, "execute", broken_execute)

    with pytest.raises(OperationalError):
        await service.accept_proposal("7")

    proposal = await reload(session_factory, Proposal, "7")
    assert proposal.status == ProposalStatusEnum.pending
    project = await reload(session_factory, Project, "3")
    assert project.freelancer_id is None
    assert project.status == ProjectStatusEnum.open


async def test_after_accept_hooks_run_after_commit(db, session_factory, marketplace):
    seen = []

    async def hook(proposal, project):
        # the assignment is already visible to other sessions
        stored = await reload(session_factory, Project, project.project_id)
        seen.append((proposal.proposal_id, stored.freelancer_id))

    service = ProposalService(db, policy=last_accept_wins, after_accept=[hook])
    await service.accept_proposal("7")

    assert seen == [("7", "9")]


async def test_failing_hook_does_not_undo_assignment(db, session_factory, marketplace):
    async def hook(proposal, project):
        raise RuntimeError("mail server down")

    service = ProposalService(db, policy=last_accept_wins)
    service.add_after_accept_hook(hook)

    proposal = await service.accept_proposal("7")

    assert proposal.status == ProposalStatusEnum.accepted
    project = await reload(session_factory, Project, "3")
    assert project.freelancer_id == "9"


async def test_reject_only_pending(db, marketplace):
    service = ProposalService(db, policy=last_accept_wins)

    rejected = await service.reject_proposal("7")
    assert rejected.status == ProposalStatusEnum.rejected

    with pytest.raises(ConflictError):
        await service.reject_proposal("7")


async def accept_in_own_session(session_factory, proposal_id, policy):
    async with session_factory() as session:
        return await ProposalService(session, policy=policy).accept_proposal(proposal_id)


async def test_concurrent_strict_accepts_assign_exactly_one_freelancer(
    session_factory, marketplace, make_user, make_proposal
):
    await make_user("10", UserRoleEnum.freelancer)
    await make_proposal("11", project_id="3", freelancer_id="10")

    results = await asyncio.gather(
        accept_in_own_session(session_factory, "7", strict_acceptance),
        accept_in_own_session(session_factory, "11", strict_acceptance),
        return_exceptions=True,
    )

    winners = [r for r in results if isinstance(r, Proposal)]
    losers = [r for r in results if isinstance(r, ConflictError)]
    assert len(winners) == 1 and len(losers) == 1
    project = await reload(session_factory, Project, "3")
    assert project.freelancer_id == winners[0].freelancer_id
    statuses = sorted([
        (await reload(session_factory, Proposal, "7")).status.value,
        (await reload(session_factory, Proposal, "11")).status.value,
    ])
    assert statuses == ["accepted", "pending"]


async def test_concurrent_strict_accepts_of_same_proposal_succeed_once(session_factory, marketplace):
    results = await asyncio.gather(
        accept_in_own_session(session_factory, "7", strict_acceptance),
        accept_in_own_session(session_factory, "7", strict_acceptance),
        return_exceptions=True,
    )

    assert sum(isinstance(r, Proposal) for r in results) == 1
    assert sum(isinstance(r, ConflictError) for r in results) == 1


async def test_strict_guard_catches_project_taken_after_read(
    db, session_factory, marketplace, monkeypatch
):
    real_execute = db.execute
    raced = []

    async def execute_after_race(statement, *args, **kwargs):
        if not raced and isinstance(statement, Update) and statement.table.name == "proposals":
            # another session assigns the project between the read and the write
            raced.append(True)
            async with session_factory() as other:
                await other.execute(
                    update(Project).where(Project.project_id == "3")
                    .values(freelancer_id="42", status=ProjectStatusEnum.in_progress)
                )
                await other.commit()
        return await real_execute(statement, *args, **kwargs)

    monkeypatch.setattr(db, "execute", execute_after_race)

    with pytest.raises(ConflictError):
        await ProposalService(db, policy=strict_acceptance).accept_proposal("7")

    assert raced == [True]
    project = await reload(session_factory, Project, "3")
    assert project.freelancer_id == "42"
    proposal = await reload(session_factory, Proposal, "7")
    assert proposal.status == ProposalStatusEnum.pending
