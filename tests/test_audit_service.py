from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import pytest

from app.core.enums import AuditActionEnum
from app.modules.audit.service import ADMIN_AUTH_RESOURCE, AuditService
from app.shared.request_context import RequestContext
from app.shared.utils import utc_now


class BrokenAuditRepository:
    async def create_audit_log(self, **_: object) -> None:
        raise RuntimeError("audit storage unavailable")

    async def commit(self) -> None:
        raise AssertionError("commit must not run after a failed write")


@pytest.mark.asyncio
async def test_record_captures_request_attribution(audit_repository) -> None:
    service = AuditService(audit_repository)
    actor_id = uuid4()

    log = await service.record(
        AuditActionEnum.PASSWORD_CHANGED,
        actor_id=actor_id,
        resource_id=actor_id,
        context=RequestContext(ip_address="203.0.113.9", user_agent="Mozilla/5.0"),
    )

    assert log.action == "PASSWORD_CHANGED"
    assert log.resource_type == ADMIN_AUTH_RESOURCE
    assert log.resource_id == str(actor_id)
    assert log.details == {}
    assert log.ip_address == "203.0.113.9"
    assert log.user_agent == "Mozilla/5.0"
    assert audit_repository.commits == 0


@pytest.mark.asyncio
async def test_record_without_context_leaves_attribution_empty(audit_repository) -> None:
    log = await AuditService(audit_repository).record(AuditActionEnum.LOGIN_FAILED, actor_id=None)

    assert log.ip_address is None
    assert log.user_agent is None


@pytest.mark.asyncio
async def test_record_and_commit_commits_immediately(audit_repository) -> None:
    await AuditService(audit_repository).record_and_commit(
        AuditActionEnum.UNAUTHORIZED_ACCESS_ATTEMPT,
        actor_id=uuid4(),
    )

    assert audit_repository.commits == 1


@pytest.mark.asyncio
async def test_write_failures_propagate() -> None:
    service = AuditService(BrokenAuditRepository())

    with pytest.raises(RuntimeError, match="audit storage unavailable"):
        await service.record_and_commit(AuditActionEnum.LOGOUT, actor_id=uuid4())


@pytest.mark.asyncio
async def test_actor_activity_counts_actions_in_window(audit_repository) -> None:
    service = AuditService(audit_repository)
    actor_id = uuid4()
    for action in (AuditActionEnum.LOGIN_SUCCESS, AuditActionEnum.LOGIN_SUCCESS, AuditActionEnum.LOGOUT):
        await service.record(action, actor_id=actor_id)
    await service.record(AuditActionEnum.LOGIN_SUCCESS, actor_id=uuid4())
    audit_repository.logs[0].created_at = utc_now() - timedelta(days=45)

    activity = await service.actor_activity(actor_id, days=30, now=utc_now())

    assert activity.total_actions == 2
    assert activity.action_counts == {"LOGIN_SUCCESS": 1, "LOGOUT": 1}
    assert len(activity.recent_logs) == 2


@pytest.mark.asyncio
async def test_actor_activity_counts_every_action_but_returns_ten_recent(audit_repository) -> None:
    service = AuditService(audit_repository)
    actor_id = uuid4()
    for _ in range(150):
        await service.record(AuditActionEnum.LOGIN_SUCCESS, actor_id=actor_id)
    await service.record(AuditActionEnum.LOGOUT, actor_id=actor_id)

    activity = await service.actor_activity(actor_id, days=30, now=utc_now())

    assert activity.total_actions == 151
    assert activity.action_counts == {"LOGIN_SUCCESS": 150, "LOGOUT": 1}
    assert len(activity.recent_logs) == 10
