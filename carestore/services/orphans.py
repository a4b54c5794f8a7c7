"""
Orphan detection and cleanup for the account/profile join.

For one role, the identifiers of accounts with that role and of profiles
under the role's prefix are compared: ids on both sides are complete, ids on
one side only are orphans. Cleanup deletes every orphan independently and
then runs detection again to confirm the join holds everywhere.
"""

import structlog

from carestore.domain.errors import StoreError
from carestore.domain.keys import EntityKind
from carestore.domain.models import CleanupReport, OrphanKind, OrphanReport, Role
from carestore.services.store import KeyValueStore, Result, concurrent_reads

logger = structlog.get_logger(__name__)

PROFILE_KINDS: dict[Role, EntityKind] = {
    Role.PATIENT: EntityKind.PATIENT,
    Role.DOCTOR: EntityKind.DOCTOR,
}


def classify(role: Role, account_ids: set[str], profile_ids: set[str]) -> OrphanReport:
    """Split identifiers by which side of the join they appear on."""
    return OrphanReport(
        role=role,
        accounts_without_profiles=sorted(account_ids - profile_ids),
        profiles_without_accounts=sorted(profile_ids - account_ids),
        complete_records=sorted(account_ids & profile_ids),
    )


class OrphanService:
    """Finds and removes records whose counterpart is missing."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self.logger = logger.bind(component="orphan_service")

    @staticmethod
    def _profile_kind(role: Role) -> EntityKind:
        try:
            return PROFILE_KINDS[role]
        except KeyError:
            raise ValueError(f"Role {role.value!r} has no profile records") from None

    async def detect(self, role: Role) -> OrphanReport:
        profile_kind = self._profile_kind(role)
        accounts, profiles = await concurrent_reads(
            self.store.scan_by_prefix(EntityKind.ACCOUNT.prefix),
            self.store.scan_by_prefix(profile_kind.prefix),
        )
        account_ids = {
            str(a["id"])
            for a in accounts
            if isinstance(a, dict) and a.get("id") and a.get("role") == role.value
        }
        profile_ids = {str(p["id"]) for p in profiles if isinstance(p, dict) and p.get("id")}

        report = classify(role, account_ids, profile_ids)
        self.logger.info(
            "orphan_detection_completed",
            role=role.value,
            complete=len(report.complete_records),
            accounts_without_profiles=len(report.accounts_without_profiles),
            profiles_without_accounts=len(report.profiles_without_accounts),
        )
        return report

    async def _delete(self, key: str) -> Result[str, StoreError]:
        try:
            await self.store.delete(key)
        except StoreError as e:
            self.logger.warning("orphan_delete_failed", key=key, error=str(e))
            return Result.err(e)
        return Result.ok(key)

    async def cleanup(self, role: Role, report: OrphanReport | None = None) -> CleanupReport:
        """
        Delete every orphan of role, best effort, then re-run detection.

        A failed delete does not stop the remaining ones; failed keys are
        listed in the report and converged tells whether the join now holds.
        """
        profile_kind = self._profile_kind(role)
        report = report or await self.detect(role)

        deleted = 0
        failed: list[str] = []
        for orphan_kind, record_id in report.orphans():
            if orphan_kind == OrphanKind.PROFILE_WITHOUT_ACCOUNT:
                kind = profile_kind
            else:
                kind = EntityKind.ACCOUNT
            key = str(kind.key(record_id))
            result = await self._delete(key)
            if result.is_ok():
                deleted += 1
            else:
                failed.append(key)

        remaining = await self.detect(role)
        cleanup = CleanupReport(role=role, deleted=deleted, failed=failed, remaining=remaining)
        self.logger.info(
            "orphan_cleanup_completed",
            role=role.value,
            deleted=deleted,
            failed=len(failed),
            converged=cleanup.converged,
        )
        return cleanup
