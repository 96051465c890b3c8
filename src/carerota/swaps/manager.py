"""
Swap Lifecycle
==============
Creates, approves, rejects, cancels and executes shift swap requests.

Every step runs inside a store transaction: the duplicate-swap check and
the insert of a new request cannot interleave with another writer,
approval re-validates against a fresh read, and execution commits both
shifts and the swap status together or not at all.

Usage:
    manager = SwapManager(store)
    outcome = manager.request_swap("shift-a", "shift-b", "u1")
    if outcome.created:
        manager.approve(outcome.swap.id)
        manager.execute_swap(outcome.swap.id)
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from carerota.errors import InvalidStateError
from carerota.models.constraints import SolverConfig
from carerota.models.shift import AssignmentStatus, ShiftAssignment, assigned_user_ids, is_assigned
from carerota.models.swap import ConflictSnapshot, ShiftSwapRequest, SwapStatus
from carerota.solver.validation import ConflictReport, ConflictValidator
from carerota.store.base import RotaStore
from carerota.utils.structured_logging import bound_context, get_structured_logger
from carerota.utils.time_utils import utcnow

log = get_structured_logger("carerota.swaps")


@dataclass
class SwapRequestOutcome:
    """Result of proposing a swap; no request is stored when there are conflicts."""
    report: ConflictReport = field(default_factory=ConflictReport)
    swap: Optional[ShiftSwapRequest] = None

    @property
    def created(self) -> bool:
        return self.swap is not None


@dataclass
class ApprovalOutcome:
    """Result of an approval attempt; the swap stays pending when ``approved`` is False."""
    swap: ShiftSwapRequest
    report: ConflictReport = field(default_factory=ConflictReport)

    @property
    def approved(self) -> bool:
        return self.swap.status == SwapStatus.APPROVED


@dataclass
class SwapExecution:
    success: bool
    requester_shift_id: str
    target_shift_id: str
    swap_id: str = ""


def _snapshot(report: ConflictReport) -> ConflictSnapshot:
    return ConflictSnapshot(report.has_conflict, [c.to_dict() for c in report.conflicts])


class SwapManager:
    """State transitions and execution of shift swaps against a store."""

    def __init__(self, store: RotaStore, config: Optional[SolverConfig] = None):
        self.store = store
        self.config = config or SolverConfig()
        self.validator = ConflictValidator(store, self.config)

    def request_swap(
        self,
        requester_shift_id: str,
        target_shift_id: str,
        requester_id: str,
        message: str = "",
        now: Optional[datetime] = None,
    ) -> SwapRequestOutcome:
        """
        Propose giving up ``requester_shift_id`` in exchange for ``target_shift_id``.

        The counterpart is the first staff member on the target shift other
        than the requester. Conflicts are returned and nothing is stored.

        Raises:
            NotFoundError: a shift or the requester does not exist
            InvalidStateError: same shift on both sides, or nobody to swap with
        """
        requester_id = str(requester_id)
        if str(requester_shift_id) == str(target_shift_id):
            raise InvalidStateError("Cannot swap a shift with itself")

        with self.store.transaction():
            requester_shift = self.store.get_shift(requester_shift_id)
            target_shift = self.store.get_shift(target_shift_id)
            self.store.get_staff(requester_id)

            others = [uid for uid in assigned_user_ids(target_shift) if uid != requester_id]
            if not others:
                raise InvalidStateError(f"No other user is assigned to shift {target_shift.id}")
            target_user_id = others[0]

            report = self.validator.validate_swap(
                requester_shift.id, target_shift.id, requester_id, target_user_id,
            )
            if report.has_conflict:
                log.info("swap_request_blocked", requester_id=requester_id,
                         requester_shift_id=requester_shift.id, target_shift_id=target_shift.id,
                         conflicts=report.types)
                return SwapRequestOutcome(report=report)

            requested_at = now or utcnow()
            swap = ShiftSwapRequest(
                requester_shift_id=requester_shift.id,
                target_shift_id=target_shift.id,
                requester_id=requester_id,
                target_user_id=target_user_id,
                home_id=requester_shift.home_id,
                requester_message=message,
                conflict_check=_snapshot(report),
                requested_at=requested_at,
                expires_at=requested_at + timedelta(days=self.config.swap_expiry_days),
            )
            self.store.add_swap(swap)

        log.info("swap_requested", swap_id=swap.id, requester_id=requester_id,
                 target_user_id=target_user_id, expires_at=swap.expires_at.isoformat())
        return SwapRequestOutcome(report=report, swap=swap)

    def approve(self, swap_id: str, message: str = "", now: Optional[datetime] = None) -> ApprovalOutcome:
        """
        Approve a pending swap after re-running the conflict checks.

        A conflict leaves the swap pending, with the findings stored on it.

        Raises:
            NotFoundError: unknown swap
            InvalidStateError: swap is not pending
            SwapExpiredError: swap is past its expiry
        """
        with bound_context(swap_id=str(swap_id)):
            with self.store.transaction():
                swap = self.store.get_swap(swap_id)
                # Fail on status or expiry before re-validating
                swap.ensure_actionable("approve", now)

                report = self.validator.validate_swap(
                    swap.requester_shift_id, swap.target_shift_id,
                    swap.requester_id, swap.target_user_id,
                    exclude_swap_id=swap.id,
                )
                swap.conflict_check = _snapshot(report)
                if report.has_conflict:
                    self.store.save_swap(swap)
                    log.warning("swap_approval_blocked", conflicts=report.types)
                    return ApprovalOutcome(swap, report)

                swap.approve(message, now)
                self.store.save_swap(swap)
            log.info("swap_approved")
            return ApprovalOutcome(swap, report)

    def reject(self, swap_id: str, message: str = "", now: Optional[datetime] = None) -> ShiftSwapRequest:
        with self.store.transaction():
            swap = self.store.get_swap(swap_id)
            swap.reject(message, now)
            self.store.save_swap(swap)
        log.info("swap_rejected", swap_id=swap.id)
        return swap

    def cancel(self, swap_id: str, now: Optional[datetime] = None) -> ShiftSwapRequest:
        with self.store.transaction():
            swap = self.store.get_swap(swap_id)
            swap.cancel(now)
            self.store.save_swap(swap)
        log.info("swap_cancelled", swap_id=swap.id)
        return swap

    def execute_swap(self, swap_id: str, now: Optional[datetime] = None) -> SwapExecution:
        """
        Exchange the two staff members across the two shifts.

        Both shifts and the swap are written in one transaction; on any
        failure the swap stays ``approved`` and can be executed again.

        Raises:
            NotFoundError: unknown swap or shift
            InvalidStateError: swap is not approved, or the assignments
                changed since approval
            StorageError: the store failed; nothing was applied
        """
        with bound_context(swap_id=str(swap_id)):
            with self.store.transaction():
                swap = self.store.get_swap(swap_id)
                if swap.status != SwapStatus.APPROVED:
                    raise InvalidStateError(
                        f"Only approved swaps can be executed (swap {swap.id} is {swap.status.value})"
                    )
                requester_shift = self.store.get_shift(swap.requester_shift_id)
                target_shift = self.store.get_shift(swap.target_shift_id)
                if not (is_assigned(requester_shift, swap.requester_id)
                        and is_assigned(target_shift, swap.target_user_id)):
                    raise InvalidStateError(f"Assignments changed since swap {swap.id} was approved")

                at = now or utcnow()
                note = f"Assigned via shift swap (ID: {swap.id})"
                requester_shift.assigned_staff = [
                    a for a in requester_shift.assigned_staff if a.user_id != swap.requester_id
                ]
                target_shift.assigned_staff = [
                    a for a in target_shift.assigned_staff if a.user_id != swap.target_user_id
                ]
                target_shift.assigned_staff.append(
                    ShiftAssignment(swap.requester_id, AssignmentStatus.ASSIGNED, at, note)
                )
                requester_shift.assigned_staff.append(
                    ShiftAssignment(swap.target_user_id, AssignmentStatus.ASSIGNED, at, note)
                )

                self.store.save_shift(requester_shift)
                self.store.save_shift(target_shift)
                swap.complete(at)
                self.store.save_swap(swap)

            log.info("swap_executed", requester_shift_id=requester_shift.id, target_shift_id=target_shift.id)
            return SwapExecution(True, requester_shift.id, target_shift.id, swap.id)
