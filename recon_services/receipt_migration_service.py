"""
ReceiptMigrationService -- caller-facing entry point for audit and repair.

Responsibility:
    Owns the transaction boundary and the result envelope for the four
    operations: audit report, create missing receipts, fix zero-amount
    receipts, fix one bill's receipts.

Architecture position:
    Services -- outermost layer of the reconciliation core.  Transport
    (HTTP, CLI, job runner) and access control live with the caller.

Invariants enforced:
    - One session_scope per invocation: the snapshot read and every write
      of a repair share one transaction, committed only if the whole pass
      succeeds.
    - Repairs are single-flight per scope inside this process.  The two
      amount repairs share FIX_AMOUNTS_SCOPE, so a per-bill fix never runs
      alongside a whole-ledger one.
    - Failure envelopes carry a human-readable cause string, never a raw
      exception object.

Result envelope (``OperationResult.to_dict()``):
    success: {"success": True, "message": ..., <operation fields>}
    failure: {"success": False, "message": ..., "error": ..., "errorCode": ...}
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar
from uuid import uuid4

from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from recon_config.schema import ReconciliationSettings
from recon_kernel.db.engine import session_scope
from recon_kernel.domain.receipt_numbers import (
    ReceiptNumberGenerator,
    UUIDReceiptNumberGenerator,
)
from recon_kernel.exceptions import BillNotFoundError, ReconKernelError
from recon_kernel.logging_config import LogContext, get_logger
from recon_kernel.utils.single_flight import SingleFlightGuard

from recon_engines.reconciliation.analyzer import ReceiptReconciliationAnalyzer
from recon_services.receipt_audit_service import ReceiptAuditService
from recon_services.receipt_repair_service import (
    DEFAULT_MIGRATION_REMARKS,
    ReceiptRepairExecutor,
)

logger = get_logger("services.receipt_migration")

T = TypeVar("T")

STORAGE_ERROR_CODE = "STORAGE_ERROR"

CREATE_MISSING_SCOPE = "create_missing:*"
# Both amount repairs write the same receipts, so they share one scope.
FIX_AMOUNTS_SCOPE = "fix_amounts:*"


@dataclass(frozen=True)
class OperationResult:
    """Envelope returned by every migration operation.

    ``data`` holds the operation-specific wire fields; ``payload`` keeps the
    typed result for in-process callers.
    """

    success: bool
    message: str
    data: Mapping[str, Any] = field(default_factory=dict)
    error: str | None = None
    error_code: str | None = None
    payload: Any = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": self.success, "message": self.message}
        result.update(self.data)
        if not self.success:
            result["error"] = self.error
            result["errorCode"] = self.error_code
        return result


def describe_error(exc: BaseException) -> str:
    """Human-readable cause of a failure.

    Driver errors are reduced to the driver's own message, without the SQL
    statement and parameters SQLAlchemy wraps around it.
    """
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig).strip() or type(exc.orig).__name__
    return str(exc) or type(exc).__name__


class ReceiptMigrationService:
    """Runs reconciliation operations in their own transactions.

    Usage:
        service = ReceiptMigrationService(get_session_factory())
        result = service.create_missing_receipts()
        print(result.to_dict())
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        receipt_numbers: ReceiptNumberGenerator | None = None,
        analyzer: ReceiptReconciliationAnalyzer | None = None,
        guard: SingleFlightGuard | None = None,
        migration_remarks: str = DEFAULT_MIGRATION_REMARKS,
        max_receipt_number_attempts: int = 5,
        actor_id: str | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._receipt_numbers = receipt_numbers or UUIDReceiptNumberGenerator()
        self._analyzer = analyzer or ReceiptReconciliationAnalyzer()
        self._guard = guard or SingleFlightGuard()
        self._migration_remarks = migration_remarks
        self._max_attempts = max_receipt_number_attempts
        self._actor_id = actor_id

    @classmethod
    def from_settings(
        cls,
        settings: ReconciliationSettings,
        session_factory: sessionmaker[Session],
        actor_id: str | None = None,
    ) -> ReceiptMigrationService:
        """Build a service from loaded settings."""
        return cls(
            session_factory,
            receipt_numbers=UUIDReceiptNumberGenerator(settings.receipt_number_prefix),
            guard=SingleFlightGuard(settings.single_flight_timeout_seconds),
            migration_remarks=settings.migration_remarks,
            max_receipt_number_attempts=settings.max_receipt_number_attempts,
            actor_id=actor_id,
        )

    # -----------------------------------------------------------------
    # Operations
    # -----------------------------------------------------------------

    def get_audit_report(self) -> OperationResult:
        """Read-only report of every classification."""
        def run(session: Session):
            return ReceiptAuditService(session, self._analyzer).build_report()

        return self._invoke(
            mode="audit_report",
            scope=None,
            run=run,
            on_success=lambda report: OperationResult(
                success=True,
                message="Receipt audit report generated successfully",
                data={"report": report.to_dict()},
                payload=report,
            ),
            failure_message="Error generating audit report",
        )

    def create_missing_receipts(self) -> OperationResult:
        """Create a creation receipt for every paid bill without receipts."""
        return self._invoke(
            mode="create_missing",
            scope=CREATE_MISSING_SCOPE,
            run=lambda session: self._executor(session).create_missing_receipts(),
            on_success=lambda result: OperationResult(
                success=True,
                message=f"Successfully created {result.created_count} missing receipts",
                data={
                    "createdCount": result.created_count,
                    "totalBillsChecked": result.total_bills_checked,
                    "createdReceipts": list(result.created_receipt_numbers),
                },
                payload=result,
            ),
            failure_message="Error creating missing receipts",
        )

    def fix_zero_amount_receipts(self) -> OperationResult:
        """Correct zero/negative creation and cancellation receipts."""
        return self._invoke(
            mode="fix_zero_amounts",
            scope=FIX_AMOUNTS_SCOPE,
            run=lambda session: self._executor(session).fix_zero_amount_receipts(),
            on_success=lambda result: OperationResult(
                success=True,
                message=f"Successfully fixed {result.fixed_count} receipts",
                data={
                    "fixedReceipts": [f.to_dict() for f in result.fixed],
                    "skippedReceipts": [s.to_dict() for s in result.skipped],
                    "totalChecked": result.total_checked,
                },
                payload=result,
            ),
            failure_message="Error fixing zero amount receipts",
        )

    def fix_specific_bill_receipt(self, bill_number: str) -> OperationResult:
        """Correct the creation and cancellation receipts of one bill."""
        return self._invoke(
            mode="fix_bill",
            scope=FIX_AMOUNTS_SCOPE,
            run=lambda session: self._executor(session).fix_specific_bill_receipt(
                bill_number
            ),
            on_success=lambda result: OperationResult(
                success=True,
                message=f"Fixed {result.fixed_count} receipts for bill {bill_number}",
                data={
                    "billNumber": bill_number,
                    "fixedReceipts": [f.to_dict() for f in result.fixed],
                    "skippedReceipts": [s.to_dict() for s in result.skipped],
                    "totalChecked": result.total_checked,
                },
                payload=result,
            ),
            failure_message=f"Error fixing receipts for bill {bill_number}",
            bill_number=bill_number,
        )

    # -----------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------

    def _executor(self, session: Session) -> ReceiptRepairExecutor:
        return ReceiptRepairExecutor(
            session,
            receipt_numbers=self._receipt_numbers,
            analyzer=self._analyzer,
            migration_remarks=self._migration_remarks,
            max_receipt_number_attempts=self._max_attempts,
        )

    def _invoke(
        self,
        *,
        mode: str,
        scope: str | None,
        run: Callable[[Session], T],
        on_success: Callable[[T], OperationResult],
        failure_message: str,
        bill_number: str | None = None,
    ) -> OperationResult:
        with LogContext.bind(
            correlation_id=str(uuid4()),
            actor_id=self._actor_id,
            repair_mode=mode,
            bill_number=bill_number,
        ):
            logger.info("migration_operation_started", extra={"operation": mode})
            try:
                if scope is None:
                    with session_scope(self._session_factory) as session:
                        result = run(session)
                else:
                    with self._guard.hold(scope):
                        with session_scope(self._session_factory) as session:
                            result = run(session)
            except BillNotFoundError as exc:
                logger.info(
                    "migration_operation_not_found",
                    extra={"operation": mode, "bill_number": exc.bill_number},
                )
                return OperationResult(
                    success=False,
                    message=str(exc),
                    error=str(exc),
                    error_code=exc.code,
                )
            except ReconKernelError as exc:
                logger.error(
                    "migration_operation_failed",
                    extra={"operation": mode},
                    exc_info=True,
                )
                return OperationResult(
                    success=False,
                    message=failure_message,
                    error=describe_error(exc),
                    error_code=exc.code,
                )
            except SQLAlchemyError as exc:
                logger.error(
                    "migration_operation_failed",
                    extra={"operation": mode},
                    exc_info=True,
                )
                return OperationResult(
                    success=False,
                    message=failure_message,
                    error=describe_error(exc),
                    error_code=STORAGE_ERROR_CODE,
                )

            outcome = on_success(result)
            logger.info(
                "migration_operation_completed",
                extra={"operation": mode, "result_message": outcome.message},
            )
            return outcome
