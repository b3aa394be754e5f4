"""Transaction boundary for calculation and reset requests."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from employee_payroll.auth import AuthContext
from employee_payroll.calculators.types import CycleCalculationSummary
from employee_payroll.config import Settings
from employee_payroll.errors import PayrollError, PersistenceFailureError
from employee_payroll.services.payroll_service import PayrollCalculationService

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PayrollRunController:
    """Runs each calculation or reset as a single transaction.

    Success commits every detail row together; any failure rolls the whole
    batch back. Data-store errors surface as PersistenceFailureError.
    """

    def __init__(self, session: AsyncSession, settings: Settings):
        self.session = session
        self.service = PayrollCalculationService(session, settings)

    async def calculate(self, payroll_cycle_id: UUID, auth: AuthContext) -> CycleCalculationSummary:
        return await self._run(
            "calculate", payroll_cycle_id, lambda: self.service.request_calculation(payroll_cycle_id, auth)
        )

    async def reset(self, payroll_cycle_id: UUID, auth: AuthContext) -> int:
        return await self._run(
            "reset", payroll_cycle_id, lambda: self.service.request_reset(payroll_cycle_id, auth)
        )

    async def _run(
        self,
        operation: str,
        payroll_cycle_id: UUID,
        action: Callable[[], Awaitable[T]],
    ) -> T:
        try:
            result = await action()
            await self.session.commit()
            return result
        except PayrollError:
            await self.session.rollback()
            raise
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception("Payroll %s failed for cycle %s", operation, payroll_cycle_id)
            raise PersistenceFailureError(
                f"Payroll {operation} failed for cycle {payroll_cycle_id}",
                payroll_cycle_id=str(payroll_cycle_id),
            ) from exc
