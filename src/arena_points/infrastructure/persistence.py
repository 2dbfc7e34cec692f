"""PointsRepository — the Ledger Updater.

All account mutations are single atomic PostgreSQL UPDATE ... RETURNING
statements; counters that a correction decrements are clamped at zero with
GREATEST(). Balance changes also append one row to points_ledger.

Accounts are created lazily with STARTING_POINTS on first touch.

Transaction ownership: The CALLER is responsible for committing.
"""

import logging

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.arena_common.enums import PointsEntryType
from src.arena_common.errors import InternalError
from src.arena_points.domain.models import PointsLedgerEntry, UserPoints
from src.arena_points.infrastructure.db_models import PointsLedgerORM, UserPointsORM

logger = logging.getLogger(__name__)

_RETURNING = """
    RETURNING user_id, balance, total_earned, total_wagered, total_won,
              win_count, loss_count, current_streak, best_streak, updated_at
"""

_ENSURE_ACCOUNT_SQL = text("""
    INSERT INTO user_points (user_id, balance)
    VALUES (:user_id, :starting_balance)
    ON CONFLICT (user_id) DO NOTHING
""")

_CREDIT_WIN_SQL = text(f"""
    UPDATE user_points
    SET balance        = balance + :amount,
        total_won      = total_won + :amount,
        total_earned   = total_earned + :amount,
        win_count      = win_count + 1,
        current_streak = current_streak + 1,
        best_streak    = GREATEST(best_streak, current_streak + 1),
        updated_at     = NOW()
    WHERE user_id = :user_id
    {_RETURNING}
""")

_CREDIT_SQL = text(f"""
    UPDATE user_points
    SET balance = balance + :amount,
        updated_at = NOW()
    WHERE user_id = :user_id
    {_RETURNING}
""")

_WIN_STREAK_SQL = text(f"""
    UPDATE user_points
    SET current_streak = current_streak + 1,
        best_streak    = GREATEST(best_streak, current_streak + 1),
        updated_at     = NOW()
    WHERE user_id = :user_id
    {_RETURNING}
""")

_LOSS_STREAK_SQL = text(f"""
    UPDATE user_points
    SET current_streak = 0,
        loss_count     = loss_count + 1,
        updated_at     = NOW()
    WHERE user_id = :user_id
    {_RETURNING}
""")

_REVERSE_WIN_STATS_SQL = text(f"""
    UPDATE user_points
    SET win_count    = GREATEST(win_count - 1, 0),
        total_won    = GREATEST(total_won - :payout, 0),
        total_earned = GREATEST(total_earned - :payout, 0),
        updated_at   = NOW()
    WHERE user_id = :user_id
    {_RETURNING}
""")

_REVERSE_LOSS_STATS_SQL = text(f"""
    UPDATE user_points
    SET loss_count = GREATEST(loss_count - 1, 0),
        updated_at = NOW()
    WHERE user_id = :user_id
    {_RETURNING}
""")

_INSERT_LEDGER_SQL = text("""
    INSERT INTO points_ledger
        (user_id, entry_type, amount, balance_after,
         reference_type, reference_id, description)
    VALUES
        (:user_id, :entry_type, :amount, :balance_after,
         :reference_type, :reference_id, :description)
""")


def _row_to_points(row: object) -> UserPoints:
    return UserPoints(
        user_id=str(row.user_id),  # type: ignore[attr-defined]
        balance=row.balance,  # type: ignore[attr-defined]
        total_earned=row.total_earned,  # type: ignore[attr-defined]
        total_wagered=row.total_wagered,  # type: ignore[attr-defined]
        total_won=row.total_won,  # type: ignore[attr-defined]
        win_count=row.win_count,  # type: ignore[attr-defined]
        loss_count=row.loss_count,  # type: ignore[attr-defined]
        current_streak=row.current_streak,  # type: ignore[attr-defined]
        best_streak=row.best_streak,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class PointsRepository:
    """Concrete Ledger Updater — one account row per statement."""

    async def _ensure_account(self, db: AsyncSession, user_id: str) -> None:
        await db.execute(
            _ENSURE_ACCOUNT_SQL,
            {"user_id": user_id, "starting_balance": settings.STARTING_POINTS},
        )

    async def _update(self, db: AsyncSession, sql: object, params: dict[str, object]) -> UserPoints:
        result = await db.execute(sql, params)  # type: ignore[arg-type]
        row = result.fetchone()
        if row is None:
            raise InternalError(f"Points account vanished for user {params['user_id']}")
        return _row_to_points(row)

    async def credit_balance(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        is_win: bool,
        entry_type: PointsEntryType,
        reference_id: str | None = None,
        description: str | None = None,
    ) -> UserPoints:
        """Add *amount* (negative to debit). A win also bumps win stats and streak."""
        await self._ensure_account(db, user_id)
        sql = _CREDIT_WIN_SQL if is_win else _CREDIT_SQL
        points = await self._update(db, sql, {"user_id": user_id, "amount": amount})
        await db.execute(
            _INSERT_LEDGER_SQL,
            {
                "user_id": user_id,
                "entry_type": PointsEntryType(entry_type).value,
                "amount": amount,
                "balance_after": points.balance,
                "reference_type": "ARENA_BET",
                "reference_id": reference_id,
                "description": description,
            },
        )
        logger.debug(
            "Points %+d for %s (win=%s) → balance %d", amount, user_id, is_win, points.balance
        )
        return points

    async def update_streak(self, db: AsyncSession, user_id: str, is_win: bool) -> UserPoints:
        """Win: streak + 1. Loss: streak reset to 0 and loss_count + 1."""
        await self._ensure_account(db, user_id)
        sql = _WIN_STREAK_SQL if is_win else _LOSS_STREAK_SQL
        return await self._update(db, sql, {"user_id": user_id})

    async def reverse_win(
        self, db: AsyncSession, user_id: str, payout: int, reference_id: str | None = None
    ) -> UserPoints:
        """Take back a winner's payout and undo its win stats (clamped at 0).

        The streak is not rewound: the sequence that produced it is not stored.
        """
        if payout > 0:
            await self.credit_balance(
                db,
                user_id,
                -payout,
                is_win=False,
                entry_type=PointsEntryType.CORRECTION_REVERSAL,
                reference_id=reference_id,
                description="Reversed winning payout",
            )
        else:
            await self._ensure_account(db, user_id)
        return await self._update(
            db, _REVERSE_WIN_STATS_SQL, {"user_id": user_id, "payout": payout}
        )

    async def reverse_loss(
        self, db: AsyncSession, user_id: str, refund: int, reference_id: str | None = None
    ) -> UserPoints:
        """Undo a loss (clamped at 0); debit any solo-market refund it carried."""
        if refund > 0:
            await self.credit_balance(
                db,
                user_id,
                -refund,
                is_win=False,
                entry_type=PointsEntryType.CORRECTION_REVERSAL,
                reference_id=reference_id,
                description="Reversed solo-market refund",
            )
        else:
            await self._ensure_account(db, user_id)
        return await self._update(db, _REVERSE_LOSS_STATS_SQL, {"user_id": user_id})

    async def get_points(self, db: AsyncSession, user_id: str) -> UserPoints | None:
        result = await db.execute(select(UserPointsORM).where(UserPointsORM.user_id == user_id))
        orm = result.scalar_one_or_none()
        return _row_to_points(orm) if orm else None

    async def list_ledger_entries(
        self, db: AsyncSession, user_id: str, limit: int
    ) -> list[PointsLedgerEntry]:
        result = await db.execute(
            select(PointsLedgerORM)
            .where(PointsLedgerORM.user_id == user_id)
            .order_by(PointsLedgerORM.id.desc())
            .limit(limit)
        )
        return [
            PointsLedgerEntry(
                id=e.id,
                user_id=e.user_id,
                entry_type=e.entry_type,
                amount=e.amount,
                balance_after=e.balance_after,
                reference_type=e.reference_type,
                reference_id=e.reference_id,
                description=e.description,
                created_at=e.created_at,
            )
            for e in result.scalars().all()
        ]
