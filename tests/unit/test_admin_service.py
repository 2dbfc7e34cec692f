"""Unit tests for AdminService (bets listing and invariant scan)."""

from unittest.mock import AsyncMock

import pytest

from src.arena_admin.application.service import AdminService
from src.arena_common.errors import MarketNotFoundError
from src.arena_settlement.application.resolution_service import ResolutionService


@pytest.fixture
def profiles() -> AsyncMock:
    repo = AsyncMock()
    repo.get_usernames.return_value = {"u1": "alice", "u2": "bob"}
    return repo


class TestGetMarketBets:
    async def test_bets_enriched_with_usernames(self, store, profiles) -> None:
        store.add_market("m1", [("u1", "yes", 100), ("u2", "no", 50), ("u3", "no", 10)])
        svc = AdminService(markets=store, bets=store, profiles=profiles)

        result = await svc.get_market_bets(store.session, "m1")

        assert result["market_id"] == "m1"
        assert result["total_pool"] == 160
        assert [(b["user_id"], b["username"]) for b in result["bets"]] == [
            ("u1", "alice"),
            ("u2", "bob"),
            ("u3", None),
        ]
        assert all(b["is_winner"] is None for b in result["bets"])

    async def test_missing_market(self, store, profiles) -> None:
        svc = AdminService(markets=store, bets=store, profiles=profiles)
        with pytest.raises(MarketNotFoundError):
            await svc.get_market_bets(store.session, "nope")
        profiles.get_usernames.assert_not_awaited()


class TestVerifyAllInvariants:
    async def test_clean_store(self, store, no_lock) -> None:
        store.add_market("m1", [("u1", "yes", 100), ("u2", "no", 50)])
        store.add_market("m2", [("u1", "yes", 30), ("u3", "no", 70)])
        resolution = ResolutionService(
            markets=store, bets=store, ledger=store, lock=no_lock, solo_adjustment=50
        )
        await resolution.resolve(store.session, "m2", "no")
        svc = AdminService(markets=store, bets=store, profiles=AsyncMock())

        report = await svc.verify_all_invariants(store.session)

        assert report == {"ok": True, "markets_checked": 2, "violations": []}

    async def test_reports_tampered_payout(self, store, no_lock) -> None:
        store.add_market("m1", [("u1", "yes", 100), ("u2", "no", 50)])
        resolution = ResolutionService(
            markets=store, bets=store, ledger=store, lock=no_lock, solo_adjustment=50
        )
        await resolution.resolve(store.session, "m1", "yes")
        store.bets[0].payout += 40
        svc = AdminService(markets=store, bets=store, profiles=AsyncMock())

        report = await svc.verify_all_invariants(store.session)

        assert report["ok"] is False
        assert any("INV-SETTLED" in v for v in report["violations"])
        assert any("INV-CONSERVE" in v for v in report["violations"])
