"""Tests that concurrent redemptions never exceed a coupon's redemption limit."""

from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from threading import Barrier

import pytest
from sqlalchemy.orm import sessionmaker

from coupons.core.database import Base, build_engine
from coupons.models.coupon_redemption import CouponRedemption
from coupons.repositories.coupon_repository import CouponRepository
from coupons.repositories.in_memory_coupon_store import InMemoryCouponStore
from coupons.services.coupon_service import CouponService

WORKERS = 8
LIMIT = 3

COUPON = {
    "code": "RUSH",
    "discount_type": "fixed_amount",
    "discount_value": 5,
    "redemption_limit": LIMIT,
}


class BarrierStoreMixin:
    """Holds every redemption until all workers have passed the validity check."""

    barrier: Barrier

    def record_redemption(self, coupon_id, user_id=None, order_id=None):
        self.barrier.wait()
        return super().record_redemption(coupon_id, user_id=user_id, order_id=order_id)


class BarrierCouponRepository(BarrierStoreMixin, CouponRepository):
    pass


class BarrierInMemoryCouponStore(BarrierStoreMixin, InMemoryCouponStore):
    pass


@pytest.fixture
def file_session_factory(tmp_path):
    """Session factory on a file database so each thread gets its own connection."""
    engine = build_engine(f"sqlite:///{tmp_path / 'concurrency.db'}")
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


class TestConcurrentRedemption:
    """N concurrent redeems against a coupon limited to k leave exactly k redemptions."""

    def test_sql_store(self, file_session_factory):
        """Test the SQL store's conditional update serializes redemptions."""
        setup_session = file_session_factory()
        CouponService(CouponRepository(setup_session)).create(COUPON)
        setup_session.close()

        barrier = Barrier(WORKERS, timeout=30)

        def redeem(worker: int) -> Decimal:
            session = file_session_factory()
            try:
                store = BarrierCouponRepository(session)
                store.barrier = barrier
                service = CouponService(store)
                return service.redeem("RUSH", 20, user_id=f"user-{worker}").discount
            finally:
                session.close()

        with ThreadPoolExecutor(max_workers=WORKERS) as pool:
            discounts = list(pool.map(redeem, range(WORKERS)))

        assert sorted(discounts, reverse=True) == [Decimal("5")] * LIMIT + [Decimal("0")] * (
            WORKERS - LIMIT
        )

        check_session = file_session_factory()
        try:
            assert check_session.query(CouponRedemption).count() == LIMIT
            coupon = CouponRepository(check_session).find_by_code("RUSH")
            assert coupon.redemptions_count == LIMIT
        finally:
            check_session.close()

    def test_in_memory_store(self):
        """Test the in-memory store's per-code lock serializes redemptions."""
        store = BarrierInMemoryCouponStore()
        store.barrier = Barrier(WORKERS, timeout=30)
        service = CouponService(store)
        coupon = service.create(COUPON)

        def redeem(worker: int):
            return service.redeem("RUSH", 20, order_id=str(worker))

        with ThreadPoolExecutor(max_workers=WORKERS) as pool:
            results = list(pool.map(redeem, range(WORKERS)))

        assert sum(1 for r in results if r.discount > 0) == LIMIT
        assert len(store.list_redemptions(coupon.id)) == LIMIT
        assert coupon.redemptions_count == LIMIT
