"""Service-level tests for duplicate detection and the dismissal ledger."""

from __future__ import annotations

import unittest
from datetime import datetime, timezone

from sqlalchemy import create_engine, delete
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from customer_merge.db.base import Base
from customer_merge.models.customer import Customer
from customer_merge.models.customer_activity import CustomerActivity
from customer_merge.services.dismissals import dismiss_pair, is_dismissed, list_dismissals, undismiss_pair
from customer_merge.services.duplicates import (
    MAX_CONFIDENCE,
    REVIEW_THRESHOLD,
    find_duplicate_pairs,
    find_duplicates,
    score_pair,
)
from customer_merge.services.errors import (
    AlreadyDismissed,
    CustomerNotFound,
    DismissalNotFound,
    InvalidMergeTarget,
)


class DuplicateDetectionTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autoflush=False, autocommit=False, future=True)
        Base.metadata.create_all(cls.engine)

    @classmethod
    def tearDownClass(cls) -> None:
        Base.metadata.drop_all(cls.engine)
        cls.engine.dispose()

    def setUp(self) -> None:
        self.db: Session = self.SessionLocal()
        self._reset_tables()

    def tearDown(self) -> None:
        self.db.close()

    def _reset_tables(self) -> None:
        for table in reversed(Base.metadata.sorted_tables):
            self.db.execute(delete(table))
        self.db.commit()

    def _customer(self, name: str, *, tenant_id: int = 1, **values) -> Customer:
        customer = Customer(tenant_id=tenant_id, name=name, **values)
        self.db.add(customer)
        self.db.commit()
        return customer

    def test_score_pair_sums_weights_and_caps(self) -> None:
        left = Customer(
            tenant_id=1,
            name="Tanaka Taro",
            email="t@x.com",
            phone="090-1234-5678",
            line_user_id="U1",
        )
        right = Customer(
            tenant_id=1,
            name="tanaka  taro",
            email="T@X.com",
            phone="09012345678",
            line_user_id="U1",
        )
        confidence, signals = score_pair(left, right)

        self.assertEqual(confidence, MAX_CONFIDENCE)
        self.assertEqual(
            signals,
            ["shared messaging id", "exact email match", "exact phone match", "normalized name match"],
        )

        only_name, name_signals = score_pair(Customer(name="Sato"), Customer(name="SATO"))
        self.assertEqual(only_name, 20)
        self.assertEqual(name_signals, ["normalized name match"])
        self.assertLess(only_name, REVIEW_THRESHOLD)

    def test_blank_values_never_match(self) -> None:
        confidence, signals = score_pair(
            Customer(name="A", email="", phone=None),
            Customer(name="B", email="", phone=None),
        )
        self.assertEqual(confidence, 0)
        self.assertEqual(signals, [])

    def test_candidates_are_ranked_by_confidence_then_recency_then_id(self) -> None:
        reference = self._customer("Tanaka Taro", email="t@x.com", phone="090-1234-5678", line_user_id="U1")
        stale_email = self._customer("Someone", email="t@x.com")
        recent_email = self._customer("Another", email="T@x.com")
        line_match = self._customer("Line User", line_user_id="U1")
        phone_and_name = self._customer("tanaka taro", phone="09012345678")
        self._customer("Unrelated", email="other@x.com")
        self.db.add(
            CustomerActivity(
                tenant_id=1,
                customer_id=recent_email.id,
                activity_type="call",
                occurred_at=datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc),
            )
        )
        self.db.commit()

        candidates = find_duplicates(self.db, reference.id, tenant_id=1)

        self.assertEqual(
            [candidate.candidate.id for candidate in candidates],
            [phone_and_name.id, line_match.id, recent_email.id, stale_email.id],
        )
        self.assertEqual([candidate.confidence for candidate in candidates], [65, 60, 50, 50])
        self.assertEqual(candidates[0].signals, ["exact phone match", "normalized name match"])
        self.assertTrue(all(candidate.customer_id == reference.id for candidate in candidates))

    def test_equal_confidence_without_activity_falls_back_to_id(self) -> None:
        reference = self._customer("Ref", email="same@x.com")
        first = self._customer("First", email="same@x.com")
        second = self._customer("Second", email="same@x.com")
        with_activity = self._customer(
            "Third",
            email="same@x.com",
            last_activity_at=datetime(2026, 9, 1, tzinfo=timezone.utc),
        )

        candidates = find_duplicates(self.db, reference.id, tenant_id=1)

        self.assertEqual(
            [candidate.candidate.id for candidate in candidates],
            [with_activity.id, first.id, second.id],
        )

    def test_detection_is_tenant_scoped_and_skips_merged_customers(self) -> None:
        reference = self._customer("Ref", email="same@x.com")
        self._customer("Other tenant", tenant_id=2, email="same@x.com")
        survivor = self._customer("Survivor", phone="03-0000-0000")
        self._customer("Merged", email="same@x.com", merged_into_id=survivor.id)

        self.assertEqual(find_duplicates(self.db, reference.id, tenant_id=1), [])
        with self.assertRaises(CustomerNotFound):
            find_duplicates(self.db, reference.id, tenant_id=2)

    def test_merged_reference_has_no_candidates(self) -> None:
        survivor = self._customer("Survivor", email="same@x.com")
        merged = self._customer("Merged", email="same@x.com", merged_into_id=survivor.id)
        self._customer("Third", email="same@x.com")

        self.assertEqual(find_duplicates(self.db, merged.id, tenant_id=1), [])

    def test_dismissed_pair_is_hidden_until_undismissed(self) -> None:
        left = self._customer("Left", email="same@x.com")
        right = self._customer("Right", email="same@x.com")

        dismiss_pair(self.db, tenant_id=1, customer_a_id=right.id, customer_b_id=left.id, actor="agent")

        self.assertEqual(find_duplicates(self.db, left.id, tenant_id=1), [])
        self.assertEqual(find_duplicates(self.db, right.id, tenant_id=1), [])
        self.assertEqual(find_duplicate_pairs(self.db, tenant_id=1), [])

        undismiss_pair(self.db, tenant_id=1, customer_a_id=left.id, customer_b_id=right.id)

        reappeared = find_duplicates(self.db, left.id, tenant_id=1)
        self.assertEqual([candidate.candidate.id for candidate in reappeared], [right.id])

    def test_pair_scan_reports_each_pair_once(self) -> None:
        first = self._customer("Tanaka", email="t@x.com", phone="090-1234-5678")
        second = self._customer("tanaka", email="t@x.com", phone="09012345678")
        third = self._customer("Suzuki", phone="09012345678")
        self._customer("Alone", email="alone@x.com")

        pairs = find_duplicate_pairs(self.db, tenant_id=1)

        self.assertEqual(
            [(pair.customer_a.id, pair.customer_b.id, pair.confidence) for pair in pairs],
            [
                (first.id, second.id, 100),
                (first.id, third.id, 45),
                (second.id, third.id, 45),
            ],
        )


class DismissalLedgerTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autoflush=False, autocommit=False, future=True)
        Base.metadata.create_all(cls.engine)

    @classmethod
    def tearDownClass(cls) -> None:
        Base.metadata.drop_all(cls.engine)
        cls.engine.dispose()

    def setUp(self) -> None:
        self.db: Session = self.SessionLocal()
        for table in reversed(Base.metadata.sorted_tables):
            self.db.execute(delete(table))
        self.db.commit()
        self.left = Customer(tenant_id=1, name="Left")
        self.right = Customer(tenant_id=1, name="Right")
        self.elsewhere = Customer(tenant_id=2, name="Elsewhere")
        self.db.add_all([self.left, self.right, self.elsewhere])
        self.db.commit()

    def tearDown(self) -> None:
        self.db.close()

    def test_pair_is_stored_in_canonical_order(self) -> None:
        dismissal = dismiss_pair(
            self.db,
            tenant_id=1,
            customer_a_id=self.right.id,
            customer_b_id=self.left.id,
            actor="agent",
            reason="  siblings  ",
        )

        self.assertEqual((dismissal.customer_a_id, dismissal.customer_b_id), (self.left.id, self.right.id))
        self.assertEqual(dismissal.reason, "siblings")
        self.assertEqual(dismissal.dismissed_by, "agent")
        self.assertTrue(is_dismissed(self.db, tenant_id=1, customer_a_id=self.right.id, customer_b_id=self.left.id))

    def test_duplicate_dismissal_is_rejected_in_either_order(self) -> None:
        dismiss_pair(self.db, tenant_id=1, customer_a_id=self.left.id, customer_b_id=self.right.id, actor="agent")

        with self.assertRaises(AlreadyDismissed):
            dismiss_pair(
                self.db,
                tenant_id=1,
                customer_a_id=self.right.id,
                customer_b_id=self.left.id,
                actor="agent",
            )

    def test_invalid_pairs(self) -> None:
        with self.assertRaises(InvalidMergeTarget):
            dismiss_pair(self.db, tenant_id=1, customer_a_id=self.left.id, customer_b_id=self.left.id, actor="agent")
        with self.assertRaises(CustomerNotFound):
            dismiss_pair(
                self.db,
                tenant_id=1,
                customer_a_id=self.left.id,
                customer_b_id=self.elsewhere.id,
                actor="agent",
            )
        with self.assertRaises(DismissalNotFound):
            undismiss_pair(self.db, tenant_id=1, customer_a_id=self.left.id, customer_b_id=self.right.id)

    def test_list_dismissals_resolves_other_customer(self) -> None:
        third = Customer(tenant_id=1, name="Third")
        self.db.add(third)
        self.db.commit()
        dismiss_pair(self.db, tenant_id=1, customer_a_id=self.left.id, customer_b_id=self.right.id, actor="agent")
        dismiss_pair(self.db, tenant_id=1, customer_a_id=third.id, customer_b_id=self.right.id, actor="agent")

        everything = list_dismissals(self.db, tenant_id=1)
        for_right = list_dismissals(self.db, tenant_id=1, customer_id=self.right.id)
        for_left = list_dismissals(self.db, tenant_id=1, customer_id=self.left.id)

        self.assertEqual(len(everything), 2)
        self.assertTrue(all(item.other_customer is None for item in everything))
        self.assertEqual({item.other_customer.id for item in for_right}, {self.left.id, third.id})
        self.assertEqual([item.other_customer.name for item in for_left], ["Right"])
        self.assertEqual(for_left[0].customer_a.id, self.left.id)
        self.assertEqual(list_dismissals(self.db, tenant_id=2), [])


if __name__ == "__main__":
    unittest.main()
