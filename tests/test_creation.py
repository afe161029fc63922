"""Tests for planned delivery creation and the planner's database loading."""
from __future__ import annotations

from datetime import date
from unittest.mock import patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from magic_yarn.db import models
from magic_yarn.planner.creation import (
    ALREADY_EXISTS_MESSAGE,
    NO_SELECTION_MESSAGE,
    CreationResult,
    NothingToCreateError,
    create_deliveries_from_rows,
    delivery_payload,
    select_rows,
    split_existing,
)
from magic_yarn.planner.service import LOAD_ERROR_MESSAGE, compute_projection, load_planner_inputs

JAN_10 = date(2024, 1, 10)


def _deliveries(db_session) -> list[models.Delivery]:
    return list(db_session.execute(select(models.Delivery)).scalars().all())


class TestCreationResultMessage:
    def test_singular(self) -> None:
        result = CreationResult(created=[object()])
        assert result.message == "Created 1 delivery."

    def test_plural_with_skips(self) -> None:
        result = CreationResult(created=[object(), object()], skipped_existing=1)
        assert result.message == "Created 2 deliveries (1 skipped as already existing)."


class TestLoadAndProject:
    def test_loads_only_scheduled_recipients(self, db_session, make_user, make_recipient, make_delivery) -> None:
        leader = make_user(role="delivery_coordinator", full_name="Dana Coordinator")
        scheduled = make_recipient("Scheduled", assigned_user_id=leader.id)
        make_recipient("Unscheduled", shipment_frequency_months=None)
        make_recipient("Zero", shipment_frequency_months=0)
        make_delivery(scheduled, target_delivery_date=date(2023, 12, 31))

        recipients, deliveries = load_planner_inputs(db_session)

        assert [r.name for r in recipients] == ["Scheduled"]
        assert recipients[0].coordinator_name == "Dana Coordinator"
        assert [d.target_delivery_date for d in deliveries] == [date(2023, 12, 31)]

    def test_compute_projection(self, db_session, make_recipient, make_delivery) -> None:
        recipient = make_recipient("St. Mary's Hospital", shipment_frequency_months=3)
        make_delivery(recipient, target_delivery_date=date(2024, 1, 31))

        projection = compute_projection(db_session, 6, JAN_10)

        assert projection.error is None
        assert [(row.recipient_id, row.create_target_date) for row in projection.rows] == [
            (recipient.id, date(2024, 4, 30))
        ]
        assert projection.rows[0].chapter_leader == "Unassigned"

    def test_load_failure_returns_empty_projection_with_error(self, db_session) -> None:
        with patch(
            "magic_yarn.planner.service.RecipientRepository.list_with_frequency",
            side_effect=OperationalError("SELECT", {}, Exception("database is down")),
        ):
            projection = compute_projection(db_session, 6, JAN_10)

        assert projection.rows == []
        assert projection.error == LOAD_ERROR_MESSAGE

    def test_unknown_horizon_raises(self, db_session) -> None:
        with pytest.raises(ValueError):
            compute_projection(db_session, 4, JAN_10)


class TestCreateFromRows:
    def test_inserts_awaiting_confirmation_payload(self, db_session, make_user, make_recipient) -> None:
        leader = make_user(role="delivery_coordinator")
        recipient = make_recipient(shipment_frequency_months=1, assigned_user_id=leader.id)
        rows = compute_projection(db_session, 3, JAN_10).rows

        result = create_deliveries_from_rows(db_session, rows)

        assert result.created_count == 3
        assert result.skipped_existing == 0
        assert result.message == "Created 3 deliveries."
        stored = sorted(_deliveries(db_session), key=lambda d: d.target_delivery_date)
        assert [d.target_delivery_date for d in stored] == [date(2024, 1, 10), date(2024, 2, 10), date(2024, 3, 10)]
        first = stored[0]
        assert first.recipient_id == recipient.id
        assert first.recipient_contact_slot is None
        assert first.requested_date == JAN_10
        assert first.status_id == 1
        assert first.coordinator_id == leader.id
        assert (first.wigs, first.beanies) == (0, 0)
        assert first.address == "12 Main St | Boston, MA, 02110"
        assert first.shipped_date is None and first.completed_date is None
        assert first.tracking_number is None and first.notes is None

    def test_rows_created_meanwhile_are_skipped(self, db_session, make_recipient, make_delivery) -> None:
        recipient = make_recipient(shipment_frequency_months=1)
        rows = compute_projection(db_session, 3, JAN_10).rows
        # Someone else books February after the projection was computed.
        make_delivery(recipient, target_delivery_date=date(2024, 2, 27))

        result = create_deliveries_from_rows(db_session, rows)

        assert result.created_count == 2
        assert result.skipped_existing == 1
        assert result.message == "Created 2 deliveries (1 skipped as already existing)."
        months = sorted(d.target_delivery_date.strftime("%Y-%m") for d in _deliveries(db_session))
        assert months == ["2024-01", "2024-02", "2024-03"]

    def test_every_row_already_exists(self, db_session, make_recipient, make_delivery) -> None:
        recipient = make_recipient(shipment_frequency_months=6)
        rows = compute_projection(db_session, 1, JAN_10).rows
        make_delivery(recipient, target_delivery_date=date(2024, 1, 2))

        with pytest.raises(NothingToCreateError, match=ALREADY_EXISTS_MESSAGE):
            create_deliveries_from_rows(db_session, rows)

        assert len(_deliveries(db_session)) == 1

    def test_rows_without_address_are_never_inserted(self, db_session, make_recipient) -> None:
        make_recipient(shipment_frequency_months=1, address=None, city=None, state=None, zip=None)
        rows = compute_projection(db_session, 1, JAN_10).rows
        assert len(rows) == 1

        with pytest.raises(NothingToCreateError, match=NO_SELECTION_MESSAGE):
            create_deliveries_from_rows(db_session, rows)

        assert _deliveries(db_session) == []

    def test_empty_selection(self, db_session) -> None:
        with pytest.raises(NothingToCreateError, match=NO_SELECTION_MESSAGE):
            create_deliveries_from_rows(db_session, [])


class TestSelectionHelpers:
    def test_select_rows_keeps_selected_addressed_rows(self, db_session, make_recipient) -> None:
        with_address = make_recipient("A", shipment_frequency_months=1)
        make_recipient("B", shipment_frequency_months=1, address=None, city=None, state=None, zip=None)
        rows = compute_projection(db_session, 1, JAN_10).rows

        selected = select_rows(rows, [row.key for row in rows] + ["unknown:2024-01"])

        assert [row.recipient_id for row in selected] == [with_address.id]

    def test_split_existing_matches_recipient_and_month(self, db_session, make_recipient) -> None:
        recipient = make_recipient(shipment_frequency_months=1)
        rows = compute_projection(db_session, 3, JAN_10).rows

        fresh, skipped = split_existing(rows, [(recipient.id, date(2024, 3, 1)), ("other", date(2024, 1, 5))])

        assert skipped == 1
        assert [row.due_month_key for row in fresh] == ["2024-01", "2024-02"]

    def test_payload_uses_row_values(self, db_session, make_recipient) -> None:
        make_recipient(shipment_frequency_months=1)
        (row,) = compute_projection(db_session, 1, JAN_10).rows

        payload = delivery_payload(row)

        assert payload["target_delivery_date"] == row.create_target_date
        assert payload["requested_date"] == row.create_requested_date
        assert payload["address"] == row.create_address
        assert payload["status_id"] == 1
