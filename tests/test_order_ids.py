"""
Tests for ORD-YYMMDD-NNN id generation.
"""
import json
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from conftest import PASSWORD
from chemo_order.auth.models import User, Ward
from chemo_order.auth.service import create_user
from chemo_order.database import init_db
from chemo_order.orders.ids import (
    format_order_id,
    generate_order_id,
    order_id_prefix,
    parse_sequence,
)
from chemo_order.orders.models import Order, OrderSequence
from chemo_order.orders.service import create_order, parse_order_form
from chemo_order.patients.models import Patient

DAY = date(2024, 10, 5)


def _insert_order(db, order_id, nurse):
    patient = db.query(Patient).first()
    if patient is None:
        patient = Patient(hn="HN-IDS", ward_id=nurse.ward_id)
        db.add(patient)
        db.flush()
    db.add(Order(id=order_id, patient_id=patient.id, ward_id=nurse.ward_id, created_by_id=nurse.id, drugs=[]))
    db.commit()


def test_prefix_and_format():
    assert order_id_prefix(DAY) == "ORD-241005"
    assert format_order_id("ORD-241005", 7) == "ORD-241005-007"
    assert format_order_id("ORD-241005", 1000) == "ORD-241005-1000"


def test_parse_sequence():
    assert parse_sequence("ORD-241005-042") == 42
    assert parse_sequence("ORD-241005-1000") == 1000
    assert parse_sequence("garbage") == 0


def test_first_id_of_the_day(db):
    assert generate_order_id(db, DAY) == "ORD-241005-001"


def test_ids_increase_within_a_day(db):
    issued = [generate_order_id(db, DAY) for _ in range(3)]
    assert issued == ["ORD-241005-001", "ORD-241005-002", "ORD-241005-003"]


def test_sequence_restarts_each_day(db):
    generate_order_id(db, DAY)
    generate_order_id(db, DAY)
    assert generate_order_id(db, date(2024, 10, 6)) == "ORD-241006-001"


def test_counter_seeded_from_existing_orders(db, nurse):
    _insert_order(db, "ORD-241005-999", nurse)
    _insert_order(db, "ORD-241005-1000", nurse)
    _insert_order(db, "ORD-241004-050", nurse)

    assert generate_order_id(db, DAY) == "ORD-241005-1001"
    assert db.query(OrderSequence).filter(OrderSequence.prefix == "ORD-241005").one().last_value == 1001


def test_reservation_rolls_back_with_transaction(db):
    generate_order_id(db, DAY)
    db.commit()
    generate_order_id(db, DAY)
    db.rollback()
    assert generate_order_id(db, DAY) == "ORD-241005-002"


@pytest.fixture
def file_engine(tmp_path):
    """File-backed SQLite engine whose sessions really run side by side."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'orders.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    # Every transaction takes the write lock at BEGIN
    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    init_db(bind=engine)
    yield engine
    engine.dispose()


def test_concurrent_creates_get_distinct_sequential_ids(file_engine):
    Session = sessionmaker(bind=file_engine, autoflush=False)
    with Session() as setup:
        ward = Ward(name="Ward C")
        setup.add(ward)
        setup.flush()
        user_id = create_user(setup, "nurse_c", PASSWORD, "Nurse Carol", ward_id=ward.id).id

    workers = 8
    barrier = threading.Barrier(workers)

    def place_order(index):
        with Session() as session:
            form = parse_order_form(
                json.dumps({"hn": f"HN-C{index}"}),
                json.dumps([{"drugId": "oxaliplatin", "dose": "85", "day": "1"}]),
            )
            barrier.wait(timeout=30)
            user = session.get(User, user_id)
            return create_order(session, user, form, []).id

    with ThreadPoolExecutor(max_workers=workers) as pool:
        ids = list(pool.map(place_order, range(workers)))

    prefix = order_id_prefix(date.today())
    assert len(set(ids)) == workers
    assert all(order_id.startswith(f"{prefix}-") for order_id in ids)
    assert sorted(parse_sequence(order_id) for order_id in ids) == list(range(1, workers + 1))

    with Session() as session:
        in_commit_order = [order.id for order in session.query(Order).order_by(Order.created_at, Order.id)]
    assert [parse_sequence(order_id) for order_id in in_commit_order] == list(range(1, workers + 1))
