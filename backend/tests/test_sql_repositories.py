"""
SQL backend transaction tests.

Verifies:
- A unit of work is retried after a transient database error
- A failed Result rolls the unit back instead of committing it
- Money columns are wide enough for large order totals
"""

import pytest
import sqlalchemy as sa
from sqlalchemy.exc import OperationalError

from conftest import TEST_CONFIG, create_category
from pharmacy import create_app
from pharmacy.errors import ErrorKind, Result
from pharmacy.extensions import db
from pharmacy.models import Order, OrderItem, Product
from pharmacy.repositories.concurrency import run_unit_with_retry
from pharmacy.services import get_services


@pytest.fixture
def sql_app():
    app = create_app({**TEST_CONFIG, "REPOSITORY_BACKEND": "sql"})
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def repos(sql_app):
    return get_services().repos


def locked_error():
    return OperationalError("UPDATE products", {}, Exception("database is locked"))


# =============================================================================
# UNIT OF WORK
# =============================================================================


class TestRunAtomic:
    def test_transient_error_is_retried(self, repos):
        calls = []

        def unit():
            calls.append(1)
            if len(calls) == 1:
                raise locked_error()
            return Result.success(repos.categories.add({"name": "Allergy"}))

        result = repos.run_atomic(unit)

        assert result.ok
        assert len(calls) == 2
        db.session.expire_all()
        assert [c.name for c in repos.categories.list()] == ["Allergy"]

    def test_failed_result_rolls_back(self, repos):
        def unit():
            repos.categories.add({"name": "Allergy"})
            return Result.failure(ErrorKind.VALIDATION_FAILED, "rejected")

        result = repos.run_atomic(unit)

        assert not result.ok
        assert repos.categories.list(include_disabled=True) == []

    def test_exception_rolls_back_and_propagates(self, repos):
        def unit():
            repos.categories.add({"name": "Allergy"})
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            repos.run_atomic(unit)

        assert repos.categories.list(include_disabled=True) == []

    def test_success_commits(self, repos):
        category = repos.run_atomic(lambda: repos.categories.add({"name": "Allergy"}))

        db.session.rollback()

        assert repos.categories.get(category.id) is not None


class TestRetryExhaustion:
    def test_last_transient_error_is_raised(self, sql_app):
        calls = []

        def unit():
            calls.append(1)
            raise locked_error()

        with pytest.raises(OperationalError):
            run_unit_with_retry(unit, attempts=3, backoff_base=0)

        assert len(calls) == 3

    def test_non_transient_error_is_not_retried(self, sql_app):
        calls = []

        def unit():
            calls.append(1)
            raise ValueError("bad input")

        with pytest.raises(ValueError):
            run_unit_with_retry(unit, backoff_base=0)

        assert len(calls) == 1


# =============================================================================
# SCHEMA
# =============================================================================


@pytest.mark.parametrize("column", [
    Product.__table__.c.price_cents,
    Order.__table__.c.total_cents,
    OrderItem.__table__.c.price_cents,
    OrderItem.__table__.c.total_cents,
])
def test_money_columns_are_big_integers(column):
    assert isinstance(column.type, sa.BigInteger)


def test_out_of_range_ids_are_not_found(repos):
    category = create_category(get_services(), "Allergy")
    huge = 10**20

    assert repos.categories.get(category.id) is not None
    assert repos.categories.get(huge) is None
    assert repos.products.get(huge) is None
    assert repos.products.decrement_stock(huge, 1) is False
    assert repos.orders.get(huge) is None
    assert repos.users.get(huge) is None
