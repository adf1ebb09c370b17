import pytest

from accountant import db
from accountant.exceptions import NotFound, ValidationError
from accountant.models import ensure_default_currency
from accountant import shop


@pytest.fixture
def fcfa(app):
    currency = ensure_default_currency()
    db.session.commit()
    return currency


def _create(code="USD", name="US Dollar", rate=600, **extra):
    payload = {"code": code, "name": name, "conversion_rate_to_fcfa": rate}
    payload.update(extra)
    return shop.create_currency(payload)


def test_code_is_upper_cased_and_symbol_defaults_to_code(fcfa):
    currency = _create(code="usd")

    assert currency.code == "USD"
    assert currency.symbol == "USD"
    assert currency.is_default is False


def test_duplicate_code_is_rejected(fcfa):
    _create(code="EUR", name="Euro", rate="655.957")

    with pytest.raises(ValidationError):
        _create(code="eur", name="Euro again", rate=650)


@pytest.mark.parametrize("rate", [0, -1, "abc", None])
def test_rate_must_be_positive(fcfa, rate):
    with pytest.raises(ValidationError):
        _create(rate=rate)


def test_listing_puts_fcfa_then_default_first(fcfa):
    _create(code="EUR", name="Euro", rate=655)
    usd = _create(code="USD", name="US Dollar", rate=600)
    _create(code="CAD", name="Canadian Dollar", rate=440)
    shop.set_default_currency(usd.id)

    codes = [c.code for c in shop.list_currencies()]

    assert codes == ["FCFA", "USD", "CAD", "EUR"]


def test_set_default_leaves_exactly_one_default(fcfa):
    usd = _create()

    shop.set_default_currency(usd.id)

    db.session.expire_all()
    defaults = [c.code for c in shop.list_currencies() if c.is_default]
    assert defaults == ["USD"]
    assert shop.get_default_currency()["code"] == "USD"


def test_default_falls_back_to_fcfa(app):
    assert shop.get_default_currency()["code"] == "FCFA"


def test_update_rate_and_code(fcfa):
    usd = _create()

    shop.update_currency(usd.id, {"code": "usx", "conversion_rate_to_fcfa": 610})

    assert usd.code == "USX"
    assert usd.conversion_rate_to_fcfa == 610
    with pytest.raises(ValidationError):
        shop.update_currency(usd.id, {"code": "FCFA"})


def test_fcfa_cannot_be_deleted(fcfa):
    with pytest.raises(ValidationError):
        shop.delete_currency(fcfa.id)


def test_deleting_default_makes_fcfa_default(fcfa):
    usd = _create()
    shop.set_default_currency(usd.id)

    shop.delete_currency(usd.id)

    db.session.expire_all()
    assert shop.get_default_currency()["code"] == "FCFA"
    with pytest.raises(NotFound):
        shop.get_currency(usd.id)
