from datetime import datetime
from decimal import Decimal

import pytest
from db.client import session_scope
from db.models.finance import Transaction, User
from sqlalchemy import select

from finance_dashboard.actions import (
    DUPLICATE_ERROR,
    NOT_FOUND_ERROR,
    create_transaction,
    delete_transaction,
    list_transactions,
    parse_transaction_form,
    update_transaction,
)
from finance_dashboard.auth import AuthenticationError, find_user, get_authenticated_user
from finance_dashboard.models import IdentityClaims


def _form(**overrides):
    form = {
        "description": "Almoço",
        "amount": "32.90",
        "category": "Alimentação",
        "type": "EXPENSE",
    }
    form.update(overrides)
    return form


def _other_claims() -> IdentityClaims:
    return IdentityClaims(provider_user_id="user_other", email="bob@example.com")


# ---- form parsing -------------------------------------------------------------


def test_parse_form_converts_amount_and_checkbox():
    parsed = parse_transaction_form(_form(isFixed="on"))
    assert parsed["amount"] == pytest.approx(32.90)
    assert parsed["is_fixed"] is True
    assert parsed["description"] == "Almoço"


@pytest.mark.parametrize(
    "raw, expected", [("on", True), ("true", True), (None, False), ("off", False)]
)
def test_parse_form_checkbox_values(raw, expected):
    form = _form()
    if raw is not None:
        form["isFixed"] = raw
    assert parse_transaction_form(form)["is_fixed"] is expected


def test_parse_form_unparseable_amount_fails_validation(session, claims, registry):
    result = create_transaction(session, claims, _form(amount="12abc"), registry=registry)
    assert not result.success
    assert result.error == "Valor inválido - deve ser um número"


# ---- identity -----------------------------------------------------------------


def test_first_action_creates_local_user(session, claims):
    assert find_user(session, claims) is None

    user = get_authenticated_user(session, claims)

    assert user.provider_user_id == "user_2abc"
    assert user.email == "ana@example.com"
    assert user.name == "Ana Souza"
    assert get_authenticated_user(session, claims).id == user.id
    assert session.execute(select(User)).scalars().all() == [user]


def test_missing_identity_raises(session, registry):
    with pytest.raises(AuthenticationError, match="Usuário não autenticado"):
        create_transaction(session, None, _form(), registry=registry)


# ---- create -------------------------------------------------------------------


def test_create_persists_sanitized_values(session, claims, registry):
    when = datetime(2026, 10, 5, 12, 30)
    result = create_transaction(
        session,
        claims,
        _form(
            description="  Aluguel ",
            amount="1800.005",
            category="Aluguel/Condomínio",
            isFixed="on",
        ),
        registry=registry,
        now=when,
    )
    session.commit()

    assert result.success and result.error is None
    assert result.as_dict() == {"success": True}
    row = session.get(Transaction, result.transaction_id)
    assert row.description == "Aluguel"
    assert row.amount == Decimal("1800.01")
    assert row.category == "Aluguel/Condomínio"
    assert row.type == "EXPENSE"
    assert row.is_fixed is True
    assert row.date.replace(tzinfo=None) == when


def test_create_income_is_never_fixed(session, claims, registry):
    result = create_transaction(
        session,
        claims,
        _form(
            description="Salário outubro",
            amount="5000",
            category="Salário",
            type="INCOME",
            isFixed="on",
        ),
        registry=registry,
    )
    assert result.success
    assert session.get(Transaction, result.transaction_id).is_fixed is False


def test_create_validation_failure_writes_nothing(session, claims, registry):
    form = _form(category="Aluguel/Condomínio", type="INCOME")
    result = create_transaction(session, claims, form, registry=registry)

    assert not result.success
    assert result.as_dict() == {
        "success": False,
        "error": "Categoria não é válida para receitas (INCOME)",
    }
    assert session.execute(select(Transaction)).scalars().all() == []
    assert len(registry) == 0


def test_rapid_duplicate_create_is_rejected(session, claims, registry, clock):
    first = create_transaction(session, claims, _form(), registry=registry)
    resubmit = _form(description="ALMOÇO", amount="32.9")
    second = create_transaction(session, claims, resubmit, registry=registry)

    assert first.success
    assert not second.success
    assert second.error == DUPLICATE_ERROR
    assert len(session.execute(select(Transaction)).scalars().all()) == 1

    clock.advance(2000)
    third = create_transaction(session, claims, _form(), registry=registry)
    assert third.success
    assert len(session.execute(select(Transaction)).scalars().all()) == 2


def test_same_submission_from_another_user_is_not_duplicate(session, claims, registry):
    assert create_transaction(session, claims, _form(), registry=registry).success
    assert create_transaction(session, _other_claims(), _form(), registry=registry).success


def test_failed_write_releases_duplicate_key(session, claims, registry, monkeypatch):
    def boom(_row):
        raise RuntimeError("database unavailable")

    get_authenticated_user(session, claims)
    monkeypatch.setattr(session, "add", boom)
    with pytest.raises(RuntimeError, match="database unavailable"):
        create_transaction(session, claims, _form(), registry=registry)
    monkeypatch.undo()
    session.rollback()

    assert len(registry) == 0
    assert create_transaction(session, claims, _form(), registry=registry).success


# ---- update -------------------------------------------------------------------


def _create(session, claims, registry, clock, **overrides):
    result = create_transaction(session, claims, _form(**overrides), registry=registry)
    assert result.success
    clock.advance(5000)
    return result.transaction_id


def test_update_overwrites_fields(session, claims, registry, clock):
    tx_id = _create(session, claims, registry, clock)

    result = update_transaction(
        session,
        claims,
        _form(id=f" {tx_id} ", description="Jantar", amount="80", category="Lazer"),
        registry=registry,
    )
    session.commit()
    session.expire_all()

    assert result.success
    assert result.transaction_id == tx_id
    row = session.get(Transaction, tx_id)
    assert (row.description, row.amount, row.category) == ("Jantar", Decimal("80.00"), "Lazer")


def test_update_requires_valid_id(session, claims, registry):
    result = update_transaction(session, claims, _form(id="   "), registry=registry)
    assert result.error == "ID inválido ou não fornecido"


def test_update_runs_validation(session, claims, registry, clock):
    tx_id = _create(session, claims, registry, clock)
    result = update_transaction(session, claims, _form(id=tx_id, amount="0"), registry=registry)
    assert result.error == "Valor deve ser maior que zero"


def test_update_of_foreign_transaction_is_not_found(session, claims, registry, clock):
    tx_id = _create(session, claims, registry, clock)

    result = update_transaction(
        session, _other_claims(), _form(id=tx_id, description="Hack"), registry=registry
    )
    session.expire_all()

    assert result.error == NOT_FOUND_ERROR
    assert session.get(Transaction, tx_id).description == "Almoço"
    # The rejected edit did not arm the window for the other user
    assert create_transaction(
        session, _other_claims(), _form(description="Hack"), registry=registry
    ).success


def test_update_identical_to_recent_create_is_flagged(session, claims, registry):
    created = create_transaction(session, claims, _form(), registry=registry)

    form = _form(id=created.transaction_id)
    result = update_transaction(session, claims, form, registry=registry)
    assert result.error == DUPLICATE_ERROR

    relaxed = update_transaction(
        session, claims, form, registry=registry, check_duplicates=False
    )
    assert relaxed.success


# ---- delete / list ------------------------------------------------------------


def test_delete_only_matches_owner(session, claims, registry, clock):
    tx_id = _create(session, claims, registry, clock)

    assert delete_transaction(session, _other_claims(), tx_id).error == NOT_FOUND_ERROR
    assert session.get(Transaction, tx_id) is not None

    result = delete_transaction(session, claims, tx_id)
    session.commit()
    session.expire_all()

    assert result.success
    assert session.get(Transaction, tx_id) is None
    assert delete_transaction(session, claims, tx_id).error == NOT_FOUND_ERROR


@pytest.mark.parametrize("raw", [None, "", 7])
def test_delete_validates_id(session, claims, raw):
    assert delete_transaction(session, claims, raw).error == "ID inválido ou não fornecido"


def test_list_is_newest_first_and_scoped(session, claims, registry):
    for day, desc in [(3, "B"), (1, "A"), (9, "C")]:
        assert create_transaction(
            session, claims, _form(description=desc), registry=registry, now=datetime(2026, 10, day)
        ).success
    create_transaction(session, _other_claims(), _form(description="Z"), registry=registry)

    user = find_user(session, claims)
    assert [t.description for t in list_transactions(session, user)] == ["C", "B", "A"]
    assert [t.description for t in list_transactions(session, user, limit=2)] == ["C", "B"]


# ---- commit outcome -------------------------------------------------------------


def test_rolled_back_scope_releases_duplicate_key(database_url, claims, registry):
    with session_scope(database_url=database_url) as s:
        get_authenticated_user(s, claims)

    with pytest.raises(RuntimeError, match="commit refused"):
        with session_scope(database_url=database_url) as s:
            assert create_transaction(s, claims, _form(), registry=registry).success
            raise RuntimeError("commit refused")

    assert len(registry) == 0
    with session_scope(database_url=database_url) as s:
        assert create_transaction(s, claims, _form(), registry=registry).success


def test_committed_scope_keeps_duplicate_key(database_url, claims, registry):
    with session_scope(database_url=database_url) as s:
        assert create_transaction(s, claims, _form(), registry=registry).success

    with session_scope(database_url=database_url) as s:
        assert create_transaction(s, claims, _form(), registry=registry).error == DUPLICATE_ERROR


def test_rolled_back_update_releases_duplicate_key(session, claims, registry, clock):
    tx_id = _create(session, claims, registry, clock)
    session.commit()
    edit = _form(id=tx_id, description="Jantar")

    assert update_transaction(session, claims, edit, registry=registry).success
    session.rollback()

    assert update_transaction(session, claims, edit, registry=registry).success
