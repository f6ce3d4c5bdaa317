from app.models import Role
from scripts.promote_employee import main, promote


def test_promote_creates_then_updates(session):
    created = promote(session, "sarra@shop.tn", Role.PRODUCT_MANAGER, "Sarra")
    assert created.role == Role.PRODUCT_MANAGER
    assert created.full_name == "Sarra"

    created.is_active = False
    session.add(created)
    session.commit()

    updated = promote(session, "sarra@shop.tn", Role.ADMIN)
    assert updated.id == created.id
    assert updated.role == Role.ADMIN
    assert updated.is_active is True
    assert updated.full_name == "Sarra"


def test_main_rejects_bad_arguments(capsys):
    assert main([]) == 1
    assert main(["x@shop.tn", "boss"]) == 2
    assert "Rôle inconnu" in capsys.readouterr().out


def test_promote_finds_existing_email_regardless_of_case(session):
    first = promote(session, "Hedi@Shop.tn", Role.ORDER_MANAGER, "Hedi")
    again = promote(session, "hedi@shop.tn", Role.ADMIN)
    assert again.id == first.id
    assert again.role == Role.ADMIN
