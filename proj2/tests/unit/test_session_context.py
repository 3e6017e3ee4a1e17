import pytest

from auth import DecodeError, decode_user_id, issue_token
from session_context import SessionContext


def test_login_decodes_user_id():
    session = SessionContext()
    session.login(issue_token('U1', secret='some-other-secret-used-only-by-this-test'))
    assert session.is_authenticated
    assert session.user_id == 'U1'


def test_malformed_token_means_no_user():
    session = SessionContext('not.a.token')
    assert session.token == 'not.a.token'
    assert session.user_id is None


def test_logout_clears_token_and_cart():
    session = SessionContext(issue_token('U1'))
    session.add_to_cart('pizza', 2)
    session.logout()
    assert session.token is None
    assert session.user_id is None
    assert session.cart == {}


def test_cart_add_and_remove():
    session = SessionContext()
    assert session.add_to_cart('pizza') == 1
    assert session.add_to_cart('pizza', 2) == 3
    assert session.remove_from_cart('pizza') == 2
    session.remove_from_cart('pizza')
    assert session.remove_from_cart('pizza') == 0
    assert 'pizza' not in session.cart


def test_cart_rejects_non_positive_quantity():
    with pytest.raises(ValueError):
        SessionContext().add_to_cart('pizza', 0)


@pytest.mark.parametrize('token', [None, '', 'abc', 'a.b.c'])
def test_decode_user_id_errors(token):
    with pytest.raises(DecodeError):
        decode_user_id(token)
