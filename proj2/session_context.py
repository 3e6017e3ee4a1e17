"""Explicit per-client session state: auth token, derived user id and cart."""
import logging

from auth import DecodeError, decode_user_id

logger = logging.getLogger(__name__)


class SessionContext:
    """
    Holds what the client knows about the logged-in user.

    Created empty, filled by ``login`` and emptied by ``logout``. Components
    receive the instance explicitly instead of reading global state.
    """

    def __init__(self, token=None):
        self._token = None
        self._user_id = None
        self.cart = {}
        if token:
            self.login(token)

    @property
    def token(self):
        return self._token

    @property
    def user_id(self):
        """Id read from the token payload, or None when it cannot be decoded."""
        return self._user_id

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    def login(self, token):
        self._token = token
        try:
            self._user_id = decode_user_id(token)
        except DecodeError as e:
            logger.warning("Could not read user id from token: %s", e)
            self._user_id = None

    def logout(self):
        self._token = None
        self._user_id = None
        self.cart.clear()

    def add_to_cart(self, item_id, quantity=1):
        if quantity <= 0:
            raise ValueError("quantity must be positive")
        self.cart[item_id] = self.cart.get(item_id, 0) + quantity
        return self.cart[item_id]

    def remove_from_cart(self, item_id):
        """Drop one unit of ``item_id``; the entry disappears at zero."""
        count = self.cart.get(item_id, 0)
        if count <= 1:
            self.cart.pop(item_id, None)
            return 0
        self.cart[item_id] = count - 1
        return count - 1
