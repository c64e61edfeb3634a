"""
Admin session. The admin flag lives in an explicit mapping handed in by the
caller (a Flask session on the server, a plain dict elsewhere) and changes
only through login() and logout().

The shared credentials are a convenience gate, not a security boundary.
"""
import hmac
from datetime import datetime

from core.errors import AdminRequired

SESSION_KEY = 'is_admin'


class AdminSession:
    def __init__(self, state, username: str, password: str):
        self.state = state
        self._username = username
        self._password = password

    @property
    def is_admin(self) -> bool:
        return bool(self.state.get(SESSION_KEY, False))

    def login(self, username: str, password: str) -> bool:
        user_ok = hmac.compare_digest((username or '').encode(), self._username.encode())
        pass_ok = hmac.compare_digest((password or '').encode(), self._password.encode())
        if user_ok and pass_ok:
            self.state[SESSION_KEY] = True
            self.state['admin_since'] = datetime.now().isoformat()
            return True
        return False

    def logout(self):
        self.state.pop(SESSION_KEY, None)
        self.state.pop('admin_since', None)

    def require_admin(self):
        if not self.is_admin:
            raise AdminRequired()
