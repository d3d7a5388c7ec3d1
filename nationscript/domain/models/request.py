"""Request model: what to send to the API and with which credentials."""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from nationscript.domain.models.common import CallClass, IdForm

def to_id_form(name: str) -> IdForm:
    """Converts a display name into the API's id form ('Testlandia' -> 'testlandia')."""
    return IdForm(re.sub(r"\s+", "_", name.strip()).lower())

@dataclass
class Credential:
    """Login details for private shards and commands.

    The API hands out an autologin token and a session pin after the first
    authenticated call; both are picked up from the response headers so the
    password does not need to be sent again.
    """
    nation: str
    password: Optional[str] = None
    autologin: Optional[str] = None
    pin: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.nation, str) or not self.nation:
            raise ValueError(f"Invalid nation name ({self.nation!r})")
        if not self.password and not self.autologin:
            raise ValueError("Missing required login information")
        self.nation = to_id_form(self.nation)

    def to_headers(self) -> Dict[str, str]:
        """Headers authenticating a request; the pin wins when one is known."""
        if self.pin:
            return {'X-Pin': self.pin}
        headers = {}
        if self.autologin:
            headers['X-Autologin'] = self.autologin
        if self.password:
            headers['X-Password'] = self.password
        return headers

    def update_from_headers(self, headers: Mapping[str, str]) -> None:
        """Picks up X-Autologin and X-Pin from a response."""
        lowered = {str(k).lower(): v for k, v in headers.items()}
        autologin = lowered.get('x-autologin')
        pin = lowered.get('x-pin')
        if isinstance(autologin, str):
            self.autologin = autologin
        if isinstance(pin, str):
            self.pin = pin

@dataclass
class ApiRequest:
    """A single call to the API.

    ``arguments`` becomes the request body; multi-valued arguments (such as
    the ``q`` shard list) are joined with ``+``. An empty body means a GET.
    """
    url: str
    name: str = "api"
    arguments: Dict[str, str] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    mandatory: List[str] = field(default_factory=list)
    credential: Optional[Credential] = None
    call_class: Optional[CallClass] = None

    def set_argument(self, key: str, *values: str) -> "ApiRequest":
        present = [str(v) for v in values if v is not None and v != '']
        if key and present:
            self.arguments[key] = '+'.join(present)
        return self

    def get_argument(self, key: str) -> Optional[str]:
        return self.arguments.get(key)

    def add_shards(self, *shards: str) -> "ApiRequest":
        current = self.shards
        current.extend(s for s in shards if s and s not in current)
        if current:
            self.arguments['q'] = '+'.join(current)
        return self

    @property
    def shards(self) -> List[str]:
        q = self.arguments.get('q')
        return q.split('+') if q else []

    def missing_arguments(self) -> List[str]:
        return [key for key in self.mandatory if not self.arguments.get(key)]

    @property
    def method(self) -> str:
        return 'POST' if self.arguments else 'GET'
