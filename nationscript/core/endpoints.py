"""Builders for the API's endpoints.

Each builder returns a ready :class:`ApiRequest`; the request service takes
care of admission control, transport and decoding.
"""

import logging
from typing import Iterable, Optional

from nationscript.domain.models.common import CallClass
from nationscript.domain.models.request import ApiRequest, Credential, to_id_form
from nationscript.infrastructure.config.settings import DEFAULT_API_URL, DEFAULT_API_VERSION

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = 'application/x-www-form-urlencoded; charset=utf-8'

class Endpoints:
    """Creates requests against one API URL and version."""

    def __init__(self, api_url: str = DEFAULT_API_URL, version: Optional[str] = DEFAULT_API_VERSION):
        self.api_url = api_url
        self.version = version

    def _data_request(self, name: str, shards: Iterable[str] = ()) -> ApiRequest:
        request = ApiRequest(url=self.api_url, name=name, headers={'Content-Type': FORM_CONTENT_TYPE})
        if self.version:
            request.set_argument('v', self.version)
        request.add_shards(*shards)
        return request

    def nation(self, name: str, shards: Iterable[str] = (), credential: Optional[Credential] = None) -> ApiRequest:
        """Public (or, with a credential, private) shards of one nation."""
        request = self._data_request('nation', shards)
        request.set_argument('nation', to_id_form(name))
        request.mandatory.append('nation')
        request.credential = credential
        return request

    def region(self, name: str, shards: Iterable[str] = ()) -> ApiRequest:
        request = self._data_request('region', shards)
        request.set_argument('region', to_id_form(name))
        request.mandatory.append('region')
        return request

    def world(self, shards: Iterable[str] = ()) -> ApiRequest:
        return self._data_request('world', shards)

    def wa(self, council: int = 1, shards: Iterable[str] = ()) -> ApiRequest:
        if council not in (1, 2):
            raise ValueError(f"Council must be 1 (General Assembly) or 2 (Security Council), not {council}")
        request = self._data_request('wa', shards)
        request.set_argument('wa', str(council))
        request.mandatory.append('wa')
        return request

    def card(self, card_id: int, season: int, shards: Iterable[str] = ()) -> ApiRequest:
        request = self._data_request('card', ['card', *shards])
        request.set_argument('cardid', str(card_id))
        request.set_argument('season', str(season))
        request.mandatory.extend(['q', 'cardid', 'season'])
        return request

    def cards(self, shards: Iterable[str] = ('deck', 'info'), nation: Optional[str] = None) -> ApiRequest:
        """Card world shards, e.g. a nation's deck."""
        request = self._data_request('cards', ['cards', *shards])
        if nation:
            request.set_argument('nationname', to_id_form(nation))
        request.mandatory.append('q')
        return request

    def telegram(self, client_key: str, telegram_id: str, secret_key: str, recipient: str,
                 recruitment: bool = False) -> ApiRequest:
        request = self._data_request('telegram')
        request.set_argument('a', 'sendTG')
        request.set_argument('client', client_key)
        request.set_argument('tgid', telegram_id)
        request.set_argument('key', secret_key)
        request.set_argument('to', to_id_form(recipient))
        request.mandatory.extend(['a', 'client', 'tgid', 'key', 'to'])
        request.call_class = CallClass.RECRUITMENT if recruitment else CallClass.TELEGRAM
        return request

    def user_agent(self) -> ApiRequest:
        request = self._data_request('useragent')
        request.set_argument('a', 'useragent')
        request.mandatory.append('a')
        return request

    def api_version(self) -> ApiRequest:
        request = self._data_request('version')
        request.set_argument('a', 'version')
        request.mandatory.append('a')
        return request
