import pytest

from nationscript.domain.models.request import ApiRequest, Credential, to_id_form

@pytest.mark.parametrize("name, expected", [
    ("Testlandia", "testlandia"),
    ("  The North  Pacific ", "the_north_pacific"),
    ("already_id", "already_id"),
])
def test_to_id_form(name, expected):
    assert to_id_form(name) == expected

def test_credential_requires_a_secret():
    with pytest.raises(ValueError):
        Credential("Testlandia")
    with pytest.raises(ValueError):
        Credential("", password="x")

def test_credential_headers_prefer_pin():
    credential = Credential("Test Landia", password="pw", autologin="token")
    assert credential.nation == "test_landia"
    assert credential.to_headers() == {'X-Autologin': 'token', 'X-Password': 'pw'}

    credential.update_from_headers({'X-Pin': '987'})
    assert credential.to_headers() == {'X-Pin': '987'}

def test_credential_ignores_unrelated_headers():
    credential = Credential("Testlandia", password="pw")
    credential.update_from_headers({'content-type': 'text/xml'})
    assert credential.pin is None
    assert credential.autologin is None

def test_set_argument_joins_values():
    request = ApiRequest(url="u").set_argument('q', 'a', None, '', 'b')
    assert request.arguments == {'q': 'a+b'}
    assert request.set_argument('empty', '').arguments == {'q': 'a+b'}

def test_add_shards_skips_duplicates():
    request = ApiRequest(url="u").add_shards('name', 'census').add_shards('census', 'flag')
    assert request.shards == ['name', 'census', 'flag']

def test_get_without_arguments():
    assert ApiRequest(url="u").method == 'GET'
    assert ApiRequest(url="u").shards == []
