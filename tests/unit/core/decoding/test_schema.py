import pytest

from nationscript.core.decoding.converters import convert_number
from nationscript.core.decoding.schema import NodeSchema, SchemaRegistry, TableDecodeNode, TagRule, filtered_list
from nationscript.domain.errors import UnknownSchemaError

BADGE = NodeSchema('badge', attributes={'type': TagRule('type')}, text=TagRule('resolution', convert_number))
PERSON = NodeSchema('person', tags={
    'NAME': TagRule('name'),
    'AGE': TagRule('age', convert_number),
    'BADGE': TagRule('badge', delegate=BADGE),
}, attributes={'id': TagRule('id', convert_number)})

def test_schema_call_creates_fresh_nodes():
    first = PERSON('PERSON')
    second = PERSON('PERSON')
    assert isinstance(first, TableDecodeNode)
    assert first is not second
    assert first.schema is PERSON
    assert not first.entered

def test_attributes_are_applied_on_enter():
    node = PERSON('PERSON')
    node.handle_open('PERSON', {'id': '7', 'unmapped': 'x'})
    assert node.product == {'id': 7}

def test_text_rule_collects_element_text():
    """Test an element carrying both attributes and its own text."""
    node = PERSON('PERSON')
    node.handle_open('PERSON', {})
    node.handle_open('BADGE', {'type': 'commend'})
    node.handle_text('42')
    node.handle_close('BADGE')
    node.handle_close('PERSON')
    assert node.deliver() == {'badge': {'type': 'commend', 'resolution': 42}}

def test_unmapped_tag_is_declined():
    node = PERSON('PERSON')
    node.handle_open('PERSON', {})
    assert node.decide('SHOE_SIZE', {}) is False

def test_extend_layers_rules():
    extended = PERSON.extend('person-plus', tags={'MOTTO': TagRule('motto')})
    assert 'MOTTO' in extended.tags and 'NAME' in extended.tags
    assert 'MOTTO' not in PERSON.tags
    assert extended.attributes == PERSON.attributes

def test_filtered_list_factory():
    factory = filtered_list('PERSON', PERSON, lambda p: p.get('age', 0) >= 18)
    node = factory('PEOPLE')
    node.handle_open('PEOPLE', {})
    for name, age in [('a', '12'), ('b', '30')]:
        node.handle_open('PERSON', {})
        node.handle_open('NAME', {})
        node.handle_text(name)
        node.handle_close('NAME')
        node.handle_open('AGE', {})
        node.handle_text(age)
        node.handle_close('AGE')
        node.handle_close('PERSON')
    node.handle_close('PEOPLE')
    assert node.deliver() == [{'name': 'b', 'age': 30}]

# --- Registry ---

def test_registry_creates_nodes_by_tag():
    registry = SchemaRegistry({'PERSON': PERSON})
    node = registry.create('PERSON')
    assert node.root_tag == 'PERSON'
    assert 'PERSON' in registry
    assert list(registry.tags) == ['PERSON']

def test_registry_unknown_tag_raises():
    registry = SchemaRegistry()
    with pytest.raises(UnknownSchemaError) as exc_info:
        registry.create('MYSTERY')
    assert exc_info.value.tag == 'MYSTERY'

def test_registry_rejects_non_callable_factory():
    with pytest.raises(TypeError):
        SchemaRegistry().register('X', 'not a factory')

def test_registry_register_replaces_factory():
    other = NodeSchema('other')
    registry = SchemaRegistry({'PERSON': PERSON}).register('PERSON', other)
    assert registry.create('PERSON').schema is other
