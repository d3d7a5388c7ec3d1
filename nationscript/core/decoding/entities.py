"""Decode tables for the API's top-level documents.

Only the commonly used shards are mapped; unmapped tags are skipped by the
decode nodes, so new or rare shards never break a decode.
"""

from nationscript.core.decoding.converters import (
    convert_array,
    convert_boolean,
    convert_number,
    none_if_zero,
)
from nationscript.core.decoding.schema import (
    NodeSchema,
    SchemaRegistry,
    TagRule,
    complex_list,
    primitive_list,
)

# === Shared fragments ===

HAPPENING = NodeSchema('happening', tags={
    'TIMESTAMP': TagRule('timestamp', convert_number),
    'TEXT': TagRule('text'),
}, attributes={
    'id': TagRule('id', convert_number),
})

CENSUS_NATION = NodeSchema('census-data-nation', tags={
    'SCORE': TagRule('score', convert_number),
    'RANK': TagRule('rank_world', convert_number),
    'PRANK': TagRule('rank_world_percent', convert_number),
    'RRANK': TagRule('rank_region', convert_number),
    'PRRANK': TagRule('rank_region_percent', convert_number),
}, attributes={
    'id': TagRule('id', convert_number),
})

CENSUS_REGION = NodeSchema('census-data-region', tags={
    'SCORE': TagRule('score', convert_number),
    'RANK': TagRule('rank_world', convert_number),
    'PRANK': TagRule('rank_world_percent', convert_number),
}, attributes={
    'id': TagRule('id', convert_number),
})

CENSUS_WORLD = NodeSchema('census-data-world', tags={
    'SCORE': TagRule('score', convert_number),
}, attributes={
    'id': TagRule('id', convert_number),
})

CENSUS_RANK_SCORED = NodeSchema('census-rank-scored', tags={
    'NAME': TagRule('nation'),
    'RANK': TagRule('rank', convert_number),
    'SCORE': TagRule('score', convert_number),
})

CENSUS_RANK_UNSCORED = NodeSchema(
    'census-rank-unscored',
    attributes={'id': TagRule('scale', convert_number)},
    text=TagRule('rank', convert_number),
)

# <CENSUSRANKS> wraps its ranking in a second <NATIONS> element
CENSUS_RANKS = NodeSchema('census-ranks', tags={
    'NATIONS': TagRule('', delegate=complex_list('NATION', CENSUS_RANK_SCORED)),
})

WA_BADGE = NodeSchema(
    'badge-wa',
    attributes={'type': TagRule('type')},
    text=TagRule('resolution', convert_number),
)

EMBASSY = NodeSchema(
    'embassy',
    attributes={'type': TagRule('type')},
    text=TagRule('region'),
)

OFFICER = NodeSchema('officer', tags={
    'NATION': TagRule('nation'),
    'OFFICE': TagRule('office'),
    'BY': TagRule('appointer'),
    'AUTHORITY': TagRule('authorities', convert_array('')),
    'TIME': TagRule('appointment', convert_number),
    'ORDER': TagRule('order', convert_number),
})

DEATH_CAUSE = NodeSchema(
    'death-data',
    attributes={'type': TagRule('cause')},
    text=TagRule('percentage', convert_number),
)

DISPATCH_LIST_ITEM = NodeSchema('dispatch-list-item', tags={
    'TITLE': TagRule('title'),
    'AUTHOR': TagRule('author'),
    'CATEGORY': TagRule('category'),
    'SUBCATEGORY': TagRule('subcategory'),
    'CREATED': TagRule('created', convert_number),
    'EDITED': TagRule('edited', convert_number),
    'VIEWS': TagRule('views', convert_number),
    'SCORE': TagRule('score', convert_number),
}, attributes={
    'id': TagRule('id', convert_number),
})

# === NATION ===

NATION = NodeSchema('nation', tags={
    'ADMIRABLES': TagRule('admirables', delegate=primitive_list('ADMIRABLE')),
    'ANIMAL': TagRule('animal'),
    'ANIMALTRAIT': TagRule('animal_trait'),
    'BANNERS': TagRule('banners', delegate=primitive_list('BANNER')),
    'CAPITAL': TagRule('capital'),
    'CATEGORY': TagRule('category'),
    'CRIME': TagRule('crime'),
    'CURRENCY': TagRule('currency'),
    'DBID': TagRule('db_id', convert_number),
    'DEMONYM': TagRule('demonym_adjective'),
    'DEMONYM2': TagRule('demonym_noun'),
    'DEMONYM2PLURAL': TagRule('demonym_plural'),
    'DISPATCHES': TagRule('dispatch_num', convert_number),
    'DOSSIER': TagRule('dossier_nations', delegate=primitive_list('NATION')),
    'ENDORSEMENTS': TagRule('endorsements', convert_array(',')),
    'FACTBOOKS': TagRule('factbook_num', convert_number),
    'FIRSTLOGIN': TagRule('first_login', convert_number),
    'FLAG': TagRule('flag'),
    'FOUNDED': TagRule('founded'),
    'FOUNDEDTIME': TagRule('founded_timestamp', convert_number),
    'FULLNAME': TagRule('name_full'),
    'GAVOTE': TagRule('vote_ga'),
    'GDP': TagRule('gdp', convert_number),
    'GOVTDESC': TagRule('government'),
    'GOVTPRIORITY': TagRule('spending_priority'),
    'INCOME': TagRule('income_average', convert_number),
    'INDUSTRYDESC': TagRule('description_industry'),
    'INFLUENCE': TagRule('influence'),
    'ISSUES_ANSWERED': TagRule('issues_answered', convert_number),
    'LASTACTIVITY': TagRule('last_login'),
    'LASTLOGIN': TagRule('last_login_timestamp', convert_number),
    'LEADER': TagRule('leader'),
    'LEGISLATION': TagRule('legislation', delegate=primitive_list('LAW')),
    'MAJORINDUSTRY': TagRule('major_industry'),
    'MOTTO': TagRule('motto'),
    'NAME': TagRule('name'),
    'NOTABLES': TagRule('notables', delegate=primitive_list('NOTABLE')),
    'PING': TagRule('ping', convert_boolean),
    'POOREST': TagRule('income_poorest', convert_number),
    'POPULATION': TagRule('population', convert_number),
    'PUBLICSECTOR': TagRule('gdp_government', convert_number),
    'RDOSSIER': TagRule('dossier_regions', delegate=primitive_list('REGION')),
    'REGION': TagRule('region'),
    'RELIGION': TagRule('religion'),
    'RICHEST': TagRule('income_richest', convert_number),
    'SCVOTE': TagRule('vote_sc'),
    'SENSIBILITIES': TagRule('sensibilities', convert_array(', ')),
    'TAX': TagRule('tax', convert_number),
    'TGCANCAMPAIGN': TagRule('receives_campaign', convert_boolean),
    'TGCANRECRUIT': TagRule('receives_recruit', convert_boolean),
    'TYPE': TagRule('pretitle'),
    'UNSTATUS': TagRule('wa_status'),
    'VERIFY': TagRule('verified', convert_boolean),
    'CENSUS': TagRule('census', delegate=complex_list('SCALE', CENSUS_NATION)),
    'DEATHS': TagRule('deaths', delegate=complex_list('CAUSE', DEATH_CAUSE)),
    'DISPATCHLIST': TagRule('dispatch_list', delegate=complex_list('DISPATCH', DISPATCH_LIST_ITEM)),
    'HAPPENINGS': TagRule('happenings', delegate=complex_list('EVENT', HAPPENING)),
    'RCENSUS': TagRule('census_rank_region', delegate=CENSUS_RANK_UNSCORED),
    'WCENSUS': TagRule('census_rank', delegate=CENSUS_RANK_UNSCORED),
    'WABADGES': TagRule('badges', delegate=complex_list('WABADGE', WA_BADGE)),
    # Not grouped in their own element by the API
    'HDI': TagRule('hdi.score', convert_number),
    'HDI-ECONOMY': TagRule('hdi.economy', convert_number),
    'HDI-SMART': TagRule('hdi.education', convert_number),
    'HDI-LIFESPAN': TagRule('hdi.lifespan', convert_number),
}, attributes={
    'id': TagRule('id_form'),
})

# === REGION ===

REGION = NodeSchema('region', tags={
    'BANNED': TagRule('banlist', convert_array(':')),
    'BANNER': TagRule('banner_id', none_if_zero),
    'BANNERBY': TagRule('banner_creator'),
    'BANNERURL': TagRule('banner_url'),
    'DBID': TagRule('db_id', convert_number),
    'DELEGATE': TagRule('delegate_name', none_if_zero),
    'DELEGATEAUTH': TagRule('delegate_authorities', convert_array('')),
    'DELEGATEVOTES': TagRule('delegate_votes', convert_number),
    'DISPATCHES': TagRule('pinned_dispatches', convert_array(',', convert_number)),
    'EMBASSYRMB': TagRule('crossposting'),
    'FACTBOOK': TagRule('wfe'),
    'FLAG': TagRule('flag'),
    'FOUNDED': TagRule('founded'),
    'FOUNDEDTIME': TagRule('founded_timestamp', convert_number),
    'FOUNDER': TagRule('founder', none_if_zero),
    'FRONTIER': TagRule('is_frontier', convert_boolean),
    'GOVERNOR': TagRule('governor', none_if_zero),
    'LASTUPDATE': TagRule('update_last', convert_number),
    'LASTMAJORUPDATE': TagRule('update_major', convert_number),
    'LASTMINORUPDATE': TagRule('update_minor', convert_number),
    'NAME': TagRule('name'),
    'NATIONS': TagRule('nations', convert_array(':')),
    'NUMNATIONS': TagRule('nations_num', convert_number),
    'UNNATIONS': TagRule('nations_wa', convert_array(':')),
    'NUMUNNATIONS': TagRule('nations_wa_num', convert_number),
    'POWER': TagRule('power_level'),
    'TAGS': TagRule('tags', delegate=primitive_list('TAG')),
    'CENSUS': TagRule('census', delegate=complex_list('SCALE', CENSUS_REGION)),
    'CENSUSRANKS': TagRule('census_ranks', delegate=CENSUS_RANKS),
    'EMBASSIES': TagRule('embassies', delegate=complex_list('EMBASSY', EMBASSY)),
    'HAPPENINGS': TagRule('happenings', delegate=complex_list('EVENT', HAPPENING)),
    'HISTORY': TagRule('history', delegate=complex_list('EVENT', HAPPENING)),
    'OFFICERS': TagRule('officers', delegate=complex_list('OFFICER', OFFICER)),
    'WABADGES': TagRule('badges', delegate=complex_list('WABADGE', WA_BADGE)),
}, attributes={
    'id': TagRule('id_form'),
})

# === WORLD ===

WORLD = NodeSchema('world', tags={
    'CENSUSID': TagRule('census_id', convert_number),
    'CENSUSSCALE': TagRule('census_scale'),
    'CENSUSTITLE': TagRule('census_title'),
    'FEATUREDREGION': TagRule('featured'),
    'LASTEVENTID': TagRule('last_event_id', convert_number),
    'NATIONS': TagRule('nations', convert_array(',')),
    'NEWNATIONS': TagRule('nations_new', convert_array(',')),
    'NUMNATIONS': TagRule('nations_num', convert_number),
    'NUMREGIONS': TagRule('regions_num', convert_number),
    'CENSUS': TagRule('census_averages', delegate=complex_list('SCALE', CENSUS_WORLD)),
    'CENSUSRANKS': TagRule('census_ranks', delegate=CENSUS_RANKS),
    'DISPATCHLIST': TagRule('dispatch_list', delegate=complex_list('DISPATCH', DISPATCH_LIST_ITEM)),
    'HAPPENINGS': TagRule('happenings', delegate=complex_list('EVENT', HAPPENING)),
})

# === WA ===

WORLD_ASSEMBLY = NodeSchema('world-assembly', tags={
    'LASTRESOLUTION': TagRule('last_resolution'),
    'DELEGATES': TagRule('delegates', convert_array(',')),
    'NUMDELEGATES': TagRule('delegates_num', convert_number),
    'MEMBERS': TagRule('members', convert_array(',')),
    'NUMNATIONS': TagRule('members_num', convert_number),
    'HAPPENINGS': TagRule('happenings', delegate=complex_list('EVENT', HAPPENING)),
}, attributes={
    'council': TagRule('council', convert_number),
})

# === Cards ===

CARD = NodeSchema('card', tags={
    'CARDID': TagRule('id', convert_number),
    'CATEGORY': TagRule('rarity'),
    'FLAG': TagRule('depicted.flag'),
    'GOVT': TagRule('depicted.category'),
    'MARKET_VALUE': TagRule('value', convert_number),
    'NAME': TagRule('depicted.name'),
    'OWNERS': TagRule('owners', delegate=primitive_list('OWNER')),
    'REGION': TagRule('depicted.region'),
    'SEASON': TagRule('season', convert_number),
    'SLOGAN': TagRule('depicted.motto'),
    'TYPE': TagRule('depicted.pretitle'),
})

CARD_LIST_ITEM = NodeSchema('card-list-item', tags={
    'CARDID': TagRule('id', convert_number),
    'CATEGORY': TagRule('rarity'),
    'SEASON': TagRule('season', convert_number),
})

DECK_INFO = NodeSchema('deck', tags={
    'BANK': TagRule('bank', convert_number),
    'DECK_CAPACITY_RAW': TagRule('capacity', convert_number),
    'DECK_VALUE': TagRule('value', convert_number),
    'ID': TagRule('nation_id', convert_number),
    'LAST_PACK_OPENED': TagRule('last_pack_opened', convert_number),
    'LAST_VALUED': TagRule('last_valued', convert_number),
    'NUM_CARDS': TagRule('num_cards', convert_number),
    'RANK': TagRule('rank', convert_number),
    'REGION_RANK': TagRule('rank_region', convert_number),
})

CARD_WORLD = NodeSchema('card-world', tags={
    'DECK': TagRule('cards', delegate=complex_list('CARD', CARD_LIST_ITEM)),
    'INFO': TagRule('deck_summary', delegate=DECK_INFO),
})

# === Registry ===

def default_registry() -> SchemaRegistry:
    """Registry for every top-level document the API returns."""
    return SchemaRegistry({
        'NATION': NATION,
        'REGION': REGION,
        'WORLD': WORLD,
        'WA': WORLD_ASSEMBLY,
        'CARD': CARD,
        'CARDS': CARD_WORLD,
    })
