"""Human-readable game ids, e.g. ``silent-lantern-crew-brave-choir``."""

import random
from typing import Callable

PREDICATES = [
    'able', 'agile', 'amber', 'ancient', 'autumn', 'bold', 'brave', 'bright',
    'brisk', 'calm', 'candid', 'cheerful', 'clever', 'cosmic', 'curly',
    'daring', 'dapper', 'eager', 'early', 'electric', 'elegant', 'fancy',
    'fast', 'fearless', 'fluffy', 'frosty', 'gentle', 'giant', 'glossy',
    'golden', 'grand', 'happy', 'hidden', 'honest', 'humble', 'icy', 'jolly',
    'keen', 'kind', 'lively', 'lucky', 'lunar', 'mellow', 'merry', 'mighty',
    'misty', 'modern', 'noble', 'nimble', 'odd', 'patient', 'plucky',
    'polite', 'proud', 'quick', 'quiet', 'rapid', 'rustic', 'silent',
    'silver', 'sleepy', 'smooth', 'snowy', 'solar', 'spicy', 'steady',
    'sunny', 'swift', 'tidy', 'tiny', 'velvet', 'vivid', 'wandering',
    'warm', 'wild', 'windy', 'witty', 'young', 'zany', 'zesty',
]

OBJECTS = [
    'acorn', 'anchor', 'apple', 'arrow', 'badger', 'balloon', 'banjo',
    'beacon', 'biscuit', 'bottle', 'button', 'cactus', 'candle', 'canoe',
    'castle', 'cloud', 'comet', 'compass', 'cookie', 'crayon', 'crystal',
    'drum', 'falcon', 'feather', 'fern', 'fiddle', 'garden', 'glacier',
    'harbor', 'helmet', 'island', 'kettle', 'kite', 'ladder', 'lantern',
    'lemon', 'magnet', 'maple', 'meadow', 'mitten', 'moose', 'muffin',
    'nugget', 'otter', 'paddle', 'pebble', 'pencil', 'pepper', 'piano',
    'pillow', 'planet', 'puzzle', 'quill', 'rabbit', 'raven', 'ribbon',
    'river', 'rocket', 'saddle', 'sapling', 'scarf', 'shell', 'sparrow',
    'spoon', 'sprout', 'teapot', 'thimble', 'tiger', 'tulip', 'turnip',
    'umbrella', 'violin', 'walrus', 'wagon', 'whistle', 'willow', 'yarn',
]

GROUPS = [
    'army', 'band', 'batch', 'bevy', 'bouquet', 'brigade', 'bunch', 'cast',
    'choir', 'circle', 'clan', 'club', 'cluster', 'collection', 'colony',
    'committee', 'company', 'council', 'crew', 'crowd', 'department',
    'family', 'fleet', 'flock', 'gang', 'gathering', 'group', 'guild',
    'herd', 'horde', 'league', 'legion', 'lineup', 'medley', 'mob', 'orchestra',
    'pack', 'panel', 'parade', 'party', 'posse', 'quartet', 'regiment',
    'roster', 'school', 'set', 'society', 'squad', 'swarm', 'team', 'tribe',
    'troop', 'troupe', 'union',
]

_default_rng = random.SystemRandom()


def create_probably_unique_name(rng: random.Random = None) -> str:
    rng = rng or _default_rng
    return '-'.join([
        rng.choice(PREDICATES),
        rng.choice(OBJECTS),
        rng.choice(GROUPS),
        rng.choice(PREDICATES),
        rng.choice(GROUPS),
    ])


def generate_game_id(exists: Callable[[str], bool], rng: random.Random = None) -> str:
    """Generate a game id for which ``exists`` is false.

    Collisions are vanishingly rare; keep drawing until one is free.
    """
    while True:
        candidate = create_probably_unique_name(rng)
        if not exists(candidate):
            return candidate


def create_fake_login_name(rng: random.Random = None) -> str:
    rng = rng or _default_rng
    return f'{rng.choice(PREDICATES)}-{rng.choice(OBJECTS)}'
