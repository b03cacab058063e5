"""
Developmental milestone catalog, keyed by corrected-age window in days.
"""
from typing import Iterable, List

from config.settings import MILESTONE_PAST_DAYS, MILESTONE_FUTURE_DAYS
from src.models.data_structures import MilestoneDefinition

# =============================================================================
# Default catalog: (id, min_days, max_days, category, title, description)
# =============================================================================

DEFAULT_MILESTONES = [
    # 0-2 months corrected
    ('m001', 0, 60, 'motor', 'Lifts head briefly',
     'Briefly lifts the head; neck muscles begin to develop'),
    ('m002', 0, 60, 'cognitive', 'Visual tracking',
     'Follows a slowly moving object with the eyes'),
    ('m003', 0, 60, 'social', 'Responsive smile',
     'Smiles at familiar voices and faces'),
    ('m004', 30, 60, 'language', 'Cooing',
     'Makes cooing and other early vocal sounds'),
    # 2-4 months corrected
    ('m005', 60, 120, 'motor', 'Head up 90 degrees on tummy',
     'Raises the head to 90 degrees while prone and holds it'),
    ('m006', 60, 120, 'motor', 'Rolling attempts',
     'Starts rolling from back to side'),
    ('m007', 60, 120, 'cognitive', 'Grasp reflex fades',
     'Primitive grasp reflex fades and voluntary grasping emerges'),
    ('m008', 60, 120, 'social', 'Laughing',
     'Laughs out loud and responds positively to interaction'),
    ('m009', 60, 120, 'language', 'Babbling',
     'Makes more varied vowel sounds such as "aah" and "ooh"'),
    # 4-6 months corrected
    ('m010', 120, 180, 'motor', 'Supported sitting',
     'Sits with support while the back gradually straightens'),
    ('m011', 120, 180, 'motor', 'Two-handed reach',
     'Uses both hands together to grab objects'),
    ('m012', 120, 180, 'motor', 'Rolls both ways',
     'Rolls from back to tummy and back again'),
    ('m013', 120, 180, 'cognitive', 'Object permanence',
     'Begins to understand that hidden objects still exist'),
    ('m014', 120, 180, 'social', 'Recognizes familiar faces',
     'Tells familiar faces apart from strangers'),
    ('m015', 120, 180, 'language', 'Imitates sounds',
     'Imitates heard sounds and intonation'),
    # 6-9 months corrected
    ('m016', 180, 270, 'motor', 'Sits independently',
     'Sits without any support'),
    ('m017', 180, 270, 'motor', 'Pre-crawling',
     'Makes crawling movements without moving forward yet'),
    ('m018', 180, 270, 'motor', 'Pincer grasp',
     'Picks up small objects between thumb and forefinger'),
    ('m019', 180, 270, 'cognitive', 'Cause and effect',
     'Starts to link actions with their results'),
    ('m020', 180, 270, 'social', 'Separation anxiety',
     'Shows attachment to the primary caregiver'),
    ('m021', 180, 270, 'language', 'Consonant sounds',
     'Produces consonant syllables such as "ba", "da" and "ma"'),
    # 9-12 months corrected
    ('m022', 270, 365, 'motor', 'Pulls to stand',
     'Pulls up from sitting to standing while holding on'),
    ('m023', 270, 365, 'motor', 'Crawls across the room',
     'Moves around the room by crawling'),
    ('m024', 270, 365, 'motor', 'Cruising',
     'Walks sideways while holding furniture'),
    ('m025', 270, 365, 'cognitive', 'Pointing',
     'Points at wanted objects'),
    ('m026', 270, 365, 'cognitive', 'Follows simple instructions',
     'Understands simple requests such as "come here" and "bye-bye"'),
    ('m027', 270, 365, 'social', 'Waves bye-bye',
     'Imitates waving goodbye'),
    ('m028', 270, 365, 'language', 'Reduplicated words',
     'Says "mama" and "dada"'),
    # 12+ months corrected
    ('m029', 365, 547, 'motor', 'Walks independently',
     'Takes a few steps without support'),
    ('m030', 365, 547, 'language', 'First word',
     'Says a first meaningful word other than "mama" or "dada"'),
    ('m031', 365, 547, 'social', 'Imitative play',
     'Enjoys imitating adult actions and sounds'),
    ('m032', 365, 547, 'cognitive', 'Simple problem solving',
     'Solves simple problems such as finding a covered toy'),
]


def load_default_catalog() -> List[MilestoneDefinition]:
    return [
        MilestoneDefinition(
            id=mid, title=title, description=description, category=category,
            age_range_min=lo, age_range_max=hi,
        )
        for mid, lo, hi, category, title, description in DEFAULT_MILESTONES
    ]


def select_relevant(milestones: Iterable[MilestoneDefinition],
                    corrected_age_in_days: int,
                    past_days: int = MILESTONE_PAST_DAYS,
                    future_days: int = MILESTONE_FUTURE_DAYS
                    ) -> List[MilestoneDefinition]:
    """Milestones whose target range overlaps [age - past, age + future]."""
    lower = corrected_age_in_days - past_days
    upper = corrected_age_in_days + future_days
    return [
        m for m in milestones
        if m.age_range_max >= lower and m.age_range_min <= upper
    ]
