import json
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence


@dataclass(frozen=True)
class QuestionPair:
    authentic: str
    divergent: str
    tier: int


# Each tier escalates a little; the fake prompt should draw answers close
# enough to the real one that the faker can blend in.
DEFAULT_TIERS = [
    [
        ("Name a fruit you would put in a smoothie.", "Name a fruit you would never eat raw."),
        ("What is a good name for a dog?", "What is a good name for a goldfish?"),
        ("Name something you pack for the beach.", "Name something you pack for a ski trip."),
        ("What colour is your favourite shirt?", "What colour is your front door?"),
        ("Name a breakfast food.", "Name a food you eat at the cinema."),
        ("How many hours of sleep do you need?", "How many cups of coffee do you drink a day?"),
    ],
    [
        ("Name a movie everyone has seen.", "Name a movie you fell asleep watching."),
        ("Which animal would make the best pet?", "Which animal would win in a fight?"),
        ("What is the best pizza topping?", "What is the worst pizza topping?"),
        ("Name a famous scientist.", "Name a famous magician."),
        ("Which city would you love to visit?", "Which city would you never want to live in?"),
        ("How old were you when you learned to ride a bike?", "How old were you when you got your first phone?"),
    ],
    [
        ("What would you take to a desert island?", "What would you save from a burning house?"),
        ("Name a skill everyone should learn.", "Name a skill you pretend to have."),
        ("Which superpower would you pick?", "Which superpower would be the most useless?"),
        ("How much would you pay for a concert ticket?", "How much would you pay for a haircut?"),
        ("What job would you do for free?", "What job would you never do for any money?"),
        ("Name something you would find in a museum.", "Name something you would find in a junk drawer."),
    ],
]


class QuestionBank:
    """Ordered tiers of (authentic, divergent) prompt pairs."""

    def __init__(self, tiers: Sequence[Sequence[Sequence[str]]], rng: Optional[random.Random] = None):
        self.tiers: List[List[QuestionPair]] = [
            [QuestionPair(authentic=a, divergent=d, tier=i) for a, d in pairs]
            for i, pairs in enumerate(tiers, start=1)
        ]
        self._rng = rng or random.Random()

    @classmethod
    def from_file(cls, path, rng=None):
        with open(path, encoding='utf-8') as fh:
            data = json.load(fh)
        tiers = []
        for tier in data.get('tiers', []):
            tiers.append([(item['question'], item['fake']) for item in tier])
        return cls(tiers, rng=rng)

    @classmethod
    def from_config(cls, config, rng=None):
        path = config.get('QUESTIONS_PATH')
        if path:
            return cls.from_file(path, rng=rng)
        return cls(DEFAULT_TIERS, rng=rng)

    def __len__(self) -> int:
        return len(self.tiers)

    def pick(self, tier: int) -> QuestionPair:
        """Random pair from a 1-based tier; repeats across calls are allowed."""
        if tier < 1 or tier > len(self.tiers):
            raise IndexError(f"no question tier {tier}")
        pool = self.tiers[tier - 1]
        if not pool:
            raise LookupError(f"question tier {tier} is empty")
        return self._rng.choice(pool)

    def problems(self) -> List[str]:
        found = []
        if not self.tiers:
            found.append('no tiers defined')
        for tier, pool in enumerate(self.tiers, start=1):
            if not pool:
                found.append(f'tier {tier} is empty')
            for pair in pool:
                if not pair.authentic.strip() or not pair.divergent.strip():
                    found.append(f'tier {tier} has a blank prompt')
                elif pair.authentic.strip() == pair.divergent.strip():
                    found.append(f'tier {tier} has identical prompts: {pair.authentic!r}')
        return found
