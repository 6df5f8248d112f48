"""Display catalog for the AI-judge personalities a host can pick."""

from dataclasses import dataclass

from lobby.rooms.models import Personality


@dataclass(frozen=True)
class JudgeDescription:
    name: str
    description: str
    icon: str


JUDGE_DESCRIPTIONS: dict[Personality, JudgeDescription] = {
    Personality.ROASTER: JudgeDescription(
        name="The Roaster",
        description="Merciless stand-up comic. Every meme gets torn apart, the best one just a little less.",
        icon="flame",
    ),
    Personality.GRANDMA: JudgeDescription(
        name="Grandma",
        description="Sweet, confused and proud of everyone. Does not get the joke but loves the effort.",
        icon="glasses",
    ),
    Personality.GEN_Z: JudgeDescription(
        name="Gen Z",
        description="Chronically online. Judges in slang and rates everything on vibes.",
        icon="sparkles",
    ),
}


def describe(personality: Personality) -> JudgeDescription:
    return JUDGE_DESCRIPTIONS[personality]
