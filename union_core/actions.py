# union_core/actions.py
"""Three concrete actions per ladder level, used as result recommendations."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .errors import InvalidOptionLevel
from .levels import get_level_definition

DIFFICULTIES: Tuple[str, ...] = ("easy", "moderate", "challenging")


@dataclass(frozen=True)
class ActionStep:
    id: str
    title: str
    description: str
    duration_min: int
    difficulty: str
    example: str
    expected_outcome: str


@dataclass(frozen=True)
class ActionPlan:
    level: int
    main_challenge: str
    top_actions: Tuple[ActionStep, ...]


# (title, description, minutes, difficulty, example, expected outcome)
_RAW: Dict[int, Tuple[Tuple[str, str, int, str, str, str], ...]] = {
    1: (
        ("Tell one safe person", "Describe what happens at home to someone outside the relationship.", 30, "challenging",
         "Call a friend or a helpline and say plainly: 'this is what happened last week'.",
         "The situation stops being a secret and you have a witness."),
        ("Write a safety plan", "List where you would go, whom you would call and what you would take.", 45, "moderate",
         "Keep documents and a spare key with someone you trust.",
         "A clear exit exists even if you do not use it."),
        ("Track the cycle", "Note each blow-up and reconciliation with its date for two weeks.", 10, "easy",
         "One line a day in a notes app: date, trigger, what followed.",
         "The pattern becomes visible as a pattern."),
    ),
    2: (
        ("Map the family script", "Compare your relationship with your parents' on three points.", 40, "moderate",
         "Write how conflict, money and affection worked at home, then in your couple.",
         "You see which reactions are inherited."),
        ("Break one repetition", "Pick a recurring fight and do one thing differently next time.", 15, "challenging",
         "Instead of leaving the room, say 'I need ten minutes and I will come back'.",
         "The script loses its automatic hold."),
        ("Name the pull", "When you feel the familiar attraction, say its name out loud.", 5, "easy",
         "'This is the rescuer feeling again.'",
         "Intensity stops passing for intimacy."),
    ),
    3: (
        ("Build one independent support", "Create one source of stability that does not rely on the partner.", 60, "moderate",
         "A savings account, a friend you see weekly or a class of your own.",
         "Staying becomes a choice rather than a necessity."),
        ("Ask for concrete help", "Request one specific, small thing from the partner.", 10, "easy",
         "'Can you take the kids on Saturday morning so I can rest?'",
         "Needs are stated instead of endured."),
        ("Release one resentment", "Write down an old grievance and decide what to do with it.", 30, "challenging",
         "Either raise it calmly this week or consciously let it go.",
         "Less pressure builds up between you."),
    ),
    4: (
        ("Daily feeling check-in", "Share one feeling a day, not logistics.", 5, "easy",
         "'Today I felt proud when...' at dinner.",
         "Emotional contact returns to the routine."),
        ("Plan something useless", "Do something together with no practical purpose.", 90, "moderate",
         "A walk with no errands, a film neither of you needs to see.",
         "The couple is more than a household."),
        ("Renegotiate one task", "Talk openly about a chore that feels unfair.", 20, "moderate",
         "Swap cooking and bills for a month and compare notes.",
         "Fairness is discussed, not silently tallied."),
    ),
    5: (
        ("Pause before reacting", "When a strong feeling rises, wait before acting on it.", 5, "moderate",
         "Breathe for ninety seconds before replying to a jealous thought.",
         "Feelings are felt without becoming scenes."),
        ("Talk after the storm", "Review a fight the next day, calmly.", 30, "moderate",
         "'Yesterday I said... what I meant was...'",
         "Drama turns into understanding."),
        ("Keep an emotion journal", "Record the highs and lows for two weeks.", 10, "easy",
         "Rate each day from 1 to 10 and note why.",
         "You see what actually drives the swings."),
    ),
    6: (
        ("Step out of the role", "Spend one day without your usual role in the couple.", 120, "challenging",
         "The provider asks for help, the carer lets the partner cook.",
         "You meet each other outside the roles."),
        ("Ask about hidden needs", "Ask what your partner needs beyond what the role gives.", 20, "easy",
         "'What would you want from me if I were not the one who always organises?'",
         "The person behind the role becomes visible."),
        ("Drop one image ritual", "Skip one thing done mainly for how the couple looks.", 15, "moderate",
         "Do not post the anniversary photo, talk about the year instead.",
         "Recognition comes from each other, not the audience."),
    ),
    7: (
        ("Turn an insight into a habit", "Pick one thing you understand about yourself and change a behaviour.", 15, "moderate",
         "If you withdraw when criticised, agree a phrase that means 'I am still here'.",
         "Understanding shows up in action."),
        ("Practise repair", "After every conflict, name your part within a day.", 10, "moderate",
         "'My part was raising my voice, I am sorry for that.'",
         "Conflicts end in reconnection."),
        ("Weekly needs talk", "Hold a short, structured conversation about needs each week.", 30, "easy",
         "Each partner names one need met and one unmet.",
         "Needs are spoken before they turn into complaints."),
    ),
    8: (
        ("Stay curious", "Ask one question you have never asked your partner.", 15, "easy",
         "'What do you want to learn in the next five years?'",
         "Acceptance does not turn into taking for granted."),
        ("Protect couple time", "Block a fixed weekly slot only for the two of you.", 60, "moderate",
         "Thursday evening, phones off.",
         "The relationship keeps its own space."),
        ("Hold a boundary kindly", "Say no once this week without guilt or blame.", 10, "challenging",
         "'I love you and I am not coming to that dinner.'",
         "Love and boundaries coexist."),
    ),
    9: (
        ("Start a shared project", "Choose something you build together over months.", 60, "moderate",
         "A garden, a trip you plan together, a joint course.",
         "Two free lives gain a shared direction."),
        ("Sync directions", "Compare personal goals and find where they meet.", 45, "moderate",
         "Each writes three goals for the year, then look for overlaps.",
         "Autonomy strengthens the team instead of splitting it."),
        ("Notice parallel living", "Count the evenings spent side by side but apart.", 5, "easy",
         "Mark in a calendar which evenings you actually talked.",
         "Drift is caught early."),
    ),
    10: (
        ("Schedule rest", "Plan time together with no goal at all.", 120, "moderate",
         "A weekend with no plans and no self-improvement.",
         "Growth does not become performance."),
        ("Mentor another couple", "Share what works for you with a couple who asks.", 60, "challenging",
         "Have dinner with friends who are struggling and listen first.",
         "The partnership's strength reaches others."),
        ("Celebrate progress", "Look back at how far you have come together.", 30, "easy",
         "Re-read old messages from your first year.",
         "Gratitude balances ambition."),
    ),
    11: (
        ("Keep your own source", "Maintain one creative pursuit that is only yours.", 60, "moderate",
         "Your own instrument, sport or circle of friends.",
         "You stay two distinct people."),
        ("Share the work outward", "Offer something you created together beyond your circle.", 90, "challenging",
         "Host an open event or publish the project.",
         "Co-creation serves more than the couple."),
        ("Credit each other", "Name your partner's specific contribution out loud.", 5, "easy",
         "'The idea for the layout was yours.'",
         "Shared authorship stays balanced."),
    ),
    12: (
        ("Ground the practice", "Do one ordinary act of care every day.", 10, "easy",
         "Make the tea, take out the bins, without mentioning it.",
         "The sacred stays rooted in daily life."),
        ("Check for bypass", "Ask whether ideals are covering a real problem.", 20, "challenging",
         "Name one thing you have been 'rising above' instead of solving.",
         "Spiritual language does not replace honest work."),
        ("Serve together", "Give time as a couple to something beyond yourselves.", 120, "moderate",
         "Volunteer together once a month.",
         "The union reaches beyond the two of you."),
    ),
}


def _build() -> Dict[int, ActionPlan]:
    plans: Dict[int, ActionPlan] = {}
    for level, rows in _RAW.items():
        steps = tuple(
            ActionStep(
                id=f"l{level}_a{i}",
                title=title,
                description=desc,
                duration_min=minutes,
                difficulty=difficulty,
                example=example,
                expected_outcome=outcome,
            )
            for i, (title, desc, minutes, difficulty, example, outcome) in enumerate(rows, start=1)
        )
        plans[level] = ActionPlan(
            level=level,
            main_challenge=get_level_definition(level).challenge,
            top_actions=steps,
        )
    return plans


ACTION_PLANS: Dict[int, ActionPlan] = _build()


def get_action_plan(level: int) -> ActionPlan:
    plan = ACTION_PLANS.get(int(level))
    if plan is None:
        raise InvalidOptionLevel(level)
    return plan


def get_all_action_plans() -> List[ActionPlan]:
    return [ACTION_PLANS[lvl] for lvl in sorted(ACTION_PLANS)]


def get_action_by_id(level: int, action_id: str) -> Optional[ActionStep]:
    for step in get_action_plan(level).top_actions:
        if step.id == action_id:
            return step
    return None
