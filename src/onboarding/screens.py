"""
Onboarding screens.

The intro and intake flow is a fixed, ordered list of screens. The state's
current_step indexes into ALL_SCREENS; the phase follows the type of the
screen at that index.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum

from onboarding.state import IntakeField, OnboardingPhase


class ScreenType(Enum):
    INTRO_HERO = "introHero"
    INTRO_NARRATION = "introNarration"
    INTRO_CTA = "introCTA"
    TEXT_INPUT = "textInput"
    BIRTHDAY_PICKER = "birthdayPicker"
    HEIGHT_PICKER = "heightPicker"
    WEIGHT_PICKER = "weightPicker"
    SIMPLE_SELECT = "simpleSelect"
    VOICE = "voice"
    GUIDED_VOICE = "guidedVoice"
    COMPLETE = "complete"

    @property
    def is_intro(self) -> bool:
        return self in (ScreenType.INTRO_HERO, ScreenType.INTRO_NARRATION, ScreenType.INTRO_CTA)


class Section(Enum):
    """Section labels shown above the segmented progress bar."""
    ABOUT_YOU = "ABOUT YOU"
    YOUR_GOALS = "YOUR GOALS"
    TRAINING_HISTORY = "TRAINING HISTORY"
    BODY_METRICS = "BODY METRICS"
    FITNESS_BASELINE = "FITNESS BASELINE"
    HEALTH = "HEALTH"
    LIFESTYLE = "LIFESTYLE"
    EQUIPMENT = "EQUIPMENT"
    PREFERENCES = "PREFERENCES"
    ALMOST_DONE = "ALMOST DONE"


@dataclass(frozen=True)
class Screen:
    """One onboarding screen. Only the attributes relevant to its type are set."""
    id: str
    type: ScreenType

    # Intro screens
    headline: str | None = None
    body: str | None = None
    cta: str | None = None

    # Question screens
    section: Section | None = None
    question: str | None = None
    sub: str | None = None
    placeholder: str | None = None
    field: IntakeField | None = None

    # Pickers
    birthday_default: date | None = None
    height_default: int | None = None
    height_min: int | None = None
    height_max: int | None = None
    weight_default: float | None = None
    weight_min: float | None = None
    weight_max: float | None = None
    weight_step: float | None = None

    # Select / voice
    options: tuple[str, ...] = ()
    pills: tuple[str, ...] = ()
    prompts: tuple[str, ...] = ()


def _voice(id: str, section: Section, question: str, sub: str | None = None, pills: tuple[str, ...] = ()) -> Screen:
    return Screen(
        id=id,
        type=ScreenType.VOICE,
        section=section,
        question=question,
        sub=sub,
        field=IntakeField(id),
        pills=pills,
    )


ALL_SCREENS: tuple[Screen, ...] = (
    # Intro (no section label, no progress bar)
    Screen(id="introHero", type=ScreenType.INTRO_HERO),
    Screen(id="introNarration", type=ScreenType.INTRO_NARRATION),
    Screen(
        id="introCTA",
        type=ScreenType.INTRO_CTA,
        headline="Let's build your program.",
        body="I'll ask some questions. Talk or type. The more I know, the better your plan.",
        cta="Get Started",
    ),

    # ABOUT YOU
    Screen(
        id="name",
        type=ScreenType.TEXT_INPUT,
        section=Section.ABOUT_YOU,
        question="What should I call you?",
        placeholder="Your first name",
        field=IntakeField.NAME,
    ),
    Screen(
        id="birthday",
        type=ScreenType.BIRTHDAY_PICKER,
        section=Section.ABOUT_YOU,
        question="When were you born?",
        field=IntakeField.BIRTHDAY,
        birthday_default=date(1996, 6, 15),
    ),
    Screen(
        id="gender",
        type=ScreenType.SIMPLE_SELECT,
        section=Section.ABOUT_YOU,
        question="What's your biological sex?",
        sub="This helps me tailor recovery, volume, and baseline expectations.",
        field=IntakeField.GENDER,
        options=("Male", "Female"),
    ),

    # YOUR GOALS
    Screen(
        id="goals",
        type=ScreenType.GUIDED_VOICE,
        section=Section.YOUR_GOALS,
        question="Tell me about your goals.",
        field=IntakeField.GOALS,
        pills=("Lose fat", "Build muscle", "Get stronger", "Improve endurance", "General health"),
        prompts=(
            "What's your main goal right now?",
            "What's motivating you to start?",
            "Any secondary goals beyond the main one?",
        ),
    ),
    _voice(
        "timeline",
        Section.YOUR_GOALS,
        "Do you have a timeline in mind?",
        "A wedding, a vacation, a sport season, or are you in no rush? "
        "This helps me set realistic milestones.",
        ("No deadline", "3 months", "6 months", "1 year"),
    ),

    # TRAINING HISTORY
    _voice(
        "experienceLevel",
        Section.TRAINING_HISTORY,
        "How would you describe your experience?",
        "Have you trained before? How long? What kind of training?",
        ("Complete beginner", "Some experience", "Intermediate", "Advanced"),
    ),
    _voice(
        "frequency",
        Section.TRAINING_HISTORY,
        "How many days a week can you train?",
        "How many days, which days work best, and how much time do you have per session?",
    ),
    _voice(
        "currentRoutine",
        Section.TRAINING_HISTORY,
        "Tell me about your current routine.",
        "What does a typical week of exercise look like for you?",
    ),
    _voice(
        "pastAttempts",
        Section.TRAINING_HISTORY,
        "Have you tried a program before that didn't stick?",
        "What happened? Too time-consuming, got bored, got hurt? "
        "Knowing what hasn't worked helps me build something that will.",
        ("This is my first time",),
    ),
    _voice(
        "hobbySports",
        Section.TRAINING_HISTORY,
        "Do you play any sports or have active hobbies?",
        "Recreational leagues, hiking, martial arts, cycling. "
        "Anything physical I should program around.",
        ("None right now",),
    ),

    # BODY METRICS
    Screen(
        id="height",
        type=ScreenType.HEIGHT_PICKER,
        section=Section.BODY_METRICS,
        question="How tall are you?",
        field=IntakeField.HEIGHT_INCHES,
        height_default=67,
        height_min=48,
        height_max=96,
    ),
    Screen(
        id="weight",
        type=ScreenType.WEIGHT_PICKER,
        section=Section.BODY_METRICS,
        question="What's your current weight?",
        field=IntakeField.WEIGHT_LBS,
        weight_default=160.0,
        weight_min=60.0,
        weight_max=500.0,
        weight_step=0.1,
    ),
    _voice(
        "bodyComp",
        Section.BODY_METRICS,
        "Do you know your body composition?",
        "Body fat percentage, DEXA scan results, or just a general sense. Are you carrying "
        "extra fat, feeling lean, somewhere in between?",
        ("Not sure",),
    ),

    # FITNESS BASELINE
    Screen(
        id="physicalBaseline",
        type=ScreenType.GUIDED_VOICE,
        section=Section.FITNESS_BASELINE,
        question="Let's get a quick snapshot of where you are.",
        field=IntakeField.PHYSICAL_BASELINE,
        prompts=(
            "Can you do a full squat? Roughly how many?",
            "How about push-ups? How many can you do?",
            "Can you touch your toes?",
            "Any movements that cause pain or discomfort?",
        ),
    ),
    _voice(
        "mobility",
        Section.FITNESS_BASELINE,
        "How's your flexibility and mobility?",
        "Any joints that feel stiff or restricted? Areas where your range of motion is limited? "
        "This is the foundation everything else is built on.",
        ("Pretty flexible", "Average", "Very stiff"),
    ),

    # HEALTH
    _voice(
        "injuries",
        Section.HEALTH,
        "Any injuries or conditions I should know about?",
        "Past surgeries, chronic pain, joint issues. Anything that affects how you move.",
        ("None, I'm good",),
    ),
    _voice(
        "healthNuances",
        Section.HEALTH,
        "Any other health things I should know?",
        "Digestive issues, food allergies, asthma, medications you're on. "
        "Anything that could affect how you train or eat.",
        ("Nothing comes to mind",),
    ),
    _voice(
        "supplements",
        Section.HEALTH,
        "Are you taking any supplements or vitamins?",
        "Protein powder, creatine, multivitamins, pre-workout. Whatever you're currently using.",
        ("None right now",),
    ),

    # LIFESTYLE
    _voice(
        "activityLevel",
        Section.LIFESTYLE,
        "How active are you outside of training?",
        "Think about your daily life. Desk job, on your feet, physical labor?",
        ("Sedentary", "Lightly active", "Active", "Very active"),
    ),
    _voice(
        "sleep",
        Section.LIFESTYLE,
        "How's your sleep?",
        "Recovery starts with rest.",
        ("Poor", "Fair", "Good", "Great"),
    ),
    _voice(
        "nutrition",
        Section.LIFESTYLE,
        "Tell me about how you eat.",
        "Are you tracking calories? Any dietary restrictions? How many meals a day? "
        "I'm not judging, I just need to know what we're working with.",
    ),

    # EQUIPMENT
    _voice(
        "environment",
        Section.EQUIPMENT,
        "Describe your training space.",
        "Where do you train? What equipment do you have? How much room do you have to work with?",
    ),

    # PREFERENCES
    _voice(
        "movementPrefs",
        Section.PREFERENCES,
        "What kind of movement do you actually enjoy?",
        "Lifting, running, yoga, swimming, group classes, being outdoors. "
        "I want to build something you'll look forward to, not dread.",
    ),
    _voice(
        "coachingStyle",
        Section.PREFERENCES,
        "How do you like to be coached?",
        "Everyone responds differently. What works for you?",
        ("Tough love", "Balanced", "Encouraging", "Just tell me what to do"),
    ),

    # ALMOST DONE
    _voice(
        "anythingElse",
        Section.ALMOST_DONE,
        "Anything else I should know?",
        "Work schedule, stress levels, things on your mind. "
        "Anything that helps me build the right program.",
    ),

    Screen(id="complete", type=ScreenType.COMPLETE),
)

# Intro screens have no section label and no progress bar
INTRO_COUNT = 3

INTAKE_START_INDEX = INTRO_COUNT

TOTAL_STEPS = len(ALL_SCREENS)


def intake_screens() -> tuple[Screen, ...]:
    """Question screens only (no intro, no complete screen)."""
    return ALL_SCREENS[INTAKE_START_INDEX:-1]


def total_questions() -> int:
    return len(ALL_SCREENS) - INTRO_COUNT - 1


def screen_at(step: int) -> Screen:
    """Screen for a step index, clamped to the valid range."""
    return ALL_SCREENS[max(0, min(step, len(ALL_SCREENS) - 1))]


@dataclass(frozen=True)
class SectionSpan:
    section: Section
    start_index: int
    count: int


def sections() -> list[SectionSpan]:
    """Contiguous runs of screens sharing a section label, for the progress bar."""
    spans: list[SectionSpan] = []
    for index, screen in enumerate(ALL_SCREENS):
        if screen.section is None:
            continue
        if spans and spans[-1].section == screen.section:
            last = spans[-1]
            spans[-1] = SectionSpan(last.section, last.start_index, last.count + 1)
        else:
            spans.append(SectionSpan(screen.section, index, 1))
    return spans


def phase_for_screen(screen: Screen) -> OnboardingPhase:
    if screen.type.is_intro:
        return OnboardingPhase.INTRO
    if screen.type == ScreenType.COMPLETE:
        return OnboardingPhase.INTAKE_COMPLETE
    return OnboardingPhase.INTAKE
