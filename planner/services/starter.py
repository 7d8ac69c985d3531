"""Built-in 4-day upper/lower split imported on first run."""

from __future__ import annotations

from dataclasses import dataclass

from planner.records import ExerciseTemplate, PlanDay, PlanTemplate

STARTER_TEMPLATE_ID = "starter_upper_lower_4d"
STARTER_TEMPLATE_NAME = "4-Day Upper/Lower Split"
STARTER_START_DATE = "1970-01-01"

# (suffix, weekday, label)
_DAYS = (
    ("upper_a", 1, "Upper Body A (Push-dominant)"),
    ("lower_a", 2, "Lower Body A (Knee-dominant)"),
    ("upper_b", 4, "Upper Body B (Pull-dominant)"),
    ("lower_b", 5, "Lower Body B (Hip-dominant)"),
)

# day suffix -> (id, name, sets, min_reps, max_reps, rest_sec)
_EXERCISES = {
    "upper_a": (
        ("ex_bench_press", "Bench Press", 4, 5, 8, 120),
        ("ex_pullups", "Pull-ups / Lat Pulldown", 4, 6, 10, 120),
        ("ex_overhead_press", "Shoulder Press", 3, 6, 10, 90),
        ("ex_incline_db_press", "Incline Dumbbell Press", 3, 8, 12, 90),
        ("ex_biceps_curl", "Biceps Curls", 3, 10, 12, 75),
        ("ex_triceps_pushdown", "Triceps Pushdown", 3, 10, 12, 75),
    ),
    "lower_a": (
        ("ex_back_squat", "Back Squat", 4, 5, 8, 150),
        ("ex_rdl", "Romanian Deadlift", 3, 6, 10, 120),
        ("ex_lunges", "Lunges", 3, 8, 12, 90),
        ("ex_leg_curl", "Leg Curl", 3, 10, 15, 90),
        ("ex_calf_raise", "Calf Raise", 4, 12, 15, 60),
    ),
    "upper_b": (
        ("ex_barbell_row", "Barbell Row", 4, 6, 10, 120),
        ("ex_incline_bench", "Incline Bench Press", 4, 6, 10, 120),
        ("ex_lateral_raise", "Lateral Raises", 3, 12, 15, 75),
        ("ex_cable_row", "Cable Row", 3, 8, 12, 90),
        ("ex_hammer_curl", "Hammer Curls", 3, 10, 12, 75),
        ("ex_skull_crusher", "Skull Crushers", 3, 10, 12, 75),
    ),
    "lower_b": (
        ("ex_deadlift", "Deadlift", 3, 4, 6, 150),
        ("ex_front_squat", "Front Squat / Leg Press", 3, 6, 10, 120),
        ("ex_hip_thrust", "Hip Thrust", 3, 8, 12, 90),
        ("ex_leg_extension", "Leg Extension", 3, 12, 15, 75),
        ("ex_seated_calf_raise", "Seated Calf Raise", 4, 12, 15, 60),
    ),
}


@dataclass(frozen=True)
class StarterBundle:
    template: PlanTemplate
    plan_days: list[PlanDay]
    exercises: list[ExerciseTemplate]


def create_starter_bundle(timestamp: str) -> StarterBundle:
    template = PlanTemplate(
        id=STARTER_TEMPLATE_ID,
        name=STARTER_TEMPLATE_NAME,
        start_date=STARTER_START_DATE,
        locale="en",
        is_starter=True,
        created_at=timestamp,
        updated_at=timestamp,
    )
    plan_days: list[PlanDay] = []
    exercises: list[ExerciseTemplate] = []
    for suffix, weekday, label in _DAYS:
        day_id = f"{STARTER_TEMPLATE_ID}_{suffix}"
        plan_days.append(PlanDay(id=day_id, template_id=template.id, weekday=weekday, label=label))
        for position, (ex_id, name, sets, min_reps, max_reps, rest) in enumerate(_EXERCISES[suffix]):
            exercises.append(
                ExerciseTemplate(
                    id=ex_id,
                    plan_day_id=day_id,
                    name=name,
                    sets=sets,
                    min_reps=min_reps,
                    max_reps=max_reps,
                    rest_sec_default=rest,
                    position=position,
                )
            )
    return StarterBundle(template=template, plan_days=plan_days, exercises=exercises)
